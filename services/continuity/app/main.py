"""FastAPI entrypoint for the continuity service."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from longform_observability import log_context, setup_fastapi_metrics, setup_logging
from longform_providers import LLMProvider, ProviderConfigError, ProviderError
from longform_schemas import Chapter, Novel
from longform_schemas.utils import StructuredOutputError, safe_parse_json_array

from .cancellation import CancellationToken
from .generators.engine import (
    StructuredGenerationError,
    generate_structured_items,
    parse_structured_items,
)
from .models import (
    CancelResponse,
    ChapterCreateRequest,
    ChapterWriteRequest,
    ChapterWriteResponse,
    DeleteResponse,
    StructuredGenerateRequest,
    StructuredGenerateResponse,
    StructuredParseRequest,
    StructuredParseResponse,
    SummaryConfig,
)
from .providers import load_summary_config
from .store import ChapterNotFoundError, NovelNotFoundError, NovelStore
from .summaries.engine import check_and_generate_summary

SERVICE_NAME = "continuity"
setup_logging(SERVICE_NAME)
logger = logging.getLogger(__name__)

app = FastAPI(title="Long-form Continuity Service", version="0.1.0")
setup_fastapi_metrics(app, service_name=SERVICE_NAME)

_STORE = NovelStore()


def get_store() -> NovelStore:
    return _STORE


def get_summary_provider() -> Optional[LLMProvider]:
    """Provider for summary passes; ``None`` builds one from the summary config."""

    return None


@app.exception_handler(NovelNotFoundError)
@app.exception_handler(ChapterNotFoundError)
async def _not_found(_: Request, exc: LookupError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.put("/novels/{novel_id}", response_model=Novel, tags=["novels"])
async def put_novel(novel_id: UUID, payload: Novel, store: NovelStore = Depends(get_store)) -> Novel:
    if payload.id != novel_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Novel id does not match path")
    return store.put_novel(payload)


@app.get("/novels/{novel_id}", response_model=Novel, tags=["novels"])
async def get_novel(novel_id: UUID, store: NovelStore = Depends(get_store)) -> Novel:
    return store.get_novel(novel_id)


@app.post(
    "/novels/{novel_id}/chapters",
    response_model=Chapter,
    status_code=status.HTTP_201_CREATED,
    tags=["chapters"],
)
async def add_chapter(
    novel_id: UUID,
    payload: ChapterCreateRequest,
    store: NovelStore = Depends(get_store),
) -> Chapter:
    return store.add_chapter(novel_id, title=payload.title, volume_id=payload.volume_id)


async def _run_summaries(
    store: NovelStore,
    token: CancellationToken,
    novel_id: UUID,
    chapter_id: UUID,
    content: str,
    config: SummaryConfig,
    force_final: bool,
    provider: Optional[LLMProvider],
) -> None:
    try:
        await check_and_generate_summary(
            chapter_id,
            content,
            novel_id,
            store.snapshot(),
            store.publish,
            config,
            provider=provider,
            token=token,
            force_final=force_final,
        )
    finally:
        store.release_token(novel_id, token)


@app.put(
    "/novels/{novel_id}/chapters/{chapter_id}",
    response_model=ChapterWriteResponse,
    tags=["chapters"],
)
async def write_chapter(
    novel_id: UUID,
    chapter_id: UUID,
    payload: ChapterWriteRequest,
    background_tasks: BackgroundTasks,
    store: NovelStore = Depends(get_store),
    provider: Optional[LLMProvider] = Depends(get_summary_provider),
) -> ChapterWriteResponse:
    chapter = store.write_chapter(novel_id, chapter_id, payload.content)

    config = payload.summary
    if config is None:
        try:
            config = load_summary_config()
        except ProviderConfigError as exc:
            logger.warning("Invalid summary configuration: %s", exc)
            config = None

    scheduled = config is not None and chapter.is_story
    if scheduled:
        token = store.issue_token(novel_id)
        background_tasks.add_task(
            _run_summaries,
            store,
            token,
            novel_id,
            chapter_id,
            payload.content,
            config,
            payload.force_final,
            provider,
        )

    with log_context(novel_id=novel_id, chapter_id=chapter_id):
        logger.info("Stored chapter write", extra={"summaries_scheduled": scheduled})

    return ChapterWriteResponse(chapter=chapter, summaries_scheduled=scheduled)


@app.delete(
    "/novels/{novel_id}/chapters/{chapter_id}",
    response_model=DeleteResponse,
    tags=["chapters"],
)
async def delete_chapter(
    novel_id: UUID, chapter_id: UUID, store: NovelStore = Depends(get_store)
) -> DeleteResponse:
    return DeleteResponse(deleted_ids=store.delete_chapter(novel_id, chapter_id))


@app.delete(
    "/novels/{novel_id}/volumes/{volume_id}",
    response_model=DeleteResponse,
    tags=["chapters"],
)
async def delete_volume(
    novel_id: UUID, volume_id: str, store: NovelStore = Depends(get_store)
) -> DeleteResponse:
    store.get_novel(novel_id)
    return DeleteResponse(deleted_ids=store.delete_volume(novel_id, volume_id))


@app.post("/novels/{novel_id}/summaries/cancel", response_model=CancelResponse, tags=["summaries"])
async def cancel_summaries(novel_id: UUID, store: NovelStore = Depends(get_store)) -> CancelResponse:
    store.get_novel(novel_id)
    return CancelResponse(cancelled=store.cancel_pending(novel_id, reason="cancelled by client"))


@app.post("/structured/parse", response_model=StructuredParseResponse, tags=["structured"])
async def structured_parse(payload: StructuredParseRequest) -> StructuredParseResponse:
    try:
        if payload.kind is None:
            records, items = safe_parse_json_array(payload.text), []
        else:
            records, items = parse_structured_items(payload.text, payload.kind)
    except StructuredOutputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return StructuredParseResponse(records=records, items=items)


@app.post("/structured/generate", response_model=StructuredGenerateResponse, tags=["structured"])
async def structured_generate(payload: StructuredGenerateRequest) -> StructuredGenerateResponse:
    try:
        result = await generate_structured_items(
            payload.kind,
            payload.instructions,
            context=payload.context,
            override=payload.provider,
        )
    except (StructuredGenerationError, ProviderError) as exc:
        logger.warning("Structured generation failed: %s", exc, extra={"content_kind": payload.kind.value})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Structured generation failed") from exc

    return StructuredGenerateResponse(
        kind=result.kind,
        items=result.items,
        model=result.model,
        cost_usd=result.cost_usd,
    )
