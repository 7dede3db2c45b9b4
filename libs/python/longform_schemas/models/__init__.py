from .generators import CharacterItem, GeneratorItem, InspirationItem, OutlineItem, WorldviewItem
from .novel import Chapter, ChapterVersion, Novel, Volume

__all__ = [
    "Chapter",
    "ChapterVersion",
    "Novel",
    "Volume",
    "OutlineItem",
    "CharacterItem",
    "WorldviewItem",
    "InspirationItem",
    "GeneratorItem",
]
