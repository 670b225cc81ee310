"""
Curriculum Table

The Pauline epistles in reading order. Galatians comes first so a new
reader finishes a whole letter in the first three days; Romans follows.
"""

from devotional.models.plan import CurriculumEntry, LocalizedName


def _entry(ko: str, en: str, chapters: int) -> CurriculumEntry:
    return CurriculumEntry(name=LocalizedName(ko=ko, en=en), chapter_count=chapters)


PAULINE_EPISTLES: tuple[CurriculumEntry, ...] = (
    _entry("갈라디아서", "Galatians", 6),
    _entry("로마서", "Romans", 16),
    _entry("고린도전서", "1 Corinthians", 16),
    _entry("고린도후서", "2 Corinthians", 13),
    _entry("에베소서", "Ephesians", 6),
    _entry("빌립보서", "Philippians", 4),
    _entry("골로새서", "Colossians", 4),
    _entry("데살로니가전서", "1 Thessalonians", 5),
    _entry("데살로니가후서", "2 Thessalonians", 3),
    _entry("디모데전서", "1 Timothy", 6),
    _entry("디모데후서", "2 Timothy", 4),
    _entry("디도서", "Titus", 3),
    _entry("빌레몬서", "Philemon", 1),
)
