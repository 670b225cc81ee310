"""
Day Scheduler

DESIGN DECISION: The reading for a day is COMPUTED, never stored.
The curriculum is flattened once into a sequence of single chapters and
day N reads chapters 2(N-1) and 2(N-1)+1 of that sequence, wrapping
around at the end. Nothing here touches storage, the clock or the
current user, so any day can be recomputed anywhere with the same result.

The formatted reference doubles as a lookup key for cached content and
manual archives, so formatting must be just as deterministic.
"""

import math
import re
from functools import lru_cache
from typing import Sequence

from devotional.models.plan import (
    ChapterUnit,
    CurriculumEntry,
    DailyReading,
    Locale,
    PlanUnit,
    ScheduleItem,
)
from devotional.plan.curriculum import PAULINE_EPISTLES


# Marker written right after a chapter number ("1장"); English uses none.
CHAPTER_SUFFIX = {
    Locale.KO: "장",
    Locale.EN: "",
}

SEGMENT_SEPARATOR = {
    Locale.KO: ", ",
    Locale.EN: ", ",
}

_KEY_UNSAFE = re.compile(r"[^a-zA-Z0-9가-힣]")


def expand_curriculum(curriculum: Sequence[CurriculumEntry]) -> tuple[PlanUnit, ...]:
    """
    Flatten the curriculum into one unit per chapter.

    Entry order is preserved and chapters ascend within an entry.
    """
    return tuple(
        PlanUnit(entry=entry, chapter=chapter)
        for entry in curriculum
        for chapter in range(1, entry.chapter_count + 1)
    )


def format_reference(reading: DailyReading, locale: Locale) -> str:
    """
    Render a reading as display text.

    Same book:      "Romans 1-2"      / "로마서 1-2장"
    Across books:   "Galatians 6, Romans 1" / "갈라디아서 6장, 로마서 1장"
    """
    locale = Locale(locale)
    suffix = CHAPTER_SUFFIX[locale]
    first, second = reading.units

    if reading.is_single_book:
        return f"{first.book} {first.chapter}-{second.chapter}{suffix}"

    return SEGMENT_SEPARATOR[locale].join(
        f"{unit.book} {unit.chapter}{suffix}" for unit in (first, second)
    )


def reference_key(reference: str) -> str:
    """
    Strip a reference down to a storage-safe key.

    Keeps ASCII letters, digits and Hangul syllables.
    """
    return _KEY_UNSAFE.sub("", reference)


class ReadingPlan:
    """
    A cyclic two-chapters-a-day plan over an ordered curriculum.

    The flattened unit sequence is computed once at construction and
    exposed only as an immutable tuple.
    """

    def __init__(self, curriculum: Sequence[CurriculumEntry] = PAULINE_EPISTLES):
        self._curriculum = tuple(curriculum)
        if not self._curriculum:
            raise ValueError("A reading plan needs at least one curriculum entry")
        self._units = expand_curriculum(self._curriculum)

    @property
    def curriculum(self) -> tuple[CurriculumEntry, ...]:
        return self._curriculum

    @property
    def units(self) -> tuple[PlanUnit, ...]:
        return self._units

    @property
    def total_units(self) -> int:
        return len(self._units)

    @property
    def total_days(self) -> int:
        """Days needed to read every chapter once."""
        return math.ceil(self.total_units / 2)

    @property
    def cycle_length(self) -> int:
        """
        Days after which the schedule repeats exactly.

        With an odd chapter count the pairing shifts by one each pass,
        so it takes a full `total_units` days to line up again.
        """
        if self.total_units % 2:
            return self.total_units
        return self.total_units // 2

    def reading_for_day(self, day: int, locale: Locale) -> DailyReading:
        """
        Get the two chapters assigned to a day.

        Days below 1 read as day 1. Past the end of the curriculum the
        plan wraps to its beginning.
        """
        locale = Locale(locale)
        safe_day = max(1, int(day))
        start = ((safe_day - 1) * 2) % self.total_units

        first = self._units[start]
        second = self._units[(start + 1) % self.total_units]

        return DailyReading(
            first=first.localize(locale),
            second=second.localize(locale),
        )

    def format_reference(self, reading: DailyReading, locale: Locale) -> str:
        return format_reference(reading, locale)

    def reference_for_day(self, day: int, locale: Locale) -> str:
        return format_reference(self.reading_for_day(day, locale), locale)

    def full_schedule(self, locale: Locale) -> list[ScheduleItem]:
        """Table of contents: every day of one pass through the curriculum."""
        return [
            ScheduleItem(day=day, reference=self.reference_for_day(day, locale))
            for day in range(1, self.total_days + 1)
        ]

    def manual_reading(
        self,
        entry_index: int,
        start_chapter: int,
        locale: Locale,
    ) -> DailyReading:
        """
        Build a reading the reader picked by hand.

        The second chapter follows the first; past the end of a text it
        moves to chapter 1 of the next text, and at the very last
        chapter of the curriculum it repeats the same chapter.
        """
        locale = Locale(locale)
        if not 0 <= entry_index < len(self._curriculum):
            raise ValueError(f"No curriculum entry at index {entry_index}")

        entry = self._curriculum[entry_index]
        if not 1 <= start_chapter <= entry.chapter_count:
            raise ValueError(
                f"{entry.name.en} has chapters 1-{entry.chapter_count}, "
                f"got {start_chapter}"
            )

        first = ChapterUnit(book=entry.name.for_locale(locale), chapter=start_chapter)

        if start_chapter < entry.chapter_count:
            second = ChapterUnit(book=first.book, chapter=start_chapter + 1)
        elif entry_index + 1 < len(self._curriculum):
            next_entry = self._curriculum[entry_index + 1]
            second = ChapterUnit(book=next_entry.name.for_locale(locale), chapter=1)
        else:
            second = first

        return DailyReading(first=first, second=second)

    def entry_progress_denominator(self, entry: CurriculumEntry) -> int:
        """Days a single text takes on its own at two chapters a day."""
        return math.ceil(entry.chapter_count / 2)


@lru_cache()
def get_reading_plan() -> ReadingPlan:
    """The application's plan over the Pauline epistles (cached)."""
    return ReadingPlan(PAULINE_EPISTLES)
