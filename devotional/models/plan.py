"""
Reading Plan Models

These models describe the static curriculum and the values the day
scheduler derives from it. All of them are frozen: a curriculum is
defined once at process start and everything computed from it is a
value, never a handle on shared state.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Locale(str, Enum):
    """Display languages supported by the plan."""
    KO = "ko"
    EN = "en"


class LocalizedName(BaseModel):
    """A text's name in every supported locale."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    ko: str = Field(..., min_length=1)
    en: str = Field(..., min_length=1)

    def for_locale(self, locale: Locale) -> str:
        return getattr(self, Locale(locale).value)


class CurriculumEntry(BaseModel):
    """
    One text of the curriculum.

    Order of entries is meaningful: chapter numbering continues from
    one entry into the next when the plan is flattened.
    """
    model_config = ConfigDict(frozen=True)

    name: LocalizedName
    chapter_count: int = Field(
        ...,
        gt=0,
        description="Number of chapters in this text"
    )


class PlanUnit(BaseModel):
    """A single chapter of the flattened plan, still carrying every locale."""
    model_config = ConfigDict(frozen=True)

    entry: CurriculumEntry
    chapter: int = Field(..., ge=1)

    @model_validator(mode='after')
    def validate_chapter(self) -> 'PlanUnit':
        if self.chapter > self.entry.chapter_count:
            raise ValueError(
                f"Chapter {self.chapter} is outside {self.entry.name.en} "
                f"(1-{self.entry.chapter_count})"
            )
        return self

    def localize(self, locale: Locale) -> 'ChapterUnit':
        return ChapterUnit(book=self.entry.name.for_locale(locale), chapter=self.chapter)


class ChapterUnit(BaseModel):
    """A chapter rendered for one locale."""
    model_config = ConfigDict(frozen=True)

    book: str = Field(..., min_length=1)
    chapter: int = Field(..., ge=1)


class DailyReading(BaseModel):
    """
    One day's assignment: exactly two chapters, in reading order.

    Identity is derived from content. Two readings with the same units
    compare equal and format to the same reference.
    """
    model_config = ConfigDict(frozen=True)

    first: ChapterUnit
    second: ChapterUnit

    @property
    def units(self) -> tuple[ChapterUnit, ChapterUnit]:
        return (self.first, self.second)

    @property
    def is_single_book(self) -> bool:
        return self.first.book == self.second.book


class ScheduleItem(BaseModel):
    """A row of the table of contents."""
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1)
    reference: str
