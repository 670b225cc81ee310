"""
Reading Artifact Models

These models define the schemas for everything the application
persists or receives about a reading:
1. Generated study material (an external collaborator's output)
2. Archived readings (the reader's permanent record)
3. Journal entries kept alongside the readings
4. Outcomes reported back to the interface

DESIGN DECISION: Field aliases match the stored JSON layout
(`dateSaved`, `readingReference`, ...) so existing archives and
backups stay readable. Python code uses snake_case names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class MeditationStatus(str, Enum):
    """How the reader felt a day's meditation went."""
    GOOD = "good"
    OK = "ok"
    BAD = "bad"


MANUAL_READING_DAY = -1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# GENERATED CONTENT
# =============================================================================

class ReadingContent(BaseModel):
    """
    Study material generated for one reading.

    CRITICAL: This comes from a language model. Every field is required
    and checked here, so a partial response is rejected instead of being
    shown or cached.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    passage: str = Field(..., min_length=1)
    pre_reading_questions: list[str] = Field(
        ...,
        alias="preReadingQuestions",
        min_length=1,
    )
    meditation_guide: str = Field(..., alias="meditationGuide", min_length=1)
    context: str = Field(..., min_length=1)
    intention: str = Field(..., min_length=1)
    image_prompt: str = Field(..., alias="imagePrompt", min_length=1)
    summary: str = Field(..., min_length=1)


class CachedReadingContent(ReadingContent):
    """
    Full content bundle as held by the transient cache.

    Unlike archives, the cache may keep the generated image.
    """

    context_image_url: Optional[str] = Field(default=None, alias="contextImageUrl")


# =============================================================================
# ARCHIVE
# =============================================================================

class ArchivedReading(BaseModel):
    """
    A completed reading, kept permanently for the reader.

    `day` is the plan day, or -1 for a reading chosen by hand.
    `context_image_url` only exists so an in-session object can carry the
    image; the archive store always clears it before writing.
    """
    model_config = ConfigDict(populate_by_name=True)

    day: int = Field(
        ...,
        ge=MANUAL_READING_DAY,
        description="Plan day, or -1 for a manual reading"
    )
    date_saved: datetime = Field(
        default_factory=utc_now,
        alias="dateSaved",
        description="When the reading was archived (UTC)"
    )
    reading_reference: str = Field(..., alias="readingReference", min_length=1)
    passage: str
    meditation_guide: str = Field(..., alias="meditationGuide")
    context: str = ""
    intention: str = ""
    context_image_url: Optional[str] = Field(default=None, alias="contextImageUrl")

    @model_validator(mode='after')
    def validate_day(self) -> 'ArchivedReading':
        if self.day == 0:
            raise ValueError("Day must be -1 (manual) or a plan day >= 1")
        return self

    @property
    def is_manual(self) -> bool:
        return self.day == MANUAL_READING_DAY

    def without_image(self) -> 'ArchivedReading':
        """Copy of this reading with the image reference dropped."""
        return self.model_copy(update={"context_image_url": None})

    def to_storage_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# =============================================================================
# JOURNAL
# =============================================================================

class DiaryEntry(BaseModel):
    """A free-form faith diary entry."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    date_saved: datetime = Field(default_factory=utc_now, alias="dateSaved")
    title: str = ""
    content: str = ""
    reading_reference: Optional[str] = Field(default=None, alias="readingReference")


class MissionPlan(BaseModel):
    """A plan to share a passage with someone."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    date_saved: datetime = Field(default_factory=utc_now, alias="dateSaved")
    target_name: str = Field(default="", alias="targetName")
    plan: str = ""
    completed: bool = False


# =============================================================================
# OUTCOMES (reported to the interface instead of raising)
# =============================================================================

class CompletionOutcome(BaseModel):
    """Result of completing a reading."""

    success: bool
    archive_id: str
    message: str
    last_completed_day: int = Field(default=0, ge=0)
    status: Optional[MeditationStatus] = None


class RestoreOutcome(BaseModel):
    """Result of restoring a backup document."""

    success: bool
    message: str
    restored_keys: int = Field(default=0, ge=0)


class LoginOutcome(BaseModel):
    """Where a reader resumes after logging in."""

    username: str
    last_completed_day: int = Field(ge=0)
    next_day: int = Field(ge=1)


# =============================================================================
# DASHBOARD
# =============================================================================

class StatusCounts(BaseModel):
    good: int = 0
    ok: int = 0
    bad: int = 0

    @property
    def total(self) -> int:
        return self.good + self.ok + self.bad


class HistoryItem(BaseModel):
    key: str
    reading: ArchivedReading


class BookProgress(BaseModel):
    name: str
    count: int = Field(ge=0)
    percent: int = Field(ge=0, le=100)


class DashboardSummary(BaseModel):
    """Aggregate view of a reader's journey so far."""

    status_counts: StatusCounts
    total_archived: int = Field(ge=0)
    completion_rate: int = Field(ge=0)
    level: int = Field(ge=1, le=4)
    history: list[HistoryItem] = Field(default_factory=list)
    book_progress: list[BookProgress] = Field(default_factory=list)
