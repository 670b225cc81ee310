"""
Data Models Package

This package contains all Pydantic models used in the Pauline Devotional system.
All data flowing through the system must conform to these schemas.
"""

from devotional.models.plan import (
    ChapterUnit,
    CurriculumEntry,
    DailyReading,
    Locale,
    LocalizedName,
    PlanUnit,
    ScheduleItem,
)
from devotional.models.reading import (
    MANUAL_READING_DAY,
    ArchivedReading,
    BookProgress,
    CachedReadingContent,
    CompletionOutcome,
    DashboardSummary,
    DiaryEntry,
    HistoryItem,
    LoginOutcome,
    MeditationStatus,
    MissionPlan,
    ReadingContent,
    RestoreOutcome,
    StatusCounts,
)
from devotional.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Plan models
    "ChapterUnit",
    "CurriculumEntry",
    "DailyReading",
    "Locale",
    "LocalizedName",
    "PlanUnit",
    "ScheduleItem",
    # Reading models
    "MANUAL_READING_DAY",
    "ArchivedReading",
    "BookProgress",
    "CachedReadingContent",
    "CompletionOutcome",
    "DashboardSummary",
    "DiaryEntry",
    "HistoryItem",
    "LoginOutcome",
    "MeditationStatus",
    "MissionPlan",
    "ReadingContent",
    "RestoreOutcome",
    "StatusCounts",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
