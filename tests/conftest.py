"""
Shared fixtures.

Every repository is built over a fresh in-memory keyspace with zero
simulated latency, so tests are fast and never share state.
"""

from typing import Optional

import pytest

from devotional.agents import ContentGenerationError, ReadingContentGenerator
from devotional.audit import AuditLogger
from devotional.models import (
    ArchivedReading,
    CurriculumEntry,
    DailyReading,
    Locale,
    LocalizedName,
    ReadingContent,
)
from devotional.plan import ReadingPlan, format_reference
from devotional.services.storage import (
    ArchiveStore,
    BackupCodec,
    IdentityStore,
    InMemoryKeyValueStore,
    ProgressTracker,
    StatusLedger,
    TransientContentCache,
)


CACHE_VERSION = 9


def make_entry(name: str, chapters: int) -> CurriculumEntry:
    return CurriculumEntry(name=LocalizedName(ko=name, en=name), chapter_count=chapters)


def make_content(reference: str = "Romans 1-2") -> ReadingContent:
    return ReadingContent(
        passage=f"Text of {reference}",
        pre_reading_questions=["What does grace mean here? (gift)"],
        meditation_guide="**Key Message**\nGrace",
        context="Written to the church in Rome.",
        intention="To explain the gospel.",
        image_prompt="Light over an open road",
        summary="Paul greets the Romans.",
    )


def make_archived(day: int = 1, image: Optional[str] = None, **overrides) -> ArchivedReading:
    data = dict(
        day=day,
        reading_reference="Romans 1-2",
        passage="Paul, a servant of Christ Jesus...",
        meditation_guide="**Key Message**\nGrace",
        context="Rome, around AD 57",
        intention="To explain the gospel",
        context_image_url=image,
    )
    data.update(overrides)
    return ArchivedReading(**data)


class FakeGenerator(ReadingContentGenerator):
    """Records calls and returns canned content."""

    def __init__(self, image: Optional[str] = "data:image/png;base64,AAAA", fail: bool = False):
        self.image = image
        self.fail = fail
        self.content_calls: list[str] = []
        self.image_calls: list[str] = []

    async def generate_reading_content(
        self,
        reading: DailyReading,
        locale: Locale,
    ) -> ReadingContent:
        reference = format_reference(reading, locale)
        self.content_calls.append(reference)
        if self.fail:
            raise ContentGenerationError("generator is down")
        return make_content(reference)

    async def generate_context_image(
        self,
        prompt: str,
        fallback_context: str,
        locale: Locale,
    ) -> Optional[str]:
        self.image_calls.append(prompt)
        return self.image


@pytest.fixture
def backend():
    return InMemoryKeyValueStore()


@pytest.fixture
def content_cache(backend):
    return TransientContentCache(backend, latency_seconds=0, version=CACHE_VERSION)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def archive_store(backend, content_cache, audit_logger):
    return ArchiveStore(
        backend,
        latency_seconds=0,
        content_cache=content_cache,
        audit_logger=audit_logger,
    )


@pytest.fixture
def status_ledger(backend):
    return StatusLedger(backend, latency_seconds=0)


@pytest.fixture
def progress_tracker(backend):
    return ProgressTracker(backend, latency_seconds=0)


@pytest.fixture
def identity_store(backend):
    return IdentityStore(backend, latency_seconds=0)


@pytest.fixture
def backup_codec(backend):
    return BackupCodec(backend, latency_seconds=0)


@pytest.fixture
def small_plan():
    """Curriculum [A:3, B:2]."""
    return ReadingPlan([make_entry("A", 3), make_entry("B", 2)])


@pytest.fixture
def plan():
    return ReadingPlan()


@pytest.fixture
def generator():
    return FakeGenerator()
