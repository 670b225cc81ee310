"""
Integration tests for the reading, account and dashboard flows.

Content generation is faked; storage is a zero-latency in-memory keyspace.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from devotional.agents import ContentGenerationError
from devotional.config import AppSettings
from devotional.models import AuditEventType, Locale, MeditationStatus
from devotional.orchestrator import (
    AccountFlow,
    DashboardFlow,
    ReadingFlow,
    create_app_components,
    spiritual_level,
)
from devotional.plan import format_reference
from devotional.services.storage import (
    ArchiveStore,
    InMemoryKeyValueStore,
    ProgressTracker,
    StatusLedger,
    StorageError,
    TransientContentCache,
)
from tests.conftest import FakeGenerator, make_archived, make_content


@pytest.fixture
def reading_flow(plan, content_cache, archive_store, status_ledger, progress_tracker, generator, audit_logger):
    return ReadingFlow(
        plan=plan,
        content_cache=content_cache,
        archive_store=archive_store,
        status_ledger=status_ledger,
        progress_tracker=progress_tracker,
        generator=generator,
        audit_logger=audit_logger,
    )


@pytest.fixture
def account_flow(identity_store, progress_tracker, backup_codec, audit_logger):
    return AccountFlow(
        identity_store=identity_store,
        progress_tracker=progress_tracker,
        backup_codec=backup_codec,
        audit_logger=audit_logger,
    )


@pytest.fixture
def dashboard_flow(plan, archive_store, status_ledger):
    return DashboardFlow(plan=plan, archive_store=archive_store, status_ledger=status_ledger)


class TestLoadContent:
    """Tests for serving study material."""

    @pytest.mark.asyncio
    async def test_generates_then_caches(self, reading_flow, generator, plan):
        reading = plan.reading_for_day(4, Locale.EN)

        first = await reading_flow.load_content(reading, Locale.EN)
        second = await reading_flow.load_content(reading, Locale.EN)

        assert first.context_image_url == generator.image
        assert second == first
        assert generator.content_calls == ["Romans 1-2"]
        assert len(generator.image_calls) == 1

    @pytest.mark.asyncio
    async def test_locales_cache_separately(self, reading_flow, generator, plan):
        await reading_flow.load_content(plan.reading_for_day(4, Locale.EN), Locale.EN)
        await reading_flow.load_content(plan.reading_for_day(4, Locale.KO), Locale.KO)
        assert generator.content_calls == ["Romans 1-2", "로마서 1-2장"]

    @pytest.mark.asyncio
    async def test_generation_failure_propagates_and_caches_nothing(
        self, plan, content_cache, archive_store, status_ledger, progress_tracker, backend
    ):
        flow = ReadingFlow(
            plan=plan,
            content_cache=content_cache,
            archive_store=archive_store,
            status_ledger=status_ledger,
            progress_tracker=progress_tracker,
            generator=FakeGenerator(fail=True),
        )
        with pytest.raises(ContentGenerationError):
            await flow.load_content(plan.reading_for_day(1, Locale.EN), Locale.EN)
        assert backend.keys() == []

    @pytest.mark.asyncio
    async def test_without_generator_only_cache_serves(
        self, plan, content_cache, archive_store, status_ledger, progress_tracker
    ):
        flow = ReadingFlow(
            plan=plan,
            content_cache=content_cache,
            archive_store=archive_store,
            status_ledger=status_ledger,
            progress_tracker=progress_tracker,
        )
        with pytest.raises(RuntimeError):
            await flow.load_content(plan.reading_for_day(1, Locale.EN), Locale.EN)


class TestCompleteReading:
    """Tests for completing readings."""

    @pytest.mark.asyncio
    async def test_sequential_completion(
        self, reading_flow, archive_store, status_ledger, progress_tracker, audit_logger
    ):
        """Test that completing a day archives it, marks it good and advances progress."""
        outcome = await reading_flow.complete_reading(
            "grace", 4, "Romans 1-2", make_content(), image="data:image/png;base64,AAAA"
        )

        assert outcome.success
        assert outcome.archive_id == "4"
        assert outcome.last_completed_day == 4
        assert outcome.status == MeditationStatus.GOOD

        archived = await archive_store.get("grace", 4)
        assert archived.context_image_url is None
        assert archived.reading_reference == "Romans 1-2"
        assert await status_ledger.get("grace", 4) == MeditationStatus.GOOD
        assert await progress_tracker.get_progress("grace") == 4
        assert await reading_flow.is_completed("grace", 4, "Romans 1-2")

        event_types = [event.event_type for event in audit_logger.events]
        assert AuditEventType.READING_ARCHIVED in event_types
        assert AuditEventType.DAY_COMPLETED in event_types

    @pytest.mark.asyncio
    @pytest.mark.parametrize("day", [0, -5])
    async def test_day_below_one_counts_as_day_one(self, reading_flow, archive_store, progress_tracker, day):
        outcome = await reading_flow.complete_reading("grace", day, "Galatians 1-2", make_content())

        assert outcome.success
        assert outcome.archive_id == "1"
        assert outcome.last_completed_day == 1
        assert (await archive_store.get("grace", 1)).day == 1
        assert await progress_tracker.get_progress("grace") == 1
        assert await reading_flow.is_completed("grace", 0, "Galatians 1-2")

    @pytest.mark.asyncio
    async def test_good_status_is_not_toggled_off(self, reading_flow, status_ledger):
        """Test that completing an already-good day keeps it good."""
        await status_ledger.toggle("grace", 2, MeditationStatus.GOOD)
        await reading_flow.complete_reading("grace", 2, "Galatians 3-4", make_content())
        assert await status_ledger.get("grace", 2) == MeditationStatus.GOOD

    @pytest.mark.asyncio
    async def test_other_status_becomes_good(self, reading_flow, status_ledger):
        await status_ledger.toggle("grace", 2, MeditationStatus.BAD)
        await reading_flow.complete_reading("grace", 2, "Galatians 3-4", make_content())
        assert await status_ledger.get("grace", 2) == MeditationStatus.GOOD

    @pytest.mark.asyncio
    async def test_recompleting_an_old_day_keeps_progress(self, reading_flow, progress_tracker):
        await reading_flow.complete_reading("grace", 5, "Romans 3-4", make_content())
        outcome = await reading_flow.complete_reading("grace", 2, "Galatians 3-4", make_content())
        assert outcome.last_completed_day == 5
        assert await progress_tracker.get_progress("grace") == 5

    @pytest.mark.asyncio
    async def test_manual_completion(self, reading_flow, archive_store, status_ledger, progress_tracker):
        """Test that a manual reading is archived without touching the plan."""
        outcome = await reading_flow.complete_reading("grace", None, "로마서 3-4장", make_content())

        assert outcome.success
        assert outcome.archive_id == "manual-로마서34장"
        assert outcome.status is None

        archived = await archive_store.get("grace", "manual-로마서34장")
        assert archived.day == -1
        assert await status_ledger.get_all("grace") == {}
        assert await progress_tracker.get_progress("grace") == 0

    @pytest.mark.asyncio
    async def test_storage_full_is_reported(self, plan, audit_logger):
        """Test that an archive that cannot be written is an outcome, not an exception."""
        backend = InMemoryKeyValueStore(quota_bytes=64)
        cache = TransientContentCache(backend, latency_seconds=0, version=9)
        flow = ReadingFlow(
            plan=plan,
            content_cache=cache,
            archive_store=ArchiveStore(backend, latency_seconds=0, content_cache=cache),
            status_ledger=StatusLedger(backend, latency_seconds=0),
            progress_tracker=ProgressTracker(backend, latency_seconds=0),
            audit_logger=audit_logger,
        )

        outcome = await flow.complete_reading("grace", 1, "Galatians 1-2", make_content())

        assert not outcome.success
        assert outcome.last_completed_day == 0
        assert backend.keys() == []
        assert audit_logger.events[-1].event_type == AuditEventType.ARCHIVE_WRITE_FAILED

    @pytest.mark.asyncio
    async def test_toggle_status_is_audited(self, reading_flow, audit_logger):
        ledger = await reading_flow.toggle_status("grace", 3, MeditationStatus.OK)
        assert ledger == {3: MeditationStatus.OK}
        assert audit_logger.events[-1].event_type == AuditEventType.STATUS_CHANGED


class TestAccountFlow:
    """Tests for login, logout, backup and restore."""

    @pytest.mark.asyncio
    async def test_new_user_starts_at_day_one(self, account_flow):
        outcome = await account_flow.login("grace")
        assert outcome.last_completed_day == 0
        assert outcome.next_day == 1

    @pytest.mark.asyncio
    async def test_returning_user_resumes(self, account_flow, progress_tracker):
        await progress_tracker.advance("grace", 6)
        outcome = await account_flow.login(" grace ")
        assert outcome.username == "grace"
        assert outcome.next_day == 7
        assert await account_flow.current_user() == "grace"

    @pytest.mark.asyncio
    async def test_logout(self, account_flow, audit_logger):
        await account_flow.login("grace")
        await account_flow.logout()
        assert await account_flow.current_user() is None
        assert audit_logger.events[-1].event_type == AuditEventType.USER_LOGGED_OUT

    @pytest.mark.asyncio
    async def test_backup_and_restore(self, account_flow, reading_flow, backend):
        await reading_flow.complete_reading("grace", 1, "Galatians 1-2", make_content())
        document = await account_flow.backup("grace")
        backend.clear()

        outcome = await account_flow.restore("grace", document)

        assert outcome.success
        assert outcome.restored_keys == len(json.loads(document))
        assert (await account_flow.login("grace")).next_day == 2

    @pytest.mark.asyncio
    async def test_bad_restore_is_reported(self, account_flow, audit_logger):
        outcome = await account_flow.restore("grace", "not a backup")
        assert not outcome.success
        assert outcome.restored_keys == 0
        assert audit_logger.events[-1].event_type == AuditEventType.RESTORE_FAILED


class TestDashboard:
    """Tests for the dashboard summary."""

    @pytest.mark.asyncio
    async def test_empty(self, dashboard_flow):
        summary = await dashboard_flow.summarize("grace", Locale.EN)
        assert summary.total_archived == 0
        assert summary.completion_rate == 0
        assert summary.level == 1
        assert summary.history == []
        assert len(summary.book_progress) == 13

    @pytest.mark.asyncio
    async def test_counts_and_rate(self, dashboard_flow, status_ledger):
        for day, status in [(1, "good"), (2, "good"), (3, "ok"), (4, "bad")]:
            await status_ledger.toggle("grace", day, status)

        summary = await dashboard_flow.summarize("grace", Locale.EN)

        assert summary.status_counts.good == 2
        assert summary.status_counts.ok == 1
        assert summary.status_counts.bad == 1
        assert summary.completion_rate == round(4 / 44 * 100)

    @pytest.mark.asyncio
    async def test_history_newest_first(self, dashboard_flow, archive_store):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for day in (1, 2, 3):
            await archive_store.put(
                "grace", day, make_archived(day=day, date_saved=start + timedelta(days=day))
            )
        summary = await dashboard_flow.summarize("grace", Locale.EN)
        assert [item.key for item in summary.history] == ["3", "2", "1"]

    @pytest.mark.asyncio
    async def test_book_progress(self, dashboard_flow, archive_store, plan):
        """Test per-letter progress from archived references."""
        for day in (1, 2):
            reference = format_reference(plan.reading_for_day(day, Locale.EN), Locale.EN)
            await archive_store.put("grace", day, make_archived(day=day, reading_reference=reference))

        summary = await dashboard_flow.summarize("grace", Locale.EN)
        progress = {book.name: book for book in summary.book_progress}

        assert progress["Galatians"].count == 2
        assert progress["Galatians"].percent == 67
        assert progress["Romans"].count == 0

    @pytest.mark.asyncio
    async def test_book_progress_caps_at_100(self, dashboard_flow, archive_store):
        for day in range(1, 6):
            await archive_store.put("grace", day, make_archived(day=day, reading_reference="Philemon 1"))
        summary = await dashboard_flow.summarize("grace", Locale.EN)
        progress = {book.name: book for book in summary.book_progress}
        assert progress["Philemon"].percent == 100
        assert summary.level == 2

    @pytest.mark.parametrize("archived,level", [(0, 1), (4, 1), (5, 2), (14, 2), (15, 3), (29, 3), (30, 4)])
    def test_spiritual_level(self, archived, level):
        assert spiritual_level(archived) == level


class TestAppComponents:
    @pytest.mark.asyncio
    async def test_wires_one_keyspace(self):
        settings = AppSettings(storage_backend="memory", simulated_latency_ms=0)
        reading_flow, account_flow, dashboard_flow = create_app_components(
            settings, generator=FakeGenerator()
        )

        await account_flow.login("grace")
        reading = reading_flow.reading_for_day(1, Locale.EN)
        content = await reading_flow.load_content(reading, Locale.EN)
        reference = format_reference(reading, Locale.EN)
        outcome = await reading_flow.complete_reading("grace", 1, reference, content, content.context_image_url)

        assert outcome.success
        summary = await dashboard_flow.summarize("grace", Locale.EN)
        assert summary.total_archived == 1
        assert (await account_flow.login("grace")).next_day == 2

    @pytest.mark.asyncio
    async def test_audit_history_is_not_retained(self):
        """Test that a long-running session does not accumulate audit events."""
        settings = AppSettings(storage_backend="memory", simulated_latency_ms=0)
        reading_flow, _, _ = create_app_components(settings)

        for _ in range(50):
            await reading_flow.toggle_status("grace", 1, MeditationStatus.GOOD)

        assert reading_flow._audit_logger.events == []


class ReadFailingStore(InMemoryKeyValueStore):
    """Keyspace that accepts writes but cannot be read."""

    def get_item(self, key: str):
        raise StorageError("read failed")

    def keys_with_prefix(self, prefix: str) -> list[str]:
        raise StorageError("read failed")


class TestUnreadableStorage:
    """Tests that the flows keep working when reads fail."""

    @pytest.fixture
    def flows(self):
        settings = AppSettings(storage_backend="memory", simulated_latency_ms=0)
        return create_app_components(settings, backend=ReadFailingStore())

    @pytest.mark.asyncio
    async def test_login_starts_from_day_one(self, flows):
        _, account_flow, _ = flows
        outcome = await account_flow.login("grace")
        assert outcome.last_completed_day == 0
        assert outcome.next_day == 1

    @pytest.mark.asyncio
    async def test_dashboard_is_empty(self, flows):
        _, _, dashboard_flow = flows
        summary = await dashboard_flow.summarize("grace", Locale.EN)
        assert summary.total_archived == 0
        assert summary.status_counts.total == 0

    @pytest.mark.asyncio
    async def test_nothing_is_completed(self, flows):
        reading_flow, _, _ = flows
        assert await reading_flow.is_completed("grace", 1, "Galatians 1-2") is False
