"""
Main Orchestrator for Pauline Devotional

This module ties together all the components and defines the
end-to-end flows for:
1. Reading (day → reading → content → complete → archive/status/progress)
2. Account (login → resume day, logout, backup, restore)
3. Dashboard (archive + ledger → statistics)

DESIGN DECISION: The orchestrator is where failures turn into outcomes.
- Repositories raise on write failures
- Flows catch storage errors and report them in outcome models
- Every step that changes reader data is audited

There is no cross-key transaction. Completing a reading writes the
archive, then the status ledger, then progress; if a later write fails
the earlier ones stay. The outcome says which step failed.
"""

import json
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import UUID

from devotional.agents import ReadingContentGenerator
from devotional.audit import AuditLogger, create_correlation_id
from devotional.config import AppSettings, get_settings
from devotional.models.plan import DailyReading, Locale
from devotional.models.reading import (
    MANUAL_READING_DAY,
    ArchivedReading,
    BookProgress,
    CachedReadingContent,
    CompletionOutcome,
    DashboardSummary,
    HistoryItem,
    LoginOutcome,
    MeditationStatus,
    ReadingContent,
    RestoreOutcome,
    StatusCounts,
)
from devotional.plan import ReadingPlan, format_reference, get_reading_plan
from devotional.services.storage import (
    ArchiveStore,
    BackupCodec,
    IdentityStore,
    KeyValueBackend,
    ProgressTracker,
    StatusLedger,
    StorageError,
    TransientContentCache,
    archive_key_for_manual,
    create_backend,
)


class ReadingFlow:
    """
    Orchestrates a reading session.

    Flow:
    1. Resolve → Compute the day's reading from the plan
    2. Load → Serve cached content, or generate and cache it
    3. Complete → Archive, mark the day, advance progress

    The generated image lives in the returned session content and the
    transient cache only. Archives never keep it.
    """

    def __init__(
        self,
        plan: ReadingPlan,
        content_cache: TransientContentCache,
        archive_store: ArchiveStore,
        status_ledger: StatusLedger,
        progress_tracker: ProgressTracker,
        generator: Optional[ReadingContentGenerator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._plan = plan
        self._content_cache = content_cache
        self._archive_store = archive_store
        self._status_ledger = status_ledger
        self._progress_tracker = progress_tracker
        self._generator = generator
        self._audit_logger = audit_logger

    @property
    def plan(self) -> ReadingPlan:
        return self._plan

    def reading_for_day(self, day: int, locale: Locale) -> DailyReading:
        return self._plan.reading_for_day(day, locale)

    async def load_content(
        self,
        reading: DailyReading,
        locale: Locale,
        with_image: bool = True,
    ) -> CachedReadingContent:
        """
        Get study material for a reading.

        Returns:
            Content bundle, with the context image when one exists

        Raises:
            ContentGenerationError: If nothing is cached and generation fails
            RuntimeError: If nothing is cached and no generator is configured
        """
        reference = format_reference(reading, locale)

        cached = await self._content_cache.get(reference)
        if cached is not None:
            if self._audit_logger:
                await self._audit_logger.log_content_served(reference, from_cache=True)
            return cached

        if self._generator is None:
            raise RuntimeError("No content generator configured")

        try:
            content = await self._generator.generate_reading_content(reading, locale)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="content_generator",
                    error_message=str(e),
                )
            raise

        image = None
        if with_image:
            image = await self._generator.generate_context_image(
                content.image_prompt,
                content.context,
                locale,
            )

        bundle = CachedReadingContent.model_validate(
            {**content.model_dump(), "context_image_url": image}
        )
        await self._content_cache.put(reference, bundle)

        if self._audit_logger:
            await self._audit_logger.log_content_served(reference, from_cache=False)

        return bundle

    async def is_completed(
        self,
        user: Optional[str],
        day: Optional[int],
        reference: str,
    ) -> bool:
        """Whether a reading already has an archive entry."""
        archive_id = max(1, day) if day is not None else archive_key_for_manual(reference)
        return await self._archive_store.get(user, archive_id) is not None

    async def complete_reading(
        self,
        user: str,
        day: Optional[int],
        reference: str,
        content: ReadingContent,
        image: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CompletionOutcome:
        """
        Complete a reading.

        Args:
            user: Reader completing the reading
            day: Plan day, or None for a manually chosen reading.
                 Days below 1 count as day 1.
            reference: Formatted reading reference
            content: The material the reader went through
            image: Session image, if any. It is never archived.

        Returns:
            CompletionOutcome. Storage failures are reported, not raised.
        """
        correlation_id = correlation_id or create_correlation_id()
        sequential = day is not None
        if sequential:
            day = max(1, day)
        archive_id: Union[int, str] = day if sequential else archive_key_for_manual(reference)

        reading = ArchivedReading(
            day=day if sequential else MANUAL_READING_DAY,
            reading_reference=reference,
            passage=content.passage,
            meditation_guide=content.meditation_guide,
            context=content.context,
            intention=content.intention,
            context_image_url=image,
        )

        # Step 1: Archive
        try:
            await self._archive_store.put(user, archive_id, reading)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_archive_write_failed(
                    username=user,
                    archive_id=str(archive_id),
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return CompletionOutcome(
                success=False,
                archive_id=str(archive_id),
                message="Could not save this reading: storage is full or unavailable.",
            )

        if self._audit_logger:
            await self._audit_logger.log_reading_archived(
                username=user,
                archive_id=str(archive_id),
                reference=reference,
                correlation_id=correlation_id,
            )

        if not sequential:
            return CompletionOutcome(
                success=True,
                archive_id=str(archive_id),
                message="Reading archived.",
                last_completed_day=await self._progress_tracker.get_progress(user),
            )

        # Step 2: Mark the day, unless it is already good
        try:
            status = await self._status_ledger.get(user, day)
            if status != MeditationStatus.GOOD:
                ledger = await self._status_ledger.toggle(user, day, MeditationStatus.GOOD)
                status = ledger.get(day)
                if self._audit_logger:
                    await self._audit_logger.log_status_changed(
                        username=user,
                        day=day,
                        status=status.value if status else None,
                        correlation_id=correlation_id,
                    )

            # Step 3: Advance progress
            last_completed = await self._progress_tracker.advance(user, day)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="completion_incomplete",
                    error_message=str(e),
                    details={"username": user, "day": day},
                    correlation_id=correlation_id,
                )
            return CompletionOutcome(
                success=False,
                archive_id=str(archive_id),
                message="Reading archived, but progress could not be saved.",
            )

        if self._audit_logger:
            await self._audit_logger.log_day_completed(
                username=user,
                day=day,
                last_completed_day=last_completed,
                correlation_id=correlation_id,
            )

        return CompletionOutcome(
            success=True,
            archive_id=str(archive_id),
            message=f"Day {day} completed.",
            last_completed_day=last_completed,
            status=status,
        )

    async def toggle_status(
        self,
        user: str,
        day: int,
        status: MeditationStatus,
    ) -> dict[int, MeditationStatus]:
        """Mark (or unmark) how a day's meditation went."""
        ledger = await self._status_ledger.toggle(user, day, status)
        if self._audit_logger:
            current = ledger.get(day)
            await self._audit_logger.log_status_changed(
                username=user,
                day=day,
                status=current.value if current else None,
            )
        return ledger


class AccountFlow:
    """
    Orchestrates identity, backup and restore.

    Logging in only points `currentUser` at a namespace. A new name
    simply starts with an empty one.
    """

    def __init__(
        self,
        identity_store: IdentityStore,
        progress_tracker: ProgressTracker,
        backup_codec: BackupCodec,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity_store = identity_store
        self._progress_tracker = progress_tracker
        self._backup_codec = backup_codec
        self._audit_logger = audit_logger

    async def current_user(self) -> Optional[str]:
        return await self._identity_store.get_current_user()

    async def login(self, username: str) -> LoginOutcome:
        """
        Log in and find where the reader resumes.

        Raises:
            ValueError: If the username is blank
        """
        user = await self._identity_store.login(username)
        last_completed = await self._progress_tracker.get_progress(user)

        if self._audit_logger:
            await self._audit_logger.log_user_logged_in(user, last_completed)

        return LoginOutcome(
            username=user,
            last_completed_day=last_completed,
            next_day=last_completed + 1,
        )

    async def logout(self) -> None:
        user = await self._identity_store.get_current_user()
        await self._identity_store.logout()
        if self._audit_logger:
            await self._audit_logger.log_user_logged_out(user)

    async def backup(self, user: str) -> str:
        document = await self._backup_codec.backup(user)
        if self._audit_logger:
            await self._audit_logger.log_backup_created(
                username=user.strip(),
                key_count=len(json.loads(document)),
            )
        return document

    async def restore(self, user: str, document: str) -> RestoreOutcome:
        """Restore a backup document. Failures are reported, not raised."""
        restored = await self._backup_codec.restore_count(user, document)

        if restored is None:
            if self._audit_logger:
                await self._audit_logger.log_restore_failed(
                    username=user,
                    error_message="Backup document could not be restored",
                )
            return RestoreOutcome(
                success=False,
                message="The backup file is invalid or could not be restored.",
            )

        if self._audit_logger:
            await self._audit_logger.log_restore_completed(user.strip(), restored)

        return RestoreOutcome(
            success=True,
            message="Backup restored.",
            restored_keys=restored,
        )


def _sort_instant(reading: ArchivedReading) -> datetime:
    saved = reading.date_saved
    if saved.tzinfo is None:
        return saved.replace(tzinfo=timezone.utc)
    return saved


def spiritual_level(total_archived: int) -> int:
    """Reader level from the number of archived readings."""
    if total_archived < 5:
        return 1
    if total_archived < 15:
        return 2
    if total_archived < 30:
        return 3
    return 4


class DashboardFlow:
    """Aggregate statistics over a reader's archive and status ledger."""

    def __init__(
        self,
        plan: ReadingPlan,
        archive_store: ArchiveStore,
        status_ledger: StatusLedger,
    ):
        self._plan = plan
        self._archive_store = archive_store
        self._status_ledger = status_ledger

    async def summarize(self, user: str, locale: Locale) -> DashboardSummary:
        locale = Locale(locale)
        ledger = await self._status_ledger.get_all(user)
        archives = await self._archive_store.list_by_user(user)

        statuses = list(ledger.values())
        counts = StatusCounts(
            good=statuses.count(MeditationStatus.GOOD),
            ok=statuses.count(MeditationStatus.OK),
            bad=statuses.count(MeditationStatus.BAD),
        )

        history = [
            HistoryItem(key=key, reading=reading)
            for key, reading in sorted(
                archives.items(),
                key=lambda item: _sort_instant(item[1]),
                reverse=True,
            )
        ]

        book_progress = []
        for entry in self._plan.curriculum:
            name = entry.name.for_locale(locale)
            count = sum(1 for reading in archives.values() if name in reading.reading_reference)
            denominator = self._plan.entry_progress_denominator(entry)
            book_progress.append(
                BookProgress(
                    name=name,
                    count=count,
                    percent=min(100, round(count / denominator * 100)),
                )
            )

        return DashboardSummary(
            status_counts=counts,
            total_archived=len(archives),
            completion_rate=round(counts.total / self._plan.total_days * 100),
            level=spiritual_level(len(archives)),
            history=history,
            book_progress=book_progress,
        )


def create_app_components(
    settings: Optional[AppSettings] = None,
    backend: Optional[KeyValueBackend] = None,
    generator: Optional[ReadingContentGenerator] = None,
    plan: Optional[ReadingPlan] = None,
) -> tuple[ReadingFlow, AccountFlow, DashboardFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: App settings. Defaults to the environment.
        backend: Keyspace to use. Defaults to the configured backend.
        generator: Content generator. Without one, only cached
                   content can be served.
        plan: Reading plan. Defaults to the Pauline epistles.

    Returns:
        (reading_flow, account_flow, dashboard_flow)
    """
    settings = settings or get_settings().app
    backend = backend or create_backend(settings)
    plan = plan or get_reading_plan()
    latency = settings.simulated_latency_seconds

    audit_logger = AuditLogger(keep_history=False)

    content_cache = TransientContentCache(
        backend,
        latency_seconds=latency,
        version=settings.content_cache_version,
    )
    archive_store = ArchiveStore(
        backend,
        latency_seconds=latency,
        content_cache=content_cache,
        audit_logger=audit_logger,
    )
    status_ledger = StatusLedger(backend, latency_seconds=latency)
    progress_tracker = ProgressTracker(backend, latency_seconds=latency)

    reading_flow = ReadingFlow(
        plan=plan,
        content_cache=content_cache,
        archive_store=archive_store,
        status_ledger=status_ledger,
        progress_tracker=progress_tracker,
        generator=generator,
        audit_logger=audit_logger,
    )

    account_flow = AccountFlow(
        identity_store=IdentityStore(backend, latency_seconds=latency),
        progress_tracker=progress_tracker,
        backup_codec=BackupCodec(backend, latency_seconds=latency),
        audit_logger=audit_logger,
    )

    dashboard_flow = DashboardFlow(
        plan=plan,
        archive_store=archive_store,
        status_ledger=status_ledger,
    )

    return reading_flow, account_flow, dashboard_flow
