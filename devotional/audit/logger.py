"""
Audit Logger

DESIGN DECISION: Every change to a reader's data is logged.
This provides:
1. Traceability of progress, status and archive changes
2. Debugging capability when the keyspace misbehaves
3. A record of backups and restores

The audit logger:
- Is async to match the flows that call it
- Gracefully handles failures (logging never crashes a flow)
- Supports correlation IDs to trace related events

Events go to the structured local log only. A reader's data never
leaves the device through the audit trail.
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from devotional.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

DEFAULT_HISTORY_LIMIT = 200


class AuditLogger:
    """
    Central audit logging service.

    Optionally keeps the most recent events in memory so a session (or
    a test) can inspect its own trail. Older events fall off once
    `history_limit` is reached.
    """

    def __init__(self, keep_history: bool = True, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._logger = structlog.get_logger("devotional.audit")
        self._keep_history = keep_history
        self._events: deque[AuditEvent] = deque(maxlen=history_limit)

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written. Never raises.
        """
        if self._keep_history:
            self._events.append(event)

        try:
            log_dict = event.to_log_dict()

            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # A broken log handler must not take a reading flow down.
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        return True

    async def log_user_logged_in(self, username: str, last_completed_day: int) -> None:
        await self.log(AuditEventBuilder.user_logged_in(username, last_completed_day))

    async def log_user_logged_out(self, username: Optional[str]) -> None:
        await self.log(AuditEventBuilder.user_logged_out(username))

    async def log_day_completed(
        self,
        username: str,
        day: int,
        last_completed_day: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a plan day completion."""
        event = AuditEventBuilder.day_completed(
            username=username,
            day=day,
            last_completed_day=last_completed_day,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_status_changed(
        self,
        username: str,
        day: int,
        status: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a meditation status toggle."""
        event = AuditEventBuilder.status_changed(
            username=username,
            day=day,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_reading_archived(
        self,
        username: str,
        archive_id: str,
        reference: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.reading_archived(
            username=username,
            archive_id=archive_id,
            reference=reference,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_archive_write_failed(
        self,
        username: str,
        archive_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.archive_write_failed(
            username=username,
            archive_id=archive_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_content_served(self, reference: str, from_cache: bool) -> None:
        await self.log(AuditEventBuilder.content_served(reference, from_cache))

    async def log_backup_created(self, username: str, key_count: int) -> None:
        await self.log(AuditEventBuilder.backup_created(username, key_count))

    async def log_restore_completed(self, username: str, key_count: int) -> None:
        await self.log(AuditEventBuilder.restore_completed(username, key_count))

    async def log_restore_failed(self, username: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.restore_failed(username, error_message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., completing a day).
    Pass it through all subsequent operations.
    """
    return uuid4()
