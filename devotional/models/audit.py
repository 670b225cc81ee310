"""
Audit Models for Pauline Devotional

Every significant action on a reader's data is logged for audit purposes.
This provides:
1. Traceability of progress, status and archive changes
2. Debugging information when storage misbehaves (quota, bad records)
3. A trail of backups and restores

DESIGN DECISION: Audit events are append-only log lines. We never
rewrite them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Identity
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"

    # Reading progress
    DAY_COMPLETED = "day_completed"
    STATUS_CHANGED = "status_changed"

    # Archive
    READING_ARCHIVED = "reading_archived"
    ARCHIVE_WRITE_FAILED = "archive_write_failed"
    RECORD_SKIPPED = "record_skipped"

    # Transient cache
    CACHE_EVICTED = "cache_evicted"
    CONTENT_CACHE_HIT = "content_cache_hit"
    CONTENT_GENERATED = "content_generated"

    # Backup
    BACKUP_CREATED = "backup_created"
    RESTORE_COMPLETED = "restore_completed"
    RESTORE_FAILED = "restore_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who and what
    username: Optional[str] = Field(
        default=None,
        description="Reader the event belongs to, if any"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'archive', 'status', 'backup')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one completion flow)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_logged_in("grace")
        event = AuditEventBuilder.day_completed("grace", 4, correlation_id)
    """

    @staticmethod
    def user_logged_in(username: str, last_completed_day: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            username=username,
            entity_type="user",
            entity_id=username,
            description=f"User logged in: {username}",
            details={"last_completed_day": last_completed_day},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(username: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            username=username,
            entity_type="user",
            entity_id=username,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def day_completed(
        username: str,
        day: int,
        last_completed_day: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAY_COMPLETED,
            username=username,
            entity_type="progress",
            entity_id=str(day),
            correlation_id=correlation_id,
            description=f"Day {day} completed",
            details={"last_completed_day": last_completed_day},
            is_user_action=True,
        )

    @staticmethod
    def status_changed(
        username: str,
        day: int,
        status: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATUS_CHANGED,
            username=username,
            entity_type="status",
            entity_id=str(day),
            correlation_id=correlation_id,
            description=f"Day {day} status set to {status or 'none'}",
            details={"status": status},
            is_user_action=True,
        )

    @staticmethod
    def reading_archived(
        username: str,
        archive_id: str,
        reference: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.READING_ARCHIVED,
            username=username,
            entity_type="archive",
            entity_id=archive_id,
            correlation_id=correlation_id,
            description=f"Reading archived: {reference}",
            details={"reference": reference},
        )

    @staticmethod
    def archive_write_failed(
        username: str,
        archive_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ARCHIVE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            username=username,
            entity_type="archive",
            entity_id=archive_id,
            correlation_id=correlation_id,
            description=f"Failed to archive reading {archive_id}",
            error_message=error_message,
        )

    @staticmethod
    def record_skipped(
        username: Optional[str],
        key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="archive",
            entity_id=key,
            description=f"Skipped malformed record: {key}",
            error_message=error_message,
        )

    @staticmethod
    def cache_evicted(removed_keys: int, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_EVICTED,
            severity=AuditSeverity.WARNING,
            entity_type="content_cache",
            description=f"Evicted {removed_keys} cached reading contents",
            details={"removed_keys": removed_keys, "reason": reason},
        )

    @staticmethod
    def content_served(reference: str, from_cache: bool) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.CONTENT_CACHE_HIT
                if from_cache
                else AuditEventType.CONTENT_GENERATED
            ),
            severity=AuditSeverity.DEBUG if from_cache else AuditSeverity.INFO,
            entity_type="content",
            entity_id=reference,
            description=(
                f"Content served from cache: {reference}"
                if from_cache
                else f"Content generated: {reference}"
            ),
        )

    @staticmethod
    def backup_created(username: str, key_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_CREATED,
            username=username,
            entity_type="backup",
            description=f"Backup created with {key_count} keys",
            details={"key_count": key_count},
            is_user_action=True,
        )

    @staticmethod
    def restore_completed(username: str, key_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESTORE_COMPLETED,
            username=username,
            entity_type="backup",
            description=f"Backup restored with {key_count} keys",
            details={"key_count": key_count},
            is_user_action=True,
        )

    @staticmethod
    def restore_failed(username: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESTORE_FAILED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="backup",
            description="Backup document could not be restored",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
