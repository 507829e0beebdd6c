"""
Audit Models for Mz Finance

Every significant action (authentication, synchronization, failures of the
remote store) is recorded as an AuditEvent. Events are written to the
structured log; they are the diagnostic channel for remote failures that
the rest of the application deliberately swallows.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from mzfinance.models.finance import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    SESSION_RESTORED = "session_restored"
    SESSION_RESTORE_FAILED = "session_restore_failed"
    REMOTE_SIGNED_OUT = "remote_signed_out"

    # User administration
    USER_REGISTERED = "user_registered"
    REGISTRATION_FAILED = "registration_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PERMISSIONS_UPDATED = "permissions_updated"
    USER_DELETED = "user_deleted"

    # Synchronization
    STORE_LOADED = "store_loaded"
    STORE_RESET = "store_reset"
    TABLE_FETCH_FAILED = "table_fetch_failed"
    PUSH_FAILED = "push_failed"
    REMOTE_DELETE_FAILED = "remote_delete_failed"
    OFFLINE_MODE = "offline_mode"

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
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'table')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.login_failed("ana", "Invalid login credentials")
        event = AuditEventBuilder.push_failed("transactions", 12, str(exc))
    """

    @staticmethod
    def login_succeeded(user_id: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            description=f"User logged in: {username}",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(handle: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Login failed for {handle}",
            error_message=reason,
            details={"handle": handle},
            is_user_action=True,
        )

    @staticmethod
    def logout(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT,
            entity_type="user",
            entity_id=user_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def session_restored(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="user",
            entity_id=user_id,
            description="Session restored from local marker",
        )

    @staticmethod
    def session_restore_failed(user_id: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description="Saved session was not accepted by the auth backend",
            error_message=reason,
        )

    @staticmethod
    def remote_signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            description="Auth backend reported the session as signed out",
        )

    @staticmethod
    def user_registered(user_id: str, username: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user_id,
            description=f"User registered: {username} ({role})",
            details={"role": role},
            is_user_action=True,
        )

    @staticmethod
    def registration_failed(username: str, stage: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REGISTRATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="user",
            description=f"Registration failed at {stage} for {username}",
            error_message=error_message,
            details={"stage": stage},
            is_user_action=True,
        )

    @staticmethod
    def password_reset_requested(email: str, success: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
            severity=AuditSeverity.INFO if success else AuditSeverity.WARNING,
            entity_type="user",
            description="Password reset requested",
            details={"email": email, "success": success},
            is_user_action=True,
        )

    @staticmethod
    def permissions_updated(user_id: str, permissions: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSIONS_UPDATED,
            entity_type="user",
            entity_id=user_id,
            description="Dependent permissions updated",
            details={"permissions": permissions},
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            entity_type="user",
            entity_id=user_id,
            description="User deleted",
            is_user_action=True,
        )

    @staticmethod
    def store_loaded(owner_id: str, counts: dict[str, int], failed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            entity_type="household",
            entity_id=owner_id,
            description=f"Store loaded ({len(failed)} tables failed)",
            details={"counts": counts, "failed_tables": failed},
        )

    @staticmethod
    def store_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RESET,
            description="Store reset to defaults",
        )

    @staticmethod
    def table_fetch_failed(table: str, owner_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TABLE_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="table",
            entity_id=table,
            description=f"Fetch failed for table {table}",
            error_message=error_message,
            details={"owner_id": owner_id},
        )

    @staticmethod
    def push_failed(table: str, row_count: int, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="table",
            entity_id=table,
            description=f"Push of {row_count} rows failed for table {table}",
            error_message=error_message,
            details={"row_count": row_count},
        )

    @staticmethod
    def remote_delete_failed(table: str, row_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_DELETE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="table",
            entity_id=table,
            description=f"Remote delete failed for {table}/{row_id}",
            error_message=error_message,
            details={"row_id": row_id},
        )

    @staticmethod
    def offline_mode(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OFFLINE_MODE,
            severity=AuditSeverity.WARNING,
            description="Remote store not configured; running without persistence",
            details={"reason": reason},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service} ({operation})",
            error_message=error_message,
            details={"service": service, "operation": operation},
        )
