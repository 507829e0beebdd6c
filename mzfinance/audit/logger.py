"""
Audit Logger

Every significant action in the system is logged: logins, registrations,
store loads and every remote failure the synchronization layer swallows.

The audit logger:
- Is async so it can be awaited from the same coroutines that talk to the remote store
- Never raises (a broken log sink must not crash the caller)
"""

import logging
import sys
from typing import Optional

import structlog

from mzfinance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route structlog output through stdlib logging to stderr."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, name: str = "mzfinance.audit"):
        self._logger = structlog.get_logger(name)
        self._last_event: Optional[AuditEvent] = None

    @property
    def last_event(self) -> Optional[AuditEvent]:
        """Most recent event logged (handy for status displays)."""
        return self._last_event

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event at its severity.

        Returns False if the log sink failed.
        """
        self._last_event = event
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            print(f"WARNING: Failed to write audit event {event.event_id}: {e}", file=sys.stderr)
            return False
        return True

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))

    async def log_external_service_error(
        self,
        service: str,
        operation: str,
        error_message: str,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            operation=operation,
            error_message=error_message,
        ))
