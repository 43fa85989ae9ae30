"""Gateway: security events emitted as structured log records."""

from __future__ import annotations

from typing import Any

import structlog

from content_generator.port.security_event_sink import SecurityEventType, SecuritySeverity

logger = structlog.get_logger("content_generator.security")

_LEVELS = {
    SecuritySeverity.LOW: "info",
    SecuritySeverity.MEDIUM: "warning",
    SecuritySeverity.HIGH: "error",
}


class StructlogSecurityEventSink:
    """Logs each event at the level its severity maps to."""

    async def report(
        self,
        event_type: SecurityEventType,
        details: dict[str, Any],
        severity: SecuritySeverity = SecuritySeverity.MEDIUM,
    ) -> None:
        getattr(logger, _LEVELS[severity])(
            "Security event",
            security_event=event_type.value,
            severity=severity.value,
            details=dict(details),
        )
