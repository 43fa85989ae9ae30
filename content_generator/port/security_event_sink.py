"""Port for out-of-band security notifications."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol


class SecurityEventType(str, Enum):
    MALICIOUS_PAYLOAD = "malicious_payload"
    UNAUTHORIZED_ACCESS = "unauthorized_access"


class SecuritySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SecurityEventSinkPort(Protocol):
    """Best-effort side channel; callers never let its failures fail a run."""

    async def report(
        self,
        event_type: SecurityEventType,
        details: dict[str, Any],
        severity: SecuritySeverity = SecuritySeverity.MEDIUM,
    ) -> None: ...
