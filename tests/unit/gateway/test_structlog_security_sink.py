"""Tests for the structlog security event sink."""

import pytest

from content_generator.gateway.structlog_security_sink import StructlogSecurityEventSink
from content_generator.port.security_event_sink import SecurityEventType, SecuritySeverity


class TestStructlogSecurityEventSink:
    @pytest.mark.asyncio
    async def test_logs_at_severity_level(self, log_output):
        sink = StructlogSecurityEventSink()

        await sink.report(SecurityEventType.UNAUTHORIZED_ACCESS, {"principal_id": "ghost"}, SecuritySeverity.HIGH)

        entry = log_output[-1]
        assert entry["log_level"] == "error"
        assert entry["security_event"] == "unauthorized_access"
        assert entry["severity"] == "high"
        assert entry["details"] == {"principal_id": "ghost"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "severity, level",
        [
            (SecuritySeverity.LOW, "info"),
            (SecuritySeverity.MEDIUM, "warning"),
        ],
    )
    async def test_severity_maps_to_level(self, log_output, severity, level):
        await StructlogSecurityEventSink().report(SecurityEventType.MALICIOUS_PAYLOAD, {"unit_name": "a.json"}, severity)

        assert log_output[-1]["log_level"] == level

    @pytest.mark.asyncio
    async def test_details_are_copied(self, log_output):
        details = {"reason": "script tag"}

        await StructlogSecurityEventSink().report(SecurityEventType.MALICIOUS_PAYLOAD, details)
        details["reason"] = "changed"

        assert log_output[-1]["details"] == {"reason": "script tag"}
        assert log_output[-1]["log_level"] == "warning"
