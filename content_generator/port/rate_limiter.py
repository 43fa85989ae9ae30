"""Port for trigger-level rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    current_count: int
    limit: int


class RateLimiterPort(Protocol):
    async def check(self, identifier: str, action: str) -> RateLimitDecision: ...
