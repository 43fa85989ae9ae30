"""Gateway: rate limiting by counting a principal's recent generation logs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import structlog

from content_generator.port.generation_log_repository import GenerationLogRepositoryPort
from content_generator.port.rate_limiter import RateLimitDecision

logger = structlog.get_logger(__name__)


class GenerationLogRateLimiter:
    """Allows at most ``limit`` runs per principal within ``window``.

    Every run, aborted ones included, writes exactly one generation log, so the
    log count over the window is the run count.
    """

    def __init__(
        self,
        repository: GenerationLogRepositoryPort,
        limit: int,
        window: timedelta = timedelta(hours=1),
    ) -> None:
        self._repository = repository
        self._limit = limit
        self._window = window

    async def check(self, identifier: str, action: str) -> RateLimitDecision:
        since = datetime.now(UTC) - self._window
        count = await self._repository.count_since(identifier, since)
        decision = RateLimitDecision(allowed=count < self._limit, current_count=count, limit=self._limit)
        if not decision.allowed:
            logger.warning("Rate limit reached", principal_id=identifier, action=action, count=count, limit=self._limit)
        return decision
