"""Port for persisting run audit records."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from content_generator.domain.models import GenerationLog


class GenerationLogRepositoryPort(Protocol):
    """Durable store of GenerationLog rows."""

    async def save(self, log: GenerationLog) -> None: ...

    async def list_recent(self, limit: int = 50) -> list[GenerationLog]: ...

    async def clear(self) -> int: ...

    async def count_since(self, principal_id: str, since: datetime) -> int: ...
