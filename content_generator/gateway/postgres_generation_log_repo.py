"""Gateway: PostgreSQL implementation of GenerationLogRepositoryPort."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_generator.db.tables import generation_logs_table
from content_generator.domain.models import GenerationLog, ProcessingStats, RunStatus


class PostgresGenerationLogRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, log: GenerationLog) -> None:
        stmt = insert(generation_logs_table).values(
            id=log.id,
            status=log.status.value,
            message=log.message,
            error=log.error,
            stats=log.stats.to_dict(),
            duration_seconds=log.duration_seconds,
            principal_id=log.principal_id,
            created_at=log.created_at,
        )
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    async def list_recent(self, limit: int = 50) -> list[GenerationLog]:
        """Newest first."""
        stmt = select(generation_logs_table).order_by(generation_logs_table.c.created_at.desc()).limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_log(row) for row in result.mappings().all()]

    async def clear(self) -> int:
        """Delete every log row and return how many were removed."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(generation_logs_table))
        return int(result.rowcount or 0)

    async def count_since(self, principal_id: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(generation_logs_table)
            .where(generation_logs_table.c.principal_id == principal_id)
            .where(generation_logs_table.c.created_at >= since)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())


def _to_log(row: Any) -> GenerationLog:
    return GenerationLog(
        id=str(row["id"]),
        status=RunStatus(row["status"]),
        message=row["message"],
        stats=ProcessingStats.from_dict(row["stats"] or {}),
        duration_seconds=float(row["duration_seconds"]),
        principal_id=row["principal_id"],
        created_at=row["created_at"],
        error=row["error"],
    )
