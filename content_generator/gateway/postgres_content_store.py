"""Gateway: PostgreSQL implementation of ContentStorePort.

Every create is ``INSERT ... ON CONFLICT DO NOTHING RETURNING``: a row that
lost a uniqueness race is simply missing from the returned rows, and the
caller re-reads it instead of failing the transaction.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_generator.db.tables import categories_table, post_tags_table, posts_table, tags_table
from content_generator.domain.models import CategoryRecord

logger = structlog.get_logger(__name__)


class PostgresContentTransaction:
    """Store primitives bound to one open session transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_category(self, slug: str) -> CategoryRecord | None:
        stmt = select(categories_table.c.id, categories_table.c.slug, categories_table.c.name).where(
            categories_table.c.slug == slug
        )
        row = (await self.session.execute(stmt)).first()
        return _category(row) if row is not None else None

    async def create_category(self, slug: str, name: str, description: str) -> CategoryRecord | None:
        stmt = (
            pg_insert(categories_table)
            .values(slug=slug, name=name, description=description)
            .on_conflict_do_nothing(index_elements=[categories_table.c.slug])
            .returning(categories_table.c.id, categories_table.c.slug, categories_table.c.name)
        )
        row = (await self.session.execute(stmt)).first()
        return _category(row) if row is not None else None

    async def find_tags(self, slugs: list[str]) -> dict[str, str]:
        if not slugs:
            return {}
        stmt = select(tags_table.c.slug, tags_table.c.id).where(tags_table.c.slug.in_(slugs))
        result = await self.session.execute(stmt)
        return {row.slug: str(row.id) for row in result.all()}

    async def create_tags(self, tags: list[dict[str, str]]) -> dict[str, str]:
        if not tags:
            return {}
        stmt = (
            pg_insert(tags_table)
            .values(tags)
            .on_conflict_do_nothing(index_elements=[tags_table.c.slug])
            .returning(tags_table.c.slug, tags_table.c.id)
        )
        result = await self.session.execute(stmt)
        return {row.slug: str(row.id) for row in result.all()}

    async def find_posts(self, slugs: list[str]) -> set[str]:
        if not slugs:
            return set()
        stmt = select(posts_table.c.slug).where(posts_table.c.slug.in_(slugs))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def insert_posts(self, posts: list[dict[str, Any]]) -> dict[str, str]:
        if not posts:
            return {}
        stmt = (
            pg_insert(posts_table)
            .values(posts)
            .on_conflict_do_nothing(index_elements=[posts_table.c.slug])
            .returning(posts_table.c.slug, posts_table.c.id)
        )
        result = await self.session.execute(stmt)
        return {row.slug: str(row.id) for row in result.all()}

    async def link_post_tags(self, links: list[tuple[str, str]]) -> None:
        if not links:
            return
        stmt = (
            pg_insert(post_tags_table)
            .values([{"post_id": post_id, "tag_id": tag_id} for post_id, tag_id in links])
            .on_conflict_do_nothing(index_elements=[post_tags_table.c.post_id, post_tags_table.c.tag_id])
        )
        await self.session.execute(stmt)


class PostgresContentStore:
    """Opens one session transaction per unit, bounded by a statement timeout."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], statement_timeout_ms: int) -> None:
        self._session_factory = session_factory
        self._statement_timeout_ms = int(statement_timeout_ms)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresContentTransaction]:
        async with self._session_factory() as session:
            # Commits on normal exit, rolls back on any exception including cancellation.
            async with session.begin():
                await session.execute(text(f"SET LOCAL statement_timeout = {self._statement_timeout_ms}"))
                logger.debug("Unit transaction opened", statement_timeout_ms=self._statement_timeout_ms)
                yield PostgresContentTransaction(session)


def _category(row: Any) -> CategoryRecord:
    return CategoryRecord(id=str(row.id), slug=row.slug, name=row.name)
