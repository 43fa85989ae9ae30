"""Port for the transactional content store."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from content_generator.domain.models import CategoryRecord


class ContentTransactionPort(Protocol):
    """Store primitives available inside one unit's transaction.

    Every create is insert-if-absent: rows that already exist (including rows
    committed concurrently by another unit) are silently not inserted and are
    absent from the returned collection.
    """

    async def find_category(self, slug: str) -> CategoryRecord | None: ...

    async def create_category(self, slug: str, name: str, description: str) -> CategoryRecord | None: ...

    async def find_tags(self, slugs: list[str]) -> dict[str, str]: ...

    async def create_tags(self, tags: list[dict[str, str]]) -> dict[str, str]: ...

    async def find_posts(self, slugs: list[str]) -> set[str]: ...

    async def insert_posts(self, posts: list[dict[str, Any]]) -> dict[str, str]: ...

    async def link_post_tags(self, links: list[tuple[str, str]]) -> None: ...


class ContentStorePort(Protocol):
    """Opens one all-or-nothing transaction per content unit."""

    def transaction(self) -> AbstractAsyncContextManager[ContentTransactionPort]: ...
