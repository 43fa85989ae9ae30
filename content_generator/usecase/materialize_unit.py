"""Usecase: persist one validated content unit in a single transaction.

Steps run strictly in order inside the transaction: category, tags, posts,
commit. Any exception (including the transaction timeout) rolls the whole
unit back and is reported as ``UnitFailed``; nothing is raised to the caller.
Failed units are not retried automatically.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from content_generator.domain.errors import MaterializationError
from content_generator.domain.models import (
    CategoryRecord,
    LoadedUnit,
    RunContext,
    UnitCommitted,
    UnitFailed,
    UnitOutcome,
)

if TYPE_CHECKING:
    from content_generator.domain.schema import PostDescriptor, TagDescriptor
    from content_generator.infra.config import PipelineConfig
    from content_generator.port.content_store import ContentStorePort, ContentTransactionPort

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def category_display_name(slug: str) -> str:
    """``chatgpt-prompts`` -> ``Chatgpt-prompts``."""
    return slug[:1].upper() + slug[1:]


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class MaterializeUnitUsecase:
    """Category -> tags -> posts -> commit for one unit."""

    def __init__(self, store: ContentStorePort, config: PipelineConfig) -> None:
        self._store = store
        self._config = config

    async def execute(self, loaded: LoadedUnit, context: RunContext) -> UnitOutcome:
        log = logger.bind(unit_name=loaded.name)
        log.info("Materializing unit", category=loaded.unit.category, posts=len(loaded.unit.posts))
        try:
            outcome = await asyncio.wait_for(
                self._materialize(loaded, context),
                timeout=self._config.transaction_timeout_seconds,
            )
        except TimeoutError:
            reason = f"transaction timed out after {self._config.transaction_timeout_ms} ms"
            log.error("Unit rolled back", reason=reason)
            return UnitFailed(loaded.name, reason)
        except Exception as e:
            log.error("Unit rolled back", error=str(e), error_type=type(e).__name__)
            return UnitFailed(loaded.name, str(e) or type(e).__name__)

        log.info(
            "Unit committed",
            categories_created=outcome.categories_created,
            tags_created=outcome.tags_created,
            posts_created=outcome.posts_created,
            posts_skipped=len(outcome.skipped_slugs),
        )
        return outcome

    async def _materialize(self, loaded: LoadedUnit, context: RunContext) -> UnitCommitted:
        unit = loaded.unit
        async with self._store.transaction() as tx:
            category, categories_created = await self._resolve_category(tx, unit.category)
            tag_ids, tags_created = await self._resolve_tags(tx, unit.tags)
            posts_created, skipped = await self._insert_posts(tx, unit.posts, category, tag_ids, context)

        return UnitCommitted(
            unit_name=loaded.name,
            categories_created=categories_created,
            tags_created=tags_created,
            posts_created=posts_created,
            skipped_slugs=tuple(skipped),
        )

    async def _resolve_category(self, tx: ContentTransactionPort, slug: str) -> tuple[CategoryRecord, int]:
        existing = await tx.find_category(slug)
        if existing is not None:
            return existing, 0

        name = category_display_name(slug)
        created = await tx.create_category(slug, name, f"{name} prompts and tools")
        if created is not None:
            return created, 1

        # Another unit committed the same slug between our read and insert.
        existing = await tx.find_category(slug)
        if existing is None:
            raise MaterializationError(f"category '{slug}' could not be created or re-read")
        return existing, 0

    async def _resolve_tags(
        self, tx: ContentTransactionPort, tags: Sequence[TagDescriptor]
    ) -> tuple[dict[str, str], int]:
        tag_ids = await tx.find_tags([tag.slug for tag in tags])
        # Slug order gives every concurrent transaction the same unique-index lock order.
        missing = sorted(
            ({"name": tag.name, "slug": tag.slug} for tag in tags if tag.slug not in tag_ids),
            key=lambda tag: tag["slug"],
        )
        if not missing:
            return tag_ids, 0

        created = await tx.create_tags(missing)
        tag_ids.update(created)

        raced = [tag["slug"] for tag in missing if tag["slug"] not in created]
        if raced:
            tag_ids.update(await tx.find_tags(raced))
            unresolved = [slug for slug in raced if slug not in tag_ids]
            if unresolved:
                raise MaterializationError(f"tags could not be created or re-read: {', '.join(unresolved)}")

        return tag_ids, len(created)

    async def _insert_posts(
        self,
        tx: ContentTransactionPort,
        posts: Sequence[PostDescriptor],
        category: CategoryRecord,
        tag_ids: dict[str, str],
        context: RunContext,
    ) -> tuple[int, list[str]]:
        existing = await tx.find_posts([post.slug for post in posts])
        skipped = [post.slug for post in posts if post.slug in existing]
        pending = sorted((post for post in posts if post.slug not in existing), key=lambda post: post.slug)

        created = 0
        for batch in chunked(pending, self._config.batch_size):
            inserted = await tx.insert_posts([_post_row(post, category, context) for post in batch])
            created += len(inserted)
            # A concurrent unit may have committed the same slug after our lookup.
            skipped.extend(post.slug for post in batch if post.slug not in inserted)

            links = [(post_id, tag_id) for post_id in inserted.values() for tag_id in tag_ids.values()]
            for link_batch in chunked(links, self._config.batch_size):
                await tx.link_post_tags(list(link_batch))

        return created, skipped


def _post_row(post: PostDescriptor, category: CategoryRecord, context: RunContext) -> dict[str, Any]:
    return {
        "slug": post.slug,
        "title": post.title,
        "description": post.description,
        "content": post.content,
        "is_premium": post.is_premium,
        "is_published": post.is_published,
        "is_featured": post.is_featured,
        "status": post.status.value,
        "featured_image": post.featured_image,
        "featured_video": post.featured_video,
        "category_id": category.id,
        "author_id": context.principal_id,
    }
