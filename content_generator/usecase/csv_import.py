"""Usecase: convert a CSV export into submitted content documents.

Rows are grouped by category; each group becomes one document in the same
camelCase shape the JSON path accepts. No validation or sanitization happens
here: the resulting documents go through ``SourceLoader`` like any other
submission.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Any

import structlog

from content_generator.domain.errors import PayloadParseError
from content_generator.domain.schema import PostStatus

logger = structlog.get_logger(__name__)

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "category": ("category", "cat", "category_slug"),
    "tag_name": ("tag_name", "tag", "tags", "tag_names"),
    "tag_slug": ("tag_slug", "tag_slugs"),
    "title": ("title", "post_title", "name"),
    "slug": ("slug", "post_slug", "url_slug"),
    "description": ("description", "desc", "summary", "brief"),
    "content": ("content", "body", "text", "full_content"),
    "is_premium": ("is_premium", "premium", "paid"),
    "is_published": ("is_published", "published", "public"),
    "status": ("status", "post_status", "approval_status"),
    "is_featured": ("is_featured", "featured", "highlight"),
    "featured_image": ("featured_image", "image", "image_url", "thumbnail"),
    "featured_video": ("featured_video", "video", "video_url"),
}

TRUE_VALUES = frozenset({"true", "1", "yes", "y", "on"})
APPROVED_VALUES = frozenset({"approved", "approve", "published", "publish", "live"})
REJECTED_VALUES = frozenset({"rejected", "reject", "denied"})

NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
MAX_GENERATED_SLUG_LENGTH = 50


@dataclass
class CsvImportResult:
    documents: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def generate_slug(text: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', trim dashes, cap length."""
    return NON_SLUG_CHARS.sub("-", text.lower()).strip("-")[:MAX_GENERATED_SLUG_LENGTH]


def parse_boolean(value: str | None) -> bool:
    return bool(value) and value.strip().lower() in TRUE_VALUES


def parse_status(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    if normalized in APPROVED_VALUES:
        return PostStatus.APPROVED.value
    if normalized in REJECTED_VALUES:
        return PostStatus.REJECTED.value
    return PostStatus.PENDING_APPROVAL.value


def map_columns(headers: list[str]) -> dict[str, int]:
    """Resolve each known field to the index of the first header matching one of its aliases."""
    mapping: dict[str, int] = {}
    for index, header in enumerate(headers):
        normalized = header.strip().lower()
        for field_name, aliases in COLUMN_ALIASES.items():
            if normalized in aliases and field_name not in mapping:
                mapping[field_name] = index
                break
    return mapping


class CsvImporter:
    """Turns CSV text into documents grouped by category."""

    def __init__(self, max_rows: int = 1000, delimiter: str = ",") -> None:
        self._max_rows = max_rows
        self._delimiter = delimiter

    def convert(self, text: str) -> CsvImportResult:
        reader = csv.reader(io.StringIO(text), delimiter=self._delimiter, skipinitialspace=True)
        try:
            headers = next(reader)
        except StopIteration:
            raise PayloadParseError("No data found in CSV") from None
        except csv.Error as e:
            raise PayloadParseError(f"Invalid CSV header: {e}") from e

        columns = map_columns(headers)
        if "category" not in columns or "title" not in columns:
            raise PayloadParseError("Required columns missing: category and title are mandatory")

        result = CsvImportResult()
        groups: dict[str, list[list[str]]] = {}
        accepted = 0
        total = 0
        try:
            for values in reader:
                if not any(value.strip() for value in values):
                    continue
                total += 1
                if accepted >= self._max_rows:
                    continue
                if len(values) != len(headers):
                    result.warnings.append(
                        f"Row {reader.line_num} has {len(values)} columns, expected {len(headers)}"
                    )
                    continue
                accepted += 1
                category = values[columns["category"]].strip()
                if category:
                    groups.setdefault(category, []).append(values)
        except csv.Error as e:
            raise PayloadParseError(f"CSV parsing failed at line {reader.line_num}: {e}") from e

        if total > accepted and accepted >= self._max_rows:
            result.warnings.append(f"CSV contains {total} rows, limited to {self._max_rows}")

        for category, rows in groups.items():
            result.documents.append(self._to_document(category, rows, columns))

        logger.info(
            "Converted CSV to content documents",
            rows=accepted,
            documents=len(result.documents),
            warnings=len(result.warnings),
        )
        return result

    def _to_document(self, category: str, rows: list[list[str]], columns: dict[str, int]) -> dict[str, Any]:
        def cell(row: list[str], name: str) -> str:
            index = columns.get(name)
            return row[index].strip() if index is not None else ""

        tags: dict[str, dict[str, str]] = {}
        posts = []
        for row in rows:
            names = [name.strip() for name in cell(row, "tag_name").split(",")]
            slugs = [slug.strip() for slug in cell(row, "tag_slug").split(",")]
            for index, name in enumerate(names):
                slug = (slugs[index] if index < len(slugs) else "") or generate_slug(name)
                if name and slug and slug not in tags:
                    tags[slug] = {"name": name, "slug": slug}

            title = cell(row, "title")
            post: dict[str, Any] = {
                "title": title,
                "slug": cell(row, "slug") or generate_slug(title),
                "description": cell(row, "description"),
                "content": cell(row, "content"),
                "isPremium": parse_boolean(cell(row, "is_premium")),
                "isPublished": parse_boolean(cell(row, "is_published")),
                "status": parse_status(cell(row, "status")),
                "isFeatured": parse_boolean(cell(row, "is_featured")),
            }
            if image := cell(row, "featured_image"):
                post["featuredImage"] = image
            if video := cell(row, "featured_video"):
                post["featuredVideo"] = video
            posts.append(post)

        return {"category": category, "tags": list(tags.values()), "posts": posts}
