"""Schema for submitted content documents.

Field-level rules that do not depend on configuration live here; the
configurable bounds (tags/posts per unit, content length) are applied by
``ContentUnitValidator`` on top of this schema.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from content_generator.utils.html_sanitizer import contains_suspicious_content

SLUG_PATTERN = re.compile(r"^[a-z0-9\-_]+$")
TAG_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_]+$")
IMAGE_PATH_PATTERN = re.compile(r"^/images/[a-zA-Z0-9_\-./]+\.(jpg|jpeg|webp|avif|png)$", re.IGNORECASE)
VIDEO_PATH_PATTERN = re.compile(r"^/videos/[a-zA-Z0-9_\-./]+\.mp4$", re.IGNORECASE)

SUSPICIOUS_CONTENT_ERROR = "suspicious_content"


def _check_slug(value: str, label: str) -> str:
    if not SLUG_PATTERN.fullmatch(value):
        raise PydanticCustomError(
            "slug_pattern",
            "{label} must be lowercase alphanumeric with dashes/underscores",
            {"label": label},
        )
    return value


def _check_suspicious(value: str | None, label: str) -> str | None:
    if value and contains_suspicious_content(value):
        raise PydanticCustomError(SUSPICIOUS_CONTENT_ERROR, "{label} contains suspicious content", {"label": label})
    return value


def _check_media_path(value: str | None, pattern: re.Pattern[str], label: str) -> str | None:
    if not value:
        return None
    _check_suspicious(value, label)
    if ".." in value.split("/") or not pattern.fullmatch(value):
        raise PydanticCustomError("media_path", "Invalid or suspicious {label} path", {"label": label})
    return value


class PostStatus(str, Enum):
    """Moderation lifecycle of a post."""

    APPROVED = "APPROVED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    REJECTED = "REJECTED"


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class TagDescriptor(_Document):
    """A tag referenced by a content unit."""

    name: str = Field(..., min_length=1, max_length=50)
    slug: str = Field(..., min_length=1, max_length=50)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not TAG_NAME_PATTERN.fullmatch(v):
            raise PydanticCustomError("tag_name_pattern", "Tag name contains invalid characters")
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _check_slug(v, "Tag slug")


class PostDescriptor(_Document):
    """A post to be created under the unit's category."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    is_premium: StrictBool
    is_published: StrictBool
    status: PostStatus
    is_featured: StrictBool
    featured_image: str | None = None
    featured_video: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_suspicious(v, "Title")

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _check_slug(v, "Slug")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _check_suspicious(v, "Description")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _check_suspicious(v, "Content")

    @field_validator("featured_image")
    @classmethod
    def validate_featured_image(cls, v: str | None) -> str | None:
        return _check_media_path(v, IMAGE_PATH_PATTERN, "image")

    @field_validator("featured_video")
    @classmethod
    def validate_featured_video(cls, v: str | None) -> str | None:
        return _check_media_path(v, VIDEO_PATH_PATTERN, "video")


class ContentUnit(_Document):
    """One category, its tags and its posts, submitted together."""

    category: str = Field(..., min_length=1, max_length=50)
    tags: list[TagDescriptor] = Field(..., min_length=1)
    posts: list[PostDescriptor] = Field(..., min_length=1)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return _check_slug(v, "Category")

    @field_validator("tags")
    @classmethod
    def validate_unique_tags(cls, v: list[TagDescriptor]) -> list[TagDescriptor]:
        duplicates = _duplicate_slugs(tag.slug for tag in v)
        if duplicates:
            raise PydanticCustomError(
                "duplicate_slug", "Duplicate tag slugs detected: {slugs}", {"slugs": ", ".join(duplicates)}
            )
        return v

    @field_validator("posts")
    @classmethod
    def validate_unique_posts(cls, v: list[PostDescriptor]) -> list[PostDescriptor]:
        duplicates = _duplicate_slugs(post.slug for post in v)
        if duplicates:
            raise PydanticCustomError(
                "duplicate_slug", "Duplicate post slugs detected: {slugs}", {"slugs": ", ".join(duplicates)}
            )
        return v

    @property
    def tag_slugs(self) -> list[str]:
        return [tag.slug for tag in self.tags]

    @property
    def post_slugs(self) -> list[str]:
        return [post.slug for post in self.posts]


def _duplicate_slugs(slugs) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for slug in slugs:
        if slug in seen and slug not in duplicates:
            duplicates.append(slug)
        seen.add(slug)
    return duplicates
