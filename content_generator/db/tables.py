"""SQLAlchemy Core table definitions for the content store."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID

metadata = MetaData()

categories_table = Table(
    "categories",
    metadata,
    Column("id", PG_UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("slug", String(50), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("description", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("now()")),
)

tags_table = Table(
    "tags",
    metadata,
    Column("id", PG_UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("slug", String(50), nullable=False, unique=True),
    Column("name", String(50), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("now()")),
)

users_table = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("role", Text, nullable=False),
)

posts_table = Table(
    "posts",
    metadata,
    Column("id", PG_UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()")),
    Column("slug", String(100), nullable=False, unique=True),
    Column("title", String(200), nullable=False),
    Column("description", String(500), nullable=False),
    Column("content", Text, nullable=False),
    Column("is_premium", Boolean, nullable=False, server_default=text("false")),
    Column("is_published", Boolean, nullable=False, server_default=text("false")),
    Column("is_featured", Boolean, nullable=False, server_default=text("false")),
    Column("status", String(32), nullable=False, server_default=text("'PENDING_APPROVAL'")),
    Column("featured_image", Text),
    Column("featured_video", Text),
    Column("category_id", PG_UUID(as_uuid=False), ForeignKey("categories.id"), nullable=False),
    Column("author_id", Text, ForeignKey("users.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("now()")),
)

post_tags_table = Table(
    "post_tags",
    metadata,
    Column("post_id", PG_UUID(as_uuid=False), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
    Column("tag_id", PG_UUID(as_uuid=False), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("post_id", "tag_id", name="uq_post_tags_post_tag"),
)

generation_logs_table = Table(
    "content_generation_logs",
    metadata,
    Column("id", PG_UUID(as_uuid=False), primary_key=True),
    Column("status", String(16), nullable=False),
    Column("message", Text, nullable=False),
    Column("error", Text),
    Column("stats", JSONB, nullable=False),
    Column("duration_seconds", Float, nullable=False),
    Column("principal_id", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("now()")),
)
