"""Async SQLAlchemy engine and session helpers."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from content_generator.infra import json
from content_generator.infra.config import DatabaseConfig

logger = structlog.get_logger(__name__)


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create a pooled async engine sized for the unit concurrency limit."""
    logger.info(
        "Creating database engine",
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
    )
    return create_async_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_pre_ping=True,
        json_serializer=json.dumps,
        json_deserializer=json.loads,
        # asyncpg-specific: per-command timeout and a recognisable application name
        connect_args={
            "command_timeout": config.command_timeout,
            "server_settings": {
                "application_name": "content-generator",
            },
        },
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to ``engine``."""
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
