"""Centralized configuration for the content-generator service.

All settings are read from environment variables via pydantic-settings.
Sub-configs are nested for clear grouping (pipeline limits, database).
"""

from functools import lru_cache
from urllib.parse import urlparse, urlunparse

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class PipelineConfig(BaseSettings):
    """Security limits and performance knobs for a generation run.

    All fields can be overridden via environment variables with the CONTENT_GEN_ prefix.
    Example: CONTENT_GEN_MAX_CONCURRENT_UNITS=3 overrides max_concurrent_units.
    """

    model_config = SettingsConfigDict(env_prefix="CONTENT_GEN_", extra="ignore")

    # Security constraints
    max_file_size: int = Field(default=2 * 1024 * 1024, gt=0, description="Maximum candidate size in bytes")
    max_posts_per_unit: int = Field(default=25, gt=0, description="Maximum posts in one content unit")
    max_tags_per_unit: int = Field(default=20, gt=0, description="Maximum tags in one content unit")
    max_content_length: int = Field(default=5000, gt=0, description="Maximum post content length in characters")
    allowed_extensions: list[str] = Field(default_factory=lambda: [".json"])
    max_units_per_run: int = Field(default=100, gt=0, description="Maximum candidates considered per run")
    max_csv_rows: int = Field(default=1000, gt=0, description="Maximum CSV data rows converted per import")
    rate_limit_per_hour: int = Field(default=10, gt=0, description="Maximum runs per principal per hour")

    # Performance settings
    max_concurrent_units: int = Field(default=2, gt=0, description="Units materialized concurrently per group")
    transaction_timeout_ms: int = Field(default=30000, gt=0, description="Per-unit transaction timeout")
    batch_size: int = Field(default=5, gt=0, description="Rows per insert statement inside a unit")

    # Source and principal
    content_directory: str = Field(default="content", description="Directory scanned for content files")
    author_id: str | None = Field(default=None, description="Principal that owns generated posts")
    required_author_role: str | None = Field(default="ADMIN", description="Role the principal must hold")

    @model_validator(mode="after")
    def normalize_extensions(self) -> "PipelineConfig":
        self.allowed_extensions = [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in self.allowed_extensions
        ]
        return self

    @property
    def transaction_timeout_seconds(self) -> float:
        return self.transaction_timeout_ms / 1000


class DatabaseConfig(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="CONTENT_GEN_DB_", extra="ignore")

    url: str = Field(
        default="postgresql+asyncpg://content_generator@localhost:5432/content",
        description="Async SQLAlchemy connection string",
    )
    password_file: str | None = Field(default=None, description="File whose contents replace the URL password")
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=5, ge=0)
    command_timeout: float = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def inject_password(self) -> "DatabaseConfig":
        if not self.password_file:
            return self
        try:
            with open(self.password_file) as f:
                password = f.read().strip()
        except OSError as e:
            logger.error("Failed to read password file", error=str(e))
            return self

        u = urlparse(self.url)
        if "@" in u.netloc:
            user_pass, host_port = u.netloc.rsplit("@", 1)
            user = user_pass.split(":", 1)[0]
            self.url = urlunparse((u.scheme, f"{user}:{password}@{host_port}", u.path, u.params, u.query, u.fragment))
        return self

    @property
    def pool_capacity(self) -> int:
        return self.pool_size + self.max_overflow


class Settings(BaseSettings):
    """Top-level configuration for the content-generator service."""

    model_config = SettingsConfigDict(env_prefix="CONTENT_GEN_", extra="ignore")

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @model_validator(mode="after")
    def check_pool_capacity(self) -> "Settings":
        # Each concurrent unit holds one pooled connection for its whole transaction.
        if self.pipeline.max_concurrent_units > self.database.pool_capacity:
            raise ValueError(
                f"max_concurrent_units ({self.pipeline.max_concurrent_units}) exceeds "
                f"database pool capacity ({self.database.pool_capacity})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
