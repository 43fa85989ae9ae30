"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from content_generator.infra.config import DatabaseConfig, PipelineConfig, Settings


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()

        assert config.max_file_size == 2 * 1024 * 1024
        assert config.max_posts_per_unit == 25
        assert config.max_content_length == 5000
        assert config.max_concurrent_units == 2
        assert config.batch_size == 5
        assert config.transaction_timeout_seconds == 30.0
        assert config.allowed_extensions == [".json"]
        assert config.required_author_role == "ADMIN"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CONTENT_GEN_MAX_CONCURRENT_UNITS", "4")
        monkeypatch.setenv("CONTENT_GEN_TRANSACTION_TIMEOUT_MS", "1500")

        config = PipelineConfig()

        assert config.max_concurrent_units == 4
        assert config.transaction_timeout_seconds == 1.5

    def test_extensions_are_normalized(self):
        assert PipelineConfig(allowed_extensions=["JSON", ".Txt"]).allowed_extensions == [".json", ".txt"]

    def test_limits_must_be_positive(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_concurrent_units=0)


class TestDatabaseConfig:
    def test_password_file_replaces_url_password(self, tmp_path):
        secret = tmp_path / "db_password"
        secret.write_text("s3cret\n")

        config = DatabaseConfig(url="postgresql+asyncpg://writer:old@db:5432/content", password_file=str(secret))

        assert config.url == "postgresql+asyncpg://writer:s3cret@db:5432/content"

    def test_missing_password_file_keeps_url(self, tmp_path):
        url = "postgresql+asyncpg://writer@db:5432/content"

        config = DatabaseConfig(url=url, password_file=str(tmp_path / "missing"))

        assert config.url == url


class TestSettings:
    def test_concurrency_must_fit_the_pool(self):
        with pytest.raises(ValidationError, match="exceeds database pool capacity"):
            Settings(
                pipeline=PipelineConfig(max_concurrent_units=8),
                database=DatabaseConfig(pool_size=3, max_overflow=2),
            )

    def test_concurrency_equal_to_capacity_is_allowed(self):
        settings = Settings(
            pipeline=PipelineConfig(max_concurrent_units=5),
            database=DatabaseConfig(pool_size=3, max_overflow=2),
        )

        assert settings.database.pool_capacity == 5
