"""
Global pytest configuration and fixtures for the content-generator service.
Provides sample documents, configuration and fully wired pipelines over
in-memory fakes so no database is needed.
"""

import os
from typing import Any

import pytest
import structlog

from content_generator.infra.config import PipelineConfig
from content_generator.usecase.aggregate_run import AuditLogger
from content_generator.usecase.generate_content import GenerateContentUsecase
from content_generator.usecase.load_source import SourceLoader
from content_generator.usecase.materialize_unit import MaterializeUnitUsecase
from content_generator.usecase.validate_unit import ContentUnitValidator
from tests.fakes.documents import make_document
from tests.fakes.fake_collaborators import (
    FakePrincipalValidator,
    InMemoryGenerationLogRepository,
    RecordingSecuritySink,
)
from tests.fakes.fake_content_store import InMemoryContentStore


@pytest.fixture
def sample_document() -> dict[str, Any]:
    return make_document()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        max_file_size=4096,
        max_concurrent_units=2,
        transaction_timeout_ms=2000,
        batch_size=2,
        author_id="admin-1",
    )


@pytest.fixture
def validator(pipeline_config: PipelineConfig) -> ContentUnitValidator:
    return ContentUnitValidator(pipeline_config)


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def log_repository() -> InMemoryGenerationLogRepository:
    return InMemoryGenerationLogRepository()


@pytest.fixture
def principals() -> FakePrincipalValidator:
    return FakePrincipalValidator({"admin-1": "ADMIN", "editor-1": "EDITOR"})


@pytest.fixture
def security_sink() -> RecordingSecuritySink:
    return RecordingSecuritySink()


@pytest.fixture
def generate_content(
    pipeline_config: PipelineConfig,
    validator: ContentUnitValidator,
    store: InMemoryContentStore,
    log_repository: InMemoryGenerationLogRepository,
    principals: FakePrincipalValidator,
    security_sink: RecordingSecuritySink,
) -> GenerateContentUsecase:
    return GenerateContentUsecase(
        config=pipeline_config,
        loader=SourceLoader(pipeline_config, validator),
        materializer=MaterializeUnitUsecase(store, pipeline_config),
        audit_logger=AuditLogger(log_repository),
        principal_validator=principals,
        security_sink=security_sink,
    )


# Configure logging for tests
@pytest.fixture(scope="session", autouse=True)
def configure_test_logging():
    """Route structlog through a capturing logger so tests stay quiet."""
    import logging

    logging.getLogger().setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.testing.LogCapture(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.testing.CapturingLoggerFactory(),
        # capture_logs() in individual tests must see every logger.
        cache_logger_on_first_use=False,
    )

    yield


# Environment setup
@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment variables."""
    os.environ["SERVICE_NAME"] = "content-generator-test"
    os.environ["CONTENT_GEN_LOG_LEVEL"] = "WARNING"
    yield
    # Cleanup
    if "SERVICE_NAME" in os.environ:
        del os.environ["SERVICE_NAME"]
    if "CONTENT_GEN_LOG_LEVEL" in os.environ:
        del os.environ["CONTENT_GEN_LOG_LEVEL"]


@pytest.fixture
def log_output():
    """Capture structlog events with bound contextvars merged in."""
    capture = structlog.testing.LogCapture()
    previous = structlog.get_config()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    yield capture.entries
    structlog.configure(**previous)
