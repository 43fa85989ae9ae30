"""Composition Root: wires all dependencies for the content-generator service.

Usage:
    container = ServiceContainer(settings)
    result = await container.generate_content.execute(source, principal_id)
    await container.aclose()
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from content_generator.db.session import create_engine, create_session_factory
from content_generator.domain.errors import DatabaseConnectionError
from content_generator.gateway.log_count_rate_limiter import GenerationLogRateLimiter
from content_generator.gateway.postgres_content_store import PostgresContentStore
from content_generator.gateway.postgres_generation_log_repo import PostgresGenerationLogRepository
from content_generator.gateway.postgres_principal_validator import PostgresPrincipalValidator
from content_generator.gateway.structlog_security_sink import StructlogSecurityEventSink
from content_generator.infra.config import Settings
from content_generator.usecase.aggregate_run import AuditLogger
from content_generator.usecase.csv_import import CsvImporter
from content_generator.usecase.generate_content import GenerateContentUsecase
from content_generator.usecase.load_source import SourceLoader
from content_generator.usecase.materialize_unit import MaterializeUnitUsecase
from content_generator.usecase.validate_unit import ContentUnitValidator
from content_generator.utils.html_sanitizer import HtmlSanitizer

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Owns the engine and lazily builds every gateway and usecase once."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._log_repository: PostgresGenerationLogRepository | None = None
        self._security_sink: StructlogSecurityEventSink | None = None
        self._generate_content: GenerateContentUsecase | None = None

    # --- Infrastructure ---

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            if not self.settings.database.url:
                raise DatabaseConnectionError("CONTENT_GEN_DB_URL is not configured")
            self._engine = create_engine(self.settings.database)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = create_session_factory(self.engine)
        return self._session_factory

    # --- Gateways ---

    @property
    def log_repository(self) -> PostgresGenerationLogRepository:
        if self._log_repository is None:
            self._log_repository = PostgresGenerationLogRepository(self.session_factory)
        return self._log_repository

    @property
    def security_sink(self) -> StructlogSecurityEventSink:
        if self._security_sink is None:
            self._security_sink = StructlogSecurityEventSink()
        return self._security_sink

    @property
    def rate_limiter(self) -> GenerationLogRateLimiter:
        return GenerationLogRateLimiter(self.log_repository, self.settings.pipeline.rate_limit_per_hour)

    # --- Usecases ---

    @property
    def csv_importer(self) -> CsvImporter:
        return CsvImporter(max_rows=self.settings.pipeline.max_csv_rows)

    @property
    def generate_content(self) -> GenerateContentUsecase:
        if self._generate_content is None:
            pipeline = self.settings.pipeline
            validator = ContentUnitValidator(pipeline, HtmlSanitizer())
            store = PostgresContentStore(self.session_factory, pipeline.transaction_timeout_ms)
            self._generate_content = GenerateContentUsecase(
                config=pipeline,
                loader=SourceLoader(pipeline, validator),
                materializer=MaterializeUnitUsecase(store, pipeline),
                audit_logger=AuditLogger(self.log_repository),
                principal_validator=PostgresPrincipalValidator(self.session_factory),
                security_sink=self.security_sink,
            )
        return self._generate_content

    async def aclose(self) -> None:
        if self._engine is not None:
            logger.info("Disposing database engine")
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
