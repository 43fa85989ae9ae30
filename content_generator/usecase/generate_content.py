"""Usecase: one end-to-end content generation run.

Principal check -> Loader (with Validator) -> Scheduler -> Materializer ->
Aggregator -> audit log. Abort errors are logged as an ``error``
GenerationLog and then re-raised to the caller; every other problem ends up
in the run's warnings or errors.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import structlog

from content_generator.domain.errors import AbortError, PrincipalValidationError
from content_generator.domain.models import LoadedUnit, RunContext, RunResult, UnitSkipped
from content_generator.port.security_event_sink import SecurityEventType, SecuritySeverity
from content_generator.usecase.aggregate_run import AuditLogger, RunAggregator
from content_generator.usecase.schedule_units import BatchScheduler

if TYPE_CHECKING:
    from content_generator.infra.config import PipelineConfig
    from content_generator.port.principal_validator import PrincipalValidatorPort
    from content_generator.port.security_event_sink import SecurityEventSinkPort
    from content_generator.usecase.load_source import ContentSource, SourceLoader
    from content_generator.usecase.materialize_unit import MaterializeUnitUsecase

logger = structlog.get_logger(__name__)


class GenerateContentUsecase:
    def __init__(
        self,
        config: PipelineConfig,
        loader: SourceLoader,
        materializer: MaterializeUnitUsecase,
        audit_logger: AuditLogger,
        principal_validator: PrincipalValidatorPort,
        security_sink: SecurityEventSinkPort,
    ) -> None:
        self._config = config
        self._loader = loader
        self._materializer = materializer
        self._audit = audit_logger
        self._principals = principal_validator
        self._security = security_sink

    async def execute(self, source: ContentSource, principal_id: str | None = None) -> RunResult:
        principal_id = principal_id or self._config.author_id
        run_id = str(uuid.uuid4())

        with structlog.contextvars.bound_contextvars(run_id=run_id):
            aggregator = RunAggregator(principal_id)
            logger.info("Content generation run started", principal_id=principal_id, source=type(source).__name__)

            try:
                await self._validate_principal(principal_id)
                context = RunContext(run_id=run_id, principal_id=principal_id or "")
                scheduler = BatchScheduler(self._config.max_concurrent_units)
                await scheduler.run(
                    self._accepted_units(source, aggregator),
                    lambda loaded: self._materializer.execute(loaded, context),
                    aggregator.record,
                )
            except AbortError as e:
                logger.error("Content generation run aborted", error=str(e), error_type=type(e).__name__)
                await self._audit.finalize(aggregator, abort_error=str(e))
                raise
            except Exception as e:
                logger.error("Content generation run crashed", error=str(e), error_type=type(e).__name__)
                await self._audit.finalize(aggregator, abort_error=f"{type(e).__name__}: {e}")
                raise

            log = await self._audit.finalize(aggregator)
            logger.info(
                "Content generation run finished",
                status=log.status.value,
                files_processed=log.stats.files_processed,
                posts_created=log.stats.posts_created,
                warnings=len(log.stats.warnings),
                errors=len(log.stats.errors),
            )
            return RunResult(
                status=log.status,
                duration_seconds=log.duration_seconds,
                stats=log.stats,
                log_id=log.id,
            )

    async def _validate_principal(self, principal_id: str | None) -> None:
        try:
            if not principal_id:
                raise PrincipalValidationError("No principal configured for content generation")
            await self._principals.validate(principal_id, self._config.required_author_role)
        except PrincipalValidationError as e:
            await self._report(
                SecurityEventType.UNAUTHORIZED_ACCESS,
                {"principal_id": principal_id, "reason": str(e), "context": "content_generation"},
                SecuritySeverity.HIGH,
            )
            raise

    async def _accepted_units(self, source: ContentSource, aggregator: RunAggregator) -> AsyncIterator[LoadedUnit]:
        try:
            async for item in self._loader.load(source):
                if isinstance(item, UnitSkipped):
                    aggregator.record(item)
                    if item.security_relevant:
                        await self._report(
                            SecurityEventType.MALICIOUS_PAYLOAD,
                            {"unit_name": item.unit_name, "reason": item.reason, "context": "content_generation"},
                            SecuritySeverity.MEDIUM,
                        )
                    continue
                aggregator.note(f"Processing {item.name}")
                yield item
        except AbortError as e:
            await self._report(
                SecurityEventType.MALICIOUS_PAYLOAD,
                {"reason": str(e), "context": "content_generation"},
                SecuritySeverity.HIGH,
            )
            raise

    async def _report(self, event_type: SecurityEventType, details: dict[str, Any], severity: SecuritySeverity) -> None:
        try:
            await self._security.report(event_type, details, severity)
        except Exception as e:
            logger.warning("Security event sink failed", event_type=event_type.value, error=str(e))
