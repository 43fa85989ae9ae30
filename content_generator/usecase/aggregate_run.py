"""Usecase: fold per-unit outcomes into run statistics and persist the audit log."""

from __future__ import annotations

import threading
import time
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from content_generator.domain.models import (
    GenerationLog,
    ProcessingStats,
    RunStatus,
    UnitCommitted,
    UnitFailed,
    UnitOutcome,
    UnitSkipped,
)

if TYPE_CHECKING:
    from content_generator.port.generation_log_repository import GenerationLogRepositoryPort

logger = structlog.get_logger(__name__)


class RunAggregator:
    """Run-scoped, thread-safe accumulator of counters and messages.

    Counters only ever increment and message lists only ever append, all under
    one lock, so concurrent ``record`` calls never lose updates.
    """

    def __init__(self, principal_id: str | None = None, started_at: float | None = None) -> None:
        self._lock = threading.Lock()
        self._principal_id = principal_id
        self._started_at = time.monotonic() if started_at is None else started_at

        self._files_processed = 0
        self._posts_created = 0
        self._tags_created = 0
        self._categories_created = 0
        self._units_committed = 0
        self._units_failed = 0
        self._warnings: list[str] = []
        self._errors: list[str] = []
        self._status_messages: list[str] = []

    def record(self, outcome: UnitOutcome) -> None:
        """Fold one unit outcome into the run totals."""
        with self._lock:
            if isinstance(outcome, UnitCommitted):
                self._units_committed += 1
                self._files_processed += 1
                self._categories_created += outcome.categories_created
                self._tags_created += outcome.tags_created
                self._posts_created += outcome.posts_created
                for slug in outcome.skipped_slugs:
                    self._warnings.append(f"{outcome.unit_name}: post '{slug}' already existed, skipped")
                self._status_messages.append(f"Completed processing {outcome.unit_name}")
            elif isinstance(outcome, UnitSkipped):
                self._warnings.append(f"{outcome.unit_name}: skipped, {outcome.reason}")
                self._status_messages.append(f"Skipped {outcome.unit_name}")
            elif isinstance(outcome, UnitFailed):
                self._units_failed += 1
                self._errors.append(f"{outcome.unit_name}: {outcome.reason}")
                self._status_messages.append(f"Failed processing {outcome.unit_name}")
            else:
                raise TypeError(f"Unknown unit outcome: {type(outcome).__name__}")

    def note(self, message: str) -> None:
        """Append a progress line to the run's status messages."""
        with self._lock:
            self._status_messages.append(message)

    @property
    def units_committed(self) -> int:
        with self._lock:
            return self._units_committed

    @property
    def units_failed(self) -> int:
        with self._lock:
            return self._units_failed

    def snapshot(self) -> ProcessingStats:
        with self._lock:
            return ProcessingStats(
                files_processed=self._files_processed,
                posts_created=self._posts_created,
                tags_created=self._tags_created,
                categories_created=self._categories_created,
                units_failed=self._units_failed,
                warnings=tuple(self._warnings),
                errors=tuple(self._errors),
                status_messages=tuple(self._status_messages),
            )

    def elapsed_seconds(self) -> float:
        return round(time.monotonic() - self._started_at, 3)

    def build_log(self, abort_error: str | None = None) -> GenerationLog:
        """Freeze the statistics into an immutable GenerationLog.

        The run is an error when it aborted, or when units failed and none
        committed. An empty or fully-skipped source is a successful no-op.
        """
        stats = self.snapshot()
        committed = self.units_committed

        if abort_error is not None:
            status = RunStatus.ERROR
            message = f"Content generation aborted: {abort_error}"
        elif stats.units_failed and not committed:
            status = RunStatus.ERROR
            message = f"Content generation failed: all {stats.units_failed} unit(s) rolled back"
        else:
            status = RunStatus.SUCCESS
            message = (
                f"Content generation completed: {stats.files_processed} unit(s), "
                f"{stats.posts_created} post(s), {stats.tags_created} tag(s), "
                f"{stats.categories_created} categor{'y' if stats.categories_created == 1 else 'ies'} created"
            )

        return GenerationLog(
            id=str(uuid.uuid4()),
            status=status,
            message=message,
            stats=stats,
            duration_seconds=self.elapsed_seconds(),
            principal_id=self._principal_id,
            created_at=datetime.now(UTC),
            error=abort_error,
        )


class AuditLogger:
    """Persists exactly one GenerationLog per run, best effort."""

    def __init__(self, repository: GenerationLogRepositoryPort) -> None:
        self._repository = repository

    async def finalize(self, aggregator: RunAggregator, abort_error: str | None = None) -> GenerationLog:
        log = aggregator.build_log(abort_error)
        try:
            await self._repository.save(log)
        except Exception as e:
            # The run result is still returned; only the audit row is lost.
            logger.error("Failed to persist generation log", log_id=log.id, error=str(e))
        else:
            logger.info(
                "Generation log persisted",
                log_id=log.id,
                status=log.status.value,
                duration_seconds=log.duration_seconds,
            )
        return log
