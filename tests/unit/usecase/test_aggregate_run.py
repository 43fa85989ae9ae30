"""Tests for RunAggregator and AuditLogger."""

import threading

import pytest

from content_generator.domain.models import RunStatus, UnitCommitted, UnitFailed, UnitSkipped
from content_generator.usecase.aggregate_run import AuditLogger, RunAggregator
from tests.fakes.fake_collaborators import InMemoryGenerationLogRepository


class TestRunAggregator:
    def test_folds_each_outcome_kind(self):
        aggregator = RunAggregator("admin-1")

        aggregator.record(UnitCommitted("a.json", 1, 2, 3, skipped_slugs=("old-post",)))
        aggregator.record(UnitSkipped("b.json", "extension '.txt' is not allowed"))
        aggregator.record(UnitFailed("c.json", "transaction timed out after 50 ms"))
        stats = aggregator.snapshot()

        assert stats.files_processed == 1
        assert (stats.categories_created, stats.tags_created, stats.posts_created) == (1, 2, 3)
        assert stats.units_failed == 1
        assert stats.warnings == (
            "a.json: post 'old-post' already existed, skipped",
            "b.json: skipped, extension '.txt' is not allowed",
        )
        assert stats.errors == ("c.json: transaction timed out after 50 ms",)
        assert stats.status_messages == (
            "Completed processing a.json",
            "Skipped b.json",
            "Failed processing c.json",
        )

    def test_unknown_outcome_is_rejected(self):
        with pytest.raises(TypeError):
            RunAggregator().record("committed")

    def test_concurrent_records_lose_no_updates(self):
        aggregator = RunAggregator()
        barrier = threading.Barrier(20)

        def worker(index: int) -> None:
            barrier.wait()
            for _ in range(50):
                aggregator.record(UnitCommitted(f"u{index}", tags_created=1, skipped_slugs=("s",)))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = aggregator.snapshot()
        assert stats.tags_created == 1000
        assert stats.files_processed == 1000
        assert len(stats.warnings) == 1000

    def test_snapshot_is_frozen(self):
        aggregator = RunAggregator()
        snapshot = aggregator.snapshot()

        aggregator.record(UnitCommitted("a.json", posts_created=1))

        assert snapshot.posts_created == 0


class TestRunStatus:
    def test_empty_run_is_success(self):
        log = RunAggregator().build_log()

        assert log.status is RunStatus.SUCCESS
        assert log.error is None

    def test_only_skips_is_success(self):
        aggregator = RunAggregator()
        aggregator.record(UnitSkipped("a.json", "bad"))

        assert aggregator.build_log().status is RunStatus.SUCCESS

    def test_all_units_failed_is_error(self):
        aggregator = RunAggregator()
        aggregator.record(UnitFailed("a.json", "boom"))
        aggregator.record(UnitFailed("b.json", "boom"))

        log = aggregator.build_log()

        assert log.status is RunStatus.ERROR
        assert "all 2 unit(s) rolled back" in log.message

    def test_partial_failure_is_success_with_errors(self):
        aggregator = RunAggregator()
        aggregator.record(UnitCommitted("a.json", posts_created=1))
        aggregator.record(UnitFailed("b.json", "boom"))

        log = aggregator.build_log()

        assert log.status is RunStatus.SUCCESS
        assert log.stats.errors == ("b.json: boom",)

    def test_abort_is_error_and_keeps_partial_stats(self):
        aggregator = RunAggregator("admin-1")
        aggregator.record(UnitSkipped("a.json", "bad"))

        log = aggregator.build_log(abort_error="Principal 'x' not found")

        assert log.status is RunStatus.ERROR
        assert log.error == "Principal 'x' not found"
        assert log.message == "Content generation aborted: Principal 'x' not found"
        assert log.stats.warnings == ("a.json: skipped, bad",)
        assert log.principal_id == "admin-1"

    def test_duration_is_measured_from_start(self):
        aggregator = RunAggregator(started_at=0.0)

        assert aggregator.build_log().duration_seconds > 0


class TestAuditLogger:
    @pytest.mark.asyncio
    async def test_persists_one_log(self):
        repository = InMemoryGenerationLogRepository()

        log = await AuditLogger(repository).finalize(RunAggregator("admin-1"))

        assert repository.logs == [log]

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_raise(self):
        repository = InMemoryGenerationLogRepository()
        repository.fail_on_save = True

        log = await AuditLogger(repository).finalize(RunAggregator())

        assert log.status is RunStatus.SUCCESS
        assert repository.logs == []
