"""Usecase: drive unit materialization in bounded concurrent groups."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable

import structlog

from content_generator.domain.models import LoadedUnit, UnitFailed, UnitOutcome

logger = structlog.get_logger(__name__)

UnitWorker = Callable[[LoadedUnit], Awaitable[UnitOutcome]]
OutcomeCallback = Callable[[UnitOutcome], None]


class BatchScheduler:
    """Runs at most ``concurrency_limit`` units at a time.

    Units are pulled from the source one group at a time; every unit of a group
    settles (commit or failure) before the next group is pulled. A failing unit
    never cancels its siblings.
    """

    def __init__(self, concurrency_limit: int) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self._limit = concurrency_limit

    async def run(
        self,
        units: AsyncIterable[LoadedUnit],
        worker: UnitWorker,
        on_outcome: OutcomeCallback | None = None,
    ) -> list[UnitOutcome]:
        """Materialize every unit and return outcomes in submission order."""
        outcomes: list[UnitOutcome] = []
        group: list[LoadedUnit] = []
        group_index = 0

        async for unit in units:
            group.append(unit)
            if len(group) == self._limit:
                outcomes.extend(await self._run_group(group, group_index, worker, on_outcome))
                group = []
                group_index += 1

        if group:
            outcomes.extend(await self._run_group(group, group_index, worker, on_outcome))

        return outcomes

    async def _run_group(
        self,
        group: list[LoadedUnit],
        group_index: int,
        worker: UnitWorker,
        on_outcome: OutcomeCallback | None,
    ) -> list[UnitOutcome]:
        logger.debug("Starting unit group", group=group_index, size=len(group))
        results = await asyncio.gather(*(worker(unit) for unit in group), return_exceptions=True)

        outcomes: list[UnitOutcome] = []
        for unit, result in zip(group, results):
            if isinstance(result, Exception):
                logger.error("Unit worker raised", unit_name=unit.name, error=str(result))
                outcome: UnitOutcome = UnitFailed(unit.name, f"{type(result).__name__}: {result}")
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome = result
            if on_outcome is not None:
                on_outcome(outcome)
            outcomes.append(outcome)

        logger.debug("Finished unit group", group=group_index, size=len(group))
        return outcomes
