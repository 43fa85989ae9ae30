"""Usecase: enumerate candidate content units from a source.

Two source kinds funnel through the same validator: a directory of JSON files
and an in-memory list of already-submitted documents. Per-candidate problems
become ``UnitSkipped`` items; only a source that cannot be opened at all
raises.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

import orjson
import structlog

from content_generator.domain.errors import PayloadParseError, SourceUnavailableError
from content_generator.domain.models import LoadedUnit, UnitSkipped

if TYPE_CHECKING:
    from content_generator.infra.config import PipelineConfig
    from content_generator.usecase.validate_unit import ContentUnitValidator

logger = structlog.get_logger(__name__)

LoaderItem = Union[LoadedUnit, UnitSkipped]


@dataclass(frozen=True)
class DirectorySource:
    """Every regular file directly under ``path`` is a candidate."""

    path: Path


@dataclass(frozen=True)
class SubmittedSource:
    """Documents handed over in memory, e.g. by the JSON or CSV import paths."""

    documents: Sequence[Any]
    label: str = "submitted"


ContentSource = Union[DirectorySource, SubmittedSource]


def parse_document(raw: bytes | str, name: str) -> Any:
    """Parse raw bytes into a structured document."""
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise PayloadParseError(f"{name}: invalid JSON ({e})") from e


class SourceLoader:
    """Lazily yields accepted units and skip records for one source."""

    def __init__(self, config: PipelineConfig, validator: ContentUnitValidator) -> None:
        self._config = config
        self._validator = validator

    async def load(self, source: ContentSource) -> AsyncIterator[LoaderItem]:
        if isinstance(source, DirectorySource):
            items = self._load_directory(source.path)
        elif isinstance(source, SubmittedSource):
            items = self._load_submitted(source)
        else:
            raise TypeError(f"Unsupported source: {type(source).__name__}")

        async for item in items:
            if isinstance(item, UnitSkipped):
                logger.warning("Skipping candidate", unit_name=item.unit_name, reason=item.reason)
            yield item

    async def _load_directory(self, directory: Path) -> AsyncIterator[LoaderItem]:
        entries = await asyncio.to_thread(_list_candidates, directory)
        logger.info("Enumerated content directory", directory=str(directory), candidates=len(entries))

        for index, path in enumerate(entries):
            name = path.name
            if index >= self._config.max_units_per_run:
                yield UnitSkipped(name, f"run limit of {self._config.max_units_per_run} candidates reached")
                continue
            if path.suffix.lower() not in self._config.allowed_extensions:
                yield UnitSkipped(name, f"extension '{path.suffix}' is not allowed")
                continue

            try:
                size = (await asyncio.to_thread(path.stat)).st_size
                if size > self._config.max_file_size:
                    yield self._oversized(name, size)
                    continue
                raw = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                yield UnitSkipped(name, f"unreadable: {e}")
                continue

            # The file may have grown between stat and read.
            if len(raw) > self._config.max_file_size:
                yield self._oversized(name, len(raw))
                continue

            try:
                document = parse_document(raw, name)
            except PayloadParseError as e:
                yield UnitSkipped(name, str(e))
                continue

            yield self._validate(name, document, len(raw))

    async def _load_submitted(self, source: SubmittedSource) -> AsyncIterator[LoaderItem]:
        for index, document in enumerate(source.documents):
            name = f"{source.label}[{index}]"
            if index >= self._config.max_units_per_run:
                yield UnitSkipped(name, f"run limit of {self._config.max_units_per_run} candidates reached")
                continue

            try:
                if isinstance(document, (bytes, str)):
                    size = len(document.encode() if isinstance(document, str) else document)
                    if size > self._config.max_file_size:
                        yield self._oversized(name, size)
                        continue
                    document = parse_document(document, name)
                else:
                    size = len(orjson.dumps(document))
                    if size > self._config.max_file_size:
                        yield self._oversized(name, size)
                        continue
            except PayloadParseError as e:
                yield UnitSkipped(name, str(e))
                continue
            except orjson.JSONEncodeError as e:
                yield UnitSkipped(name, f"{name}: not a serializable document ({e})")
                continue

            yield self._validate(name, document, size)
            # Submitted documents are already in memory; give concurrent consumers a turn.
            await asyncio.sleep(0)

    def _validate(self, name: str, document: Any, size: int) -> LoaderItem:
        result = self._validator.validate(document)
        if not result.is_valid or result.unit is None:
            return UnitSkipped(
                name,
                "validation failed: " + "; ".join(result.violations),
                security_relevant=result.suspicious,
            )
        return LoadedUnit(name=name, unit=result.unit, size_bytes=size)

    def _oversized(self, name: str, size: int) -> UnitSkipped:
        return UnitSkipped(
            name,
            f"size {size} bytes exceeds limit of {self._config.max_file_size} bytes",
            security_relevant=True,
        )


def _list_candidates(directory: Path) -> list[Path]:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        return sorted(entry for entry in directory.iterdir() if entry.is_file())
    except OSError as e:
        raise SourceUnavailableError(f"Content directory {directory} is not accessible: {e}") from e
