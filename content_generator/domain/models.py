"""Domain models for the content-generator service.

Pure value objects with no infrastructure dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from content_generator.domain.schema import ContentUnit


class RunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RunContext:
    """Identity of the run a unit is materialized under."""

    run_id: str
    principal_id: str


@dataclass(frozen=True)
class LoadedUnit:
    """A candidate that passed size, type, parse and schema checks."""

    name: str
    unit: ContentUnit
    size_bytes: int


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    slug: str
    name: str


@dataclass(frozen=True)
class UnitCommitted:
    """The unit's transaction committed."""

    unit_name: str
    categories_created: int = 0
    tags_created: int = 0
    posts_created: int = 0
    skipped_slugs: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnitSkipped:
    """The candidate was rejected before any store write."""

    unit_name: str
    reason: str
    security_relevant: bool = False


@dataclass(frozen=True)
class UnitFailed:
    """The unit's transaction rolled back."""

    unit_name: str
    reason: str


UnitOutcome = Union[UnitCommitted, UnitSkipped, UnitFailed]


@dataclass(frozen=True)
class ProcessingStats:
    """Frozen snapshot of a run's counters and messages."""

    files_processed: int = 0
    posts_created: int = 0
    tags_created: int = 0
    categories_created: int = 0
    units_failed: int = 0
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    status_messages: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary with the external camelCase keys."""
        return {
            "filesProcessed": self.files_processed,
            "postsCreated": self.posts_created,
            "tagsCreated": self.tags_created,
            "categoriesCreated": self.categories_created,
            "unitsFailed": self.units_failed,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "statusMessages": list(self.status_messages),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ProcessingStats:
        """Create stats from a stored dictionary, tolerating missing keys."""
        return cls(
            files_processed=int(raw.get("filesProcessed", 0)),
            posts_created=int(raw.get("postsCreated", 0)),
            tags_created=int(raw.get("tagsCreated", 0)),
            categories_created=int(raw.get("categoriesCreated", 0)),
            units_failed=int(raw.get("unitsFailed", 0)),
            warnings=tuple(raw.get("warnings") or ()),
            errors=tuple(raw.get("errors") or ()),
            status_messages=tuple(raw.get("statusMessages") or ()),
        )


@dataclass(frozen=True)
class GenerationLog:
    """Durable, immutable record of one completed or aborted run."""

    id: str
    status: RunStatus
    message: str
    stats: ProcessingStats
    duration_seconds: float
    principal_id: str | None
    created_at: datetime
    error: str | None = None

    @property
    def severity(self) -> str:
        return "ERROR" if self.status is RunStatus.ERROR else "INFO"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.created_at.isoformat(),
            "status": self.status.value,
            "message": self.message,
            "error": self.error,
            "durationSeconds": self.duration_seconds,
            "principalId": self.principal_id,
            "severity": self.severity,
            **self.stats.to_dict(),
        }


@dataclass(frozen=True)
class RunResult:
    """Synchronous result handed back to the caller after a run."""

    status: RunStatus
    duration_seconds: float
    stats: ProcessingStats = field(default_factory=ProcessingStats)
    log_id: str | None = None

    @property
    def files_processed(self) -> int:
        return self.stats.files_processed

    @property
    def posts_created(self) -> int:
        return self.stats.posts_created

    @property
    def tags_created(self) -> int:
        return self.stats.tags_created

    @property
    def categories_created(self) -> int:
        return self.stats.categories_created

    @property
    def warnings(self) -> list[str]:
        return list(self.stats.warnings)

    @property
    def errors(self) -> list[str]:
        return list(self.stats.errors)

    def to_dict(self) -> dict[str, Any]:
        stats = self.stats.to_dict()
        stats.pop("unitsFailed")
        return {"status": self.status.value, "durationSeconds": self.duration_seconds, **stats}
