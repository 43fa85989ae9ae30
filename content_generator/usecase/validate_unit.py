"""Usecase: validate and sanitize one raw content document."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from content_generator.domain.schema import SUSPICIOUS_CONTENT_ERROR, ContentUnit, PostDescriptor
from content_generator.utils.html_sanitizer import HtmlSanitizer

if TYPE_CHECKING:
    from content_generator.infra.config import PipelineConfig


SANITIZED_POST_FIELDS = ("title", "description", "content")


class UnitValidationResult(BaseModel):
    """Discriminated result of validating one document."""

    is_valid: bool
    unit: ContentUnit | None = None
    violations: list[str] = []
    suspicious: bool = False


class ContentUnitValidator:
    """Validates a parsed document against structural and security rules.

    Never raises for malformed-but-parseable input; every problem is returned
    as a human-readable violation. Suspicious content is rejected here and is
    never sanitized into an acceptable unit.
    """

    def __init__(self, config: PipelineConfig, sanitizer: HtmlSanitizer | None = None) -> None:
        self._config = config
        self._sanitizer = sanitizer or HtmlSanitizer()

    def validate(self, raw: Any) -> UnitValidationResult:
        # Step 1: schema, patterns, suspicious content and duplicate slugs
        try:
            unit = ContentUnit.model_validate(raw)
        except ValidationError as e:
            errors = e.errors(include_url=False)
            return UnitValidationResult(
                is_valid=False,
                violations=[_format_error(err) for err in errors],
                suspicious=any(err["type"] == SUSPICIOUS_CONTENT_ERROR for err in errors),
            )

        # Step 2: configurable bounds
        violations = self._check_limits(unit)
        if violations:
            return UnitValidationResult(is_valid=False, violations=violations)

        # Step 3: strip all markup from free-text fields
        sanitized, violations = self._sanitize(unit)
        if violations:
            return UnitValidationResult(is_valid=False, violations=violations)

        return UnitValidationResult(is_valid=True, unit=sanitized)

    def _check_limits(self, unit: ContentUnit) -> list[str]:
        violations = []
        if len(unit.tags) > self._config.max_tags_per_unit:
            violations.append(f"tags: Too many tags (max {self._config.max_tags_per_unit})")
        if len(unit.posts) > self._config.max_posts_per_unit:
            violations.append(f"posts: Too many posts (max {self._config.max_posts_per_unit})")
        for index, post in enumerate(unit.posts):
            if len(post.content) > self._config.max_content_length:
                violations.append(
                    f"posts.{index}.content: Content exceeds {self._config.max_content_length} character limit"
                )
        return violations

    def _sanitize(self, unit: ContentUnit) -> tuple[ContentUnit, list[str]]:
        violations = []
        posts: list[PostDescriptor] = []
        for index, post in enumerate(unit.posts):
            cleaned = {name: self._sanitizer.sanitize(getattr(post, name)) for name in SANITIZED_POST_FIELDS}
            for name, value in cleaned.items():
                if not value:
                    violations.append(f"posts.{index}.{name}: empty after sanitization")
            posts.append(post.model_copy(update=cleaned))
        return unit.model_copy(update={"posts": posts}), violations


def _format_error(err: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err['msg']}" if location else err["msg"]
