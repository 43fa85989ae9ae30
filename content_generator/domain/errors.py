"""Domain exception hierarchy for the content-generator service.

Provides typed exceptions for distinct failure categories, enabling
callers to tell a run abort apart from a per-candidate skip or a
per-unit failure instead of catching bare ``Exception``.
"""


class ContentGeneratorError(Exception):
    """Base exception for all content-generator domain errors."""


class AbortError(ContentGeneratorError):
    """A failure that prevents any content unit from being processed."""


class PrincipalValidationError(AbortError):
    """The triggering principal does not exist or lacks the required role."""


class SourceUnavailableError(AbortError):
    """The content source cannot be read at the top level."""


class PayloadParseError(ContentGeneratorError):
    """A candidate's raw bytes are not valid structured data."""


class MaterializationError(ContentGeneratorError):
    """A store operation failed while materializing a single unit."""


class DatabaseConnectionError(ContentGeneratorError):
    """Database connection could not be established."""


class RateLimitExceededError(ContentGeneratorError):
    """The principal exceeded the allowed number of runs per window."""
