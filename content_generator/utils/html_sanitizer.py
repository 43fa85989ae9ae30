"""Markup screening and stripping for untrusted content fields."""

import re
import unicodedata

import nh3

WHITESPACE_PATTERN = re.compile(r"[ \t\f\v]+")

# Checked on raw input before any sanitization; a match rejects the whole unit.
SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<script[^>]*>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"onload\s*=", re.IGNORECASE),
    re.compile(r"onerror\s*=", re.IGNORECASE),
    re.compile(r"onclick\s*=", re.IGNORECASE),
    re.compile(r"<iframe[^>]*>", re.IGNORECASE),
    re.compile(r"<object[^>]*>", re.IGNORECASE),
    re.compile(r"<embed[^>]*>", re.IGNORECASE),
    re.compile(r"document\.cookie", re.IGNORECASE),
    re.compile(r"localStorage", re.IGNORECASE),
    re.compile(r"sessionStorage", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"Function\s*\(", re.IGNORECASE),
    re.compile(r"setTimeout\s*\(", re.IGNORECASE),
    re.compile(r"setInterval\s*\(", re.IGNORECASE),
)


def contains_suspicious_content(text: str) -> bool:
    """Return True if ``text`` matches any known script or injection pattern."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in SUSPICIOUS_PATTERNS)


class HtmlSanitizer:
    """Strips all markup from free text (strict profile).

    Inner text of ordinary elements is kept; ``script`` and ``style`` bodies
    are dropped entirely by ``nh3``.
    """

    def __init__(self) -> None:
        # Pre-compute immutable sanitizer configuration so each call can reuse it with
        # ``nh3.clean`` without repeatedly constructing sanitizer objects.
        self._nh3_tags: set[str] = set()
        self._nh3_clean_content_tags: set[str] = {"script", "style"}

    def sanitize(self, text: str) -> str:
        if not text:
            return ""

        text = nh3.clean(
            text,
            tags=self._nh3_tags,
            clean_content_tags=self._nh3_clean_content_tags,
            strip_comments=True,
        )

        # Collapse runs of horizontal whitespace but keep line breaks
        text = "\n".join(WHITESPACE_PATTERN.sub(" ", line).strip() for line in text.splitlines()).strip()

        # Remove control characters (except common whitespace)
        text = "".join(char for char in text if ord(char) >= 32 or char in "\t\n\r")

        return unicodedata.normalize("NFC", text)
