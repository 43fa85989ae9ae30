"""JSON helpers wrapping orjson."""

from __future__ import annotations

from typing import Any

import orjson


def dumps(value: Any) -> str:
    """Serialize to a compact JSON string (used for JSONB columns)."""
    return orjson.dumps(value).decode()


def dumps_pretty(value: Any) -> str:
    return orjson.dumps(value, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode()


def loads(value: bytes | str) -> Any:
    return orjson.loads(value)
