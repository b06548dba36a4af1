"""
Canonical JSON Serialization

Deterministic JSON for decision records and the grace store:
- Sorted keys (lexicographic)
- No whitespace in the hashed form
- Datetimes as ISO 8601 UTC with a Z suffix
- Sets as sorted lists

Two runs that reach the same decisions produce the same bytes, so the
decision hash can be compared across runs.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO 8601 UTC (``2026-10-18T09:00:00Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by format_timestamp or by JavaScript's toISOString()."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - datetime/date: ISO 8601
    - Enum: value
    - dataclass: dict
    - set/frozenset: sorted list
    """
    if isinstance(obj, datetime):
        return format_timestamp(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def pretty_json(obj: Any) -> str:
    """Indented, key-sorted JSON for files meant to be read by people."""
    return json.dumps(
        obj,
        sort_keys=True,
        indent=2,
        default=_default_serializer,
        ensure_ascii=False,
    )


def content_hash(obj: Any) -> str:
    """Hex SHA-256 of the canonical JSON representation."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()
