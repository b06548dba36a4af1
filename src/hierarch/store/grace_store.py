"""
Grace Store

In-memory mapping of user_id → GraceRecord that one run mutates. It is
loaded from a backend when the run starts and handed back to the same
backend to be written when the run ends.

Thread-safety: not thread-safe. One run owns one store; backends enforce
at most one open run per persisted store.
"""
from __future__ import annotations

from typing import Iterator, Mapping, Optional

from ..models import GraceRecord


class GraceStore:
    """
    Usage:
        store = GraceStore()
        store.put(record)
        store.get("123")
        store.delete("123")
    """

    def __init__(self, records: Optional[Mapping[str, GraceRecord]] = None) -> None:
        self._records: dict[str, GraceRecord] = dict(records or {})

    def get(self, user_id: str) -> Optional[GraceRecord]:
        return self._records.get(user_id)

    def put(self, record: GraceRecord) -> None:
        self._records[record.user_id] = record

    def delete(self, user_id: str) -> bool:
        """Remove a record. Returns True if one existed."""
        return self._records.pop(user_id, None) is not None

    def user_ids(self) -> list[str]:
        return sorted(self._records)

    def snapshot(self) -> dict[str, GraceRecord]:
        """A copy of the current records, keyed by user_id."""
        return dict(self._records)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[GraceRecord]:
        for user_id in self.user_ids():
            yield self._records[user_id]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraceStore):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"GraceStore({len(self._records)} records)"
