"""
Grace Store Backends

Durable homes for the grace store. A backend is opened once at run start
(taking the run lock and reading state), committed once at run end, and
closed.

File format (version 1):

    {
      "version": 1,
      "period": "2026-W42",
      "base": {...records as they were before that period...},
      "records": {"<user_id>": {"display_name", "weeks_out", "first_week_out"}}
    }

Period re-entrancy: when a run is labelled with the same period as the
last commit, it starts from "base" instead of "records", so a period can
be re-run without advancing any grace counter twice. Unlabelled runs
always start from "records".

Missing state is a cold start. State that exists but cannot be parsed is
fatal (GraceStoreCorruptError): lost grace counters are never guessed.
"""
from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..canon import format_timestamp, pretty_json
from ..exceptions import (
    GraceStoreCorruptError,
    GraceStoreError,
    GraceStoreLockedError,
    GraceStoreWriteError,
)
from ..models import GraceRecord
from .grace_store import GraceStore

logger = logging.getLogger(__name__)

STATE_VERSION = 1


# =============================================================================
# Persisted State
# =============================================================================

@dataclass
class PersistedGraceState:
    period: Optional[str] = None
    base: dict[str, GraceRecord] = field(default_factory=dict)
    records: dict[str, GraceRecord] = field(default_factory=dict)

    def working_store(self, period: Optional[str]) -> GraceStore:
        """The store a run labelled ``period`` starts from."""
        if period is not None and period == self.period:
            logger.info("Period %s already committed; replaying from its base state", period)
            return GraceStore(self.base)
        return GraceStore(self.records)

    def after_run(self, store: GraceStore, period: Optional[str]) -> PersistedGraceState:
        """The state to persist once a run labelled ``period`` finishes."""
        if period is None:
            return PersistedGraceState(period=None, base={}, records=store.snapshot())
        if period == self.period:
            return PersistedGraceState(period=period, base=dict(self.base), records=store.snapshot())
        return PersistedGraceState(period=period, base=dict(self.records), records=store.snapshot())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "period": self.period,
            "base": {uid: r.to_dict() for uid, r in sorted(self.base.items())},
            "records": {uid: r.to_dict() for uid, r in sorted(self.records.items())},
        }


def _parse_records(data: Any, where: str) -> dict[str, GraceRecord]:
    if not isinstance(data, dict):
        raise GraceStoreCorruptError(
            message=f"Grace records in {where} must be an object",
            details={"where": where},
        )
    records: dict[str, GraceRecord] = {}
    for user_id, raw in data.items():
        if not isinstance(user_id, str) or not user_id.strip() or not isinstance(raw, dict):
            raise GraceStoreCorruptError(
                message=f"Malformed grace entry in {where}",
                details={"where": where},
                user_id=str(user_id),
            )
        try:
            records[user_id] = GraceRecord.from_dict(user_id, raw)
        except (KeyError, ValueError, TypeError) as e:
            raise GraceStoreCorruptError(
                message=f"Malformed grace record in {where}: {e}",
                details={"where": where},
                user_id=user_id,
            ) from e
    return records


def parse_state(data: Any) -> PersistedGraceState:
    """
    Parse persisted grace state.

    A top-level object without "version" is the legacy bot's flat
    grace-tracking.json and is read as the current records.

    Raises:
        GraceStoreCorruptError: If the data is not valid grace state
    """
    if not isinstance(data, dict):
        raise GraceStoreCorruptError(message="Grace state must be a JSON object")

    if "version" not in data:
        return PersistedGraceState(records=_parse_records(data, "legacy state"))

    if data["version"] != STATE_VERSION:
        raise GraceStoreCorruptError(
            message=f"Unsupported grace state version {data['version']!r}",
            details={"version": data["version"]},
        )
    period = data.get("period")
    if period is not None and not isinstance(period, str):
        raise GraceStoreCorruptError(message="Grace state period must be a string or null")

    return PersistedGraceState(
        period=period,
        base=_parse_records(data.get("base", {}), "base"),
        records=_parse_records(data.get("records", {}), "records"),
    )


# =============================================================================
# Backend Interface
# =============================================================================

class GraceStoreBackend(ABC):
    """
    Open / commit / close lifecycle shared by every backend.

    Usage:
        with backend:
            store = backend.open(period="2026-W42")
            ...mutate store...
            backend.commit(store)
    """

    def __init__(self) -> None:
        self._state: Optional[PersistedGraceState] = None
        self._period: Optional[str] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def last_period(self) -> Optional[str]:
        return self._state.period if self._state else None

    def open(self, period: Optional[str] = None) -> GraceStore:
        """Take the run lock, read state, and return the working store."""
        if self._open:
            raise GraceStoreError(message="Grace store is already open in this run")
        self._acquire()
        try:
            self._state = self._read_state()
        except Exception:
            self._release()
            raise
        self._open = True
        self._period = period
        store = self._state.working_store(period)
        logger.info("Loaded grace store: %d records", len(store))
        return store

    def commit(self, store: GraceStore) -> None:
        """Write the store back. Only valid between open() and close()."""
        if not self._open or self._state is None:
            raise GraceStoreError(message="Grace store must be opened before commit")
        new_state = self._state.after_run(store, self._period)
        self._write_state(new_state)
        self._state = new_state
        logger.info("Committed grace store: %d records", len(store))

    def close(self) -> None:
        if self._open:
            self._open = False
            self._release()

    def __enter__(self) -> GraceStoreBackend:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @abstractmethod
    def _read_state(self) -> PersistedGraceState: ...

    @abstractmethod
    def _write_state(self, state: PersistedGraceState) -> None: ...

    def _acquire(self) -> None:
        pass

    def _release(self) -> None:
        pass


# =============================================================================
# In-memory Backend
# =============================================================================

class MemoryGraceStoreBackend(GraceStoreBackend):
    """Backend without files, for tests and embedding."""

    def __init__(self, state: Optional[PersistedGraceState] = None) -> None:
        super().__init__()
        self.persisted = state or PersistedGraceState()
        self.commits = 0

    @classmethod
    def with_records(cls, *records: GraceRecord) -> MemoryGraceStoreBackend:
        return cls(PersistedGraceState(records={r.user_id: r for r in records}))

    def _read_state(self) -> PersistedGraceState:
        return PersistedGraceState(
            period=self.persisted.period,
            base=dict(self.persisted.base),
            records=dict(self.persisted.records),
        )

    def _write_state(self, state: PersistedGraceState) -> None:
        self.persisted = state
        self.commits += 1


# =============================================================================
# JSON File Backend
# =============================================================================

class JsonGraceStore(GraceStoreBackend):
    """
    JSON file backend with an exclusive lock file.

    The lock file (<state>.lock) is created with O_EXCL; if it already
    exists another run is in flight and open() fails. A lock left behind
    by a crashed run must be removed by the operator.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.backup_path = self.path.with_name(self.path.name + ".bak")

    def read(self) -> PersistedGraceState:
        """Read state without locking, for inspection."""
        return self._read_state()

    def _acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(self.lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            raise GraceStoreLockedError(
                message=f"Grace store {self.path} is locked by another run",
                details={"lock_path": str(self.lock_path)},
            ) from e
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps({
                "pid": os.getpid(),
                "locked_at": format_timestamp(datetime.now(timezone.utc)),
            }))

    def _release(self) -> None:
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            logger.warning("Lock file %s was already removed", self.lock_path)

    def _read_state(self) -> PersistedGraceState:
        if not self.path.exists():
            logger.info("No grace state at %s; starting cold", self.path)
            return PersistedGraceState()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise GraceStoreCorruptError(
                message=f"Grace state {self.path} is not valid JSON: {e}",
                details={"path": str(self.path)},
            ) from e
        except OSError as e:
            raise GraceStoreError(
                message=f"Cannot read grace state {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e
        return parse_state(data)

    def _write_state(self, state: PersistedGraceState) -> None:
        """
        Write atomically.

        Process:
        1. Write to <state>.tmp
        2. fsync tmp file
        3. Move the current file to <state>.bak
        4. Rename tmp to <state> (atomic on POSIX)
        5. fsync directory
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(pretty_json(state.to_dict()))
                f.flush()
                os.fsync(f.fileno())

            if self.path.exists():
                if self.backup_path.exists():
                    self.backup_path.unlink()
                self.path.rename(self.backup_path)

            tmp_path.rename(self.path)

            dir_fd = os.open(str(self.path.parent), os.O_RDONLY | os.O_DIRECTORY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError as e:
            raise GraceStoreWriteError(
                message=f"Failed to write grace state {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e
