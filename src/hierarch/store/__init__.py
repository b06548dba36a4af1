"""Grace store: in-memory working store and its durable backends."""
from __future__ import annotations

from .backends import (
    STATE_VERSION,
    GraceStoreBackend,
    JsonGraceStore,
    MemoryGraceStoreBackend,
    PersistedGraceState,
    parse_state,
)
from .grace_store import GraceStore

__all__ = [
    "GraceStore",
    "GraceStoreBackend",
    "JsonGraceStore",
    "MemoryGraceStoreBackend",
    "PersistedGraceState",
    "STATE_VERSION",
    "parse_state",
]
