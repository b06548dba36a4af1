"""Collaborator protocols and the file-backed implementations used by the CLI."""
from __future__ import annotations

from .base import (
    ActivitySource,
    MembershipDirectory,
    Reporter,
    RoleMutator,
    SummaryPublisher,
)
from .files import JsonActivitySource, JsonMembershipDirectory, JsonRoleMutator

__all__ = [
    "ActivitySource",
    "MembershipDirectory",
    "RoleMutator",
    "Reporter",
    "SummaryPublisher",
    "JsonActivitySource",
    "JsonMembershipDirectory",
    "JsonRoleMutator",
]
