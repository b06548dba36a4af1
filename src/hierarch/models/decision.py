"""
Decision Record Models

The immutable output of one run. A reporter renders it, a role mutator
applies its grants and revokes.

Key components:
- RemovedEntry: A holder losing the role, with the reason
- GraceEntry: A holder kept on grace this run
- SkippedEntry: A protected holder exempted from removal
- MutationFailure: A grant/revoke that could not be applied
- DecisionRecord: Everything decided in one run

Each user appears in at most one of added / removed / grace_active /
protected_skipped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from ..canon import content_hash, format_timestamp
from .activity import ActivityRecord
from .enums import GraceTransition, RemovalReason
from .qualification import QualificationResult


@dataclass(frozen=True)
class RemovedEntry:
    user_id: str
    display_name: str
    reason: RemovalReason
    weeks_out: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "reason": self.reason.value,
        }
        if self.weeks_out is not None:
            result["weeks_out"] = self.weeks_out
        return result


@dataclass(frozen=True)
class GraceEntry:
    user_id: str
    display_name: str
    weeks_out: int
    weeks_remaining: int
    transition: GraceTransition = GraceTransition.STARTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "weeks_out": self.weeks_out,
            "weeks_remaining": self.weeks_remaining,
            "transition": self.transition.value,
        }


@dataclass(frozen=True)
class SkippedEntry:
    user_id: str
    display_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "display_name": self.display_name}


@dataclass(frozen=True)
class MutationFailure:
    user_id: str
    action: str         # "grant" or "revoke"
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "action": self.action, "error": self.error}


@dataclass(frozen=True)
class DecisionRecord:
    """
    Everything one run decided.

    Attributes:
        added: Qualified users who do not hold the role yet
        removed: Holders whose role is revoked
        grace_active: Holders kept on grace
        protected_skipped: Protected holders exempted this run
        qualified: The ranking this run was based on
        requalified: User IDs whose grace record was cleared by qualifying
        pruned: User IDs whose stale grace record was dropped
        mutation_failures: Grants/revokes that failed when applied
    """
    added: tuple[ActivityRecord, ...] = ()
    removed: tuple[RemovedEntry, ...] = ()
    grace_active: tuple[GraceEntry, ...] = ()
    protected_skipped: tuple[SkippedEntry, ...] = ()
    qualified: QualificationResult = field(default_factory=QualificationResult)

    requalified: tuple[str, ...] = ()
    pruned: tuple[str, ...] = ()
    mutation_failures: tuple[MutationFailure, ...] = ()

    # Run metadata
    run_id: str = field(default_factory=lambda: str(uuid4()))
    run_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    period: Optional[str] = None
    top_n: int = 30
    grace_periods: int = 0
    window_days: int = 60
    period_name: str = "week"
    dry_run: bool = False

    @property
    def threshold(self) -> int:
        return self.qualified.threshold

    @property
    def grants(self) -> frozenset[str]:
        """User IDs the role mutator should grant the role to."""
        return frozenset(r.user_id for r in self.added)

    @property
    def revokes(self) -> frozenset[str]:
        """User IDs the role mutator should revoke the role from."""
        return frozenset(r.user_id for r in self.removed)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.grace_active)

    @property
    def total_holding(self) -> int:
        """Holders after this run is applied: qualified plus grace."""
        return self.qualified.total + len(self.grace_active)

    def decisions_dict(self) -> dict[str, Any]:
        """The decision lists only, without run metadata."""
        return {
            "added": [r.to_dict() for r in self.added],
            "removed": [r.to_dict() for r in self.removed],
            "grace_active": [g.to_dict() for g in self.grace_active],
            "protected_skipped": [s.to_dict() for s in self.protected_skipped],
        }

    def content_hash(self) -> str:
        """
        SHA-256 over the decision lists and the ranking.

        Equal for two runs that decided the same thing, regardless of
        run_id or run_at.
        """
        return content_hash({
            "decisions": self.decisions_dict(),
            "qualified": self.qualified.to_dict(),
        })

    def to_dict(self) -> dict[str, Any]:
        result = {
            "run_id": self.run_id,
            "run_at": format_timestamp(self.run_at),
            "period": self.period,
            "dry_run": self.dry_run,
            "settings": {
                "top_n": self.top_n,
                "grace_periods": self.grace_periods,
                "window_days": self.window_days,
            },
            "qualified": self.qualified.to_dict(),
            **self.decisions_dict(),
            "requalified": list(self.requalified),
            "pruned": list(self.pruned),
            "mutation_failures": [f.to_dict() for f in self.mutation_failures],
            "total_holding": self.total_holding,
            "content_hash": self.content_hash(),
        }
        return result
