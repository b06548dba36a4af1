"""
Qualification Models

The ranked outcome of one run, before any role-holder is considered.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .activity import ActivityRecord


@dataclass(frozen=True)
class QualificationResult:
    """
    Who qualifies for the privileged role this run.

    Attributes:
        qualified_regular: Top-N regular users in rank order
        qualified_special: Special users strictly above the threshold
        qualified_protected: Protected users with at least one mention
        threshold: Mentions of the last qualified regular user, 0 if none
    """
    qualified_regular: tuple[ActivityRecord, ...] = ()
    qualified_special: tuple[ActivityRecord, ...] = ()
    qualified_protected: tuple[ActivityRecord, ...] = ()
    threshold: int = 0

    @property
    def all_qualified(self) -> tuple[ActivityRecord, ...]:
        """Regular, then special, then protected."""
        return self.qualified_regular + self.qualified_special + self.qualified_protected

    @property
    def qualified_ids(self) -> frozenset[str]:
        return frozenset(r.user_id for r in self.all_qualified)

    @property
    def total(self) -> int:
        return len(self.all_qualified)

    def is_qualified(self, user_id: str) -> bool:
        return user_id in self.qualified_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "threshold": self.threshold,
            "regular": [
                {"rank": rank, **record.to_dict()}
                for rank, record in enumerate(self.qualified_regular, start=1)
            ],
            "special": [r.to_dict() for r in self.qualified_special],
            "protected": [r.to_dict() for r in self.qualified_protected],
        }
