"""
Activity Models

Per-run inputs to the qualification engine.

Key components:
- MemberProfile: What the membership directory knows about a user
- ActivityRecord: An evidenced, classified user for one run

ActivityRecords are built once per run from the activity source and the
membership directory and discarded when the run ends.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .enums import Tier


@dataclass(frozen=True)
class MemberProfile:
    """
    A directory entry.

    Attributes:
        user_id: Platform user identifier
        display_name: Nickname if set, otherwise the account name
        role_ids: Every role the member currently holds
    """
    user_id: str
    display_name: str
    role_ids: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role_id: str) -> bool:
        return role_id in self.role_ids

    def has_any_role(self, role_ids: frozenset[str]) -> bool:
        return not self.role_ids.isdisjoint(role_ids)


@dataclass(frozen=True)
class ActivityRecord:
    """
    One evidenced user: at least one mention in the window and holder of
    the baseline membership role.
    """
    user_id: str
    display_name: str
    mention_count: int
    tier: Tier
    holds_privileged_role: bool = False

    def __post_init__(self) -> None:
        if self.mention_count < 1:
            raise ValueError(
                f"ActivityRecord requires at least one mention, "
                f"got {self.mention_count} for {self.user_id}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "mentions": self.mention_count,
            "tier": self.tier.value,
        }
