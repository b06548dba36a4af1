"""
Grace Record Model

A GraceRecord exists for a user who holds the privileged role but did not
qualify on one or more consecutive runs. It is created on the first
disqualified run, advanced on each further one, and deleted as soon as the
user qualifies again or the grace period runs out.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from ..canon import format_timestamp, parse_timestamp


@dataclass(frozen=True)
class GraceRecord:
    user_id: str
    display_name: str
    weeks_out: int
    first_week_out: datetime

    def __post_init__(self) -> None:
        if self.weeks_out < 1:
            raise ValueError(f"weeks_out must be >= 1, got {self.weeks_out}")

    def advanced(self, display_name: str | None = None) -> GraceRecord:
        """The record after one more disqualified run."""
        return replace(
            self,
            weeks_out=self.weeks_out + 1,
            display_name=display_name or self.display_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_name": self.display_name,
            "weeks_out": self.weeks_out,
            "first_week_out": format_timestamp(self.first_week_out),
        }

    @classmethod
    def from_dict(cls, user_id: str, data: dict[str, Any]) -> GraceRecord:
        """
        Read a stored record.

        Accepts both the current keys and the camelCase keys of the
        legacy bot's grace-tracking.json (username, weeksOut, firstWeekOut).
        """
        if "weeks_out" in data:
            name = data["display_name"]
            weeks = data["weeks_out"]
            first = data["first_week_out"]
        else:
            name = data["username"]
            weeks = data["weeksOut"]
            first = data["firstWeekOut"]
        if not isinstance(weeks, int) or isinstance(weeks, bool):
            raise ValueError(f"weeks_out must be an integer, got {weeks!r}")
        if not isinstance(name, str) or not isinstance(first, str):
            raise ValueError("display_name and first_week_out must be strings")
        return cls(
            user_id=user_id,
            display_name=name,
            weeks_out=weeks,
            first_week_out=parse_timestamp(first),
        )
