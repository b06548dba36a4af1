"""
Engine Configuration

The validated, immutable settings one run works from. Build it through
hierarch.config.load_config / config_from_mapping / config_from_env
rather than directly, so the schema checks apply.

Scheduling contract: the engine has no clock. Each run advances every
grace counter by exactly one step, so runs must be scheduled one period
apart (weekly for the default period_name "week"). Re-running a period
is safe only when the caller labels runs with a period key.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_TOP_N = 30
DEFAULT_WINDOW_DAYS = 60
DEFAULT_GRACE_PERIODS = 2


@dataclass(frozen=True)
class EngineConfig:
    privileged_role_id: str
    member_role_id: str
    protected_role_ids: frozenset[str] = field(default_factory=frozenset)
    special_role_ids: frozenset[str] = field(default_factory=frozenset)

    top_n: int = DEFAULT_TOP_N
    window_days: int = DEFAULT_WINDOW_DAYS
    grace_periods: int = DEFAULT_GRACE_PERIODS
    period_name: str = "week"

    # Collaborator settings
    channel_ids: tuple[str, ...] = ()
    summary_channel_id: Optional[str] = None

    # Files
    state_path: Path = Path("role-logs/grace-tracking.json")
    logs_dir: Path = Path("role-logs")

    @property
    def grace_enabled(self) -> bool:
        return self.grace_periods > 0

    def summary(self) -> dict[str, Any]:
        """Settings worth logging at run start."""
        return {
            "top_n": self.top_n,
            "window_days": self.window_days,
            "grace_periods": self.grace_periods,
            "protected_roles": len(self.protected_role_ids),
            "special_roles": len(self.special_role_ids),
            "channels": len(self.channel_ids),
        }
