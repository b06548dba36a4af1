"""
Pytest configuration and fixtures for Hierarch tests.

Provides helper factories and common fixtures matching actual model definitions.
"""
import pytest
from datetime import datetime, timezone
from pathlib import Path

from hierarch.config import EngineConfig
from hierarch.models import ActivityRecord, GraceRecord, MemberProfile, Tier


NOW = datetime(2026, 10, 12, 9, 0, tzinfo=timezone.utc)

HIERARCH = "role-hierarch"
MEMBER = "role-member"
MOD = "role-mod"
VIP = "role-vip"


# =============================================================================
# Factory Helpers
# =============================================================================

def make_config(
    top_n: int = 30,
    grace_periods: int = 2,
    window_days: int = 60,
    tmp_path: Path = None,
    **overrides,
) -> EngineConfig:
    """Create an EngineConfig with the standard test role ids."""
    values = dict(
        privileged_role_id=HIERARCH,
        member_role_id=MEMBER,
        protected_role_ids=frozenset({MOD}),
        special_role_ids=frozenset({VIP}),
        top_n=top_n,
        window_days=window_days,
        grace_periods=grace_periods,
    )
    if tmp_path is not None:
        values["state_path"] = tmp_path / "grace-tracking.json"
        values["logs_dir"] = tmp_path / "logs"
    values.update(overrides)
    return EngineConfig(**values)


def make_profile(
    user_id: str,
    *roles: str,
    display_name: str = None,
    member: bool = True,
) -> MemberProfile:
    """Create a MemberProfile; the baseline member role is added unless member=False."""
    role_ids = set(roles)
    if member:
        role_ids.add(MEMBER)
    return MemberProfile(
        user_id=user_id,
        display_name=display_name or f"user-{user_id}",
        role_ids=frozenset(role_ids),
    )


def make_record(
    user_id: str,
    mentions: int,
    tier: Tier = Tier.REGULAR,
    holds_role: bool = False,
    display_name: str = None,
) -> ActivityRecord:
    """Create an ActivityRecord with required fields."""
    return ActivityRecord(
        user_id=user_id,
        display_name=display_name or f"user-{user_id}",
        mention_count=mentions,
        tier=tier,
        holds_privileged_role=holds_role,
    )


def make_grace_record(
    user_id: str,
    weeks_out: int = 1,
    display_name: str = None,
    first_week_out: datetime = NOW,
) -> GraceRecord:
    """Create a GraceRecord."""
    return GraceRecord(
        user_id=user_id,
        display_name=display_name or f"user-{user_id}",
        weeks_out=weeks_out,
        first_week_out=first_week_out,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def config_no_grace():
    return make_config(grace_periods=0)
