"""
Configuration Schema

Pydantic model for validating configuration files (YAML or JSON) and
environment-derived settings. Maps to hierarch.config.settings.EngineConfig.

Schema versioning:
- schema_version tracks breaking changes
- Only the major version has to match
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .settings import DEFAULT_GRACE_PERIODS, DEFAULT_TOP_N, DEFAULT_WINDOW_DAYS


SCHEMA_VERSION = "1.0.0"


class EngineConfigSchema(BaseModel):
    """Schema for the engine configuration file."""
    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(SCHEMA_VERSION, description="Config schema version")

    # Roles
    privileged_role_id: str = Field(..., description="Role granted to qualified members")
    member_role_id: str = Field(..., description="Baseline membership role")
    protected_role_ids: list[str] = Field(default_factory=list)
    special_role_ids: list[str] = Field(default_factory=list)

    # Ranking and grace
    top_n: int = Field(DEFAULT_TOP_N, ge=1, description="Regular members that qualify")
    window_days: int = Field(DEFAULT_WINDOW_DAYS, ge=1, description="Trailing window length")
    grace_periods: int = Field(
        DEFAULT_GRACE_PERIODS, ge=0, description="Disqualified runs tolerated; 0 disables"
    )
    period_name: str = Field("week", min_length=1)

    # Collaborators
    channel_ids: list[str] = Field(default_factory=list)
    summary_channel_id: Optional[str] = None

    # Files
    state_path: str = "role-logs/grace-tracking.json"
    logs_dir: str = "role-logs"

    @field_validator(
        "privileged_role_id", "member_role_id", "summary_channel_id",
        "protected_role_ids", "special_role_ids", "channel_ids",
        mode="before",
    )
    @classmethod
    def coerce_numeric_ids(cls, v):
        # Unquoted numeric ids arrive as int from YAML/JSON
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, list):
            return [str(item) if isinstance(item, int) and not isinstance(item, bool) else item
                    for item in v]
        return v

    @field_validator("privileged_role_id", "member_role_id")
    @classmethod
    def validate_role_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("role id must not be blank")
        return v

    @field_validator("protected_role_ids", "special_role_ids", "channel_ids")
    @classmethod
    def validate_id_list(cls, v: list[str]) -> list[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("ids must not be blank")
        return cleaned

    @model_validator(mode="after")
    def validate_role_overlap(self) -> "EngineConfigSchema":
        if self.privileged_role_id in self.protected_role_ids:
            raise ValueError("privileged_role_id cannot also be a protected role")
        if self.privileged_role_id in self.special_role_ids:
            raise ValueError("privileged_role_id cannot also be a special role")
        return self


def check_schema_version(version: str) -> bool:
    """A config is compatible when its major version matches."""
    try:
        return version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
    except (AttributeError, IndexError):
        return False
