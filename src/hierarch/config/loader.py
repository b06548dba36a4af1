"""
Configuration Loader

Loads and validates engine configuration from YAML or JSON files, from
in-memory mappings, or from the environment variables the community bot
is deployed with.

Converts the Pydantic schema to the EngineConfig domain object.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigLoadError, ConfigValidationError, ConfigVersionMismatch
from .schema import SCHEMA_VERSION, EngineConfigSchema, check_schema_version
from .settings import EngineConfig


# Environment variable → schema field
ENV_FIELDS: dict[str, str] = {
    "HIERARCH_ROLE_ID": "privileged_role_id",
    "MEMBER_ROLE_ID": "member_role_id",
    "PROTECTED_ROLES_IDS": "protected_role_ids",
    "SPECIAL_ROLES_IDS": "special_role_ids",
    "CHANNELS_IDS": "channel_ids",
    "SUMMARY_CHANNEL_ID": "summary_channel_id",
    "HIERARCH_TOP_N": "top_n",
    "HIERARCH_WINDOW_DAYS": "window_days",
    "HIERARCH_GRACE_PERIODS": "grace_periods",
    "HIERARCH_STATE_PATH": "state_path",
    "HIERARCH_LOGS_DIR": "logs_dir",
}

LIST_FIELDS = {"protected_role_ids", "special_role_ids", "channel_ids"}


def _split_ids(value: str) -> list[str]:
    """Comma separated ids; empty items are dropped."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _convert_schema(schema: EngineConfigSchema) -> EngineConfig:
    """Convert EngineConfigSchema to EngineConfig."""
    return EngineConfig(
        privileged_role_id=schema.privileged_role_id,
        member_role_id=schema.member_role_id,
        protected_role_ids=frozenset(schema.protected_role_ids),
        special_role_ids=frozenset(schema.special_role_ids),
        top_n=schema.top_n,
        window_days=schema.window_days,
        grace_periods=schema.grace_periods,
        period_name=schema.period_name,
        channel_ids=tuple(schema.channel_ids),
        summary_channel_id=schema.summary_channel_id,
        state_path=Path(schema.state_path),
        logs_dir=Path(schema.logs_dir),
    )


def config_from_mapping(data: Mapping[str, Any], source: str = "") -> EngineConfig:
    """
    Validate a raw mapping and build an EngineConfig.

    Args:
        data: Parsed configuration
        source: Where the data came from, for error messages

    Raises:
        ConfigVersionMismatch: If schema_version has another major version
        ConfigValidationError: If validation fails
    """
    if not isinstance(data, Mapping):
        raise ConfigValidationError(
            message=f"Configuration must be a mapping, got {type(data).__name__}",
            details={"source": source},
        )

    version = str(data.get("schema_version", SCHEMA_VERSION))
    if not check_schema_version(version):
        raise ConfigVersionMismatch(
            message=f"Unsupported schema_version {version} (expected {SCHEMA_VERSION})",
            details={"source": source, "version": version},
        )

    try:
        schema = EngineConfigSchema.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigValidationError(
            message=f"Invalid configuration{f' in {source}' if source else ''}",
            details={
                "source": source,
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e

    return _convert_schema(schema)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load configuration from a YAML or JSON file.

    Raises:
        ConfigLoadError: If the file is missing or cannot be parsed
        ConfigValidationError: If validation fails
    """
    path = Path(path)
    if not path.exists():
        raise ConfigLoadError(
            message=f"Configuration file not found: {path}",
            details={"path": str(path)},
        )

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigLoadError(
            message=f"Failed to read configuration {path}: {e}",
            details={"path": str(path)},
        ) from e

    if data is None:
        raise ConfigLoadError(
            message=f"Configuration file is empty: {path}",
            details={"path": str(path)},
        )

    return config_from_mapping(data, source=str(path))


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Build configuration from environment variables.

    Lists (PROTECTED_ROLES_IDS, SPECIAL_ROLES_IDS, CHANNELS_IDS) are comma
    separated. Unset optional variables fall back to schema defaults.
    """
    if environ is None:
        environ = os.environ

    data: dict[str, Any] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        data[field_name] = _split_ids(raw) if field_name in LIST_FIELDS else raw.strip()

    return config_from_mapping(data, source="environment")
