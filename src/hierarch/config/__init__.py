"""
Hierarch Configuration

Usage:
    from hierarch.config import load_config

    config = load_config("hierarch.yaml")
    config.top_n, config.grace_periods
"""
from __future__ import annotations

from .loader import config_from_env, config_from_mapping, load_config
from .schema import SCHEMA_VERSION, EngineConfigSchema, check_schema_version
from .settings import (
    DEFAULT_GRACE_PERIODS,
    DEFAULT_TOP_N,
    DEFAULT_WINDOW_DAYS,
    EngineConfig,
)

__all__ = [
    "EngineConfig",
    "EngineConfigSchema",
    "SCHEMA_VERSION",
    "DEFAULT_TOP_N",
    "DEFAULT_WINDOW_DAYS",
    "DEFAULT_GRACE_PERIODS",
    "check_schema_version",
    "load_config",
    "config_from_mapping",
    "config_from_env",
]
