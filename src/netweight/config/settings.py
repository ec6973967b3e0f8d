# src/netweight/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/netweight/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `NETWEIGHT_CONFIG_PATH` (replaces the packaged defaults)
- environment variables (`NETWEIGHT_LOG_LEVEL`, `NETWEIGHT_ROLLUP_AGGREGATOR`)

Design rule:
- Tuning knobs (which aggregator rolls weights up, the IQR fence, which normalizer
  each attribute uses) live in YAML, not hard-coded in the weighting pipeline.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `netweight.config`."""
    text = resources.files("netweight.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "netweight"
    log_level: str = "INFO"


class AttributeSettings(BaseModel):
    normalizer: Literal["sigmoid", "reverse_min", "max"]


class WeightingSettings(BaseModel):
    rollup_aggregator: Literal["mean", "mean_sum", "min", "max", "mean_iqr"] = "mean"
    iqr_k: float = Field(1.5, ge=0)
    capacity: AttributeSettings = Field(default_factory=lambda: AttributeSettings(normalizer="sigmoid"))
    price: AttributeSettings = Field(default_factory=lambda: AttributeSettings(normalizer="reverse_min"))


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    weighting: WeightingSettings = Field(default_factory=WeightingSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    data = dict(data)
    log_level = os.getenv("NETWEIGHT_LOG_LEVEL")
    if log_level:
        # A bare `app:` in YAML loads as None.
        data["app"] = dict(data.get("app") or {})
        data["app"]["log_level"] = log_level

    rollup = os.getenv("NETWEIGHT_ROLLUP_AGGREGATOR")
    if rollup:
        data["weighting"] = dict(data.get("weighting") or {})
        data["weighting"]["rollup_aggregator"] = rollup

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    config_path = os.getenv("NETWEIGHT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
