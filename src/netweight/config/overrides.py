"""
Per-run settings overrides (safe subset).

The CLI can tune weighting knobs for a single run (`--set weighting.iqr_k=2`) without
editing YAML. This module:
- validates the override payload against a whitelist,
- deep-merges the safe subset onto current settings,
- re-validates with Pydantic to ensure types/ranges remain correct.
"""

from __future__ import annotations

from typing import Any, Mapping

import yaml

from netweight.config.settings import Settings

# A value of True means "allow any keys under this subtree".
# A nested dict means "only allow the listed keys, recursively".
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "weighting": {
        "rollup_aggregator": True,
        "iqr_k": True,
        "capacity": {"normalizer": True},
        "price": {"normalizer": True},
    },
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    # Never mutate `base`: it may come from a cached Settings dump.
    merged: dict[str, Any] = dict(base)
    for key, override_value in override.items():
        if isinstance(override_value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), override_value)
            continue
        merged[key] = override_value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any],
    *,
    allowed_tree: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed_tree:
            dotted_path = ".".join((*path, key))
            raise ValueError(f"settings overrides contain a disallowed key: '{dotted_path}'")

        allowed = allowed_tree[key]
        if allowed is True:
            filtered[key] = value
            continue

        if not isinstance(value, Mapping):
            dotted_path = ".".join((*path, key))
            raise ValueError(f"settings overrides key '{dotted_path}' must be a mapping")

        filtered[key] = _filter_overrides(value, allowed_tree=allowed, path=(*path, key))
    return filtered


def parse_override_pairs(pairs: list[str]) -> dict[str, Any]:
    """Turn `dotted.key=VALUE` CLI arguments into a nested override mapping.

    Values are parsed as YAML scalars, so `2`, `1.5` and `mean_iqr` come out typed.
    """
    out: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid --set '{pair}', expected KEY=VALUE")
        dotted, raw = pair.split("=", 1)
        keys = [k.strip() for k in dotted.split(".")]
        if not all(keys):
            raise ValueError(f"Invalid --set key '{dotted}'")
        node = out
        for key in keys[:-1]:
            node = node.setdefault(key, {})
            if not isinstance(node, dict):
                raise ValueError(f"Conflicting --set keys at '{dotted}'")
        node[keys[-1]] = yaml.safe_load(raw)
    return out


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    if not overrides:
        return settings

    safe_overrides = _filter_overrides(overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE)
    merged_payload = _deep_merge(settings.model_dump(mode="python"), safe_overrides)
    return Settings.model_validate(merged_payload)
