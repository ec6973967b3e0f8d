"""
Logging configuration.

We use a YAML logging config (`src/netweight/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `NETWEIGHT_LOG_LEVEL`).
"""

from __future__ import annotations

import logging.config

from netweight.config.settings import Settings, get_logging_config, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = settings or get_settings()
    # Copy: the cached config must not carry one run's level into the next.
    config = dict(get_logging_config())
    config["root"] = dict(config.get("root", {}))
    config["handlers"] = {k: dict(v) if isinstance(v, dict) else v for k, v in config.get("handlers", {}).items()}

    level = settings.app.log_level.upper()
    config["root"]["level"] = level
    for handler in config["handlers"].values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
