"""
Logging configuration.

The packaged `config/logging.yaml` is the base; settings then decide two levels:
- `app.log_level` for the root logger and every handler (`WATERMAP_LOG_LEVEL`),
- `app.http_log_level` for the HTTP client loggers, which are chatty at INFO/DEBUG
  (one line per Overpass request and per connection event).
"""

from __future__ import annotations

import logging.config
from typing import Any

from watermap.config.settings import Settings, get_logging_config, get_settings

HTTP_LOGGERS = ("httpx", "httpcore")


def build_logging_config(settings: Settings) -> dict[str, Any]:
    """Return the `dictConfig` payload for `settings` (a fresh dict each call)."""
    config = get_logging_config()

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    loggers = config.setdefault("loggers", {})
    for name in HTTP_LOGGERS:
        loggers.setdefault(name, {})["level"] = settings.app.http_log_level.upper()
    return config


def configure_logging() -> None:
    logging.config.dictConfig(build_logging_config(get_settings()))
