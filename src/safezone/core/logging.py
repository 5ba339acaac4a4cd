"""
Logging setup for the CLI and the API process.

The packaged `config/logging.yaml` describes handlers and noisy third-party
loggers; the effective level comes from `app.log_level` (`SAFEZONE_LOG_LEVEL`)
unless the caller passes one explicitly (e.g. `safezone discover -v`).
"""

from __future__ import annotations

import copy
import logging.config

from safezone.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged dictConfig and return the level that was used."""
    effective = (level or get_settings().app.log_level).upper()
    # get_logging_config() is cached; never mutate the shared dict.
    config = copy.deepcopy(get_logging_config())

    config.setdefault("root", {})["level"] = effective
    config.setdefault("loggers", {}).setdefault("safezone", {})["level"] = effective
    console = config.get("handlers", {}).get("console")
    if isinstance(console, dict):
        console["level"] = effective

    logging.config.dictConfig(config)
    return effective
