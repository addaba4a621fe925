"""
Recorder configuration.

Defaults can be overridden through environment variables:

  SCRIPTRECORDER_IGNORE_CLASS   : class marking overlay UI to skip (default: ignore-recorder)
  SCRIPTRECORDER_TABLE_CLASS    : class marking table-like containers (default: table)
  SCRIPTRECORDER_WAIT_TIMEOUT   : bounded element wait in ms for generated scripts (default: 10000)
  SCRIPTRECORDER_MAX_RETRIES    : attempts per row / step in generated scripts (default: 3)
  SCRIPTRECORDER_MAX_PAGES      : pagination limit in generated scripts (default: 50)
  SCRIPTRECORDER_HEADLESS       : run recording / generated browsers headless (default: false)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_ENV_IGNORE_CLASS = "SCRIPTRECORDER_IGNORE_CLASS"
_ENV_TABLE_CLASS = "SCRIPTRECORDER_TABLE_CLASS"
_ENV_WAIT_TIMEOUT = "SCRIPTRECORDER_WAIT_TIMEOUT"
_ENV_MAX_RETRIES = "SCRIPTRECORDER_MAX_RETRIES"
_ENV_MAX_PAGES = "SCRIPTRECORDER_MAX_PAGES"
_ENV_HEADLESS = "SCRIPTRECORDER_HEADLESS"


@dataclass
class RecorderConfig:
    ignore_class: str = "ignore-recorder"
    table_class: str = "table"
    wait_timeout_ms: int = 10000
    max_retries: int = 3
    max_pages: int = 50
    headless: bool = False


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_positive_int(name: str, value: str) -> int | None:
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring %s: not an integer: %r", name, value)
        return None
    if parsed < 1:
        logger.warning("Ignoring %s: must be positive, got %d", name, parsed)
        return None
    return parsed


def load_config_from_env(environ: dict[str, str] | None = None) -> RecorderConfig:
    """Build a RecorderConfig, applying any SCRIPTRECORDER_* overrides."""
    env = os.environ if environ is None else environ
    config = RecorderConfig()

    if env.get(_ENV_IGNORE_CLASS):
        config.ignore_class = env[_ENV_IGNORE_CLASS].strip()

    if env.get(_ENV_TABLE_CLASS):
        config.table_class = env[_ENV_TABLE_CLASS].strip()

    for key, attr in (
        (_ENV_WAIT_TIMEOUT, "wait_timeout_ms"),
        (_ENV_MAX_RETRIES, "max_retries"),
        (_ENV_MAX_PAGES, "max_pages"),
    ):
        if key in env:
            parsed = _parse_positive_int(key, env[key])
            if parsed is not None:
                setattr(config, attr, parsed)

    if _ENV_HEADLESS in env:
        config.headless = _parse_bool(env[_ENV_HEADLESS])

    logger.debug("Loaded config: %s", config)
    return config
