"""
YAML → settings loader.

Built-in defaults are merged with the optional user file
``~/.gym-planner/config.yaml``. The home directory can be moved with the
``GYM_PLANNER_HOME`` environment variable (tests point it at a temporary
directory).

Usage:
    from gym_planner.io.config_loader import load_settings
    settings = load_settings()
    data_dir = settings.data_dir

If the user file is missing, every setting keeps its default. If it exists
but cannot be parsed, a warning is logged and the file is ignored.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.config import WEIGHT_UNIT

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "GYM_PLANNER_HOME"
CONFIG_FILENAME = "config.yaml"


@dataclass
class Settings:
    """Resolved user settings."""

    data_dir: Path
    weight_unit: str = WEIGHT_UNIT
    log_level: str = "WARNING"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (with a warning) on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: top level must be a mapping", path)
        return {}
    return data


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_home_dir() -> Path:
    """Return the planner's home directory (default ~/.gym-planner)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".gym-planner"


def get_user_config_path() -> Path | None:
    """Return the user settings file if it exists, else None."""
    p = get_home_dir() / CONFIG_FILENAME
    return p if p.exists() else None


def load_settings() -> Settings:
    """
    Load settings from defaults and the optional user YAML file.

    Recognised keys: ``data_dir`` (relative paths are resolved against the
    home directory), ``weight_unit`` and ``log_level``. Unknown keys are
    ignored.

    Returns:
        Settings
    """
    home = get_home_dir()
    settings = Settings(data_dir=home)

    path = get_user_config_path()
    if path is None:
        return settings

    user_cfg = _load_yaml_file(path)

    data_dir = user_cfg.get("data_dir")
    if isinstance(data_dir, str) and data_dir.strip():
        candidate = Path(data_dir).expanduser()
        settings.data_dir = candidate if candidate.is_absolute() else home / candidate

    unit = user_cfg.get("weight_unit")
    if isinstance(unit, str) and unit.strip():
        settings.weight_unit = unit.strip()

    level = user_cfg.get("log_level")
    if isinstance(level, str) and level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        settings.log_level = level.upper()

    return settings
