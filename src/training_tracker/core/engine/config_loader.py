"""
YAML → settings loader.

Loads tunable settings from tracker.yaml (bundled with the package) and
optionally merges user overrides from ~/.training-tracker/tracker.yaml.

Usage:
    from training_tracker.core.engine.config_loader import get_setting
    tolerance = get_setting("monitoring", "elapsed_tolerance_seconds", 5)

If a YAML file cannot be read or parsed, a warning is logged and that file
is ignored; lookups then fall back to the Python defaults in config.py.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_DATA_DIR_NAME

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "tracker.yaml"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} (and warn) when it is unusable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring settings file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled tracker.yaml, or None if not found."""
    ref = importlib.resources.files("training_tracker").joinpath(SETTINGS_FILE_NAME)
    if not ref.is_file():
        return None
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return ~/.training-tracker/tracker.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / DEFAULT_DATA_DIR_NAME / SETTINGS_FILE_NAME
    return p if p.exists() else None


def load_settings() -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/training_tracker/tracker.yaml
    2. User override at ~/.training-tracker/tracker.yaml

    Returns:
        Merged dict of settings sections.  Empty dict if no YAML available.
    """
    settings: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        settings = _deep_merge(settings, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            logger.debug("Merging user settings from %s", user)
            settings = _deep_merge(settings, user_cfg)

    return settings


def get_setting(section: str, key: str, default: Any) -> Any:
    """
    Look up one setting, falling back to ``default``.

    The returned value is coerced to the type of ``default`` when a default
    is given, so a YAML typo such as a quoted number still works.
    """
    value = load_settings().get(section, {}).get(key, default)
    if default is None or value is None:
        return value
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        logger.warning(
            "Setting %s.%s=%r is not a valid %s; using %r",
            section, key, value, type(default).__name__, default,
        )
        return default
