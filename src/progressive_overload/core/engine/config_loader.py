"""
YAML → typed config loader.

Loads engine settings from progression.yaml (bundled with the package) and
optionally merges user overrides from ~/.progressive-overload/progression.yaml.

Usage:
    from progressive_overload.core.engine.config_loader import load_progression_settings
    settings = load_progression_settings()
    factor = settings.deload_weight_factor

If the bundled YAML is missing, the Python defaults from config.py are used.
If the user override file cannot be parsed or holds invalid values, a warning
is issued and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import ProgressionSettings

# Section/key in the YAML document → ProgressionSettings field
_SETTINGS_KEYS: dict[tuple[str, str], str] = {
    ("deload", "weight_factor"): "deload_weight_factor",
    ("deload", "volume_factor"): "deload_volume_factor",
    ("rounding", "weight_increment"): "weight_rounding_increment",
    ("regression", "consecutive_failure_threshold"): "consecutive_failure_threshold",
    ("plan", "default_weeks"): "default_plan_weeks",
}

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; raise ValueError if it is not a mapping."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


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


def get_data_dir() -> Path:
    """Return the data directory ($PROGRESSIVE_OVERLOAD_HOME or ~/.progressive-overload)."""
    override = os.environ.get("PROGRESSIVE_OVERLOAD_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".progressive-overload"


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled progression.yaml, or None if not found."""
    ref = importlib.resources.files("progressive_overload").joinpath("progression.yaml")
    candidate = Path(str(ref))
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return the user override progression.yaml if it exists, else None."""
    p = get_data_dir() / "progression.yaml"
    return p if p.exists() else None


def load_model_config(include_user: bool = True) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/progressive_overload/progression.yaml
    2. User override in the data directory

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path() if include_user else None
    if user is not None:
        try:
            user_cfg = _load_yaml_file(user)
        except (yaml.YAMLError, ValueError) as e:
            warnings.warn(f"Ignoring unreadable config override {user}: {e}", stacklevel=2)
            user_cfg = {}
        config = _deep_merge(config, user_cfg)

    return config


def settings_from_dict(config: dict[str, Any]) -> ProgressionSettings:
    """
    Build ProgressionSettings from a merged config dict.

    Unknown sections are ignored; missing keys fall back to the defaults.

    Raises:
        ValueError: If a value has the wrong type or fails validation
    """
    kwargs: dict[str, Any] = {}
    for (section, key), field_name in _SETTINGS_KEYS.items():
        block = config.get(section)
        if not isinstance(block, dict) or key not in block:
            continue
        value = block[key]
        if field_name in ("consecutive_failure_threshold", "default_plan_weeks"):
            kwargs[field_name] = int(value)
        else:
            kwargs[field_name] = float(value)
    return ProgressionSettings(**kwargs)


def load_progression_settings() -> ProgressionSettings:
    """
    Load settings from the bundled YAML plus user overrides.

    An override whose values fail validation is ignored with a warning.
    """
    try:
        return settings_from_dict(load_model_config())
    except (TypeError, ValueError) as e:
        user = get_user_yaml_path()
        if user is None:
            raise
        warnings.warn(f"Ignoring invalid config override {user}: {e}", stacklevel=2)
    return settings_from_dict(load_model_config(include_user=False))
