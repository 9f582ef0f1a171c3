#!/usr/bin/env python3
"""Game Config — YAML settings with environment overrides.

Resolution order for the file:
  1. explicit path (CLI --config)
  2. $PASSWORD_CHAOS_CONFIG
  3. ~/.config/password-chaos/config.yaml

A missing or broken file is not an error: defaults are used and the problem
is logged. $PASSWORD_CHAOS_SEED overrides `seed` for reproducible sessions.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from password_rules import DEFAULT_WORDS, TEMPERATURE_TOLERANCE

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config/password-chaos/config.yaml"
CONFIG_ENV = "PASSWORD_CHAOS_CONFIG"
SEED_ENV = "PASSWORD_CHAOS_SEED"


@dataclass
class GameConfig:
    marker_tick_seconds: float = 12.0
    hazard_tick_seconds: float = 10.0
    lookup_timeout_seconds: float = 8.0
    dictionary_enabled: bool = True
    weather_enabled: bool = True
    weather_latitude: float = 40.7128
    weather_longitude: float = -74.0060
    weather_location: str = "New York"
    temperature_tolerance: float = TEMPERATURE_TOLERANCE
    seed: Optional[int] = None
    disabled_rules: list = field(default_factory=list)
    words: list = field(default_factory=lambda: list(DEFAULT_WORDS))


_POSITIVE_KEYS = {"marker_tick_seconds", "hazard_tick_seconds", "lookup_timeout_seconds"}


def _coerce(name: str, value, default):
    """Convert a YAML value to the type of the field default. Raises on mismatch."""
    if name == "seed":
        return None if value is None else int(value)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise TypeError(f"expected true/false, got {value!r}")
        return value
    if isinstance(default, float):
        return float(value)
    if isinstance(default, list):
        if not isinstance(value, list):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        return [str(v) for v in value]
    if isinstance(default, str):
        return str(value)
    return value


def validate_config(data: dict) -> tuple[dict, list[str]]:
    """Validate raw YAML settings. Returns (clean values, warnings)."""
    defaults = GameConfig()
    known = {f.name for f in fields(GameConfig)}
    clean = {}
    warnings = []

    for key, value in data.items():
        if key not in known:
            warnings.append(f"unknown setting '{key}' ignored")
            continue
        try:
            coerced = _coerce(key, value, getattr(defaults, key))
        except (TypeError, ValueError) as e:
            warnings.append(f"{key}: {e}; using default")
            continue
        if key in _POSITIVE_KEYS and coerced <= 0:
            warnings.append(f"{key}: must be positive, got {coerced}; using default")
            continue
        if key == "words" and not coerced:
            warnings.append("words: empty list; using default")
            continue
        clean[key] = coerced

    return clean, warnings


def resolve_config_path(path=None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV, "")
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_PATH


def load_config(path=None) -> GameConfig:
    """Load settings from YAML. Falls back to defaults on any problem."""
    config_path = resolve_config_path(path)
    data = {}
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text()) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Could not read config %s: %s", config_path, e)
            data = {}
        if not isinstance(data, dict):
            logger.warning("Config %s is not a mapping; using defaults", config_path)
            data = {}
    else:
        logger.debug("No config at %s; using defaults", config_path)

    clean, warnings = validate_config(data)
    for w in warnings:
        logger.warning("Config %s: %s", config_path, w)

    raw_seed = os.environ.get(SEED_ENV, "")
    if raw_seed:
        try:
            clean["seed"] = int(raw_seed)
        except ValueError:
            logger.warning("%s=%r is not an integer; ignored", SEED_ENV, raw_seed)

    return GameConfig(**clean)
