from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from romatype.core.matcher import MatchMode
from romatype.core.patterns import RomajiStyle

logger = logging.getLogger(__name__)

APP_NAME = "romatype"
DATA_DIR = Path.home() / ".romatype"
CONFIG_PATH = DATA_DIR / "config.yaml"
VOCABULARY_DIR = Path(__file__).resolve().parent / "data" / "vocabulary"

# Standard word length for WPM: correct keystrokes / 5 / minutes
WPM_WORD_LENGTH = 5

DEFAULT_ROMAJI_STYLE = RomajiStyle.HEPBURN
DEFAULT_MATCH_MODE = MatchMode.FLEXIBLE


@dataclass(frozen=True)
class EngineConfig:
    romaji_style: RomajiStyle = DEFAULT_ROMAJI_STYLE
    match_mode: MatchMode = DEFAULT_MATCH_MODE
    pattern_overrides: Optional[Path] = None


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load engine settings from YAML, falling back to defaults key by key.

    A missing or unreadable file is not fatal: the defaults are used and a
    warning is logged, the same way for each invalid value.
    """
    config_path = Path(path) if path is not None else CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            logger.warning("Config file %s not found, using defaults", config_path)
        return EngineConfig()
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not load config from %s: %s", config_path, e)
        return EngineConfig()
    if raw is None:
        return EngineConfig()
    if not isinstance(raw, dict):
        logger.warning("%s: expected a mapping, using defaults", config_path.name)
        return EngineConfig()

    style = _enum_value(RomajiStyle, raw.get("romaji_style"), DEFAULT_ROMAJI_STYLE, "romaji_style")
    mode = _enum_value(MatchMode, raw.get("match_mode"), DEFAULT_MATCH_MODE, "match_mode")

    overrides = raw.get("pattern_overrides")
    overrides_path: Optional[Path] = None
    if overrides is not None:
        if isinstance(overrides, str) and overrides.strip():
            overrides_path = Path(overrides).expanduser()
            if not overrides_path.is_absolute():
                overrides_path = config_path.parent / overrides_path
        else:
            logger.warning("Invalid pattern_overrides value %r, ignoring", overrides)

    return EngineConfig(romaji_style=style, match_mode=mode, pattern_overrides=overrides_path)


def _enum_value(enum_type, value, default, key: str):
    if value is None:
        return default
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        logger.warning("Invalid %s value %r, using %s", key, value, default.value)
        return default
