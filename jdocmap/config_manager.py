"""Configuration manager for jdocmap using TOML files."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import toml

from . import config

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Effective settings after merging the TOML file over the defaults."""
    debounce_delay_ms: int = config.DEBOUNCE_DELAY_MS
    max_methods: int = config.MAX_METHODS
    enable_auto_highlight: bool = config.ENABLE_AUTO_HIGHLIGHT
    signature_max_lines: int = config.SIGNATURE_MAX_LINES
    git_enabled: bool = config.GIT_ENABLED
    git_timeout: float = config.GIT_TIMEOUT

    @property
    def debounce_delay(self) -> float:
        """Debounce interval in seconds."""
        return self.debounce_delay_ms / 1000.0


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections), or ``{}``."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> None:
    """Write entire config dict to the TOML file, preserving all sections."""
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w") as f:
        toml.dump(data, f)


def load_config() -> Dict[str, Dict[str, Any]]:
    """Defaults with the values from the config file laid over them."""
    merged = copy.deepcopy(config.DEFAULT_CONFIG)
    for section, values in load_full_config().items():
        if section in merged and isinstance(values, dict):
            merged[section].update(values)
    return merged


def load_settings() -> Settings:
    data = load_config()
    index = data["index"]
    git = data["git"]
    return Settings(
        debounce_delay_ms=int(index["debounce_delay_ms"]),
        max_methods=int(index["max_methods"]),
        enable_auto_highlight=bool(index["enable_auto_highlight"]),
        signature_max_lines=int(index["signature_max_lines"]),
        git_enabled=bool(git["enabled"]),
        git_timeout=float(git["timeout"]),
    )


# ------------------------------------------------------------------
# Single keys
# ------------------------------------------------------------------

def _split_key(key: str) -> Tuple[str, str]:
    section, _, name = key.partition(".")
    if not name or name not in config.DEFAULT_CONFIG.get(section, {}):
        known = ", ".join(
            f"{s}.{n}" for s, values in config.DEFAULT_CONFIG.items() for n in values
        )
        raise ValueError(f"Unknown setting '{key}'. Known settings: {known}")
    return section, name


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"Expected a boolean, got '{raw}'")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def get_setting(key: str) -> Any:
    """Look up a dotted key such as ``index.max_methods``."""
    section, name = _split_key(key)
    return load_config()[section][name]


def save_setting(key: str, value: str) -> Any:
    """Persist one dotted key, converting *value* to the setting's type.

    Raises:
        ValueError: Unknown key, or a value that does not convert.
    """
    section, name = _split_key(key)
    converted = _coerce(value, config.DEFAULT_CONFIG[section][name])
    if isinstance(converted, (int, float)) and not isinstance(converted, bool) and converted < 0:
        raise ValueError(f"'{key}' must not be negative")

    data = load_full_config()
    data.setdefault(section, {})[name] = converted
    _save_full_config(data)
    return converted
