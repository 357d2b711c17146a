"""Configuration paths and defaults for jdocmap."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("JDOCMAP_HOME", str(Path.home() / ".jdocmap"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Defaults for ~/.jdocmap/config.toml (change with `jdm set-config`)
DEBOUNCE_DELAY_MS = 300
MAX_METHODS = 200
ENABLE_AUTO_HIGHLIGHT = True
SIGNATURE_MAX_LINES = 20
GIT_ENABLED = True
GIT_TIMEOUT = 5.0

DEFAULT_CONFIG = {
    "index": {
        "debounce_delay_ms": DEBOUNCE_DELAY_MS,
        "max_methods": MAX_METHODS,
        "enable_auto_highlight": ENABLE_AUTO_HIGHLIGHT,
        "signature_max_lines": SIGNATURE_MAX_LINES,
    },
    "git": {
        "enabled": GIT_ENABLED,
        "timeout": GIT_TIMEOUT,
    },
}


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
