"""Configuration paths and extraction settings for codegraph-extractor."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

BASE_DIR = Path(
    os.environ.get("CGX_HOME", str(Path.home() / ".codegraph-extractor"))
).expanduser()
DB_FILE = BASE_DIR / "graph.db"
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_LANGUAGES = ["javascript", "typescript", "tsx"]

DEFAULT_SKIP_DIRS = [
    "node_modules", ".git", "dist", "build", "coverage",
    ".next", ".nuxt", ".cache", ".turbo", "out",
]

# Files larger than this are skipped during project extraction.
DEFAULT_MAX_FILE_BYTES = 1_000_000

DEFAULT_SETTINGS: Dict[str, Any] = {
    "languages": DEFAULT_LANGUAGES,
    "skip_dirs": DEFAULT_SKIP_DIRS,
    "max_file_bytes": DEFAULT_MAX_FILE_BYTES,
}


def _defaults() -> Dict[str, Any]:
    return {key: (list(value) if isinstance(value, list) else value)
            for key, value in DEFAULT_SETTINGS.items()}


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load every table of the TOML config, ``{}`` when missing or unreadable."""
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read config %s: %s", config_path, exc)
        return {}


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Extraction settings from the ``[extract]`` table merged over defaults.

    Unknown keys are kept so newer config files do not break older installs.
    """
    settings = _defaults()
    section = load_full_config(path).get("extract", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed [extract] table in config")
        return settings
    settings.update(section)
    return settings


def save_config(settings: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write *settings* into the ``[extract]`` table, preserving other tables."""
    config_path = path or CONFIG_FILE
    config = load_full_config(config_path)
    config["extract"] = settings
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", config_path, exc)
        return False


def ensure_base_dirs() -> None:
    """Create the base directory for local storage if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
