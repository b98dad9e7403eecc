"""Process-wide config cache shared by the CLI and the controller."""

from __future__ import annotations

import threading
from pathlib import Path

from loguru import logger

from editorbridge.config.loader import get_config_path, load_config
from editorbridge.config.schema import Config

_lock = threading.RLock()
_cache: dict[Path, Config] = {}


def _resolve(config_path: Path | None) -> Path:
    return Path(config_path or get_config_path()).expanduser().resolve()


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """
    Return the config stored at ``config_path`` (default location when omitted).

    Each file is parsed once per process; ``force_reload`` re-reads it.
    """
    path = _resolve(config_path)
    with _lock:
        config = None if force_reload else _cache.get(path)
        if config is None:
            logger.debug(f"Loading config from {path}")
            config = _cache[path] = load_config(path)
        return config


def clear_config_cache(*, config_path: Path | None = None) -> None:
    """Forget one cached file, or every cached file when no path is given."""
    with _lock:
        if config_path is None:
            _cache.clear()
        else:
            _cache.pop(_resolve(config_path), None)
