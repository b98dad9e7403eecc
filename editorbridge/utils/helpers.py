"""Small shared helpers: data paths and connection URL building."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlencode


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """~/.editorbridge data directory."""
    return ensure_dir(Path.home() / ".editorbridge")


def build_ws_url(base_url: str, token: str) -> str:
    """
    Append the credential to the websocket URL as a ``token`` query parameter.

    An existing query string is preserved.
    """
    base = (base_url or "").strip()
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    if not token:
        return base
    delimiter = "&" if "?" in base else "?"
    return f"{base}{delimiter}{urlencode({'token': token})}"
