"""Utility functions for editorbridge."""

from editorbridge.utils.helpers import build_ws_url, ensure_dir, get_data_path

__all__ = ["build_ws_url", "ensure_dir", "get_data_path"]
