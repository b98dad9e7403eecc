"""Configuration module for editorbridge."""

from editorbridge.config.loader import load_config, save_config, get_config_path
from editorbridge.config.schema import Config
from editorbridge.config.access import get_config, clear_config_cache

__all__ = ["Config", "load_config", "save_config", "get_config_path", "get_config", "clear_config_cache"]
