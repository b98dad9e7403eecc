"""Configuration loading utilities."""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from editorbridge.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".editorbridge" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Values in the file take precedence; ``EDITORBRIDGE_*`` environment
    variables fill in whatever the file leaves unset.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config file must contain a JSON object")
            data = _migrate_config(data)
            return Config(**convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            raise ValueError(
                f"Failed to load config from {path}: {e}. "
                "Fix the file or remove it to regenerate defaults."
            ) from e

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.debug(f"Saved config to {path}")

    from editorbridge.config.access import clear_config_cache

    clear_config_cache(config_path=path)


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    # Flat {url, token} at the top level -> connection.{url, token}
    connection = data.setdefault("connection", {})
    if isinstance(connection, dict):
        for key in ("url", "token"):
            if key in data and key not in connection:
                connection[key] = data.pop(key)
    # tools.enabled.<group> -> tools.<group>
    tools = data.get("tools")
    if isinstance(tools, dict) and isinstance(tools.get("enabled"), dict):
        for group, flag in tools.pop("enabled").items():
            tools.setdefault(group, bool(flag))
    return data


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
