"""Configuration loading utilities."""

import json
from pathlib import Path

from loguru import logger

from duckgate.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".duckgate" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            data = _migrate_config(data)
            return Config.model_validate(data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Failed to load config from {}: {}", path, e)
            logger.warning("Using default configuration.")

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

    data = config.model_dump(by_alias=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    if not isinstance(data, dict):
        raise ValueError("config root must be an object")

    # Move flat maxPages / userAgent -> search.*
    search_cfg = data.setdefault("search", {})
    for key in ("maxPages", "userAgent"):
        if key in data and key not in search_cfg:
            search_cfg[key] = data.pop(key)

    # Move flat imageTtlSeconds -> captcha.imageTtlSeconds
    captcha_cfg = data.setdefault("captcha", {})
    legacy_ttl = data.pop("imageTtlSeconds", None)
    if legacy_ttl is not None and "imageTtlSeconds" not in captcha_cfg:
        captcha_cfg["imageTtlSeconds"] = legacy_ttl

    # Empty endpoint means the default endpoint
    if not search_cfg.get("endpoint"):
        search_cfg.pop("endpoint", None)

    # The image server never binds a public interface
    if captcha_cfg.get("host") in ("0.0.0.0", "::", ""):
        captcha_cfg["host"] = "127.0.0.1"

    return data
