"""Configuration module for duckgate."""

from duckgate.config.loader import get_config_path, load_config
from duckgate.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
