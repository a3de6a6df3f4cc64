"""Configuration models and loaders."""

from .config_data import AppConfig, ConfigData, DatabaseConfig, LoggingConfig
from .config_template import load_templated_yaml

__all__ = [
    "AppConfig",
    "ConfigData",
    "DatabaseConfig",
    "LoggingConfig",
    "load_templated_yaml",
]
