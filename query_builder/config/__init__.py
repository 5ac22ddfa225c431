"""Configuration management."""

from .config import (
    Config,
    CatalogConfig,
    RenderConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "Config",
    "CatalogConfig",
    "RenderConfig",
    "LoggingConfig",
    "load_config",
]
