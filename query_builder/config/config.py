"""Configuration management for the query builder."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Type, TypeVar
import yaml
from pathlib import Path

T = TypeVar("T")


@dataclass
class CatalogConfig:
    """Where the catalog comes from."""

    path: Optional[str] = None  # None uses the demo catalog
    prune_on_replace: bool = False


@dataclass
class RenderConfig:
    """Configuration for the query renderer."""

    dialect: Optional[str] = None  # sqlglot dialect name, None for generic SQL


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML, or a section is not a
            mapping or holds unknown keys

    Example YAML format:
        catalog:
          path: config/sample_catalog.yaml
          prune_on_replace: false

        render:
          dialect: postgres

        logging:
          level: DEBUG
          structured: true
          log_file: qb.log
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    catalog = _load_section(data, "catalog", CatalogConfig)

    # Relative catalog paths are resolved against the config file
    if catalog.path and not Path(catalog.path).is_absolute():
        catalog.path = str(path.parent / catalog.path)

    render = _load_section(data, "render", RenderConfig)
    logging_config = _load_section(data, "logging", LoggingConfig)

    return Config(catalog=catalog, render=render, logging=logging_config)


def _load_section(data: Dict[str, Any], name: str, section_cls: Type[T]) -> T:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(str(key) for key in section if key not in known)
    if unknown:
        raise ValueError(
            f"Unknown key(s) in config section '{name}': {', '.join(unknown)}"
        )
    return section_cls(**section)
