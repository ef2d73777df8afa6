"""
Configuration management.
Loads forest and logging settings from YAML files into dataclasses.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import numpy as np
import yaml

logger = logging.getLogger(__name__)


@dataclass
class ForestConfig:
    """Isolation forest configuration."""
    num_trees: int = 100
    max_depth: int = 8
    random_state: int | None = None
    n_jobs: int = 1
    dtype: str = "float64"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration class."""
    forest: ForestConfig = field(default_factory=ForestConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _section(cls: type, values: dict[str, Any] | None, name: str) -> Any:
    values = values or {}
    if not isinstance(values, dict):
        raise ValueError(f"section '{name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown keys in section '{name}': {', '.join(unknown)}")
    return cls(**values)


def validate_config(config: Config) -> None:
    """
    Raises:
        ValueError: If a value is out of range.
    """
    forest = config.forest
    for name in ("num_trees", "max_depth", "n_jobs"):
        value = getattr(forest, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"forest.{name} must be an integer, got {value!r}")
    if forest.random_state is not None and (
        isinstance(forest.random_state, bool) or not isinstance(forest.random_state, int)
    ):
        raise ValueError(f"forest.random_state must be an integer or null, got {forest.random_state!r}")
    if not isinstance(forest.dtype, str):
        raise ValueError(f"forest.dtype must be a string, got {forest.dtype!r}")
    for name in ("level", "format"):
        value = getattr(config.logging, name)
        if not isinstance(value, str):
            raise ValueError(f"logging.{name} must be a string, got {value!r}")

    if forest.num_trees <= 0:
        raise ValueError(f"forest.num_trees must be positive, got {forest.num_trees}")
    if forest.max_depth < 0:
        raise ValueError(f"forest.max_depth must not be negative, got {forest.max_depth}")
    if forest.n_jobs == 0:
        raise ValueError("forest.n_jobs must not be 0")
    try:
        dtype = np.dtype(forest.dtype)
    except TypeError as e:
        raise ValueError(f"forest.dtype is not a numpy dtype: {forest.dtype}") from e
    if not np.issubdtype(dtype, np.floating):
        raise ValueError(f"forest.dtype must be a floating point type, got {forest.dtype}")

    if not isinstance(getattr(logging, config.logging.level.upper(), None), int):
        raise ValueError(f"unknown logging level: {config.logging.level}")


def config_from_dict(config_dict: dict[str, Any] | None) -> Config:
    config_dict = config_dict or {}
    unknown = sorted(set(config_dict) - {"forest", "logging"})
    if unknown:
        raise ValueError(f"unknown configuration sections: {', '.join(unknown)}")

    config = Config(
        forest=_section(ForestConfig, config_dict.get("forest"), "forest"),
        logging=_section(LoggingConfig, config_dict.get("logging"), "logging"),
    )
    validate_config(config)
    return config


def config_to_dict(config: Config) -> dict[str, Any]:
    return asdict(config)


def load_config(config_path: str | Path) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Loaded and validated configuration
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
        config = config_from_dict(config_dict)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.error(f"Error loading configuration: {e}")
        raise

    logger.info(f"Configuration loaded successfully from: {config_path}")
    return config


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Setup logging based on configuration."""
    config = config or LoggingConfig()
    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
    )
