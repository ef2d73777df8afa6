"""Scalar anomaly detection package.

This package provides:
- isolation: Isolation Forest over one-dimensional data using random pivot partitioning
- config: dataclass configuration loaded from YAML, and logging setup
"""

from . import config
from . import isolation
from .config import Config, ForestConfig, LoggingConfig, load_config, setup_logging
from .isolation import IsolationForest, IsolationTree, IsolationTreeNode

__all__ = [
    "config",
    "isolation",
    "Config",
    "ForestConfig",
    "LoggingConfig",
    "load_config",
    "setup_logging",
    "IsolationForest",
    "IsolationTree",
    "IsolationTreeNode",
]
