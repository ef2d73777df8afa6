"""Isolation Forest over scalar values.

This package provides isolation trees built by random pivot partitioning of
one-dimensional data, and the forest that averages their path lengths.
"""

from .forest import IsolationForest, expected_path_length, suggested_max_depth
from .tree import NO_CHILD, IsolationTree, IsolationTreeNode

__all__ = [
    "NO_CHILD",
    "IsolationTree",
    "IsolationTreeNode",
    "IsolationForest",
    "expected_path_length",
    "suggested_max_depth",
]
