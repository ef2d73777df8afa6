"""
This module contains the IsolationForest class that implements an ensemble
of isolation trees over scalar values.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np
import numpy.typing as npt
from joblib import Parallel, delayed

from ._validation import RandomState, as_generator, check_value_dtype
from .tree import IsolationTree

if TYPE_CHECKING:
    from ..config import ForestConfig

logger = logging.getLogger(__name__)

EULER_GAMMA = 0.5772156649


def expected_path_length(size: int, dtype: npt.DTypeLike = np.float64) -> np.floating[Any]:
    """
    Average path length of an unsuccessful search in a binary search tree of `size` items.
    Zero for one item or fewer.
    """
    scalar = check_value_dtype(dtype).type
    if size <= 1:
        return scalar(0.0)

    HARMONIC_NUMBER = np.log(scalar(size - 1)) + scalar(EULER_GAMMA)
    return scalar(2.0) * HARMONIC_NUMBER - scalar(2.0) * scalar(size - 1) / scalar(size)


def suggested_max_depth(sample_size: int) -> int:
    """ceil(log2(sample_size)), at least 1."""
    if sample_size <= 2:
        return 1
    return int(math.ceil(math.log2(sample_size)))


def shuffle(values: npt.NDArray[Any], rng: np.random.Generator) -> None:
    """In place Fisher-Yates shuffle, from the last position down to position 1."""
    for i in range(values.shape[0] - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        values[i], values[j] = values[j], values[i]


def _path_lengths_single_tree(
    tree: IsolationTree,
    Xs: npt.NDArray[np.floating[Any]],
) -> npt.NDArray[np.floating[Any]]:
    """
    Worker function to compute path lengths on a single tree.
    This function is designed to be called in parallel using joblib.
    """
    return tree.path_lengths(Xs)


class IsolationForest:
    """
    Ensemble of Isolation Trees over scalar values.

    Every tree is trained on its own random permutation of the same data, and
    scores are made by averaging path lengths across all trees.

    Scores follow 2 ** (mean_path_length / c(n)). Values that are isolated
    quickly therefore get the lowest scores.

    Attributes:
        num_trees: Number of trees in the ensemble.
        max_depth: Depth bound shared by all trees.
        n_jobs: Number of parallel jobs used by score_samples. -1 means using all processors.
        dtype: Floating point type of values, path lengths and scores.
    """
    def __init__(
        self,
        num_trees: int,
        max_depth: int,
        random_state: RandomState = None,
        dtype: npt.DTypeLike = np.float64,
        index_dtype: npt.DTypeLike = np.int64,
        n_jobs: int = 1,
    ) -> None:
        """
        Initialize an IsolationForest with unbuilt trees.
        Args:
            num_trees: Number of isolation trees to create in the ensemble, must be positive.
            max_depth: Maximum depth of every tree.
            random_state: Seed or numpy Generator owned by this forest. If None,
                results will vary between runs.
            dtype: Value type, must be a numpy floating type.
            index_dtype: Child reference type, must be a signed integer type.
            n_jobs: Number of parallel jobs for batch scoring. Building is always sequential.
        """
        if num_trees <= 0:
            raise ValueError(f"num_trees must be positive, got {num_trees}")

        self.num_trees = int(num_trees)
        self.max_depth = int(max_depth)
        self.n_jobs = n_jobs
        self.dtype = check_value_dtype(dtype)

        self._rng = as_generator(random_state)
        self._trees = [
            IsolationTree(max_depth, dtype=dtype, index_dtype=index_dtype)
            for _ in range(self.num_trees)
        ]

    @classmethod
    def from_config(cls, config: ForestConfig) -> IsolationForest:
        return cls(
            num_trees=config.num_trees,
            max_depth=config.max_depth,
            random_state=config.random_state,
            dtype=config.dtype,
            n_jobs=config.n_jobs,
        )

    def __len__(self) -> int:
        return len(self._trees)

    @property
    def trees(self) -> tuple[IsolationTree, ...]:
        return tuple(self._trees)

    def build(self, values: Sequence[float] | npt.NDArray[np.floating[Any]]) -> None:
        """
        Rebuilds every tree, each one over a freshly shuffled copy of the values.
        Args:
            values: One-dimensional training data. May be empty.
        """
        data = np.array(values, dtype=self.dtype).reshape(-1)

        for tree in self._trees:
            shuffle(data, self._rng)
            tree.build(data, self._rng)

        logger.info(
            "built isolation forest: %d trees, max_depth=%d, %d values",
            self.num_trees, self.max_depth, data.shape[0],
        )

    def score(self, value: float, dataset_size: int) -> np.floating[Any]:
        """
        Args:
            value: Query value.
            dataset_size: Size of the training data, should be greater than 1.
        Returns:
            2 ** (mean path length / c(dataset_size)). Not finite when dataset_size <= 1.
        """
        avg_path_len = self.dtype.type(0.0)
        for tree in self._trees:
            avg_path_len += tree.path_length(value, tree.root_id(), 0)
        avg_path_len /= self.dtype.type(len(self._trees))

        return self._normalize(avg_path_len, dataset_size)

    def score_samples(
        self,
        values: Sequence[float] | npt.NDArray[np.floating[Any]],
        dataset_size: int,
    ) -> npt.NDArray[np.floating[Any]]:
        """
        Scores for many values at once.
        Args:
            values: Query values.
            dataset_size: Size of the training data, should be greater than 1.
        Returns:
            Score for each value, same as calling score() on each of them.
        """
        Xs = np.asarray(values, dtype=self.dtype).reshape(-1)

        if self.n_jobs == 1:
            depth_matrix = np.zeros((Xs.shape[0], len(self._trees)), dtype=self.dtype)
            for tree_idx, tree in enumerate(self._trees):
                depth_matrix[:, tree_idx] = tree.path_lengths(Xs)
        else:
            depth_results = Parallel(n_jobs=self.n_jobs, backend="loky")(
                delayed(_path_lengths_single_tree)(tree, Xs) for tree in self._trees
            )
            depth_matrix = np.column_stack(list(depth_results)).astype(self.dtype, copy=False)

        # summed in tree order so results match score() exactly
        mean_depths = np.zeros(Xs.shape[0], dtype=self.dtype)
        for tree_idx in range(depth_matrix.shape[1]):
            mean_depths += depth_matrix[:, tree_idx]
        mean_depths /= self.dtype.type(len(self._trees))

        return self._normalize(mean_depths, dataset_size)

    def predict(
        self,
        values: Sequence[float] | npt.NDArray[np.floating[Any]],
        dataset_size: int,
        threshold: float,
    ) -> npt.NDArray[np.int_]:
        """
        Predict anomaly labels for values.
        Args:
            values: Query values.
            dataset_size: Size of the training data.
            threshold: Scores at or below this value are labelled as anomalies.
        Returns:
            Binary labels (0=normal, 1=anomaly).
        """
        scores_arr = self.score_samples(values, dataset_size)
        return (scores_arr <= threshold).astype(int)

    def _normalize(self, mean_path_length: Any, dataset_size: int) -> Any:
        c = expected_path_length(dataset_size, self.dtype)
        if c == 0:
            logger.warning(
                "expected path length is zero for dataset size %d, score is not finite",
                dataset_size,
            )

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            return np.power(self.dtype.type(2.0), mean_path_length / c)
