"""
This module contains the IsolationTreeNode and IsolationTree classes that
implement random pivot partitioning of a one-dimensional dataset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import matplotlib.pyplot as plt
import numpy as np
import numpy.typing as npt

from ._validation import RandomState, as_generator, check_index_dtype, check_value_dtype

logger = logging.getLogger(__name__)

NO_CHILD = -1


@dataclass(frozen=True)
class IsolationTreeNode:
    """
    Node in an Isolation Tree.
    Children are referenced by their position in the owning tree's node list.
    Attributes:
        split_value: Threshold routing a query value to the left (strictly lower) or right child.
        left: Index of the left child, or NO_CHILD.
        right: Index of the right child, or NO_CHILD.
    """
    split_value: Any = 0.0
    left: Any = NO_CHILD
    right: Any = NO_CHILD

    @property
    def is_leaf(self) -> bool:
        return self.left < 0 and self.right < 0


@dataclass
class _Frame:
    # pending subrange [left, right) of the working buffer
    left: int
    right: int
    depth: int
    split_value: Any = None
    mid: int | None = None
    children: list[int] = field(default_factory=list)


class IsolationTree:
    """
    Single Isolation Tree over scalar values.

    Nodes are appended in post-order (children before their parent), so the
    root is always the last node.
    Attributes:
        max_depth: Depth at which partitioning stops.
        dtype: Floating point type of split values and path lengths.
        index_dtype: Signed integer type of child references.
    """

    def __init__(
        self,
        max_depth: int,
        dtype: npt.DTypeLike = np.float64,
        index_dtype: npt.DTypeLike = np.int64,
    ) -> None:
        """
        Initialize an empty IsolationTree.
        Args:
            max_depth: Maximum depth to build the tree.
            dtype: Value type, must be a numpy floating type.
            index_dtype: Child reference type, must be a signed integer type.
        """
        self.max_depth = int(max_depth)
        self.dtype = check_value_dtype(dtype)
        self.index_dtype = check_index_dtype(index_dtype)

        self._nodes: list[IsolationTreeNode] = []

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[IsolationTreeNode, ...]:
        return tuple(self._nodes)

    def root_id(self) -> int:
        """Index of the last appended node, which is the root once the tree is built."""
        return len(self._nodes) - 1

    def build(
        self,
        values: Sequence[float] | npt.NDArray[np.floating[Any]],
        rng: RandomState = None,
    ) -> None:
        """
        Partitions a private copy of the values into a binary tree.
        Any previously built nodes are discarded.
        Args:
            values: One-dimensional sequence of values.
            rng: Source of randomness for pivot selection.
        """
        data = np.array(values, dtype=self.dtype).reshape(-1)
        generator = as_generator(rng)

        self._nodes = []
        self._build_iteratively(data, generator)

        logger.debug(
            "built isolation tree with %d nodes from %d values", len(self._nodes), data.shape[0]
        )

    def path_length(self, value: float, node_index: int, depth: int) -> np.floating[Any]:
        """
        Follows the splits from the given node down to a leaf.
        Args:
            value: Query value.
            node_index: Node to start from, must exist in this tree.
            depth: Depth of the starting node.
        Returns:
            Depth of the reached leaf minus one, as the tree's value type.
        """
        assert 0 <= node_index < len(self._nodes), f"node index {node_index} out of range"
        value = self.dtype.type(value)

        node = self._nodes[node_index]
        while not node.is_leaf:
            if value < node.split_value and node.left >= 0:
                node = self._nodes[node.left]
            elif node.right >= 0:
                node = self._nodes[node.right]
            else:
                break
            depth += 1

        return self.dtype.type(depth - 1)

    def path_lengths(
        self, values: Sequence[float] | npt.NDArray[np.floating[Any]],
    ) -> npt.NDArray[np.floating[Any]]:
        """
        Args:
            values: Query values.
        Returns:
            Path length from the root for each value.
        """
        Xs = np.asarray(values, dtype=self.dtype).reshape(-1)
        root = self.root_id()
        path_lengths = np.empty(Xs.shape[0], dtype=self.dtype)
        for i, value in enumerate(Xs):
            path_lengths[i] = self.path_length(value, root, 0)
        return path_lengths

    def plot_partition_space_1D(
        self,
        values: Sequence[float] | npt.NDArray[np.floating[Any]] | None = None,
        ax: plt.Axes | None = None,
        show: bool = False,
    ) -> plt.Axes:
        """
        Draws a vertical line at each split value and, optionally, the values on the x axis.
        """
        assert self._nodes, "tree has not been built"

        if ax is None:
            _, ax = plt.subplots()

        ax.set_title("Space Partition Isolation Tree")
        ax.set_xlabel("X")

        for node in self._nodes:
            if not node.is_leaf:
                ax.axvline(float(node.split_value), c="gray", linewidth=0.8)

        if values is not None:
            Xs = np.asarray(values, dtype=self.dtype).reshape(-1)
            ax.scatter(Xs, np.zeros_like(Xs), c="lightgray", s=5)

        ax.set_yticks([])
        if show:
            plt.show()
        return ax

    def _append(self, node: IsolationTreeNode) -> int:
        if len(self._nodes) > np.iinfo(self.index_dtype).max:
            raise OverflowError(
                f"tree has more nodes than index type {self.index_dtype} can address"
            )
        self._nodes.append(node)
        return self.root_id()

    def _is_terminal(self, left: int, right: int, depth: int) -> bool:
        return left >= right or depth >= self.max_depth or right == 0

    def _partition(
        self,
        data: npt.NDArray[np.floating[Any]],
        left: int,
        right: int,
        generator: np.random.Generator,
    ) -> tuple[np.floating[Any], int]:
        """
        Moves every value lower than a random anchor in front of the others.
        Returns:
            Tuple of (anchor, index of the first value not lower than the anchor).
        """
        anchor_index = int(generator.integers(left, right))
        anchor = data[anchor_index]

        segment = data[left:right]
        mask_lower = segment < anchor
        data[left:right] = np.concatenate((segment[mask_lower], segment[~mask_lower]))

        return anchor, left + int(np.count_nonzero(mask_lower))

    def _build_iteratively(
        self, data: npt.NDArray[np.floating[Any]], generator: np.random.Generator,
    ) -> int:
        # Work stack equivalent of recursing left first, then right, then appending the parent.
        stack = [_Frame(left=0, right=data.shape[0], depth=0)]
        node_id = NO_CHILD

        while stack:
            frame = stack[-1]

            if frame.mid is None:
                if self._is_terminal(frame.left, frame.right, frame.depth):
                    stack.pop()
                    node_id = self._append(IsolationTreeNode(
                        split_value=self.dtype.type(0),
                        left=self.index_dtype.type(NO_CHILD),
                        right=self.index_dtype.type(NO_CHILD),
                    ))
                    if stack:
                        stack[-1].children.append(node_id)
                    continue

                frame.split_value, frame.mid = self._partition(data, frame.left, frame.right, generator)
                stack.append(_Frame(left=frame.left, right=frame.mid, depth=frame.depth + 1))

            elif len(frame.children) == 1:
                stack.append(_Frame(left=frame.mid, right=frame.right, depth=frame.depth + 1))

            else:
                stack.pop()
                node_id = self._append(IsolationTreeNode(
                    split_value=frame.split_value,
                    left=self.index_dtype.type(frame.children[0]),
                    right=self.index_dtype.type(frame.children[1]),
                ))
                if stack:
                    stack[-1].children.append(node_id)

        return node_id
