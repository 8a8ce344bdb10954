"""
This module contains the PartitionTreeNode and PartitionTree classes that
implement a single randomized isolation tree.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import numpy as np
import numpy.typing as npt

from ..numeric import max_tree_height

SPLIT_EPSILON = 1e-10


class PartitionTreeNode:
    """
    Node in a partition tree.
    A node is either a leaf (no split, records how many training rows reached it)
    or an internal node splitting on one feature. Internal nodes own at most two
    children; a child is None when its side of the split received no rows.
    Attributes:
        height: Depth of the node in the tree (root is 0).
        size: Number of training rows that reached this node.
        split_feature: Index of the feature used for splitting (None for leaves).
        split_value: Threshold value for the split (None for leaves).
        left: Subtree for rows with feature value < split_value.
        right: Subtree for rows with feature value >= split_value.
    """

    def __init__(self, height: int, size: int) -> None:
        self.height = height
        self.size = size

        self.split_feature: int | None = None
        self.split_value: float | None = None

        self.left: PartitionTreeNode | None = None
        self.right: PartitionTreeNode | None = None

    @property
    def is_leaf(self) -> bool:
        return self.split_feature is None

    @classmethod
    def build(
        cls,
        Xs: npt.NDArray[np.floating[Any]],
        height: int,
        max_height: int,
        rng: np.random.RandomState,
    ) -> PartitionTreeNode:
        """
        Recursively partition the rows of Xs using random axis-aligned splits.
        Args:
            Xs: Rows reaching this node, shape (n_rows, n_features).
            height: Depth of the node being built.
            max_height: Depth at which every node becomes a leaf.
            rng: Random generator owned by the tree being built.
        Returns:
            The subtree rooted at this node.
        """
        node = cls(height=height, size=Xs.shape[0])
        if Xs.shape[0] <= 1 or height >= max_height:
            return node

        split_feature = int(rng.randint(Xs.shape[1]))
        column = Xs[:, split_feature]
        low, high = float(column.min()), float(column.max())
        if high - low <= SPLIT_EPSILON:
            return node

        # uniform() samples [low, high); low itself would send nothing left
        split_value = float(rng.uniform(low, high))
        while split_value <= low:
            split_value = float(rng.uniform(low, high))

        node.split_feature = split_feature
        node.split_value = split_value

        mask_lower = column < split_value
        Xs_lower = Xs[mask_lower]
        Xs_upper = Xs[~mask_lower]

        if Xs_lower.shape[0] > 0:
            node.left = cls.build(Xs_lower, height + 1, max_height, rng)
        if Xs_upper.shape[0] > 0:
            node.right = cls.build(Xs_upper, height + 1, max_height, rng)
        return node

    def path_length(self, point: npt.NDArray[np.floating[Any]], current_height: int = 0) -> float:
        """
        Number of splits needed to isolate a point.
        Args:
            point: Sample of shape (n_features,).
            current_height: Height of this node, 0 when called on the root.
        Returns:
            Height of the leaf reached, or one past the last node when the
            point falls into a side of a split that received no training rows.
        """
        node = self
        height = current_height
        while not node.is_leaf:
            child = node.left if point[node.split_feature] < node.split_value else node.right
            if child is None:
                return float(height + 1)
            node = child
            height += 1
        return float(height)

    def path_lengths_batch(self, Xs: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Path lengths for each sample of shape (n_samples,), relative to this node.
        """
        n_samples = Xs.shape[0]
        if self.is_leaf:
            return np.zeros(n_samples, dtype=np.float64)

        path_lengths = np.ones(n_samples, dtype=np.float64)
        mask_lower = Xs[:, self.split_feature] < self.split_value

        if self.left is not None and np.any(mask_lower):
            path_lengths[mask_lower] += self.left.path_lengths_batch(Xs[mask_lower])
        if self.right is not None and np.any(~mask_lower):
            path_lengths[~mask_lower] += self.right.path_lengths_batch(Xs[~mask_lower])

        return path_lengths

    def leaves(self) -> Iterator[PartitionTreeNode]:
        if self.is_leaf:
            yield self
            return
        for child in (self.left, self.right):
            if child is not None:
                yield from child.leaves()

    def to_dict(self) -> dict[str, Any]:
        if self.is_leaf:
            return {"height": self.height, "size": self.size}
        return {
            "height": self.height,
            "size": self.size,
            "split_feature": self.split_feature,
            "split_value": self.split_value,
            "left": self.left.to_dict() if self.left is not None else None,
            "right": self.right.to_dict() if self.right is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PartitionTreeNode:
        node = cls(height=int(payload["height"]), size=int(payload["size"]))
        if payload.get("split_feature") is None:
            return node
        node.split_feature = int(payload["split_feature"])
        node.split_value = float(payload["split_value"])
        if payload.get("left") is not None:
            node.left = cls.from_dict(payload["left"])
        if payload.get("right") is not None:
            node.right = cls.from_dict(payload["right"])
        return node


class PartitionTree:
    """
    Single randomized partition tree built on a subsample of the training data.
    Attributes:
        root: Root node of the tree.
        sample_size: Number of rows the tree was built from.
        max_height: Height limit used while building.
    """

    def __init__(self) -> None:
        self.root: PartitionTreeNode | None = None
        self.sample_size: int | None = None
        self.max_height: int | None = None

    def fit(
        self,
        Xs: npt.NDArray[np.floating[Any]],
        sample_size: int,
        rng: np.random.RandomState,
        max_height: int | None = None,
    ) -> PartitionTree:
        """
        Draws a subsample without replacement and partitions it.
        Args:
            Xs: Training data of shape (n_samples, n_features).
            sample_size: Number of rows to build the tree from, clamped to n_samples.
            rng: Random generator used for the subsample and every split.
            max_height: Height limit; defaults to ceil(log2(sample_size)).
        Returns:
            self
        """
        sample_size = min(sample_size, Xs.shape[0])
        if sample_size < Xs.shape[0]:
            subsample_indices = rng.choice(Xs.shape[0], sample_size, replace=False)
            Xs_train = Xs[subsample_indices]
        else:
            Xs_train = Xs

        self.sample_size = sample_size
        self.max_height = max_tree_height(sample_size) if max_height is None else max_height
        self.root = PartitionTreeNode.build(Xs_train, 0, self.max_height, rng)
        return self

    def path_length(self, point: npt.NDArray[np.floating[Any]]) -> float:
        assert self.root is not None
        return self.root.path_length(point, 0)

    def path_lengths(self, Xs: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Path lengths for each sample of shape (n_samples,).
        """
        assert self.root is not None
        return self.root.path_lengths_batch(Xs)

    def leaves(self) -> Iterator[PartitionTreeNode]:
        assert self.root is not None
        return self.root.leaves()

    def to_dict(self) -> dict[str, Any]:
        assert self.root is not None
        return {
            "sample_size": self.sample_size,
            "max_height": self.max_height,
            "root": self.root.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PartitionTree:
        tree = cls()
        tree.sample_size = int(payload["sample_size"])
        tree.max_height = int(payload["max_height"])
        tree.root = PartitionTreeNode.from_dict(payload["root"])
        return tree
