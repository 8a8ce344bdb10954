"""
Matplotlib rendering of detection results and of a partition tree's splits.
Only the first two features are drawn.
"""

from __future__ import annotations

from typing import Any

import matplotlib.pyplot as plt
import numpy as np
import numpy.typing as npt

from .errors import ConfigurationError
from .isolation import PartitionTree, PartitionTreeNode


def _check_2d(Xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
    matrix = np.asarray(Xs, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] < 2:
        raise ConfigurationError("2D visualization needs at least 2 feature columns")
    return matrix


def plot_detections(
    Xs: npt.ArrayLike,
    labels: npt.ArrayLike,
    ax: plt.Axes | None = None,
    title: str = "Detected anomalies",
) -> plt.Axes:
    """
    Scatter plot with inliers (+1) in gray and anomalies (-1) in red.
    Args:
        Xs: Data samples of shape (n_samples, n_features >= 2).
        labels: Labels of shape (n_samples,), aligned with the rows of Xs.
        ax: Axes to draw on; a new figure is created when None.
        title: Axes title.
    Returns:
        The axes drawn on.
    """
    matrix = _check_2d(Xs)
    labels_arr = np.asarray(labels)
    if labels_arr.shape != (matrix.shape[0],):
        raise ConfigurationError(
            f"Got {labels_arr.shape[0] if labels_arr.ndim else 0} labels for {matrix.shape[0]} rows"
        )
    unexpected = np.setdiff1d(labels_arr, [1, -1])
    if unexpected.size:
        raise ConfigurationError(f"Labels must be +1 or -1, got {unexpected.tolist()}")

    if ax is None:
        _, ax = plt.subplots()

    inliers = labels_arr == 1
    ax.scatter(matrix[inliers, 0], matrix[inliers, 1], c="lightgray", s=10, label="normal")
    ax.scatter(matrix[~inliers, 0], matrix[~inliers, 1], c="red", s=20, label="anomaly")
    ax.set_title(title)
    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.legend()
    return ax


def _draw_splits(
    ax: plt.Axes,
    node: PartitionTreeNode,
    limits: list[list[float]],
) -> None:
    if node.is_leaf or node.split_feature not in (0, 1):
        # splits on features beyond the first two do not show in the plane
        for child in (node.left, node.right):
            if child is not None:
                _draw_splits(ax, child, limits)
        return

    split = node.split_value
    if node.split_feature == 0:
        ax.plot([split, split], [limits[1][0], limits[1][1]], c="gray", linewidth=0.8)
    else:
        ax.plot([limits[0][0], limits[0][1]], [split, split], c="gray", linewidth=0.8)

    limits_lower = [list(bounds) for bounds in limits]
    limits_lower[node.split_feature][1] = split
    limits_upper = [list(bounds) for bounds in limits]
    limits_upper[node.split_feature][0] = split

    if node.left is not None:
        _draw_splits(ax, node.left, limits_lower)
    if node.right is not None:
        _draw_splits(ax, node.right, limits_upper)


def plot_partition_space_2d(
    tree: PartitionTree,
    Xs: npt.ArrayLike,
    ax: plt.Axes | None = None,
    padding: float = 1.0,
) -> plt.Axes:
    """
    Draws the vertical/horizontal split lines of one tree over the data.
    Args:
        tree: Fitted PartitionTree.
        Xs: Data samples of shape (n_samples, n_features >= 2).
        ax: Axes to draw on; a new figure is created when None.
        padding: Margin added around the data bounding box.
    Returns:
        The axes drawn on.
    """
    matrix = _check_2d(Xs)
    if tree.root is None:
        raise ConfigurationError("Cannot plot an unfitted tree")

    if ax is None:
        _, ax = plt.subplots()

    mins = matrix[:, :2].min(axis=0) - padding
    maxs = matrix[:, :2].max(axis=0) + padding
    limits: list[list[Any]] = [[float(mins[i]), float(maxs[i])] for i in range(2)]

    ax.set_title("Space Partition Isolation Tree")
    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.plot([limits[0][0], limits[0][1], limits[0][1], limits[0][0], limits[0][0]],
            [limits[1][0], limits[1][0], limits[1][1], limits[1][1], limits[1][0]], c="gray")
    _draw_splits(ax, tree.root, limits)
    ax.scatter(matrix[:, 0], matrix[:, 1], c="lightgray", s=5)
    return ax
