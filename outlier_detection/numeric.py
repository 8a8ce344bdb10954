"""
Numeric helpers shared by the isolation forest and the detector facade.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
import numpy.typing as npt

EULER_GAMMA = 0.5772156649


def average_path_length(m: int) -> float:
    """
    Expected path length of an unsuccessful search in a binary search tree
    built from ``m`` points, used to normalise isolation depths.

    c(m) = 2 * H(m - 1) - 2 * (m - 1) / m, with H(i) ~ ln(i) + gamma.

    Args:
        m: Number of points the trees were built from.
    Returns:
        The normalising constant, 1.0 when m <= 2.
    """
    if m <= 2:
        return 1.0
    harmonic_number = math.log(m - 1) + EULER_GAMMA
    return 2.0 * harmonic_number - 2.0 * (m - 1) / m


def max_tree_height(sample_size: int) -> int:
    """ceil(log2(sample_size)), 0 for a single point."""
    if sample_size <= 1:
        return 0
    return int(math.ceil(math.log2(sample_size)))


def threshold_rank(n: int, contamination: float) -> int:
    """Index of the calibration order statistic among ``n`` ascending scores."""
    return min(int(math.floor((1.0 - contamination) * n)), n - 1)


def order_statistic_threshold(
    scores: npt.NDArray[np.floating[Any]],
    contamination: float,
) -> float:
    """
    Nearest-rank threshold: the ascending score at index
    floor((1 - contamination) * n), clamped to the last index.

    Args:
        scores: Training scores of shape (n_samples,). Higher means more anomalous.
        contamination: Expected proportion of anomalies, in (0, 1).
    Returns:
        Threshold such that points scoring strictly above it are anomalies.
    """
    sorted_scores = np.sort(np.asarray(scores, dtype=np.float64))
    return float(sorted_scores[threshold_rank(sorted_scores.shape[0], contamination)])


def label_scores(
    scores: npt.NDArray[np.floating[Any]],
    threshold: float,
) -> npt.NDArray[np.int_]:
    """+1 for inliers, -1 for points scoring strictly above the threshold."""
    return np.where(np.asarray(scores) > threshold, -1, 1).astype(int)
