"""
This module contains the PartitionForest class that implements an ensemble
of partition trees (isolation forest) for anomaly scoring.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import numpy.typing as npt
from joblib import Parallel, delayed

from ..errors import ConfigurationError
from ..numeric import average_path_length, label_scores, max_tree_height
from .tree import PartitionTree

logger = logging.getLogger(__name__)


def _fit_single_tree(
    seed: int,
    Xs: npt.NDArray[np.floating[Any]],
    sample_size: int,
    max_height: int,
) -> PartitionTree:
    """
    Worker function to fit a partition tree with a given seed.
    This function is designed to be called in parallel using joblib.
    Each worker owns a generator seeded from its integer seed, so the tree
    does not depend on which worker builds it.

    Args:
        seed: Random seed for this tree (integer).
        Xs: Training data of shape (n_samples, n_features).
        sample_size: Number of samples to use for building the tree.
        max_height: Height limit shared by all trees of the forest.
    Returns:
        Fitted PartitionTree instance.
    """
    rng = np.random.RandomState(seed)
    return PartitionTree().fit(Xs, sample_size, rng, max_height=max_height)


def _score_single_tree(
    tree: PartitionTree,
    Xs: npt.NDArray[np.floating[Any]],
) -> npt.NDArray[np.floating[Any]]:
    """
    Worker function to compute path lengths on a single tree.
    Args:
        tree: Fitted PartitionTree instance.
        Xs: Data samples of shape (n_samples, n_features).
    Returns:
        Path lengths for each sample of shape (n_samples,).
    """
    return tree.path_lengths(Xs)


class PartitionForest:
    """
    Ensemble of partition trees for anomaly detection.

    Each tree is trained on a random subsample of the data, and a point's
    score is derived from its path length averaged across all trees.

    Attributes:
        n_estimators: Number of trees in the ensemble.
        requested_sample_size: Subsample size per tree as configured.
        sample_size: Subsample size actually used, min(requested, n_samples).
        n_jobs: Number of parallel jobs to run. -1 means using all processors.
        random_state: Random seed for reproducibility.
        max_height: ceil(log2(sample_size)), shared by all trees.
        expected_path_length: c(sample_size), the score normaliser.
        trees: List of fitted PartitionTree instances.
    """

    def __init__(
        self,
        n_estimators: int = 100,
        sample_size: int = 256,
        n_jobs: int = 1,
        random_state: int | None = None,
    ) -> None:
        """
        Initialize a PartitionForest.
        Args:
            n_estimators: Number of partition trees to create in the ensemble.
            sample_size: Number of rows drawn (without replacement) for each tree.
            n_jobs: Number of parallel jobs to run for tree building and scoring.
                - If 1 (default): sequential execution (no parallelization)
                - If -1: use all available processors
                - If > 1: use specified number of processors
            random_state: Random seed for reproducibility. If an integer, the same
                seed produces identical forests in sequential and parallel modes.
        """
        if n_estimators < 1:
            raise ConfigurationError(f"n_estimators must be at least 1, got {n_estimators}")
        if sample_size < 1:
            raise ConfigurationError(f"sample_size must be at least 1, got {sample_size}")

        self.n_estimators = n_estimators
        self.requested_sample_size = sample_size
        self.n_jobs = n_jobs
        self.random_state = random_state

        self.sample_size: int | None = None
        self.max_height: int | None = None
        self.expected_path_length: float | None = None

        self.trees: list[PartitionTree] = []

    def fit(self, Xs: npt.NDArray[np.floating[Any]]) -> PartitionForest:
        """
        Creates n_estimators partition trees, each built from its own random
        subsample of the data.
        Args:
            Xs: Training data of shape (n_samples, n_features).
        Returns:
            self
        """
        sample_size = min(self.requested_sample_size, Xs.shape[0])
        max_height = max_tree_height(sample_size)

        rng = np.random.RandomState(self.random_state)
        MAX_INT = np.iinfo(np.int32).max
        seeds = rng.randint(MAX_INT, size=self.n_estimators)

        if self.n_jobs == 1:
            trees = [_fit_single_tree(seed, Xs, sample_size, max_height) for seed in seeds]
        else:
            trees = list(
                Parallel(n_jobs=self.n_jobs, backend="loky")(
                    delayed(_fit_single_tree)(seed, Xs, sample_size, max_height) for seed in seeds
                )
            )

        self.trees = trees
        self.sample_size = sample_size
        self.max_height = max_height
        self.expected_path_length = average_path_length(sample_size)

        logger.debug(
            "Built %d trees (sample_size=%d, max_height=%d, n_jobs=%d)",
            len(self.trees), sample_size, max_height, self.n_jobs,
        )
        return self

    def _check_fitted(self) -> None:
        assert self.trees and self.expected_path_length is not None, "forest is not fitted"

    def path_lengths(self, Xs: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Path lengths averaged across all trees, shape (n_samples,).
        """
        self._check_fitted()

        if self.n_jobs == 1:
            depth_matrix = np.zeros((Xs.shape[0], len(self.trees)))
            for tree_idx, tree in enumerate(self.trees):
                depth_matrix[:, tree_idx] = tree.path_lengths(Xs)
        else:
            depth_results = Parallel(n_jobs=self.n_jobs, backend="loky")(
                delayed(_score_single_tree)(tree, Xs) for tree in self.trees
            )
            depth_matrix = np.column_stack(list(depth_results))

        return np.mean(depth_matrix, axis=1)

    def score_from_path_length(self, mean_path_length: float | npt.NDArray[np.floating[Any]]) -> Any:
        """Normalised score 2^(-E[h] / c(sample_size)); shorter paths score higher."""
        self._check_fitted()
        return 2.0 ** (-np.asarray(mean_path_length, dtype=np.float64) / self.expected_path_length)

    def anomaly_score(self, point: npt.NDArray[np.floating[Any]]) -> float:
        """
        Args:
            point: Sample of shape (n_features,).
        Returns:
            Score in (0, 1]; close to 1 means the point is isolated quickly.
        """
        self._check_fitted()
        mean_depth = float(np.mean([tree.path_length(point) for tree in self.trees]))
        return float(self.score_from_path_length(mean_depth))

    def score_samples(self, Xs: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        """
        Anomaly scores are in (0, 1] where higher scores indicate anomalies.
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Anomaly scores for each sample of shape (n_samples,).
        """
        return self.score_from_path_length(self.path_lengths(Xs))

    def predict(self, Xs: npt.NDArray[np.floating[Any]], threshold: float) -> npt.NDArray[np.int_]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
            threshold: Scores strictly above this value are anomalies.
        Returns:
            Labels (+1=normal, -1=anomaly) of shape (n_samples,).
        """
        return label_scores(self.score_samples(Xs), threshold)

    def to_dict(self) -> dict[str, Any]:
        self._check_fitted()
        return {
            "n_estimators": self.n_estimators,
            "requested_sample_size": self.requested_sample_size,
            "sample_size": self.sample_size,
            "max_height": self.max_height,
            "trees": [tree.to_dict() for tree in self.trees],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any], n_jobs: int = 1) -> PartitionForest:
        forest = cls(
            n_estimators=int(payload["n_estimators"]),
            sample_size=int(payload["requested_sample_size"]),
            n_jobs=n_jobs,
        )
        forest.sample_size = int(payload["sample_size"])
        forest.max_height = int(payload["max_height"])
        forest.trees = [PartitionTree.from_dict(tree) for tree in payload["trees"]]
        forest.expected_path_length = average_path_length(forest.sample_size)
        return forest
