"""
Shared pytest fixtures for the outlier detection test suite.
"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from outlier_detection.data import synthesize_clusters


@pytest.fixture
def rng() -> np.random.RandomState:
    return np.random.RandomState(12345)


@pytest.fixture
def far_cluster_data():
    """100 points tightly around the origin followed by 10 points at (50, 50)."""
    return synthesize_clusters(
        np.random.RandomState(7), n_inliers=100, n_outliers=10, spread=0.5, outlier_center=50.0,
    )


@pytest.fixture
def correlated_gaussian() -> np.ndarray:
    """300 samples from a correlated 3D Gaussian."""
    cov = np.array([
        [4.0, 1.2, 0.3],
        [1.2, 2.0, -0.4],
        [0.3, -0.4, 1.0],
    ])
    return np.random.RandomState(3).multivariate_normal([1.0, -2.0, 0.5], cov, size=300)
