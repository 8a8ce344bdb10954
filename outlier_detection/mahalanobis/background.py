"""
This module contains the CovarianceBackground class: the mean and inverse
covariance of a training set, used to compute Mahalanobis distances.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import numpy.typing as npt

from ..errors import SingularCovarianceError

logger = logging.getLogger(__name__)

# smallest / largest correlation eigenvalue ratio below which cov counts as singular
RCOND = 1e-12


class CovarianceBackground:
    """
    Gaussian background model of the training data.
    Attributes:
        mean: Per-feature mean of shape (n_features,).
        cov: Unbiased sample covariance of shape (n_features, n_features).
        inv_cov: Inverse of cov.
    """

    def __init__(
        self,
        mean: npt.NDArray[np.floating[Any]],
        cov: npt.NDArray[np.floating[Any]],
    ) -> None:
        """
        Args:
            mean: Per-feature mean of shape (n_features,).
            cov: Covariance matrix of shape (n_features, n_features).
        Raises:
            SingularCovarianceError: cov cannot be inverted.
        """
        self.mean = np.array(mean, dtype=np.float64)
        self.cov = np.array(cov, dtype=np.float64)
        self.inv_cov = self._invert(self.cov)

    @staticmethod
    def _invert(cov: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        n_features = cov.shape[0]
        if not np.all(np.isfinite(cov)):
            raise SingularCovarianceError("Covariance matrix contains non-finite values")

        variances = np.diag(cov)
        if np.any(variances <= 0.0):
            constant = np.flatnonzero(variances <= 0.0).tolist()
            logger.warning("Covariance matrix is singular (zero variance in features %s)", constant)
            raise SingularCovarianceError(f"Features {constant} have zero variance")

        # rank test on the correlation matrix so feature units do not matter
        scale = np.sqrt(variances)
        eigenvalues = np.linalg.eigvalsh(cov / np.outer(scale, scale))
        if eigenvalues[0] <= RCOND * eigenvalues[-1]:
            logger.warning(
                "Covariance matrix is singular (correlation eigenvalues %.3g..%.3g, %d features)",
                eigenvalues[0], eigenvalues[-1], n_features,
            )
            raise SingularCovarianceError(
                f"Covariance matrix is singular: smallest correlation eigenvalue "
                f"{eigenvalues[0]:.3g}, largest {eigenvalues[-1]:.3g}"
            )

        try:
            return np.linalg.inv(cov)
        except np.linalg.LinAlgError as exc:
            logger.warning("Covariance matrix inversion failed: %s", exc)
            raise SingularCovarianceError(f"Covariance matrix inversion failed: {exc}") from exc

    @classmethod
    def construct(cls, Xs: npt.NDArray[np.floating[Any]]) -> CovarianceBackground:
        """
        Estimates the mean and the unbiased covariance (denominator n - 1).
        Args:
            Xs: Training data of shape (n_samples, n_features), n_samples >= 2.
        Returns:
            Fitted CovarianceBackground.
        Raises:
            SingularCovarianceError: the covariance is rank deficient.
        """
        mean = np.mean(Xs, axis=0)
        centered = Xs - mean
        cov = centered.T @ centered / (Xs.shape[0] - 1)
        return cls(mean, cov)

    def distance(self, point: npt.NDArray[np.floating[Any]]) -> float:
        """
        Mahalanobis distance sqrt((x - mean)^T inv_cov (x - mean)).
        Args:
            point: Sample of shape (n_features,).
        Returns:
            Non-negative distance.
        """
        diff = np.asarray(point, dtype=np.float64) - self.mean
        return float(np.sqrt(max(float(diff @ self.inv_cov @ diff), 0.0)))

    def distances(self, Xs: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.floating[Any]]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Mahalanobis distance of each sample, shape (n_samples,).
        """
        diff = Xs - self.mean
        squared = np.einsum("ij,jk,ik->i", diff, self.inv_cov, diff)
        # rounding can push tiny quadratic forms below zero
        return np.sqrt(np.clip(squared, 0.0, None))

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean": self.mean.tolist(),
            "cov": self.cov.tolist(),
            "inv_cov": self.inv_cov.tolist(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> CovarianceBackground:
        background = cls.__new__(cls)
        background.mean = np.array(payload["mean"], dtype=np.float64)
        background.cov = np.array(payload["cov"], dtype=np.float64)
        background.inv_cov = np.array(payload["inv_cov"], dtype=np.float64)
        return background
