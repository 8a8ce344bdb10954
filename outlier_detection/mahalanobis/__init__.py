"""Mahalanobis distance model.

Fits the mean and covariance of the training data and scores points by
their covariance-aware distance from the mean.
"""

from .background import CovarianceBackground

__all__ = [
    "CovarianceBackground",
]
