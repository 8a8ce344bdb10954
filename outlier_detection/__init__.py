"""Outlier detection package.

This package flags outliers in multi-dimensional coordinate data:
- isolation: isolation forest built from random partition trees
- mahalanobis: covariance-aware distance from the training mean
- detector: facade dispatching fit/detect/anomaly_score to either model
"""

from . import isolation
from . import mahalanobis
from .config import DetectorConfig, load_config
from .detector import Detector, Method
from .errors import (
    ConfigurationError,
    DataFormatError,
    NotFittedError,
    NumericalError,
    OutlierDetectionError,
    SingularCovarianceError,
    UnimplementedMethodError,
)
from .isolation import PartitionForest, PartitionTree, PartitionTreeNode
from .mahalanobis import CovarianceBackground

__all__ = [
    "isolation",
    "mahalanobis",
    "Detector",
    "DetectorConfig",
    "Method",
    "load_config",
    "PartitionForest",
    "PartitionTree",
    "PartitionTreeNode",
    "CovarianceBackground",
    "OutlierDetectionError",
    "ConfigurationError",
    "DataFormatError",
    "NumericalError",
    "SingularCovarianceError",
    "UnimplementedMethodError",
    "NotFittedError",
]
