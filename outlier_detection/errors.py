"""
Exception hierarchy shared by every model in the package.

Recoverable errors (bad configuration, malformed data, singular covariance)
are raised from ``fit``/``detect`` and may be handled by the caller.
``NotFittedError`` and ``UnimplementedMethodError`` signal contract
violations and are not meant to be caught in production paths.
"""

from __future__ import annotations


class OutlierDetectionError(Exception):
    """Base class for all errors raised by outlier_detection."""


class ConfigurationError(OutlierDetectionError, ValueError):
    """Invalid parameters or input shapes that do not match the fitted model."""


class DataFormatError(ConfigurationError):
    """Input data could not be turned into a finite numeric matrix."""


class NumericalError(OutlierDetectionError, ArithmeticError):
    """A numerical procedure could not produce a usable result."""


class SingularCovarianceError(NumericalError):
    """The sample covariance matrix is not invertible."""


class UnimplementedMethodError(OutlierDetectionError, NotImplementedError):
    """The selected detection method is declared but not yet supported."""


class NotFittedError(OutlierDetectionError, RuntimeError):
    """A model was queried before a successful call to ``fit``."""
