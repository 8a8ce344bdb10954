"""
This module contains the Detector facade that puts the isolation forest and
the Mahalanobis model behind one fit / detect / anomaly_score contract, and
calibrates the decision threshold from a contamination rate.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import numpy as np
import numpy.typing as npt

from .config import DetectorConfig
from .data import as_dataset
from .errors import ConfigurationError, NotFittedError, UnimplementedMethodError
from .isolation import PartitionForest
from .mahalanobis import CovarianceBackground
from .numeric import label_scores, order_statistic_threshold

logger = logging.getLogger(__name__)


class Method(str, Enum):
    ISOLATION_FOREST = "isolation_forest"
    MAHALANOBIS = "mahalanobis"
    LOF = "lof"

    @classmethod
    def parse(cls, value: Method | str) -> Method:
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(method.value for method in cls)
            raise ConfigurationError(f"Unknown method {value!r}, expected one of: {choices}") from None


def _lof_unsupported() -> UnimplementedMethodError:
    return UnimplementedMethodError("Local outlier factor detection is not yet supported")


class Detector:
    """
    Unsupervised outlier detector.

    Exactly one of ``forest`` / ``background`` is populated after a successful
    fit, matching ``method``; ``threshold`` is set at the same time.

    Usage:
        detector = Detector(Method.ISOLATION_FOREST, contamination=0.1)
        detector.fit(X_train)
        labels = detector.detect(X_new)        # +1 normal, -1 anomaly
        scores = detector.anomaly_score(X_new)

    Attributes:
        method: Active detection method.
        contamination: Expected proportion of anomalies in the training data, in (0, 1).
        n_estimators: Number of trees (isolation forest only).
        sample_size: Rows drawn per tree (isolation forest only).
        n_jobs: Parallel jobs for tree building and scoring.
        random_state: Seed for the isolation forest.
        forest: Fitted PartitionForest, or None.
        background: Fitted CovarianceBackground, or None.
        threshold: Calibrated score above which points are anomalies, or None.
        n_features: Number of features seen at fit time, or None.
    """

    def __init__(
        self,
        method: Method | str = Method.ISOLATION_FOREST,
        contamination: float = 0.1,
        n_estimators: int = 100,
        sample_size: int = 256,
        n_jobs: int = 1,
        random_state: int | None = None,
    ) -> None:
        self.method = Method.parse(method)
        self.contamination = contamination
        self.n_estimators = n_estimators
        self.sample_size = sample_size
        self.n_jobs = n_jobs
        self.random_state = random_state
        self._validate_params()

        self.forest: PartitionForest | None = None
        self.background: CovarianceBackground | None = None
        self.threshold: float | None = None
        self.n_features: int | None = None

    @classmethod
    def from_config(cls, config: DetectorConfig) -> Detector:
        return cls(
            method=config.method,
            contamination=config.contamination,
            n_estimators=config.n_estimators,
            sample_size=config.sample_size,
            n_jobs=config.n_jobs,
            random_state=config.random_state,
        )

    def _validate_params(self) -> None:
        if isinstance(self.contamination, bool) or not isinstance(
            self.contamination, (int, float, np.integer, np.floating)
        ):
            raise ConfigurationError(f"contamination must be a number, got {self.contamination!r}")
        for name in ("n_estimators", "sample_size", "n_jobs"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if not 0.0 < self.contamination < 1.0:
            raise ConfigurationError(
                f"contamination must be in (0, 1), got {self.contamination}"
            )
        if self.n_estimators < 1:
            raise ConfigurationError(f"n_estimators must be at least 1, got {self.n_estimators}")
        if self.sample_size < 1:
            raise ConfigurationError(f"sample_size must be at least 1, got {self.sample_size}")
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")

    @property
    def is_fitted(self) -> bool:
        return self.threshold is not None and (
            self.forest is not None or self.background is not None
        )

    def fit(self, Xs: npt.ArrayLike) -> Detector:
        """
        Fits the model selected by ``method`` and calibrates the threshold as
        the nearest-rank (1 - contamination) order statistic of the training scores.
        The detector is only updated once every step has succeeded.
        Args:
            Xs: Training data of shape (n_samples, n_features), n_samples >= 2.
        Returns:
            self
        Raises:
            ConfigurationError: invalid parameters or input shape.
            SingularCovarianceError: Mahalanobis fit on rank-deficient data.
            UnimplementedMethodError: method is LOF.
        """
        self._validate_params()
        if self.method is Method.LOF:
            raise _lof_unsupported()

        Xs = as_dataset(Xs, min_samples=2)

        forest: PartitionForest | None = None
        background: CovarianceBackground | None = None
        if self.method is Method.ISOLATION_FOREST:
            forest = PartitionForest(
                n_estimators=self.n_estimators,
                sample_size=self.sample_size,
                n_jobs=self.n_jobs,
                random_state=self.random_state,
            ).fit(Xs)
            training_scores = forest.score_samples(Xs)
        elif self.method is Method.MAHALANOBIS:
            background = CovarianceBackground.construct(Xs)
            training_scores = background.distances(Xs)
        else:
            raise AssertionError(f"unhandled method {self.method!r}")

        threshold = order_statistic_threshold(training_scores, self.contamination)

        self.forest = forest
        self.background = background
        self.threshold = threshold
        self.n_features = Xs.shape[1]

        logger.info(
            "Fitted %s on %d samples x %d features (contamination=%.3f, threshold=%.6g)",
            self.method.value, Xs.shape[0], Xs.shape[1], self.contamination, threshold,
        )
        return self

    def _check_fitted(self, Xs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        if self.method is Method.LOF:
            raise _lof_unsupported()
        if not self.is_fitted:
            raise NotFittedError(
                "This Detector is not fitted yet; call fit() before detect() or anomaly_score()"
            )
        return as_dataset(Xs, min_samples=1, n_features=self.n_features)

    def anomaly_score(self, Xs: npt.ArrayLike) -> npt.NDArray[np.floating[Any]]:
        """
        Raw scores without thresholding: forest scores in (0, 1] or
        Mahalanobis distances. Higher means more anomalous.
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Scores of shape (n_samples,), aligned with the input rows.
        """
        Xs = self._check_fitted(Xs)
        if self.method is Method.ISOLATION_FOREST:
            assert self.forest is not None
            return self.forest.score_samples(Xs)
        assert self.background is not None
        return self.background.distances(Xs)

    def detect(self, Xs: npt.ArrayLike) -> npt.NDArray[np.int_]:
        """
        Args:
            Xs: Data samples of shape (n_samples, n_features).
        Returns:
            Labels (+1=normal, -1=anomaly) of shape (n_samples,).
        """
        scores = self.anomaly_score(Xs)
        assert self.threshold is not None
        return label_scores(scores, self.threshold)

    def to_dict(self) -> dict[str, Any]:
        """Plain record of the full detector state, suitable for JSON encoding."""
        if not self.is_fitted:
            raise NotFittedError("Only a fitted Detector can be exported")
        return {
            "method": self.method.value,
            "contamination": self.contamination,
            "n_estimators": self.n_estimators,
            "sample_size": self.sample_size,
            "random_state": self.random_state,
            "n_features": self.n_features,
            "threshold": self.threshold,
            "forest": self.forest.to_dict() if self.forest is not None else None,
            "background": self.background.to_dict() if self.background is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any], n_jobs: int = 1) -> Detector:
        detector = cls(
            method=payload["method"],
            contamination=float(payload["contamination"]),
            n_estimators=int(payload["n_estimators"]),
            sample_size=int(payload["sample_size"]),
            n_jobs=n_jobs,
            random_state=payload.get("random_state"),
        )
        if detector.method is Method.ISOLATION_FOREST:
            if payload.get("forest") is None:
                raise ConfigurationError("isolation_forest record has no forest")
            detector.forest = PartitionForest.from_dict(payload["forest"], n_jobs=n_jobs)
        elif detector.method is Method.MAHALANOBIS:
            if payload.get("background") is None:
                raise ConfigurationError("mahalanobis record has no background")
            detector.background = CovarianceBackground.from_dict(payload["background"])
        else:
            raise _lof_unsupported()

        detector.threshold = float(payload["threshold"])
        detector.n_features = int(payload["n_features"])
        return detector
