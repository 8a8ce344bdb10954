"""
Tabular input handling: validation of numeric matrices, CSV loading and
synthetic data generation.

Every model in the package consumes the read-only float64 matrices produced
by ``as_dataset``; nothing downstream re-validates shapes or finiteness.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt
import pandas as pd

from .errors import ConfigurationError, DataFormatError

logger = logging.getLogger(__name__)


def as_dataset(
    Xs: npt.ArrayLike,
    min_samples: int = 1,
    n_features: int | None = None,
) -> npt.NDArray[np.float64]:
    """
    Validate a numeric matrix and return an immutable float64 copy.

    Args:
        Xs: Array-like of shape (n_samples, n_features).
        min_samples: Minimum number of rows required.
        n_features: If given, the exact number of columns required.
    Returns:
        Read-only array of shape (n_samples, n_features).
    Raises:
        DataFormatError: values are not numeric or not finite.
        ConfigurationError: wrong dimensionality, too few rows or a column
            count different from ``n_features``.
    """
    try:
        matrix = np.array(Xs, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as exc:
        raise DataFormatError(f"Input is not a numeric matrix: {exc}") from exc

    if matrix.ndim != 2:
        raise ConfigurationError(
            f"Expected a 2D matrix of shape (n_samples, n_features), got {matrix.ndim}D input"
        )
    if matrix.shape[1] == 0:
        raise ConfigurationError("Input has no feature columns")
    if matrix.shape[0] < min_samples:
        raise ConfigurationError(
            f"At least {min_samples} samples are required, got {matrix.shape[0]}"
        )
    if n_features is not None and matrix.shape[1] != n_features:
        raise ConfigurationError(
            f"Expected {n_features} features, got {matrix.shape[1]}"
        )
    if not np.all(np.isfinite(matrix)):
        bad_row = int(np.argwhere(~np.isfinite(matrix))[0][0])
        raise DataFormatError(f"Row {bad_row} contains non-finite values")

    matrix.flags.writeable = False
    return matrix


def _is_numeric(cell: Any) -> bool:
    try:
        float(str(cell).strip())
    except ValueError:
        return False
    return True


def load_csv(
    path: str | Path,
    delimiter: str = ",",
    has_header: bool | None = None,
) -> npt.NDArray[np.float64]:
    """
    Load a numeric matrix from a delimited text file.

    Args:
        path: File to read.
        delimiter: Field separator.
        has_header: Whether the first row holds column names. If None, the
            first row is treated as a header when any of its cells is not a number.
    Returns:
        Read-only float64 matrix, see ``as_dataset``.
    Raises:
        DataFormatError: empty file, rows with a different column count,
            non-numeric or non-finite cells.
    """
    try:
        frame = pd.read_csv(
            path,
            sep=delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise DataFormatError(f"{path}: file is empty") from exc
    except pd.errors.ParserError as exc:
        raise DataFormatError(f"{path}: inconsistent column count ({exc})") from exc

    if has_header is None:
        has_header = not all(_is_numeric(cell) for cell in frame.iloc[0] if isinstance(cell, str))
    if has_header:
        frame = frame.iloc[1:].reset_index(drop=True)
    if frame.empty:
        raise DataFormatError(f"{path}: no data rows")

    missing = frame.isna().to_numpy()
    if missing.any():
        row = int(np.argwhere(missing)[0][0])
        raise DataFormatError(
            f"{path}: data row {row + 1} has fewer than {frame.shape[1]} columns"
        )

    numeric = frame.apply(lambda column: pd.to_numeric(column.str.strip(), errors="coerce"))
    invalid = numeric.isna().to_numpy()
    if invalid.any():
        row, col = (int(i) for i in np.argwhere(invalid)[0])
        raise DataFormatError(
            f"{path}: data row {row + 1}, column {col + 1} is not numeric: {frame.iat[row, col]!r}"
        )

    Xs = as_dataset(numeric.to_numpy(dtype=np.float64))
    logger.debug("Loaded %d rows x %d features from %s", Xs.shape[0], Xs.shape[1], path)
    return Xs


def save_csv(path: str | Path, Xs: npt.ArrayLike) -> None:
    """Write a numeric matrix with an ``x0,x1,...`` header row."""
    matrix = np.asarray(Xs, dtype=np.float64)
    columns = [f"x{i}" for i in range(matrix.shape[1])]
    pd.DataFrame(matrix, columns=columns).to_csv(path, index=False, float_format="%.17g")


def synthesize_clusters(
    rng: np.random.RandomState,
    n_inliers: int = 100,
    n_outliers: int = 10,
    n_features: int = 2,
    spread: float = 1.0,
    outlier_center: float = 50.0,
    outlier_spread: float = 0.0,
    shuffle: bool = False,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
    """
    Gaussian cluster around the origin plus a group of far outliers.

    Args:
        rng: Random generator owned by the caller.
        n_inliers: Number of points drawn around the origin.
        n_outliers: Number of points placed around ``outlier_center`` on every axis.
        n_features: Dimensionality of the points.
        spread: Standard deviation of the inlier cluster.
        outlier_center: Coordinate of the outlier group on every axis.
        outlier_spread: Standard deviation of the outlier group (0 stacks them).
        shuffle: Whether to shuffle rows instead of keeping inliers first.
    Returns:
        Tuple of (Xs, labels) with labels +1 for inliers and -1 for outliers.
    """
    inliers = rng.randn(n_inliers, n_features) * spread
    outliers = outlier_center + rng.randn(n_outliers, n_features) * outlier_spread

    Xs = np.vstack([inliers, outliers])
    labels = np.array([1] * n_inliers + [-1] * n_outliers, dtype=int)

    if shuffle:
        indices = np.arange(Xs.shape[0])
        rng.shuffle(indices)
        Xs = Xs[indices]
        labels = labels[indices]

    return Xs, labels
