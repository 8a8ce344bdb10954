"""
JSON persistence of fitted detectors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .detector import Detector
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def save_detector(detector: Detector, path: str | Path) -> None:
    record = {"format_version": FORMAT_VERSION, "detector": detector.to_dict()}
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(record, f)
    logger.info("Saved %s detector to %s", detector.method.value, path)


def load_detector(path: str | Path, n_jobs: int = 1) -> Detector:
    with open(path, "r", encoding="utf-8") as f:
        try:
            record = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path}: not a valid model file ({exc})") from exc

    version = record.get("format_version") if isinstance(record, dict) else None
    if version != FORMAT_VERSION:
        raise ConfigurationError(
            f"{path}: unsupported model format version {version!r}, expected {FORMAT_VERSION}"
        )
    try:
        return Detector.from_dict(record["detector"], n_jobs=n_jobs)
    except ConfigurationError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"{path}: incomplete or malformed model record ({exc!r})") from exc
