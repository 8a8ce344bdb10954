"""
Detector configuration: a dataclass with defaults, buildable from a mapping
or a YAML file.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError


_FIELD_TYPES: dict[str, type] = {
    "method": str,
    "contamination": float,
    "n_estimators": int,
    "sample_size": int,
    "n_jobs": int,
    "random_state": int,
}


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw config value (YAML scalars may arrive as strings) to its field type."""
    if value is None and name == "random_state":
        return None
    kind = _FIELD_TYPES[name]
    if isinstance(value, bool) or value is None:
        raise ConfigurationError(f"{name} must be of type {kind.__name__}, got {value!r}")
    if kind is str:
        if not isinstance(value, str):
            raise ConfigurationError(f"{name} must be a string, got {value!r}")
        return value
    if kind is int and isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
    if kind is float:
        return number
    if not number.is_integer():
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return int(number)


@dataclass
class DetectorConfig:
    method: str = "isolation_forest"
    contamination: float = 0.1  # expected share of anomalies in the training data
    n_estimators: int = 100
    sample_size: int = 256
    n_jobs: int = 1
    random_state: int | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> DetectorConfig:
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown detector config keys: {unknown}")
        return cls(**{key: _coerce(key, value) for key, value in values.items()})

    def merged(self, overrides: Mapping[str, Any]) -> DetectorConfig:
        """Copy with every non-None override applied."""
        values = asdict(self)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return type(self).from_mapping(values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: str | Path) -> DetectorConfig:
    """
    Read a YAML config file. Keys may sit at the top level or under a
    ``detector:`` section.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    section = raw.get("detector", raw)
    if not isinstance(section, dict):
        raise ConfigurationError(f"{path}: 'detector' must be a mapping")
    return DetectorConfig.from_mapping(section)
