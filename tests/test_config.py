import pytest

from outlier_detection.config import DetectorConfig, load_config
from outlier_detection.errors import ConfigurationError


def test_load_config_from_detector_section(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "detector:\n  method: mahalanobis\n  contamination: 0.05\n  random_state: 3\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.method == "mahalanobis"
    assert config.contamination == 0.05
    assert config.random_state == 3
    assert config.n_estimators == DetectorConfig().n_estimators


def test_load_config_top_level_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("n_estimators: 25\n", encoding="utf-8")
    assert load_config(path).n_estimators == 25


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("detector:\n  trees: 10\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_merged_ignores_unset_overrides():
    config = DetectorConfig(contamination=0.2).merged({"contamination": None, "n_estimators": 10})
    assert config.contamination == 0.2
    assert config.n_estimators == 10


def test_exponent_without_dot_is_read_as_float(tmp_path):
    # YAML 1.1 resolves "5e-2" to a string
    path = tmp_path / "config.yaml"
    path.write_text("detector:\n  contamination: 5e-2\n  n_estimators: '40'\n", encoding="utf-8")
    config = load_config(path)
    assert config.contamination == 0.05
    assert config.n_estimators == 40


@pytest.mark.parametrize("values", [
    {"n_estimators": "many"},
    {"n_estimators": 2.5},
    {"contamination": "ten percent"},
    {"sample_size": True},
    {"method": 3},
])
def test_badly_typed_values_are_rejected(values):
    with pytest.raises(ConfigurationError):
        DetectorConfig.from_mapping(values)


def test_null_random_state_is_allowed():
    assert DetectorConfig.from_mapping({"random_state": None}).random_state is None
