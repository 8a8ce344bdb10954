import json

import numpy as np

from outlier_detection.cli import main


def test_synthesize_fit_detect_score(tmp_path, capsys):
    data = tmp_path / "points.csv"
    model = tmp_path / "model.json"
    plot = tmp_path / "plot.png"

    assert main(["synthesize", "--out", str(data), "--seed", "0", "--spread", "0.5"]) == 0
    assert main([
        "fit", "--data", str(data), "--model", str(model),
        "--n-estimators", "30", "--contamination", "0.1", "--seed", "1",
    ]) == 0
    assert json.loads(model.read_text(encoding="utf-8"))["detector"]["method"] == "isolation_forest"
    capsys.readouterr()

    assert main(["detect", "--data", str(data), "--model", str(model), "--plot", str(plot)]) == 0
    labels = np.array([int(line) for line in capsys.readouterr().out.split()])
    assert labels.shape == (110,)
    assert np.all(labels[100:] == -1)
    assert plot.exists()

    assert main(["score", "--data", str(data), "--model", str(model)]) == 0
    scores = np.array([float(line) for line in capsys.readouterr().out.split()])
    assert scores.shape == (110,)
    assert scores[100:].min() > np.median(scores[:100])


def test_fit_with_yaml_config(tmp_path, capsys):
    data = tmp_path / "points.csv"
    model = tmp_path / "model.json"
    config = tmp_path / "config.yaml"
    config.write_text("detector:\n  method: mahalanobis\n  contamination: 0.05\n", encoding="utf-8")

    main(["synthesize", "--out", str(data), "--seed", "2", "--outliers", "0", "--inliers", "50"])
    assert main(["fit", "--data", str(data), "--model", str(model), "--config", str(config)]) == 0
    record = json.loads(model.read_text(encoding="utf-8"))["detector"]
    assert record["method"] == "mahalanobis"
    assert record["contamination"] == 0.05


def test_errors_exit_with_code_2(tmp_path, capsys):
    data = tmp_path / "points.csv"
    data.write_text("1,2\n3,oops\n", encoding="utf-8")
    assert main(["fit", "--data", str(data), "--model", str(tmp_path / "m.json")]) == 2
    assert "error:" in capsys.readouterr().err


def test_lof_is_reported_as_unsupported(tmp_path, capsys):
    data = tmp_path / "points.csv"
    main(["synthesize", "--out", str(data), "--seed", "3"])
    assert main(["fit", "--data", str(data), "--model", str(tmp_path / "m.json"), "--method", "lof"]) == 2
    assert "not yet supported" in capsys.readouterr().err


def test_config_with_string_exponent_fits(tmp_path, capsys):
    data = tmp_path / "points.csv"
    model = tmp_path / "model.json"
    config = tmp_path / "config.yaml"
    config.write_text("detector:\n  method: mahalanobis\n  contamination: 5e-2\n", encoding="utf-8")

    main(["synthesize", "--out", str(data), "--seed", "4", "--outliers", "0", "--inliers", "40"])
    assert main(["fit", "--data", str(data), "--model", str(model), "--config", str(config)]) == 0
    assert json.loads(model.read_text(encoding="utf-8"))["detector"]["contamination"] == 0.05


def test_non_numeric_config_value_exits_with_code_2(tmp_path, capsys):
    data = tmp_path / "points.csv"
    config = tmp_path / "config.yaml"
    config.write_text("detector:\n  n_estimators: lots\n", encoding="utf-8")

    main(["synthesize", "--out", str(data), "--seed", "5"])
    assert main(["fit", "--data", str(data), "--model", str(tmp_path / "m.json"), "--config", str(config)]) == 2
    assert "n_estimators" in capsys.readouterr().err


def test_incomplete_model_file_exits_with_code_2(tmp_path, capsys):
    data = tmp_path / "points.csv"
    model = tmp_path / "model.json"
    model.write_text(json.dumps({"format_version": 1, "detector": {"method": "mahalanobis"}}), encoding="utf-8")

    main(["synthesize", "--out", str(data), "--seed", "6"])
    assert main(["detect", "--data", str(data), "--model", str(model)]) == 2
    assert "error:" in capsys.readouterr().err
