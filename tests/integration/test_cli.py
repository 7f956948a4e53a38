import json
from pathlib import Path

import pytest

from cli.main import main


def _result_line(capsys) -> dict:
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


def test_cli_basic_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "xor-logistic", "--epochs", "3"])
    run_dir = Path("runs/xor-logistic")
    assert (run_dir / "metrics_train.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    payload = _result_line(capsys)
    assert payload["epochs"] == 3
    assert payload["iterations"] == 3
    assert set(payload["validation"]) == {"cost", "accuracy"}


def test_cli_flags_override_preset(tmp_path, capsys):
    dump = tmp_path / "resolved.json"
    main(
        [
            "--preset",
            "blobs-logistic",
            "--epochs",
            "1",
            "--batch-size",
            "32",
            "--lr",
            "0.25",
            "--hidden",
            "5,3",
            "--seed",
            "9",
            "--workers",
            "2",
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(dump),
        ]
    )
    resolved = json.loads(dump.read_text())
    assert resolved["train"]["lr"] == 0.25
    assert resolved["train"]["workers"] == 2
    assert resolved["model"]["hidden"] == [5, 3]
    payload = _result_line(capsys)
    # 96 training samples in batches of 32
    assert payload["iterations"] == 3
    manifest = json.loads(Path(payload["manifest"]).read_text())
    assert manifest["network_shape"] == [2, 5, 3, 3]


def test_cli_json_override_is_merged(tmp_path, capsys):
    override = tmp_path / "override.json"
    override.write_text(
        json.dumps({"train": {"epochs": 2, "gradient_descent": "halving", "run_dir": str(tmp_path / "o")}})
    )
    main(["--preset", "sine-logistic", "--config", str(override)])
    payload = _result_line(capsys)
    assert payload["epochs"] == 2
    assert Path(payload["summary"]).exists()


def test_cli_yaml_override(tmp_path, capsys):
    yaml = pytest.importorskip("yaml")
    override = tmp_path / "override.yaml"
    override.write_text(yaml.safe_dump({"train": {"epochs": 1, "run_dir": str(tmp_path / "y")}}))
    main(["--preset", "xor-logistic", "--config", str(override)])
    assert _result_line(capsys)["epochs"] == 1


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    names = capsys.readouterr().out.split()
    assert {"xor-logistic", "blobs-logistic", "sine-logistic", "xor-zeros-halving"} <= set(names)


def test_cli_file_preset_runs(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "xor-zeros-halving", "--epochs", "2"])
    payload = _result_line(capsys)
    # 4 samples in batches of 2
    assert payload["iterations"] == 4


def test_cli_reports_configuration_errors(tmp_path):
    override = tmp_path / "bad.json"
    override.write_text(json.dumps({"model": {"activation": "relu"}}))
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(override), "--run-dir", str(tmp_path / "bad")])
    assert "relu" in str(excinfo.value.code)
