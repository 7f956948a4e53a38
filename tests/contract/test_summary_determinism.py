import json
from pathlib import Path

import pytest

from neuronnet.core.errors import InvalidConfiguration
from neuronnet.reporting.summary import compute_auc, summarise_records, write_summary
from neuronnet.training import pipelines


def test_summary_outputs_are_deterministic(tmp_path):
    config = {
        "data": {"name": "blobs", "options": {"n_points": 30, "num_classes": 3, "seed": 123}},
        "model": {"hidden": [4], "activation": "logistic", "initializer": {"name": "gaussian"}},
        "train": {
            "epochs": 3,
            "batch_size": 4,
            "seed": 55,
            "lr": 0.5,
            "run_dir": str(tmp_path / "run_a"),
            "enable_plots": False,
        },
    }

    first = pipelines.run_pipeline(config)
    summary_a = Path(first.summary_path).read_bytes()
    metrics_a = Path(first.metrics_path).read_bytes()

    config["train"]["run_dir"] = str(tmp_path / "run_b")
    second = pipelines.run_pipeline(config)
    summary_b = Path(second.summary_path).read_bytes()
    metrics_b = Path(second.metrics_path).read_bytes()

    assert metrics_a == metrics_b
    assert summary_a == summary_b
    assert first.final_cost == second.final_cost


def test_summary_ignores_bookkeeping_fields(tmp_path):
    metrics = tmp_path / "metrics.jsonl"
    records = [
        {"epoch": 0, "iteration": 1, "split": "train", "seed": 3, "sha": "x", "cost": 4.0},
        {"epoch": 0, "iteration": 2, "split": "train", "seed": 3, "sha": "x", "cost": 2.0},
        {"epoch": 1, "iteration": 1, "split": "train", "seed": 3, "sha": "x", "cost": 1.0},
    ]
    metrics.write_text("\n".join(json.dumps(r) for r in records) + "\n")
    out = json.loads(Path(write_summary(metrics, tmp_path / "summary.json", tail=2)).read_text())
    assert set(out["metrics"]) == {"cost"}
    cost = out["metrics"]["cost"]
    assert cost["min"] == 1.0 and cost["max"] == 4.0 and cost["last"] == 1.0
    assert cost["tail_auc"] == 1.5
    assert out["epochs"] == 2 and out["records"] == 3


def test_empty_summary():
    assert summarise_records([])["metrics"] == {}
    assert compute_auc([]) == 0.0


def test_tail_auc_covers_only_recent_values():
    records = [{"epoch": 0, "cost": c, "accuracy": a} for c, a in [(3.0, 0.0), (2.0, 0.5), (1.0, 1.0)]]
    summary = summarise_records(records, tail=2)
    assert summary["tail_window"] == 2
    assert summary["metrics"]["cost"]["tail_auc"] == 1.5
    assert summary["metrics"]["accuracy"]["tail_auc"] == 0.75
    assert summary["metrics"]["accuracy"]["mean"] == 0.5
    assert compute_auc([4.0]) == 0.0


def test_missing_metrics_file_and_bad_tail(tmp_path):
    out = json.loads(Path(write_summary(tmp_path / "absent.jsonl", tmp_path / "s.json")).read_text())
    assert out["records"] == 0 and out["metrics"] == {}
    with pytest.raises(InvalidConfiguration):
        summarise_records([{"cost": 1.0}], tail=-1)
