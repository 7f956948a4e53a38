import csv
import json

import pytest

from neuronnet.reporting.artifacts import write_manifest
from neuronnet.reporting.metrics import CsvSink, JsonlSink
from neuronnet.reporting.plots import PlotAdapter


def test_jsonl_sink_writes_tagged_records(tmp_path):
    sink = JsonlSink(tmp_path / "m.jsonl", split="train", seed=4, sha="abc")
    sink.on_iteration(0, 1, {"cost": 0.5})
    sink.on_epoch(0, {"cost": 0.25, "accuracy": 1.0})
    first, second = [json.loads(line) for line in sink.path.read_text().splitlines()]
    assert first == {"epoch": 0, "iteration": 1, "split": "train", "seed": 4, "sha": "abc", "cost": 0.5}
    assert "iteration" not in second and second["accuracy"] == 1.0


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "m.csv", split="val")
    sink.on_iteration(0, 1, {"cost": 0.5})
    sink.on_iteration(0, 2, {"cost": 0.4})
    with sink.path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["iteration"] for row in rows] == ["1", "2"]
    assert rows[0]["split"] == "val"


def test_manifest_records_network_shape(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"seed": 1}},
        dataset_provenance={"name": "xor"},
        network_shape=[2, 3, 1],
    )
    manifest = json.loads(open(path).read())
    assert manifest["network_shape"] == [2, 3, 1]
    assert manifest["dataset"] == {"name": "xor"}
    assert "git_sha" in manifest


def test_plot_adapter_tracks_cost_range(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=False)
    for i, cost in enumerate([0.4, 0.1, 0.3]):
        adapter.on_iteration(0, i + 1, {"cost": cost})
    assert adapter.min_cost == 0.1 and adapter.max_cost == 0.4
    assert [c for _, c in adapter.history] == [0.4, 0.1, 0.3]
    assert adapter.close() is None
    adapter.reset()
    assert adapter.history == []


def test_plot_adapter_writes_png(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=True)
    adapter.on_iteration(0, 1, {"cost": 0.5})
    adapter.on_iteration(0, 2, {"cost": 0.2})
    path = adapter.close()
    assert path is not None and path.exists()
