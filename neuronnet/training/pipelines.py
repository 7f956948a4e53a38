"""Pipeline assembly: dataset, network, trainer and reporting sinks."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.activations import ACTIVATIONS
from ..core.errors import InvalidConfiguration
from ..core.initializers import INITIALIZERS
from ..core.network import NeuronNetwork
from ..core.strategies import GRADIENT_DESCENTS
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .costs import COSTS
from .metrics import default_metrics
from .trainer import NetworkTrainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-logistic": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "hidden": [3],
            "activation": "logistic",
            "initializer": {"name": "gaussian", "mean": 0.0, "stddev": 1.0},
        },
        "train": {
            "epochs": 400,
            "batch_size": 4,
            "seed": 3,
            "lr": 2.0,
            "gradient_descent": "constant",
            "cost": "quadratic",
            "run_dir": "runs/xor-logistic",
            "enable_plots": False,
        },
    },
    "blobs-logistic": {
        "data": {
            "name": "blobs",
            "options": {"n_points": 120, "num_classes": 3, "seed": 0},
        },
        "model": {
            "hidden": [8],
            "activation": "logistic",
            "initializer": {"name": "gaussian", "mean": 0.0, "stddev": 1.0},
        },
        "train": {
            "epochs": 30,
            "batch_size": 10,
            "seed": 0,
            "lr": 1.0,
            "gradient_descent": "constant",
            "cost": "quadratic",
            "run_dir": "runs/blobs-logistic",
            "enable_plots": False,
        },
    },
    "sine-logistic": {
        "data": {
            "name": "sine",
            "options": {"freq": 1, "n_points": 64, "seed": 0},
        },
        "model": {
            "hidden": [8],
            "activation": "logistic",
            "initializer": {"name": "gaussian", "mean": 0.0, "stddev": 1.0},
        },
        "train": {
            "epochs": 50,
            "batch_size": 8,
            "seed": 1,
            "lr": 0.5,
            "gradient_descent": "halving",
            "cost": "quadratic",
            "run_dir": "runs/sine-logistic",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load preset files in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise InvalidConfiguration(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise InvalidConfiguration(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise InvalidConfiguration(
                        f"Preset {file.name} is missing required sections: {missing_str}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise InvalidConfiguration(f"Unknown preset: {name}") from exc


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train a network as described by ``config`` and write the run artifacts."""

    data_cfg = dict(config.get("data", {}))
    model_cfg = dict(config.get("model", {}))
    train_cfg = dict(config.get("train", {}))
    if "name" not in data_cfg:
        raise InvalidConfiguration("Config section `data` must name a dataset")

    dataset = registry.get_dataset(data_cfg["name"], **data_cfg.get("options", {}))
    data_spec = dataset.data_spec

    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 1))
    if epochs < 0:
        raise InvalidConfiguration(f"epochs must be >= 0, got {epochs}")

    activation_name = str(model_cfg.get("activation", "logistic"))
    activation = ACTIVATIONS.create(activation_name)
    initializer = _build_initializer(model_cfg.get("initializer", "gaussian"))
    cost_function = COSTS.create(str(train_cfg.get("cost", "quadratic")))
    gradient_descent = GRADIENT_DESCENTS.create(
        str(train_cfg.get("gradient_descent", "constant")),
        learning_rate=float(train_cfg.get("lr", 0.01)),
    )

    hidden = [int(size) for size in model_cfg.get("hidden", [])]
    sizes = [data_spec.d_in, *hidden, data_spec.d_out]
    # value initialisation and mini-batch sampling draw from separate streams
    init_rng = np.random.default_rng(seed)
    sample_rng = np.random.default_rng(seed + 1)
    network = NeuronNetwork(init_rng, activation, initializer, sizes)
    trainer = NetworkTrainer(
        network,
        cost_function,
        gradient_descent,
        dataset.training,
        dataset.validation,
        workers=int(train_cfg.get("workers", 1)),
    )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        dims=network.shape(),
        activation=activation.name,
        initializer=initializer.name,
        cost=cost_function.name,
        gradient_descent=gradient_descent.name,
        param_count=network.parameter_count(),
    )

    train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
    val_jsonl = JsonlSink(run_dir / "metrics_val.jsonl", split="val", seed=seed, sha=train_jsonl.sha)
    val_csv = CsvSink(run_dir / "metrics_val.csv", split="val")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    iteration_sinks = [train_jsonl, train_csv, plots]

    metric_names = default_metrics(data_spec.task_type)
    final_cost = float("nan")
    total_iterations = 0
    validation: Mapping[str, float] = {}

    for epoch in range(epochs):

        def _on_iteration(iteration: int, cost: float, epoch: int = epoch) -> None:
            for sink in iteration_sinks:
                sink.on_iteration(epoch, iteration, {"cost": cost})

        costs = trainer.run_epoch(batch_size, sample_rng, callback=_on_iteration)
        total_iterations += len(costs)
        final_cost = costs[-1]
        if trainer.validation_samples:
            validation = dict(trainer.validate(metric_names=metric_names))
            val_jsonl.on_epoch(epoch, validation)
            val_csv.on_epoch(epoch, validation)

    plots.close()

    safe_config = _safe_config(config, hidden)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        network_shape=network.shape(),
    )
    summary_tail = int(train_cfg.get("summary_tail", 32))
    summary_path = write_summary(train_jsonl.path, run_dir / "summary.json", tail=summary_tail)
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    return RunResult(
        epochs=trainer.n_epochs,
        iterations=total_iterations,
        final_cost=final_cost,
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=str(summary_path),
        validation=validation,
    )


def _build_initializer(config: object):
    if isinstance(config, str):
        return INITIALIZERS.create(config)
    if not isinstance(config, Mapping):
        raise InvalidConfiguration(f"Initializer config must be a name or mapping, got {config!r}")
    options = dict(config)
    name = str(options.pop("name", "gaussian"))
    return INITIALIZERS.create(name, **options)


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], hidden_dims: List[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["hidden"] = list(hidden_dims)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    dims: Sequence[int],
    activation: str,
    initializer: str,
    cost: str,
    gradient_descent: str,
    param_count: int,
) -> None:
    print("=== neuronnet run ===")
    print(f"Dataset          : {dataset_name}")
    print(f"Shape            : {list(dims)}")
    print(f"Activation       : {activation}")
    print(f"Initializer      : {initializer}")
    print(f"Cost             : {cost}")
    print(f"Gradient descent : {gradient_descent}")
    print(f"Parameters       : {param_count}")
    print("=====================")


__all__ = ["run_pipeline", "load_preset", "presets"]
