"""Metric helpers for evaluating a network over a sample set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence

import numpy as np

from ..core.errors import InvalidConfiguration
from ..core.network import NeuronNetwork
from ..core.types import Array, Sample
from .costs import CostFunction, mean_cost


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metrics(task_type: str) -> List[str]:
    if task_type == "regression":
        return ["cost", "mae", "rmse"]
    if task_type in {"multiclass", "binary"}:
        return ["cost", "accuracy"]
    raise InvalidConfiguration(f"Unknown task type: {task_type}")


def compute_metric(name: str, predictions: Array, targets: Array) -> MetricResult:
    """Compute ``name`` from stacked network outputs and expected outputs."""

    key = name.lower()
    if key == "mae":
        value = float(np.mean(np.abs(predictions - targets)))
    elif key == "rmse":
        value = float(np.sqrt(np.mean((predictions - targets) ** 2)))
    elif key == "accuracy":
        if predictions.shape[1] > 1:
            hits = np.argmax(predictions, axis=1) == np.argmax(targets, axis=1)
        else:
            hits = (predictions[:, 0] >= 0.5) == (targets[:, 0] >= 0.5)
        value = float(np.mean(hits))
    else:
        raise InvalidConfiguration(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def evaluate_samples(
    network: NeuronNetwork,
    cost_function: CostFunction,
    samples: Sequence[Sample],
    metric_names: Iterable[str] = ("cost", "accuracy"),
) -> Mapping[str, float]:
    """Evaluate ``network`` on every sample and return the requested metrics.

    ``cost`` is the mean of per-sample costs; the remaining metrics are
    computed from the stacked outputs.
    """

    if not samples:
        raise InvalidConfiguration("Cannot evaluate metrics on an empty sample set")
    costs: List[float] = []
    predictions: List[Array] = []
    targets: List[Array] = []
    for sample in samples:
        output = network.evaluate(sample.inputs)
        cost, _ = cost_function.get_cost(sample.expected, output)
        costs.append(cost)
        predictions.append(output.values)
        targets.append(sample.expected.values)

    stacked_predictions = np.vstack(predictions)
    stacked_targets = np.vstack(targets)
    results: Dict[str, float] = {}
    for name in metric_names:
        if name.lower() == "cost":
            results["cost"] = mean_cost(costs)
            continue
        metric = compute_metric(name, stacked_predictions, stacked_targets)
        results[metric.name] = metric.value
    return results


__all__ = ["MetricResult", "compute_metric", "default_metrics", "evaluate_samples"]
