"""Condense a training-metrics JSONL stream into a small JSON summary."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidConfiguration

SUMMARY_VERSION = 1

# numeric record fields that say where a value came from, not what it measured
_BOOKKEEPING = frozenset({"epoch", "iteration", "seed"})


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` with unit spacing between iterations."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum(y[1:] + y[:-1]) / 2.0)


@dataclass
class MetricTrace:
    """Values of one metric in the order the trainer logged them."""

    name: str
    values: List[float] = field(default_factory=list)

    def describe(self, tail_window: int) -> Dict[str, float]:
        series = np.asarray(self.values, dtype=np.float64)
        recent = series[-tail_window:] if tail_window else series[:0]
        return {
            "min": float(series.min()),
            "max": float(series.max()),
            "mean": float(series.mean()),
            "last": float(series[-1]),
            "tail_auc": compute_auc(recent.tolist()),
        }


def _numeric_fields(record: Mapping[str, object]) -> Iterator[Tuple[str, float]]:
    for key, value in record.items():
        if key in _BOOKKEEPING or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            yield key, float(value)


def collect_traces(records: Sequence[Mapping[str, object]]) -> Dict[str, MetricTrace]:
    traces: Dict[str, MetricTrace] = {}
    for record in records:
        for key, value in _numeric_fields(record):
            traces.setdefault(key, MetricTrace(key)).values.append(value)
    return traces


def summarise_records(records: Sequence[Mapping[str, object]], tail: int = 32) -> Mapping[str, object]:
    """Min/max/mean/last and tail AUC for every numeric metric in ``records``.

    The tail window covers the last ``tail`` records (fewer when the run is
    shorter); each metric's AUC is taken over its values in that window.
    """

    if tail < 0:
        raise InvalidConfiguration(f"summary tail must be >= 0, got {tail}")
    tail_window = min(tail, len(records))
    epochs = {record["epoch"] for record in records if isinstance(record.get("epoch"), int)}
    traces = collect_traces(records)
    return {
        "version": SUMMARY_VERSION,
        "records": len(records),
        "epochs": len(epochs),
        "tail_window": tail_window,
        "metrics": {name: trace.describe(tail_window) for name, trace in traces.items()},
    }


def read_records(path: str | Path) -> List[Mapping[str, object]]:
    """Parse a JSONL metrics file; a file that was never written reads as empty."""

    source = Path(path)
    if not source.exists():
        return []
    with source.open(encoding="utf-8") as handle:
        return [json.loads(line) for line in handle if line.strip()]


def write_summary(metrics_jsonl: str | Path, out_summary_json: str | Path, *, tail: int = 32) -> str:
    """Summarise ``metrics_jsonl`` into ``out_summary_json`` and return its path."""

    summary = summarise_records(read_records(metrics_jsonl), tail)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["MetricTrace", "collect_traces", "compute_auc", "read_records", "summarise_records", "write_summary"]
