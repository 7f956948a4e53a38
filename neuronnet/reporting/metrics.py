"""Metrics sinks for training-progress tracking."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping

from .artifacts import git_sha


def _numeric(metrics: Mapping[str, object]) -> dict:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Append-only JSONL writer for metrics."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed
        self.sha = sha or git_sha()

    def _write(self, epoch: int, iteration: int | None, metrics: Mapping[str, object]) -> None:
        record: dict = {"epoch": int(epoch)}
        if iteration is not None:
            record["iteration"] = int(iteration)
        record.update({"split": self.split, "seed": self.seed, "sha": self.sha})
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    def on_iteration(self, epoch: int, iteration: int, metrics: Mapping[str, object]) -> None:
        self._write(epoch, iteration, metrics)

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self._write(epoch, None, metrics)


class CsvSink:
    """Write metrics to CSV with a stable schema."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def _write(self, epoch: int, iteration: int | None, metrics: Mapping[str, object]) -> None:
        row: dict = {"epoch": int(epoch), "split": self.split}
        if iteration is not None:
            row["iteration"] = int(iteration)
        row.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            fieldnames = sorted(row.keys())
            writer = csv.DictWriter(handle, fieldnames=fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    def on_iteration(self, epoch: int, iteration: int, metrics: Mapping[str, object]) -> None:
        self._write(epoch, iteration, metrics)

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self._write(epoch, None, metrics)


__all__ = ["CsvSink", "JsonlSink"]
