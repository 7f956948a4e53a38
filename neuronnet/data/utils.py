"""Utility helpers for dataset producers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

import numpy as np

from ..core.errors import DataUnavailable, InvalidConfiguration
from ..core.linalg import Vector
from ..core.types import Array, Sample


@dataclass(frozen=True)
class SplitIndices:
    """Indices for the training/validation partitions."""

    train: np.ndarray
    val: np.ndarray

    @property
    def sizes(self) -> Mapping[str, int]:
        return {"train": int(self.train.size), "val": int(self.val.size)}


def deterministic_split(n_samples: int, *, val_split: float = 0.2, seed: int = 0) -> SplitIndices:
    """Return deterministic shuffled indices for the requested validation ratio."""

    if not 0 <= val_split < 1:
        raise InvalidConfiguration("val_split must be in [0, 1)")

    rng = np.random.default_rng(seed)
    indices = np.arange(n_samples)
    rng.shuffle(indices)

    val_size = int(round(n_samples * val_split))
    # Ensure at least one validation sample when one was requested
    val_size = min(max(val_size, 1 if val_split > 0 else 0), n_samples)
    if n_samples - val_size <= 0:
        raise InvalidConfiguration("Not enough samples for the requested split")

    return SplitIndices(train=indices[val_size:], val=indices[:val_size])


def to_samples(inputs: Array, targets: Array, indices: Sequence[int] | None = None) -> Tuple[Sample, ...]:
    """Pair up rows of ``inputs`` and ``targets`` as :class:`Sample` objects."""

    inputs = np.asarray(inputs, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64)
    if inputs.ndim != 2 or targets.ndim != 2 or inputs.shape[0] != targets.shape[0]:
        raise DataUnavailable(
            f"inputs/targets must be 2-D with matching rows, got {inputs.shape} and {targets.shape}"
        )
    rows = range(inputs.shape[0]) if indices is None else indices
    return tuple(Sample(Vector(inputs[i]), Vector(targets[i])) for i in rows)


def one_hot(labels: Array, num_classes: int) -> Array:
    out = np.zeros((labels.shape[0], num_classes), dtype=np.float64)
    out[np.arange(labels.shape[0]), labels.astype(int)] = 1.0
    return out


__all__ = ["SplitIndices", "deterministic_split", "one_hot", "to_samples"]
