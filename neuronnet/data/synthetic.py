"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import numpy as np

from ..core.errors import InvalidConfiguration
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, one_hot, to_samples


@register_dataset("xor")
def make_xor(**_: object) -> DatasetSpec:
    """The four XOR truth-table rows, used for both training and validation."""

    x = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    y = np.array([[0.0], [1.0], [1.0], [0.0]])
    samples = to_samples(x, y)
    return DatasetSpec(
        name="xor",
        training=samples,
        validation=samples,
        data_spec=DataSpec(d_in=2, d_out=1, task_type="binary"),
        provenance={"type": "synthetic", "name": "xor"},
    )


@register_dataset("blobs")
def make_blobs(
    n_points: int = 120,
    num_classes: int = 3,
    d_in: int = 2,
    spread: float = 0.4,
    seed: int = 0,
    val_split: float = 0.2,
    **_: object,
) -> DatasetSpec:
    """Gaussian clusters around random centres with one-hot targets."""

    if num_classes < 2:
        raise InvalidConfiguration("blobs needs at least two classes")
    rng = np.random.default_rng(seed)
    centres = rng.uniform(-2.0, 2.0, size=(num_classes, d_in))
    labels = np.arange(n_points) % num_classes
    x = centres[labels] + spread * rng.standard_normal((n_points, d_in))
    y = one_hot(labels, num_classes)
    splits = deterministic_split(n_points, val_split=val_split, seed=seed)
    return DatasetSpec(
        name="blobs",
        training=to_samples(x, y, splits.train),
        validation=to_samples(x, y, splits.val),
        data_spec=DataSpec(
            d_in=d_in, d_out=num_classes, task_type="multiclass", num_classes=num_classes
        ),
        provenance={
            "type": "synthetic",
            "name": "blobs",
            "n_points": n_points,
            "num_classes": num_classes,
            "spread": spread,
            "seed": seed,
            "val_split": val_split,
        },
    )


@register_dataset("sine")
def make_sine(
    freq: int = 1,
    n_points: int = 64,
    seed: int = 0,
    val_split: float = 0.2,
    noise: float = 0.02,
    **_: object,
) -> DatasetSpec:
    """``0.5 + 0.4 sin(freq * pi * x)`` on ``[-1, 1]``, kept inside the logistic range."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points).reshape(-1, 1)
    y = 0.5 + 0.4 * np.sin(freq * np.pi * x) + noise * rng.standard_normal(x.shape)
    y = np.clip(y, 0.0, 1.0)
    splits = deterministic_split(n_points, val_split=val_split, seed=seed)
    return DatasetSpec(
        name="sine",
        training=to_samples(x, y, splits.train),
        validation=to_samples(x, y, splits.val),
        data_spec=DataSpec(d_in=1, d_out=1, task_type="regression"),
        provenance={
            "type": "synthetic",
            "name": "sine",
            "freq": freq,
            "n_points": n_points,
            "seed": seed,
            "val_split": val_split,
        },
    )


__all__ = ["make_blobs", "make_sine", "make_xor"]
