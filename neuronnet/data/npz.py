"""Samples stored as ``inputs``/``targets`` arrays in a NumPy ``.npz`` archive."""

from __future__ import annotations

import zipfile
from pathlib import Path

import numpy as np

from ..core.errors import DataUnavailable
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, to_samples


def _load_arrays(path: Path, inputs_key: str, targets_key: str) -> tuple[np.ndarray, np.ndarray]:
    if not path.exists():
        raise DataUnavailable(f"Dataset file not found: {path}")
    try:
        with np.load(path, allow_pickle=False) as archive:
            missing = [key for key in (inputs_key, targets_key) if key not in archive.files]
            if missing:
                raise DataUnavailable(f"{path} is missing arrays: {', '.join(missing)}")
            x = np.asarray(archive[inputs_key], dtype=np.float64)
            y = np.asarray(archive[targets_key], dtype=np.float64)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise DataUnavailable(f"Could not read {path}: {exc}") from exc
    x = x.reshape(x.shape[0], -1)
    y = y.reshape(y.shape[0], -1) if y.ndim > 1 else y.reshape(-1, 1)
    return x, y


@register_dataset("npz")
def load_npz(
    path: str | Path | None = None,
    inputs_key: str = "inputs",
    targets_key: str = "targets",
    task_type: str = "regression",
    val_split: float = 0.2,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Load samples from ``path``; rows of ``inputs`` pair with rows of ``targets``."""

    if path is None:
        raise DataUnavailable("The npz dataset requires a `path` option")
    path = Path(path)
    x, y = _load_arrays(path, inputs_key, targets_key)
    if x.shape[0] != y.shape[0]:
        raise DataUnavailable(
            f"{path}: {x.shape[0]} input rows but {y.shape[0]} target rows"
        )
    if x.shape[0] == 0:
        raise DataUnavailable(f"{path} contains no samples")
    splits = deterministic_split(x.shape[0], val_split=val_split, seed=seed)
    num_classes = int(y.shape[1]) if task_type == "multiclass" else None
    return DatasetSpec(
        name="npz",
        training=to_samples(x, y, splits.train),
        validation=to_samples(x, y, splits.val),
        data_spec=DataSpec(
            d_in=int(x.shape[1]),
            d_out=int(y.shape[1]),
            task_type=task_type,
            num_classes=num_classes,
        ),
        provenance={
            "type": "npz",
            "local_path": str(path),
            "inputs_key": inputs_key,
            "targets_key": targets_key,
            "val_split": val_split,
            "seed": seed,
        },
    )


__all__ = ["load_npz"]
