"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping, Tuple

from ..core.errors import DataUnavailable, InvalidConfiguration
from ..core.types import Sample

TASK_TYPES = frozenset({"regression", "multiclass", "binary"})


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Length of every input vector.
    d_out:
        Length of every expected-output vector.
    task_type:
        One of ``{"regression", "multiclass", "binary"}``.
    num_classes:
        Number of classes for ``"multiclass"`` datasets.
    extra:
        Free-form metadata kept for reproducibility.
    """

    d_in: int
    d_out: int
    task_type: str
    num_classes: int | None = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """Training and validation samples produced by a registered dataset."""

    name: str
    training: Tuple[Sample, ...]
    validation: Tuple[Sample, ...]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    @property
    def splits(self) -> Dict[str, int]:
        return {"train": len(self.training), "val": len(self.validation)}


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise InvalidConfiguration(f"Unknown dataset {dataset!r}. Available: {available}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    data_spec = spec.data_spec
    if data_spec.task_type not in TASK_TYPES:
        raise InvalidConfiguration(f"Invalid task type: {data_spec.task_type}")
    if data_spec.task_type == "multiclass" and data_spec.num_classes is None:
        raise InvalidConfiguration("Multiclass datasets must define num_classes")
    if not spec.training:
        raise DataUnavailable(f"Dataset {spec.name!r} produced no training samples")
    for split, samples in (("train", spec.training), ("val", spec.validation)):
        for sample in samples:
            if len(sample.inputs) != data_spec.d_in or len(sample.expected) != data_spec.d_out:
                raise DataUnavailable(
                    f"Dataset {spec.name!r} {split} sample has shape "
                    f"({len(sample.inputs)}, {len(sample.expected)}), "
                    f"expected ({data_spec.d_in}, {data_spec.d_out})"
                )


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
