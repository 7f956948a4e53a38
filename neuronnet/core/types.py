"""Core typing contracts for neuronnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, NamedTuple, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidConfiguration, ShapeMismatch
from .linalg import Matrix, Vector

Array = np.ndarray


@dataclass(frozen=True)
class Sample:
    """A training pair: network input and the expected network output."""

    inputs: Vector
    expected: Vector


SampleSource = Union[Mapping[object, object], Iterable[Tuple[object, object]], Iterable[Sample]]


class LayerOutput(NamedTuple):
    """Everything a layer produces for one input."""

    weighted_input: Vector
    output: Vector
    derivative: Vector


@dataclass
class LayerBuffers:
    """Per-layer scratch vectors filled by a training-oriented forward pass.

    One vector per layer in each list, sized to that layer's node count.
    """

    weighted_inputs: List[Vector]
    outputs: List[Vector]
    derivatives: List[Vector]

    @classmethod
    def for_sizes(cls, node_counts: Sequence[int]) -> "LayerBuffers":
        return cls(
            weighted_inputs=[Vector.zeros(n) for n in node_counts],
            outputs=[Vector.zeros(n) for n in node_counts],
            derivatives=[Vector.zeros(n) for n in node_counts],
        )

    def check(self, node_counts: Sequence[int]) -> None:
        """Fail fast unless every buffer matches ``node_counts``."""

        for label, vectors in (
            ("weighted_inputs", self.weighted_inputs),
            ("outputs", self.outputs),
            ("derivatives", self.derivatives),
        ):
            if len(vectors) != len(node_counts):
                raise ShapeMismatch(
                    f"LayerBuffers.{label} holds {len(vectors)} vectors "
                    f"but the network has {len(node_counts)} layers"
                )
            for idx, (vector, expected) in enumerate(zip(vectors, node_counts)):
                if len(vector) != expected:
                    raise ShapeMismatch(
                        f"LayerBuffers.{label}[{idx}] has length {len(vector)}, "
                        f"layer {idx} has {expected} nodes"
                    )


@dataclass
class Gradients:
    """Mean cost gradient over a mini-batch, one entry per layer."""

    bias_derivatives: List[Vector]
    weight_derivatives: List[Matrix]
    cost: float = 0.0

    def flatten(self) -> Array:
        parts = [v.values.ravel() for v in self.bias_derivatives]
        parts.extend(m.values.ravel() for m in self.weight_derivatives)
        if not parts:
            return np.zeros(0)
        return np.concatenate(parts)


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`neuronnet.training.pipelines.run_pipeline`."""

    epochs: int
    iterations: int
    final_cost: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    validation: Mapping[str, float] = field(default_factory=dict)


def to_vector(value: object) -> Vector:
    if isinstance(value, Vector):
        return value.copy()
    return Vector(np.asarray(value, dtype=float).reshape(-1))


def as_samples(source: SampleSource | None) -> Tuple[Sample, ...]:
    """Normalise a mapping or iterable of pairs into an ordered sample tuple."""

    if source is None:
        return ()
    if isinstance(source, Mapping):
        pairs: Iterable = source.items()
    else:
        pairs = source
    samples: List[Sample] = []
    for item in pairs:
        if isinstance(item, Sample):
            samples.append(item)
            continue
        try:
            inputs, expected = item
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(
                f"Samples must be (input, expected) pairs, got {item!r}"
            ) from exc
        samples.append(Sample(to_vector(inputs), to_vector(expected)))
    return tuple(samples)


__all__ = [
    "Array",
    "Gradients",
    "LayerBuffers",
    "LayerOutput",
    "RunResult",
    "Sample",
    "SampleSource",
    "as_samples",
    "to_vector",
]
