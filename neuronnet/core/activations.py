"""Activation functions for neuronnet layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Tuple

import numpy as np

from .errors import check_length
from .linalg import Vector
from .registry import StrategyRegistry
from .types import Array


class ActivationFunction(Protocol):
    """Maps a layer's weighted inputs to its outputs."""

    name: str

    def evaluate(self, weighted_input: Vector, out: Vector | None = None) -> Vector:
        """Return the activation of every node."""

    def evaluate_with_derivative(
        self,
        weighted_input: Vector,
        out: Vector | None = None,
        out_derivative: Vector | None = None,
    ) -> Tuple[Vector, Vector]:
        """Return the activations and their derivatives w.r.t. ``weighted_input``."""


def sigmoid(x: Array) -> Array:
    """Logistic sigmoid without overflow for large negative inputs."""

    out = np.empty_like(x, dtype=np.float64)
    positive = x >= 0
    out[positive] = 1.0 / (1.0 + np.exp(-x[positive]))
    exp_x = np.exp(x[~positive])
    out[~positive] = exp_x / (1.0 + exp_x)
    return out


def _target(out: Vector | None, size: int, label: str) -> Vector:
    if out is None:
        return Vector.zeros(size)
    check_length(label, len(out), size)
    return out


@dataclass(frozen=True)
class Logistic:
    """``1 / (1 + e^-x)``; derivative ``y * (1 - y)``."""

    name: str = field(default="logistic", init=False)

    def evaluate(self, weighted_input: Vector, out: Vector | None = None) -> Vector:
        out = _target(out, len(weighted_input), "Logistic output")
        out.values[:] = sigmoid(weighted_input.values)
        return out

    def evaluate_with_derivative(
        self,
        weighted_input: Vector,
        out: Vector | None = None,
        out_derivative: Vector | None = None,
    ) -> Tuple[Vector, Vector]:
        size = len(weighted_input)
        out_derivative = _target(out_derivative, size, "Logistic derivative")
        out = self.evaluate(weighted_input, out)
        y = out.values
        np.multiply(y, 1.0 - y, out=out_derivative.values)
        return out, out_derivative


ACTIVATIONS: StrategyRegistry[ActivationFunction] = StrategyRegistry("activation function")
ACTIVATIONS.register("logistic", Logistic)

__all__ = ["ACTIVATIONS", "ActivationFunction", "Logistic", "sigmoid"]
