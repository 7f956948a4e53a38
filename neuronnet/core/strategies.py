"""Gradient-descent strategies that apply averaged gradients to a network."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np

from .errors import InvalidConfiguration, ShapeMismatch
from .linalg import Matrix, Vector
from .network import NeuronNetwork
from .registry import StrategyRegistry
from .types import Array, Gradients


class GradientDescent(Protocol):
    """Moves the network parameters against the mean mini-batch gradient."""

    name: str

    def modify_network(
        self,
        network: NeuronNetwork,
        mini_batch_iteration: int,
        epoch: int,
        bias_derivatives: Sequence[Vector],
        weight_derivatives: Sequence[Matrix],
    ) -> None:
        """Update every layer of ``network`` in place."""


def check_derivative_shapes(
    network: NeuronNetwork,
    bias_derivatives: Sequence[Vector],
    weight_derivatives: Sequence[Matrix],
) -> None:
    """Raise :class:`ShapeMismatch` unless the derivatives match ``network`` exactly."""

    n_layers = len(network)
    if len(bias_derivatives) != n_layers or len(weight_derivatives) != n_layers:
        raise ShapeMismatch(
            f"Expected derivatives for {n_layers} layers, got {len(bias_derivatives)} bias "
            f"and {len(weight_derivatives)} weight entries"
        )
    for idx, layer in enumerate(network):
        if len(bias_derivatives[idx]) != layer.n_nodes:
            raise ShapeMismatch(
                f"Layer {idx}: bias derivative has length {len(bias_derivatives[idx])}, "
                f"layer has {layer.n_nodes} nodes"
            )
        if weight_derivatives[idx].shape != layer.weights.shape:
            raise ShapeMismatch(
                f"Layer {idx}: weight derivative is {weight_derivatives[idx].shape}, "
                f"weights are {layer.weights.shape}"
            )


def _apply(
    network: NeuronNetwork,
    rate: float,
    bias_derivatives: Sequence[Vector],
    weight_derivatives: Sequence[Matrix],
) -> None:
    for layer, d_bias, d_weight in zip(network, bias_derivatives, weight_derivatives):
        layer.biases.values[:] -= rate * d_bias.values
        layer.weights.values[:, :] -= rate * d_weight.values


@dataclass
class ConstantGradientDescent:
    """Plain gradient descent with a fixed learning rate."""

    learning_rate: float = 0.01
    name: str = field(default="constant", init=False)

    def __post_init__(self) -> None:
        if self.learning_rate <= 0:
            raise InvalidConfiguration(f"learning_rate must be positive, got {self.learning_rate}")

    def modify_network(
        self,
        network: NeuronNetwork,
        mini_batch_iteration: int,
        epoch: int,
        bias_derivatives: Sequence[Vector],
        weight_derivatives: Sequence[Matrix],
    ) -> None:
        check_derivative_shapes(network, bias_derivatives, weight_derivatives)
        _apply(network, self.learning_rate, bias_derivatives, weight_derivatives)


@dataclass
class HalvingGradientDescent:
    """Constant-rate descent that halves the rate whenever the gradient turns back.

    The rate is halved before an update whose full gradient has a negative dot
    product with the previous update's gradient.  The remembered gradient is
    dropped when the network changes shape.
    """

    learning_rate: float = 0.01
    min_learning_rate: float = 0.0
    name: str = field(default="halving", init=False)
    _previous: Array | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.learning_rate <= 0:
            raise InvalidConfiguration(f"learning_rate must be positive, got {self.learning_rate}")

    def modify_network(
        self,
        network: NeuronNetwork,
        mini_batch_iteration: int,
        epoch: int,
        bias_derivatives: Sequence[Vector],
        weight_derivatives: Sequence[Matrix],
    ) -> None:
        check_derivative_shapes(network, bias_derivatives, weight_derivatives)
        current = Gradients(list(bias_derivatives), list(weight_derivatives)).flatten()
        previous = self._previous
        if previous is not None and previous.shape == current.shape:
            if float(np.dot(previous, current)) < 0.0:
                self.learning_rate = max(self.learning_rate * 0.5, self.min_learning_rate)
        self._previous = current
        _apply(network, self.learning_rate, bias_derivatives, weight_derivatives)


GRADIENT_DESCENTS: StrategyRegistry[GradientDescent] = StrategyRegistry("gradient descent")
GRADIENT_DESCENTS.register("constant", ConstantGradientDescent)
GRADIENT_DESCENTS.register("halving", HalvingGradientDescent)

__all__ = [
    "ConstantGradientDescent",
    "GRADIENT_DESCENTS",
    "GradientDescent",
    "HalvingGradientDescent",
    "check_derivative_shapes",
]
