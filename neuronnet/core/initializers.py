"""Starting values for layer weights and biases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from .errors import InvalidConfiguration
from .linalg import Matrix, Vector
from .registry import StrategyRegistry


class ValueInitializer(Protocol):
    """Fills a layer's parameters in place.

    ``layer_index`` is 1-based: index 0 is the input layer, which owns no
    parameters.  Initializers that scale by depth may use it.
    """

    name: str

    def init(
        self,
        rng: np.random.Generator,
        weights: Matrix,
        biases: Vector,
        layer_index: int,
    ) -> None:
        ...


@dataclass(frozen=True)
class Gaussian:
    """Independent ``Normal(mean, stddev)`` samples, biases first then weights."""

    mean: float = 0.0
    stddev: float = 1.0
    name: str = field(default="gaussian", init=False)

    def __post_init__(self) -> None:
        if self.stddev < 0:
            raise InvalidConfiguration(f"Gaussian stddev must be >= 0, got {self.stddev}")

    def init(
        self,
        rng: np.random.Generator,
        weights: Matrix,
        biases: Vector,
        layer_index: int,
    ) -> None:
        biases.values[:] = rng.normal(self.mean, self.stddev, size=len(biases))
        weights.values[:, :] = rng.normal(self.mean, self.stddev, size=weights.shape)


@dataclass(frozen=True)
class Zeros:
    """All parameters start at zero."""

    name: str = field(default="zeros", init=False)

    def init(
        self,
        rng: np.random.Generator,
        weights: Matrix,
        biases: Vector,
        layer_index: int,
    ) -> None:
        biases.fill(0.0)
        weights.fill(0.0)


INITIALIZERS: StrategyRegistry[ValueInitializer] = StrategyRegistry("value initializer")
INITIALIZERS.register("gaussian", Gaussian)
INITIALIZERS.register("zeros", Zeros)

__all__ = ["Gaussian", "INITIALIZERS", "ValueInitializer", "Zeros"]
