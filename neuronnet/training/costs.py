"""Cost functions comparing expected and actual network outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, Tuple

import numpy as np

from ..core.errors import check_length
from ..core.linalg import Vector
from ..core.registry import StrategyRegistry


class CostFunction(Protocol):
    """Scores one network output against the expected output.

    ``get_cost`` returns the scalar cost and a derivative vector holding the
    NEGATIVE gradient of the cost with respect to ``actual``; backpropagation
    negates it again before handing gradients to gradient descent.
    """

    name: str

    def get_cost(self, expected: Vector, actual: Vector) -> Tuple[float, Vector]:
        ...


@dataclass(frozen=True)
class Quadratic:
    """Half the squared distance between expected and actual outputs."""

    name: str = field(default="quadratic", init=False)

    def get_cost(self, expected: Vector, actual: Vector) -> Tuple[float, Vector]:
        check_length("Quadratic cost operands", len(actual), len(expected))
        derivative = expected - actual
        diff = derivative.values
        cost = float(np.dot(diff, diff)) / 2.0
        return cost, derivative


def mean_cost(costs: Iterable[float]) -> float:
    """Batch aggregate: the mean of per-sample costs, summed in order."""

    total = 0.0
    count = 0
    for cost in costs:
        total += cost
        count += 1
    return total / count if count else 0.0


COSTS: StrategyRegistry[CostFunction] = StrategyRegistry("cost function")
COSTS.register("quadratic", Quadratic)

__all__ = ["COSTS", "CostFunction", "Quadratic", "mean_cost"]
