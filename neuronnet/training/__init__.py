"""Training loop, cost functions, metrics and pipelines."""

from .costs import COSTS, CostFunction, Quadratic
from .trainer import NetworkTrainer, draw_mini_batch

__all__ = ["COSTS", "CostFunction", "NetworkTrainer", "Quadratic", "draw_mini_batch"]
