"""neuronnet public API."""

from .core.activations import ACTIVATIONS, Logistic
from .core.errors import DataUnavailable, InvalidConfiguration, NeuronNetError, ShapeMismatch
from .core.initializers import INITIALIZERS, Gaussian, Zeros
from .core.linalg import Matrix, Vector
from .core.network import NeuronLayer, NeuronNetwork
from .core.strategies import GRADIENT_DESCENTS, ConstantGradientDescent, HalvingGradientDescent
from .core.types import Gradients, LayerBuffers, LayerOutput, RunResult, Sample
from .training.costs import COSTS, Quadratic
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import NetworkTrainer

__all__ = [
    "ACTIVATIONS",
    "COSTS",
    "ConstantGradientDescent",
    "DataUnavailable",
    "GRADIENT_DESCENTS",
    "Gaussian",
    "Gradients",
    "HalvingGradientDescent",
    "INITIALIZERS",
    "InvalidConfiguration",
    "LayerBuffers",
    "LayerOutput",
    "Logistic",
    "Matrix",
    "NetworkTrainer",
    "NeuronLayer",
    "NeuronNetError",
    "NeuronNetwork",
    "Quadratic",
    "RunResult",
    "Sample",
    "ShapeMismatch",
    "Vector",
    "Zeros",
    "load_preset",
    "presets",
    "run_pipeline",
]
