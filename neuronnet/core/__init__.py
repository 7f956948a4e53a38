"""Core numerical primitives for neuronnet."""

from . import activations, errors, initializers, linalg, network, registry, strategies, types

__all__ = [
    "activations",
    "errors",
    "initializers",
    "linalg",
    "network",
    "registry",
    "strategies",
    "types",
]
