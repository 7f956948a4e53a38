"""Structured errors raised by the neuronnet core."""

from __future__ import annotations


class NeuronNetError(Exception):
    """Base class for every error reported by the engine."""


class ShapeMismatch(NeuronNetError, ValueError):
    """Container dimensions disagree with the declared contract."""


class InvalidConfiguration(NeuronNetError, ValueError):
    """The network, trainer or a strategy was configured with unusable values."""


class DataUnavailable(NeuronNetError, RuntimeError):
    """A data producer could not supply the requested samples."""


def check_length(name: str, actual: int, expected: int) -> None:
    """Raise :class:`ShapeMismatch` unless ``actual == expected``."""

    if actual != expected:
        raise ShapeMismatch(f"{name}: expected length {expected}, got {actual}")


__all__ = [
    "DataUnavailable",
    "InvalidConfiguration",
    "NeuronNetError",
    "ShapeMismatch",
    "check_length",
]
