"""Dense layers and the feed-forward network built from them."""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from .activations import ActivationFunction
from .errors import InvalidConfiguration, ShapeMismatch, check_length
from .initializers import ValueInitializer
from .linalg import Matrix, Vector
from .types import LayerBuffers, LayerOutput


class NeuronLayer:
    """One dense layer: weights, biases and a shared activation function.

    Row ``j`` of :attr:`weights` holds every incoming weight of node ``j``;
    column ``k`` is the previous layer's node ``k``.
    """

    def __init__(self, weights: Matrix, biases: Vector, activation: ActivationFunction) -> None:
        if weights.n_rows != len(biases):
            raise ShapeMismatch(
                f"Layer weights have {weights.n_rows} rows but there are {len(biases)} biases"
            )
        self._weights = weights
        self._biases = biases
        self.activation = activation

    @classmethod
    def zeros(cls, n_nodes: int, n_inputs: int, activation: ActivationFunction) -> "NeuronLayer":
        return cls(Matrix.zeros(n_nodes, n_inputs), Vector.zeros(n_nodes), activation)

    @property
    def weights(self) -> Matrix:
        return self._weights

    @property
    def biases(self) -> Vector:
        return self._biases

    @property
    def n_nodes(self) -> int:
        return len(self._biases)

    @property
    def n_inputs(self) -> int:
        return self._weights.n_columns

    def evaluate(self, previous_output: Vector) -> LayerOutput:
        size = self.n_nodes
        return self.evaluate_into(
            previous_output, Vector.zeros(size), Vector.zeros(size), Vector.zeros(size)
        )

    def evaluate_into(
        self,
        previous_output: Vector,
        weighted_input: Vector,
        output: Vector,
        derivative: Vector,
    ) -> LayerOutput:
        """Evaluate the layer, writing into the three caller-owned vectors."""

        check_length("layer input", len(previous_output), self.n_inputs)
        Vector.product(self._weights, previous_output, out=weighted_input)
        weighted_input += self._biases
        self.activation.evaluate_with_derivative(weighted_input, output, derivative)
        return LayerOutput(weighted_input, output, derivative)

    def resize(self, new_size: int, prev_layer_size: int) -> None:
        """Reallocate to ``new_size x prev_layer_size``, keeping overlapping entries."""

        if new_size < 1 or prev_layer_size < 1:
            raise InvalidConfiguration(
                f"Layer sizes must be positive, got {new_size}x{prev_layer_size}"
            )
        self._weights = self._weights.resized(new_size, prev_layer_size)
        self._biases = self._biases.resized(new_size)

    def __repr__(self) -> str:
        return (
            f"NeuronLayer(n_nodes={self.n_nodes}, n_inputs={self.n_inputs}, "
            f"activation={self.activation.name!r})"
        )


class NeuronNetwork:
    """Ordered dense layers after an implicit input layer of ``n_input_nodes``.

    Structural commands (:meth:`resize_layer`, :meth:`insert_layer`,
    :meth:`remove_layer`, :meth:`set_activation`, :meth:`reset`) validate
    everything before touching the network and bump :attr:`revision`, which
    trainers use to drop buffers sized for the old shape.  They must not run
    while a training call on the same network is in progress.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        activation: ActivationFunction,
        initializer: ValueInitializer,
        layer_sizes: Sequence[int],
    ) -> None:
        sizes = [int(size) for size in layer_sizes]
        if len(sizes) < 2:
            raise InvalidConfiguration(
                "A network needs an input size and at least one layer size, "
                f"got {list(layer_sizes)}"
            )
        if any(size < 1 for size in sizes):
            raise InvalidConfiguration(f"Layer sizes must be positive, got {sizes}")
        self._n_input_nodes = sizes[0]
        self._layers: List[NeuronLayer] = []
        for idx in range(1, len(sizes)):
            weights = Matrix.zeros(sizes[idx], sizes[idx - 1])
            biases = Vector.zeros(sizes[idx])
            initializer.init(rng, weights, biases, idx)
            self._layers.append(NeuronLayer(weights, biases, activation))
        self.revision = 0

    @classmethod
    def from_layers(cls, n_input_nodes: int, layers: Sequence[NeuronLayer]) -> "NeuronNetwork":
        """Assemble a network from prebuilt layers, checking the chain invariant."""

        if n_input_nodes < 1 or not layers:
            raise InvalidConfiguration("A network needs a positive input size and at least one layer")
        previous = n_input_nodes
        for idx, layer in enumerate(layers):
            if layer.n_inputs != previous:
                raise ShapeMismatch(
                    f"Layer {idx} expects {layer.n_inputs} inputs but the previous layer "
                    f"has {previous} nodes"
                )
            previous = layer.n_nodes
        network = cls.__new__(cls)
        network._n_input_nodes = int(n_input_nodes)
        network._layers = list(layers)
        network.revision = 0
        return network

    # ------------------------------------------------------------------
    # Read access

    @property
    def n_input_nodes(self) -> int:
        return self._n_input_nodes

    @property
    def layers(self) -> Sequence[NeuronLayer]:
        return tuple(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[NeuronLayer]:
        return iter(self._layers)

    def __getitem__(self, index: int) -> NeuronLayer:
        return self._layers[index]

    def shape(self) -> List[int]:
        """Node counts, input layer first."""

        return [self._n_input_nodes] + [layer.n_nodes for layer in self._layers]

    def parameter_count(self) -> int:
        return sum(layer.n_nodes * (layer.n_inputs + 1) for layer in self._layers)

    # ------------------------------------------------------------------
    # Evaluation

    def evaluate(self, inputs: Vector) -> Vector:
        """Run every layer front to back and return the final output."""

        check_length("network input", len(inputs), self._n_input_nodes)
        previous = inputs
        for layer in self._layers:
            previous = layer.evaluate(previous).output
        return previous

    def make_buffers(self) -> LayerBuffers:
        return LayerBuffers.for_sizes([layer.n_nodes for layer in self._layers])

    def evaluate_into(self, inputs: Vector, buffers: LayerBuffers) -> Vector:
        """Forward pass that keeps every layer's intermediate values in ``buffers``."""

        check_length("network input", len(inputs), self._n_input_nodes)
        buffers.check([layer.n_nodes for layer in self._layers])
        previous = inputs
        for idx, layer in enumerate(self._layers):
            layer.evaluate_into(
                previous,
                buffers.weighted_inputs[idx],
                buffers.outputs[idx],
                buffers.derivatives[idx],
            )
            previous = buffers.outputs[idx]
        return previous

    # ------------------------------------------------------------------
    # Structural commands

    def _input_size_of(self, index: int) -> int:
        return self._n_input_nodes if index == 0 else self._layers[index - 1].n_nodes

    def _check_index(self, index: int, *, allow_end: bool = False) -> None:
        upper = len(self._layers) + (1 if allow_end else 0)
        if not 0 <= index < upper:
            raise InvalidConfiguration(
                f"Layer index {index} out of range for a network with {len(self._layers)} layers"
            )

    def resize_layer(self, index: int, new_size: int) -> None:
        """Change layer ``index`` to ``new_size`` nodes and rewire the next layer."""

        self._check_index(index)
        if new_size < 1:
            raise InvalidConfiguration(f"Layer sizes must be positive, got {new_size}")
        layer = self._layers[index]
        layer.resize(new_size, layer.n_inputs)
        if index + 1 < len(self._layers):
            following = self._layers[index + 1]
            following.resize(following.n_nodes, new_size)
        self.revision += 1

    def insert_layer(
        self,
        index: int,
        n_nodes: int,
        activation: ActivationFunction | None = None,
        *,
        rng: np.random.Generator | None = None,
        initializer: ValueInitializer | None = None,
    ) -> NeuronLayer:
        """Insert a new layer before position ``index`` (``len(self)`` appends).

        The new layer starts at zero unless both ``rng`` and ``initializer``
        are given.  Its activation defaults to that of the layer it displaces.
        """

        self._check_index(index, allow_end=True)
        if n_nodes < 1:
            raise InvalidConfiguration(f"Layer sizes must be positive, got {n_nodes}")
        if (rng is None) != (initializer is None):
            raise InvalidConfiguration("insert_layer needs both rng and initializer, or neither")
        if activation is None:
            neighbour = self._layers[min(index, len(self._layers) - 1)]
            activation = neighbour.activation
        layer = NeuronLayer.zeros(n_nodes, self._input_size_of(index), activation)
        if initializer is not None:
            initializer.init(rng, layer.weights, layer.biases, index + 1)
        if index < len(self._layers):
            following = self._layers[index]
            following.resize(following.n_nodes, n_nodes)
        self._layers.insert(index, layer)
        self.revision += 1
        return layer

    def remove_layer(self, index: int) -> NeuronLayer:
        """Remove layer ``index``; the next layer is rewired to its predecessor."""

        self._check_index(index)
        if len(self._layers) == 1:
            raise InvalidConfiguration("Cannot remove the only layer of a network")
        removed = self._layers.pop(index)
        if index < len(self._layers):
            following = self._layers[index]
            following.resize(following.n_nodes, self._input_size_of(index))
        self.revision += 1
        return removed

    def set_activation(self, index: int, activation: ActivationFunction) -> None:
        self._check_index(index)
        self._layers[index].activation = activation
        self.revision += 1

    def reset(self, rng: np.random.Generator, initializer: ValueInitializer) -> None:
        """Re-initialise every layer's parameters in place."""

        for idx, layer in enumerate(self._layers, start=1):
            initializer.init(rng, layer.weights, layer.biases, idx)
        self.revision += 1

    def __repr__(self) -> str:
        return f"NeuronNetwork(shape={self.shape()})"


__all__ = ["NeuronLayer", "NeuronNetwork"]
