"""Mini-batch backpropagation trainer for :class:`NeuronNetwork`."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, MutableSequence, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidConfiguration
from ..core.linalg import Matrix, Vector
from ..core.network import NeuronNetwork
from ..core.strategies import GradientDescent
from ..core.types import Gradients, LayerBuffers, Sample, SampleSource, as_samples
from .costs import CostFunction, mean_cost
from .metrics import evaluate_samples

IterationCallback = Callable[[int, float], None]


@dataclass
class _Accumulator:
    """Running sums of per-sample gradients, plus per-sample costs in order."""

    biases: List[Vector]
    weights: List[Matrix]
    costs: List[float] = field(default_factory=list)

    @classmethod
    def for_network(cls, network: NeuronNetwork) -> "_Accumulator":
        return cls(
            biases=[Vector.zeros(layer.n_nodes) for layer in network],
            weights=[Matrix.zeros(*layer.weights.shape) for layer in network],
        )

    def merge(self, other: "_Accumulator") -> None:
        for mine, theirs in zip(self.biases, other.biases):
            mine += theirs
        for mine, theirs in zip(self.weights, other.weights):
            mine += theirs
        self.costs.extend(other.costs)


def draw_mini_batch(
    pool: MutableSequence[Sample], size: int, rng: np.random.Generator
) -> List[Sample]:
    """Remove up to ``size`` uniformly chosen samples from ``pool`` and return them."""

    count = min(size, len(pool))
    batch: List[Sample] = []
    for _ in range(count):
        idx = int(rng.integers(len(pool)))
        batch.append(pool[idx])
        pool[idx] = pool[-1]
        pool.pop()
    return batch


def _chunks(samples: Sequence[Sample], n_chunks: int) -> List[Sequence[Sample]]:
    step = -(-len(samples) // n_chunks)
    return [samples[start : start + step] for start in range(0, len(samples), step)]


class NetworkTrainer:
    """Drive a network through epochs of mini-batch gradient descent.

    The trainer is idle between calls.  :meth:`run_epoch` splits the training
    set into random mini-batches and runs :meth:`run_iteration` on each;
    ``n_iterations`` counts mini-batches within the current epoch and
    ``n_epochs`` counts completed epochs.

    With ``workers > 1`` the per-sample passes of one iteration run on a
    thread pool.  Each worker handles a contiguous slice of the batch with its
    own buffers, and partial sums are merged in worker order, so results do
    not depend on scheduling.
    """

    def __init__(
        self,
        network: NeuronNetwork,
        cost_function: CostFunction,
        gradient_descent: GradientDescent,
        training_samples: SampleSource,
        validation_samples: SampleSource | None = None,
        *,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            raise InvalidConfiguration(f"workers must be >= 1, got {workers}")
        self.network = network
        self.cost_function = cost_function
        self.gradient_descent = gradient_descent
        self.training_samples: Tuple[Sample, ...] = as_samples(training_samples)
        self.validation_samples: Tuple[Sample, ...] = as_samples(validation_samples)
        self.workers = int(workers)
        self._n_epochs = 0
        self._n_iterations = 0
        self._buffers: LayerBuffers | None = None
        self._structure = self._structure_key()

    @property
    def n_epochs(self) -> int:
        return self._n_epochs

    @property
    def n_iterations(self) -> int:
        return self._n_iterations

    def reset_counters(self) -> None:
        self._n_epochs = 0
        self._n_iterations = 0

    # ------------------------------------------------------------------
    # Training

    def run_epoch(
        self,
        mini_batch_size: int,
        rng: np.random.Generator,
        callback: IterationCallback | None = None,
    ) -> List[float]:
        """Run one pass over the training set; return the cost of every mini-batch."""

        if mini_batch_size < 1:
            raise InvalidConfiguration(f"mini_batch_size must be >= 1, got {mini_batch_size}")
        if not self.training_samples:
            raise InvalidConfiguration("Cannot run an epoch without training samples")
        self._sync_structure()
        self._n_iterations = 0
        pool = list(self.training_samples)
        costs: List[float] = []
        while pool:
            batch = draw_mini_batch(pool, mini_batch_size, rng)
            cost = self.run_iteration(batch)
            costs.append(cost)
            if callback is not None:
                callback(self._n_iterations, cost)
        self._n_epochs += 1
        return costs

    def run_iteration(self, batch: SampleSource) -> float:
        """Backpropagate ``batch``, apply one update and return its mean cost."""

        gradients = self.compute_gradients(batch)
        self.gradient_descent.modify_network(
            self.network,
            self._n_iterations,
            self._n_epochs,
            gradients.bias_derivatives,
            gradients.weight_derivatives,
        )
        self._n_iterations += 1
        return gradients.cost

    def compute_gradients(self, batch: SampleSource) -> Gradients:
        """Mean gradient and mean cost of ``batch``; the network is left untouched."""

        samples = as_samples(batch)
        if not samples:
            raise InvalidConfiguration("A mini-batch needs at least one sample")
        self._sync_structure()

        if self.workers > 1 and len(samples) > 1:
            chunks = _chunks(samples, self.workers)
            with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
                futures = [
                    executor.submit(self._accumulate, chunk, self.network.make_buffers())
                    for chunk in chunks
                ]
                partials = [future.result() for future in futures]
            totals = partials[0]
            for partial in partials[1:]:
                totals.merge(partial)
        else:
            if self._buffers is None:
                self._buffers = self.network.make_buffers()
            totals = self._accumulate(samples, self._buffers)

        scale = float(len(samples))
        for bias in totals.biases:
            bias /= scale
        for weight in totals.weights:
            weight /= scale
        return Gradients(
            bias_derivatives=totals.biases,
            weight_derivatives=totals.weights,
            cost=mean_cost(totals.costs),
        )

    def _accumulate(self, samples: Sequence[Sample], buffers: LayerBuffers) -> _Accumulator:
        acc = _Accumulator.for_network(self.network)
        for sample in samples:
            acc.costs.append(self._backpropagate(sample, buffers, acc))
        return acc

    def _backpropagate(self, sample: Sample, buffers: LayerBuffers, acc: _Accumulator) -> float:
        layers = self.network.layers
        output = self.network.evaluate_into(sample.inputs, buffers)
        cost, cost_derivative = self.cost_function.get_cost(sample.expected, output)

        last = len(layers) - 1
        # cost_derivative is the negative gradient w.r.t. the output
        error = -cost_derivative * buffers.derivatives[last]
        for idx in range(last, -1, -1):
            if idx < last:
                propagated = Vector.product(layers[idx + 1].weights.transpose(), error)
                error = propagated * buffers.derivatives[idx]
            previous = sample.inputs if idx == 0 else buffers.outputs[idx - 1]
            acc.biases[idx] += error
            acc.weights[idx].add_outer(error, previous)
        return cost

    def _structure_key(self) -> tuple:
        # layer shapes catch a direct NeuronLayer.resize, which has no revision bump
        shapes = tuple(layer.weights.shape for layer in self.network)
        return (id(self.network), self.network.revision, shapes)

    def _sync_structure(self) -> None:
        current = self._structure_key()
        if current != self._structure:
            self._buffers = None
            self._n_iterations = 0
            self._structure = current

    # ------------------------------------------------------------------
    # Evaluation

    def validate(
        self,
        samples: SampleSource | None = None,
        metric_names: Sequence[str] = ("cost", "accuracy"),
    ) -> Mapping[str, float]:
        """Metrics of the current network over ``samples`` (the validation set by default)."""

        target = self.validation_samples if samples is None else as_samples(samples)
        if not target:
            raise InvalidConfiguration("No samples to validate against")
        return evaluate_samples(self.network, self.cost_function, target, metric_names)


__all__ = ["NetworkTrainer", "draw_mini_batch"]
