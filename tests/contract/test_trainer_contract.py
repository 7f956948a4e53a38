import json
import math
from pathlib import Path

import numpy as np
import pytest

from neuronnet.core.activations import Logistic
from neuronnet.core.errors import InvalidConfiguration, ShapeMismatch
from neuronnet.core.initializers import Gaussian, Zeros
from neuronnet.core.linalg import Matrix, Vector
from neuronnet.core.network import NeuronLayer, NeuronNetwork
from neuronnet.core.strategies import ConstantGradientDescent
from neuronnet.training import pipelines
from neuronnet.training.costs import Quadratic
from neuronnet.training.trainer import NetworkTrainer, draw_mini_batch

W1 = [[0.15, -0.2], [0.25, 0.3]]
B1 = [0.1, -0.1]
W2 = [[0.4, -0.5]]
B2 = [0.05]
X = [0.5, -0.5]
Y = [1.0]


class _RecordingDescent:
    name = "recording"

    def __init__(self):
        self.calls = []

    def modify_network(self, network, mini_batch_iteration, epoch, bias_derivatives, weight_derivatives):
        self.calls.append((mini_batch_iteration, epoch))


class _BatchSizeTrainer(NetworkTrainer):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.batch_sizes = []

    def run_iteration(self, batch):
        self.batch_sizes.append(len(batch))
        return super().run_iteration(batch)


def _canonical_network():
    return NeuronNetwork.from_layers(
        2,
        [
            NeuronLayer(Matrix.from_rows(W1), Vector(B1), Logistic()),
            NeuronLayer(Matrix.from_rows(W2), Vector(B2), Logistic()),
        ],
    )


def _hand_gradients():
    sig = lambda z: 1.0 / (1.0 + np.exp(-z))  # noqa: E731
    w1, b1, w2, b2 = map(np.array, (W1, B1, W2, B2))
    x, y = np.array(X), np.array(Y)
    a1 = sig(w1 @ x + b1)
    a2 = sig(w2 @ a1 + b2)
    delta2 = (a2 - y) * a2 * (1.0 - a2)
    delta1 = (w2.T @ delta2) * a1 * (1.0 - a1)
    cost = 0.5 * float(np.sum((y - a2) ** 2))
    return cost, delta1, np.outer(delta1, x), delta2, np.outer(delta2, a1)


def _samples(n, d_in=2, seed=0):
    rng = np.random.default_rng(seed)
    return [(rng.uniform(-1, 1, d_in), rng.uniform(0, 1, 1)) for _ in range(n)]


def test_canonical_backprop_matches_hand_computation():
    network = _canonical_network()
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.5), [(X, Y)])
    cost, db1, dw1, db2, dw2 = _hand_gradients()

    grads = trainer.compute_gradients([(X, Y)])
    assert grads.cost == pytest.approx(cost)
    assert np.allclose(grads.bias_derivatives[0].values, db1)
    assert np.allclose(grads.weight_derivatives[0].values, dw1)
    assert np.allclose(grads.bias_derivatives[1].values, db2)
    assert np.allclose(grads.weight_derivatives[1].values, dw2)
    assert network[0].weights.tolist() == W1

    returned = trainer.run_iteration([(X, Y)])
    assert returned == pytest.approx(cost)
    assert np.allclose(network[1].weights.values, np.array(W2) - 0.5 * dw2)
    assert np.allclose(network[0].biases.values, np.array(B1) - 0.5 * db1)
    assert trainer.n_iterations == 1


def test_gradients_match_finite_differences():
    network = NeuronNetwork(np.random.default_rng(7), Logistic(), Gaussian(), [3, 4, 2])
    batch = _samples(5, d_in=3, seed=1)
    batch = [(x, np.concatenate([y, 1.0 - y])) for x, y in batch]
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), batch)
    grads = trainer.compute_gradients(batch)

    eps = 1e-6
    weights = network[0].weights.values
    for (row, col) in [(0, 0), (2, 1), (3, 2)]:
        original = weights[row, col]
        weights[row, col] = original + eps
        plus = trainer.compute_gradients(batch).cost
        weights[row, col] = original - eps
        minus = trainer.compute_gradients(batch).cost
        weights[row, col] = original
        numeric = (plus - minus) / (2 * eps)
        assert grads.weight_derivatives[0][row, col] == pytest.approx(numeric, rel=1e-4, abs=1e-8)


def test_epoch_runs_ceil_m_over_n_iterations():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Gaussian(), [2, 3, 1])
    descent = _RecordingDescent()
    trainer = _BatchSizeTrainer(network, Quadratic(), descent, _samples(10))
    costs = trainer.run_epoch(3, np.random.default_rng(1))
    assert len(costs) == math.ceil(10 / 3)
    assert trainer.batch_sizes == [3, 3, 3, 1]
    assert descent.calls == [(0, 0), (1, 0), (2, 0), (3, 0)]
    assert trainer.n_epochs == 1 and trainer.n_iterations == 4

    trainer.batch_sizes.clear()
    trainer.run_epoch(5, np.random.default_rng(2))
    assert trainer.batch_sizes == [5, 5]
    assert descent.calls[-2:] == [(0, 1), (1, 1)]


def test_mini_batches_partition_the_training_set():
    pool = list(range(10))
    rng = np.random.default_rng(3)
    seen = []
    while pool:
        seen.extend(draw_mini_batch(pool, 4, rng))
    assert sorted(seen) == list(range(10))


def test_callback_receives_each_iteration():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Gaussian(), [2, 2, 1])
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), _samples(6))
    seen = []
    costs = trainer.run_epoch(4, np.random.default_rng(0), callback=lambda i, c: seen.append((i, c)))
    assert [i for i, _ in seen] == [1, 2]
    assert [c for _, c in seen] == costs


def test_zero_network_gradient_for_half_targets_vanishes():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Zeros(), [2, 3, 1])
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), [([1.0, 2.0], [0.5])])
    grads = trainer.compute_gradients(trainer.training_samples)
    assert grads.cost == 0.0
    assert all(np.allclose(w.values, 0.0) for w in grads.weight_derivatives)


def test_invalid_epochs_and_shapes_fail_fast():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Gaussian(), [2, 2, 1])
    snapshot = [layer.weights.copy() for layer in network]
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), _samples(4))
    with pytest.raises(InvalidConfiguration):
        trainer.run_epoch(0, np.random.default_rng(0))
    with pytest.raises(ShapeMismatch):
        trainer.run_iteration([([1.0, 2.0, 3.0], [0.0])])
    with pytest.raises(ShapeMismatch):
        trainer.run_iteration([([1.0, 2.0], [0.0, 1.0])])
    assert [layer.weights for layer in network] == snapshot
    empty = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), [])
    with pytest.raises(InvalidConfiguration):
        empty.run_epoch(2, np.random.default_rng(0))
    with pytest.raises(InvalidConfiguration):
        NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), [], workers=0)


def test_parallel_workers_match_sequential_gradients():
    batch = _samples(11, seed=4)
    results = []
    for workers in (1, 3):
        network = NeuronNetwork(np.random.default_rng(5), Logistic(), Gaussian(), [2, 4, 1])
        trainer = NetworkTrainer(
            network, Quadratic(), ConstantGradientDescent(0.1), batch, workers=workers
        )
        results.append(trainer.compute_gradients(batch))
    sequential, parallel = results
    assert parallel.cost == pytest.approx(sequential.cost, rel=1e-12)
    for a, b in zip(sequential.weight_derivatives, parallel.weight_derivatives):
        assert a.allclose(b)
    for a, b in zip(sequential.bias_derivatives, parallel.bias_derivatives):
        assert a.allclose(b)


def test_structural_edit_resets_iteration_counter():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Gaussian(), [2, 3, 1])
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), _samples(6))
    trainer.run_epoch(2, np.random.default_rng(0))
    assert trainer.n_iterations == 3
    network.resize_layer(0, 5)
    grads = trainer.compute_gradients(trainer.training_samples[:2])
    assert trainer.n_iterations == 0
    assert grads.weight_derivatives[0].shape == (5, 2)
    trainer.run_epoch(2, np.random.default_rng(1))
    assert trainer.n_epochs == 2


def test_validate_reports_cost_and_accuracy():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Zeros(), [2, 1])
    samples = [([0.0, 0.0], [1.0]), ([1.0, 1.0], [0.0])]
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), samples, samples)
    metrics = trainer.validate()
    assert metrics["cost"] == pytest.approx(0.125)
    assert metrics["accuracy"] == pytest.approx(0.5)


def test_trainer_pipeline_produces_artifacts(tmp_path):
    config = {
        "data": {"name": "sine", "options": {"freq": 1, "n_points": 32, "seed": 0}},
        "model": {"hidden": [4], "activation": "logistic", "initializer": {"name": "gaussian"}},
        "train": {
            "epochs": 2,
            "batch_size": 5,
            "seed": 11,
            "lr": 0.5,
            "run_dir": str(tmp_path / "run"),
            "enable_plots": False,
        },
    }

    result = pipelines.run_pipeline(config)
    assert result.epochs == 2
    # 26 training samples in batches of 5
    assert result.iterations == 2 * 6
    assert Path(result.metrics_path).exists()
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 11
    assert manifest["network_shape"] == [1, 4, 1]
    assert manifest["dataset"]["name"] == "sine"

    metrics = [
        json.loads(line) for line in Path(result.metrics_path).read_text().splitlines() if line
    ]
    assert len(metrics) == result.iterations
    first = metrics[0]
    assert first["split"] == "train" and first["seed"] == 11
    assert "sha" in first
    assert all("cost" in entry for entry in metrics)
    assert metrics[-1]["cost"] == pytest.approx(result.final_cost)

    run_dir = Path(config["train"]["run_dir"])
    assert (run_dir / "metrics_train.csv").exists()
    val_lines = (run_dir / "metrics_val.jsonl").read_text().splitlines()
    assert len(val_lines) == 2
    assert set(result.validation) == {"cost", "mae", "rmse"}


def test_unknown_variant_names_are_rejected(tmp_path):
    config = pipelines.load_preset("xor-logistic")
    config["train"]["gradient_descent"] = "adam"
    config["train"]["run_dir"] = str(tmp_path / "run")
    with pytest.raises(InvalidConfiguration):
        pipelines.run_pipeline(config)
    with pytest.raises(InvalidConfiguration):
        pipelines.load_preset("missing")


def test_direct_layer_resize_invalidates_trainer_buffers():
    network = NeuronNetwork(np.random.default_rng(0), Logistic(), Gaussian(), [2, 3, 1])
    trainer = NetworkTrainer(network, Quadratic(), ConstantGradientDescent(0.1), _samples(6))
    trainer.run_epoch(2, np.random.default_rng(0))
    assert trainer.n_iterations == 3

    network[1].resize(2, 3)
    grads = trainer.compute_gradients([([0.1, 0.2], [1.0, 0.0])])
    assert network.revision == 0
    assert trainer.n_iterations == 0
    assert len(grads.bias_derivatives[1]) == 2
    assert grads.weight_derivatives[1].shape == (2, 3)


def test_unexpected_initializer_options_are_rejected(tmp_path):
    config = pipelines.load_preset("xor-logistic")
    config["model"]["initializer"] = {"name": "zeros", "mean": 0.0, "stddev": 1.0}
    config["train"]["run_dir"] = str(tmp_path / "run")
    with pytest.raises(InvalidConfiguration, match="zeros"):
        pipelines.run_pipeline(config)
