import numpy as np
import pytest

from neuronnet.core.errors import DataUnavailable, InvalidConfiguration
from neuronnet.data.registry import available_datasets, get_dataset
from neuronnet.data.utils import deterministic_split, one_hot


def test_builtin_datasets_are_registered():
    assert {"xor", "blobs", "sine", "npz"} <= set(available_datasets())
    with pytest.raises(InvalidConfiguration):
        get_dataset("imagenet")


def test_xor_truth_table():
    spec = get_dataset("xor")
    assert spec.splits == {"train": 4, "val": 4}
    pairs = {tuple(s.inputs.tolist()): s.expected.tolist() for s in spec.training}
    assert pairs[(0.0, 1.0)] == [1.0]
    assert pairs[(1.0, 1.0)] == [0.0]


def test_blobs_one_hot_targets():
    spec = get_dataset("blobs", n_points=30, num_classes=3, seed=1, val_split=0.2)
    assert spec.data_spec.d_in == 2 and spec.data_spec.d_out == 3
    assert spec.splits == {"train": 24, "val": 6}
    for sample in spec.training:
        assert sorted(sample.expected.tolist()) == [0.0, 0.0, 1.0]


def test_sine_targets_stay_in_logistic_range():
    spec = get_dataset("sine", n_points=40, freq=2, seed=3)
    targets = np.array([s.expected.tolist() for s in spec.training + spec.validation])
    assert targets.shape == (40, 1)
    assert np.all((targets >= 0.0) & (targets <= 1.0))


def test_npz_loader_reads_arrays(tmp_path):
    path = tmp_path / "data.npz"
    inputs = np.arange(20, dtype=np.float64).reshape(10, 2)
    targets = (inputs.sum(axis=1) > 10).astype(np.float64)
    np.savez(path, inputs=inputs, targets=targets)
    spec = get_dataset("npz", path=path, task_type="binary", val_split=0.2, seed=0)
    assert spec.data_spec.d_in == 2 and spec.data_spec.d_out == 1
    assert spec.splits == {"train": 8, "val": 2}
    assert spec.provenance["local_path"] == str(path)


def test_npz_loader_reports_missing_data(tmp_path):
    with pytest.raises(DataUnavailable):
        get_dataset("npz", path=tmp_path / "absent.npz")
    path = tmp_path / "partial.npz"
    np.savez(path, inputs=np.zeros((3, 2)))
    with pytest.raises(DataUnavailable):
        get_dataset("npz", path=path)
    with pytest.raises(DataUnavailable):
        get_dataset("npz")


def test_split_and_one_hot_helpers():
    split = deterministic_split(10, val_split=0.3, seed=5)
    assert split.sizes == {"train": 7, "val": 3}
    assert sorted(np.concatenate([split.train, split.val]).tolist()) == list(range(10))
    again = deterministic_split(10, val_split=0.3, seed=5)
    assert split.val.tolist() == again.val.tolist()
    assert one_hot(np.array([2, 0]), 3).tolist() == [[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]]
