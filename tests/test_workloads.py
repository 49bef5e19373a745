"""
Tests for built-in workloads
"""
import random
import pytest

from opstream.workloads import list_append_gen, build_workload, WORKLOADS
from opstream.runner_engine.error_handler import ArgumentError


def test_list_append_shape():
    """Test every template is a single micro-operation transaction"""
    for op in list_append_gen(keys=3, rng=random.Random(1)).take(200):
        assert op['f'] == "txn"
        assert len(op['value']) == 1
        mop, key, val = op['value'][0]
        assert mop in ("append", "r")
        assert key in (0, 1, 2)
        if mop == "r":
            assert val is None


def test_append_values_are_unique():
    ops = list_append_gen(rng=random.Random(2)).take(500).to_list()
    appended = [op['value'][0][2] for op in ops if op['value'][0][0] == "append"]
    assert len(appended) == len(set(appended))
    assert len(appended) > 0


def test_read_ratio_extremes():
    reads = list_append_gen(read_ratio=1, rng=random.Random(3)).take(50)
    assert all(op['value'][0][0] == "r" for op in reads)
    appends = list_append_gen(read_ratio=0, rng=random.Random(3)).take(50)
    assert all(op['value'][0][0] == "append" for op in appends)


def test_reproducible_with_seeded_rng():
    a = list_append_gen(rng=random.Random(9)).take(50).to_list()
    b = list_append_gen(rng=random.Random(9)).take(50).to_list()
    assert a == b


@pytest.mark.parametrize("kwargs", [
    {'keys': 0},
    {'keys': True},
    {'read_ratio': 1.5},
    {'read_ratio': "half"},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(ArgumentError):
        list_append_gen(**kwargs)


def test_build_workload():
    """Test workloads are built by name with a seeded rng"""
    assert 'list-append' in WORKLOADS
    a = build_workload('list-append', {'keys': 2}, seed=4).take(20).to_list()
    b = build_workload('list-append', {'keys': 2}, seed=4).take(20).to_list()
    assert a == b


def test_build_unknown_workload():
    with pytest.raises(ArgumentError):
        build_workload('bank')


def test_build_workload_bad_params():
    with pytest.raises(ArgumentError):
        build_workload('list-append', {'tables': 3})
