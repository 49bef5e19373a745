"""
Tests for the generator library: producers and reducers
"""
import random
import pytest

from opstream import generator as gen
from opstream.generator import EXHAUSTED, Generator
from opstream.runner_engine.error_handler import ArgumentError


def counting(values):
    """A sequence generator that records how many times its step function ran"""
    calls = []

    def step(param, state):
        calls.append(state)
        if state >= len(param):
            return EXHAUSTED
        return state + 1, param[state]

    return Generator(step, list(values), 0), calls


class TestGeneratorBase:
    """Test the generator triple and the exhaustion sentinel"""

    def test_exhausted_is_falsy_singleton(self):
        """Test EXHAUSTED is a unique falsy sentinel"""
        assert not EXHAUSTED
        assert EXHAUSTED is type(EXHAUSTED)()
        assert repr(EXHAUSTED) == '<exhausted>'

    def test_unwrap_returns_triple(self):
        """Test unwrap exposes step, param and initial state"""
        g = gen.iterate([1, 2])
        step, param, state = g.unwrap()
        assert param == [1, 2]
        assert state == 0
        assert step(param, state) == (1, 1)

    def test_wrap_builds_generator_from_step(self):
        """Test wrap turns a raw step function into a generator"""
        g = gen.wrap(lambda param, state: EXHAUSTED if state >= param else (state + 1, state * 2), 3, 0)
        assert g.to_list() == [0, 2, 4]

    def test_pull_is_pure(self):
        """Test pulling the same state twice gives the same result"""
        g = gen.range(3)
        assert g.pull(g.state) == g.pull(g.state)

    def test_generator_can_be_iterated_repeatedly(self):
        """Test consumers keep their own cursor"""
        g = gen.range(3)
        assert list(g) == [1, 2, 3]
        assert list(g) == [1, 2, 3]


class TestIterate:
    """Test making generators from Python values"""

    def test_list(self):
        assert gen.iterate([1, 2, 3]).to_list() == [1, 2, 3]

    def test_string_yields_characters(self):
        assert gen.iter("abc").to_list() == ['a', 'b', 'c']

    def test_mapping_yields_pairs(self):
        """Test mappings yield (key, value) pairs in insertion order"""
        assert gen.iterate({'a': 1, 'b': 2}).to_list() == [('a', 1), ('b', 2)]

    def test_generator_is_returned_unchanged(self):
        g = gen.range(2)
        assert gen.iterate(g) is g

    def test_empty_sequence(self):
        assert gen.iterate([]).is_null()

    def test_unsupported_type_raises(self):
        """Test values that are not sequences are rejected"""
        with pytest.raises(ArgumentError):
            gen.iterate(42)


class TestRange:
    """Test the closed-interval arithmetic progression"""

    @pytest.mark.parametrize("args,expected", [
        ((5,), [1, 2, 3, 4, 5]),
        ((0,), []),
        ((-3,), [-1, -2, -3]),
        ((2, 6), [2, 3, 4, 5, 6]),
        ((6, 2), [6, 5, 4, 3, 2]),
        ((0, 10, 3), [0, 3, 6, 9]),
        ((1, 2, 0.5), [1, 1.5, 2.0]),
        ((10, 0, -5), [10, 5, 0]),
        ((3, 1, 1), []),
    ])
    def test_range_values(self, args, expected):
        """Test range bounds and step inference"""
        assert gen.range(*args).to_list() == expected

    def test_zero_step_raises(self):
        """Test a zero step is rejected at construction"""
        with pytest.raises(ArgumentError):
            gen.range(1, 5, 0)

    def test_non_numeric_raises(self):
        with pytest.raises(ArgumentError):
            gen.range("5")

    def test_step_without_stop_raises(self):
        with pytest.raises(ArgumentError):
            gen.range(1, step=2)

    def test_argument_error_is_value_error(self):
        """Test ArgumentError can be caught as ValueError"""
        with pytest.raises(ValueError):
            gen.range(1, 5, 0)


class TestInfiniteProducers:
    """Test infinite producers"""

    def test_duplicate_single_value(self):
        assert gen.duplicate(7).take(3).to_list() == [7, 7, 7]

    def test_duplicate_several_values(self):
        """Test several values repeat as one tuple"""
        assert gen.xrepeat(1, 2).take(2).to_list() == [(1, 2), (1, 2)]

    def test_duplicate_requires_value(self):
        with pytest.raises(ArgumentError):
            gen.replicate()

    def test_tabulate(self):
        assert gen.tabulate(lambda i: i * i).take(4).to_list() == [0, 1, 4, 9]

    def test_tabulate_requires_callable(self):
        with pytest.raises(ArgumentError):
            gen.tabulate(5)

    def test_zeros_and_ones(self):
        assert gen.zeros().take(2).to_list() == [0, 0]
        assert gen.ones().take(2).to_list() == [1, 1]

    def test_rands_floats(self):
        """Test rands() yields floats in [0, 1)"""
        values = gen.rands(rng=random.Random(1)).take(50).to_list()
        assert all(isinstance(v, float) and 0 <= v < 1 for v in values)

    def test_rands_upper_bound(self):
        values = gen.rands(3, rng=random.Random(1)).take(100).to_list()
        assert set(values) <= {0, 1, 2}

    def test_rands_interval(self):
        values = gen.rands(5, 8, rng=random.Random(1)).take(100).to_list()
        assert set(values) <= {5, 6, 7}

    def test_rands_is_reproducible_with_seed(self):
        """Test the same seed gives the same samples"""
        a = gen.rands(100, rng=random.Random(42)).take(20).to_list()
        b = gen.rands(100, rng=random.Random(42)).take(20).to_list()
        assert a == b

    @pytest.mark.parametrize("kwargs", [
        {'n': 3, 'm': 3},
        {'n': 5, 'm': 1},
        {'m': 3},
        {'n': 1.5},
    ])
    def test_rands_invalid_bounds(self, kwargs):
        """Test empty or non-integer intervals are rejected"""
        with pytest.raises(ArgumentError):
            gen.rands(**kwargs)


class TestReducers:
    """Test reducers"""

    def test_foldl(self):
        assert gen.foldl(lambda acc, x: acc + x, 0, gen.range(4)) == 10
        assert gen.range(4).reduce(lambda acc, x: acc * x, 1) == 24

    def test_each(self):
        seen = []
        gen.each(seen.append, "ab")
        assert seen == ['a', 'b']

    def test_length(self):
        assert gen.length("abc") == 3
        assert gen.range(0).length() == 0

    def test_to_list_and_to_dict(self):
        assert gen.totable(gen.range(2)) == [1, 2]
        assert gen.zip("ab", gen.range(2)).to_dict() == {'a': 1, 'b': 2}
        assert gen.tomap({'x': 1}) == {'x': 1}

    def test_all_and_any(self):
        assert gen.all(lambda x: x > 0, gen.range(3))
        assert not gen.every(lambda x: x > 1, gen.range(3))
        assert gen.any(lambda x: x == 2, gen.range(3))
        assert not gen.some(lambda x: x > 5, gen.range(3))

    def test_any_short_circuits_infinite_generator(self):
        """Test any stops at the first match of an infinite source"""
        assert gen.tabulate(lambda i: i).any(lambda x: x > 3)

    def test_is_null(self):
        assert gen.is_null(gen.range(0))
        assert not gen.is_null([None])

    def test_is_prefix_of(self):
        assert gen.is_prefix_of([1, 2], gen.range(5))
        assert not gen.is_prefix_of([1, 3], gen.range(5))
        assert not gen.is_prefix_of([1, 2, 3], [1, 2])
        assert gen.iterate([]).is_prefix_of([1])

    def test_index(self):
        """Test positions are 0-based and missing values give None"""
        assert gen.index(3, gen.range(5)) == 2
        assert gen.index_of(9, [1]) is None
        assert gen.elem_index('b', "abc") == 1

    def test_indexes(self):
        assert gen.indexes('a', "abca") == [0, 3]
        assert gen.indices('z', "abc") == []

    def test_reducers_do_not_disturb_source(self):
        """Test reducing a generator leaves it reusable"""
        g = gen.range(3)
        assert g.length() == 3
        assert g.to_list() == [1, 2, 3]

    def test_counting_helper(self):
        g, calls = counting([1, 2])
        assert g.to_list() == [1, 2]
        assert len(calls) == 3
