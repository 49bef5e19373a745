"""
Producers - finite and infinite source generators
"""
import random
import numbers
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from .base import EXHAUSTED, Generator, nil_step
from ..runner_engine.error_handler import ArgumentError


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _sequence_step(param, state):
    if state >= len(param):
        return EXHAUSTED
    return state + 1, param[state]


def iterate(obj: Any) -> Generator:
    """
    Make a generator from a sequence, a string or a mapping.
    Mappings yield ``(key, value)`` pairs in insertion order. A generator is
    returned unchanged.
    """
    if isinstance(obj, Generator):
        return obj
    if isinstance(obj, Mapping):
        return Generator(_sequence_step, tuple(obj.items()), 0)
    if isinstance(obj, (Sequence, str)):
        return Generator(_sequence_step, obj, 0)
    raise ArgumentError(f"Cannot make a generator from {type(obj).__name__}")


def _range_step(param, state):
    stop, step = param
    if (step > 0 and state > stop) or (step < 0 and state < stop):
        return EXHAUSTED
    return state + step, state


def range(start, stop=None, step=None) -> Generator:
    """
    Arithmetic progression over the closed interval ``[start, stop]``.

    ``range(stop)`` starts at 1 (or -1 when ``stop`` is negative) and
    ``range(0)`` is empty. When ``step`` is omitted it is 1 if
    ``start <= stop`` and -1 otherwise. A zero step is rejected.
    """
    for name, arg in (('start', start), ('stop', stop), ('step', step)):
        if arg is not None and not _is_number(arg):
            raise ArgumentError(f"range: {name} must be a number, got {arg!r}")

    if step is None:
        if stop is None:
            if start == 0:
                return Generator(nil_step)
            stop = start
            start = 1 if stop > 0 else -1
        step = 1 if start <= stop else -1
    elif stop is None:
        raise ArgumentError("range: stop is required when step is given")

    if step == 0:
        raise ArgumentError("range: step must not be zero")

    return Generator(_range_step, (stop, step), start)


def _duplicate_step(param, state):
    return state, param


def duplicate(*values) -> Generator:
    """Repeat the given value (or tuple of values) indefinitely"""
    if not values:
        raise ArgumentError("duplicate: at least one value is required")
    value = values[0] if len(values) == 1 else values
    return Generator(_duplicate_step, value, 0)


xrepeat = duplicate
replicate = duplicate


def _tabulate_step(param, state):
    return state + 1, param(state)


def tabulate(fn: Callable[[int], Any]) -> Generator:
    """Produce ``fn(0)``, ``fn(1)``, ``fn(2)``, ... indefinitely"""
    if not callable(fn):
        raise ArgumentError("tabulate: fn must be callable")
    return Generator(_tabulate_step, fn, 0)


def zeros() -> Generator:
    return duplicate(0)


def ones() -> Generator:
    return duplicate(1)


def _rands_step(param, state):
    rng, low, high = param
    if low is None:
        return state, rng.random()
    return state, rng.randrange(low, high)


def rands(n: Optional[int] = None, m: Optional[int] = None, rng: Optional[random.Random] = None) -> Generator:
    """
    Random samples, indefinitely.

    ``rands()`` yields floats in ``[0, 1)``, ``rands(n)`` integers in
    ``[0, n)`` and ``rands(n, m)`` integers in ``[n, m)``.
    """
    rng = rng or random.Random()
    if n is None:
        if m is not None:
            raise ArgumentError("rands: n is required when m is given")
        return Generator(_rands_step, (rng, None, None), 0)

    if m is None:
        low, high = 0, n
    else:
        low, high = n, m
    if not isinstance(low, int) or not isinstance(high, int):
        raise ArgumentError("rands: bounds must be integers")
    if high <= low:
        raise ArgumentError(f"rands: empty interval [{low}, {high})")
    return Generator(_rands_step, (rng, low, high), 0)
