"""
Combinators - build new generators from existing ones

Every combinator returns a new Generator whose parameter captures the
source's (step, param, initial state) and whose state composes the source's
state. No combinator mutates a source, buffers its output, or hides its
exhaustion behind a synthetic value.
"""
import math
import time
import random
import numbers
import builtins
from typing import Any, Callable, Optional

from .base import EXHAUSTED, Generator
from .producers import iterate
from ..runner_engine.error_handler import ArgumentError


def _source(obj: Any) -> Generator:
    return iterate(obj)


def _map_step(param, state):
    fn, gen, gen_param = param
    result = gen(gen_param, state)
    if result is EXHAUSTED:
        return EXHAUSTED
    state, value = result
    return state, fn(value)


def map(fn: Callable[[Any], Any], gen) -> Generator:
    """Lazily apply ``fn`` to every value of ``gen``"""
    gen = _source(gen)
    return Generator(_map_step, (fn, gen.gen, gen.param), gen.state)


def _filter_step(param, state):
    predicate, gen, gen_param = param
    while True:
        result = gen(gen_param, state)
        if result is EXHAUSTED:
            return EXHAUSTED
        state, value = result
        if predicate(value):
            return state, value


def filter(predicate: Callable[[Any], bool], gen) -> Generator:
    """Skip the values of ``gen`` for which ``predicate`` is false"""
    gen = _source(gen)
    return Generator(_filter_step, (predicate, gen.gen, gen.param), gen.state)


remove_if = filter


def grep(regexp_or_predicate, gen) -> Generator:
    """Filter by predicate, or by regular expression search when given a string"""
    if isinstance(regexp_or_predicate, str):
        import re
        pattern = re.compile(regexp_or_predicate)
        return filter(lambda value: isinstance(value, str) and pattern.search(value) is not None, gen)
    return filter(regexp_or_predicate, gen)


def _zip_step(param, state):
    new_state = []
    values = []
    exhausted = False
    # All sources are pulled once per step, even after one of them ends
    for (gen, gen_param), sub_state in builtins.zip(param, state):
        result = gen(gen_param, sub_state)
        if result is EXHAUSTED:
            exhausted = True
            continue
        new_state.append(result[0])
        values.append(result[1])
    if exhausted:
        return EXHAUSTED
    return tuple(new_state), tuple(values)


def zip(*gens) -> Generator:
    """Tuples of the i-th values of every source, truncated to the shortest one"""
    sources = [_source(g) for g in gens]
    if not sources:
        raise ArgumentError("zip: at least one generator is required")
    return Generator(
        _zip_step,
        tuple((g.gen, g.param) for g in sources),
        tuple(g.state for g in sources)
    )


def _chain_step(param, state):
    i, sub_state = state
    while i < len(param):
        gen, gen_param, _ = param[i]
        result = gen(gen_param, sub_state)
        if result is not EXHAUSTED:
            return (i, result[0]), result[1]
        i += 1
        if i < len(param):
            sub_state = param[i][2]
    return EXHAUSTED


def chain(*gens) -> Generator:
    """Exhaust each source in turn, left to right"""
    sources = [_source(g) for g in gens]
    if not sources:
        raise ArgumentError("chain: at least one generator is required")
    return Generator(
        _chain_step,
        tuple((g.gen, g.param, g.state) for g in sources),
        (0, sources[0].state)
    )


def _cycle_step(param, state):
    gen, gen_param, initial_state = param
    result = gen(gen_param, state)
    if result is not EXHAUSTED:
        return result
    # Restart from the saved initial state; an empty source stays empty
    return gen(gen_param, initial_state)


def cycle(gen) -> Generator:
    """
    Replay ``gen`` indefinitely by restarting from its initial state once it
    is exhausted. Constant space: nothing is buffered, so the source must be
    pure given its state.
    """
    gen = _source(gen)
    return Generator(_cycle_step, (gen.gen, gen.param, gen.state), gen.state)


def _take_n_step(param, state):
    n, gen, gen_param = param
    i, sub_state = state
    if i >= n:
        return EXHAUSTED
    result = gen(gen_param, sub_state)
    if result is EXHAUSTED:
        return EXHAUSTED
    return (i + 1, result[0]), result[1]


def take_n(n: int, gen) -> Generator:
    """First ``n`` values of ``gen``; the source is not pulled past the limit"""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise ArgumentError(f"take_n: n must be a non-negative integer, got {n!r}")
    gen = _source(gen)
    return Generator(_take_n_step, (n, gen.gen, gen.param), (0, gen.state))


def _take_while_step(param, state):
    predicate, gen, gen_param = param
    result = gen(gen_param, state)
    if result is EXHAUSTED or not predicate(result[1]):
        return EXHAUSTED
    return result


def take_while(predicate: Callable[[Any], bool], gen) -> Generator:
    """Values of ``gen`` up to, not including, the first one failing ``predicate``"""
    gen = _source(gen)
    return Generator(_take_while_step, (predicate, gen.gen, gen.param), gen.state)


def take(n_or_predicate, gen) -> Generator:
    if callable(n_or_predicate):
        return take_while(n_or_predicate, gen)
    return take_n(n_or_predicate, gen)


def _drop_n_step(param, state):
    gen, gen_param = param
    remaining, sub_state = state
    while remaining > 0:
        result = gen(gen_param, sub_state)
        if result is EXHAUSTED:
            return EXHAUSTED
        sub_state = result[0]
        remaining -= 1
    result = gen(gen_param, sub_state)
    if result is EXHAUSTED:
        return EXHAUSTED
    return (0, result[0]), result[1]


def drop_n(n: int, gen) -> Generator:
    """Skip the first ``n`` values of ``gen``, lazily on the first pull"""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise ArgumentError(f"drop_n: n must be a non-negative integer, got {n!r}")
    gen = _source(gen)
    return Generator(_drop_n_step, (gen.gen, gen.param), (n, gen.state))


def _drop_while_step(param, state):
    predicate, gen, gen_param = param
    dropping, sub_state = state
    while True:
        result = gen(gen_param, sub_state)
        if result is EXHAUSTED:
            return EXHAUSTED
        sub_state, value = result
        if not dropping or not predicate(value):
            return (False, sub_state), value


def drop_while(predicate: Callable[[Any], bool], gen) -> Generator:
    """Skip values of ``gen`` while ``predicate`` holds, then yield the rest"""
    gen = _source(gen)
    return Generator(_drop_while_step, (predicate, gen.gen, gen.param), (True, gen.state))


def drop(n_or_predicate, gen) -> Generator:
    if callable(n_or_predicate):
        return drop_while(n_or_predicate, gen)
    return drop_n(n_or_predicate, gen)


def span(n_or_predicate, gen):
    """Split ``gen`` into ``(take(...), drop(...))``"""
    return take(n_or_predicate, gen), drop(n_or_predicate, gen)


split = span
split_at = span


def partition(predicate: Callable[[Any], bool], gen):
    """Two generators: values satisfying ``predicate`` and the others"""
    return filter(predicate, gen), filter(lambda value: not predicate(value), gen)


def _enumerate_step(param, state):
    gen, gen_param = param
    i, sub_state = state
    result = gen(gen_param, sub_state)
    if result is EXHAUSTED:
        return EXHAUSTED
    return (i + 1, result[0]), (i, result[1])


def enumerate(gen) -> Generator:
    """Pairs ``(i, value)`` numbered from 0"""
    gen = _source(gen)
    return Generator(_enumerate_step, (gen.gen, gen.param), (0, gen.state))


def intersperse(x: Any, gen) -> Generator:
    """Yield ``v1, x, v2, x, v3``: ``x`` between consecutive values"""
    gen = _source(gen)
    return Generator(
        _intersperse_step,
        (x, gen.gen, gen.param),
        (False, None, gen.state)
    )


def _intersperse_step(param, state):
    x, gen, gen_param = param
    started, buffered, sub_state = state
    if buffered is not None:
        return (True, None, sub_state), buffered[0]
    result = gen(gen_param, sub_state)
    if result is EXHAUSTED:
        return EXHAUSTED
    sub_state, value = result
    if not started:
        return (True, None, sub_state), value
    return (True, (value,), sub_state), x


def time_limit(gen, duration) -> Generator:
    """
    Stop producing values once ``duration`` seconds have elapsed since
    construction. The pull that observes the deadline still returns the
    source's value; every later pull is exhausted, and the limit never resets.
    """
    if not isinstance(duration, numbers.Real) or isinstance(duration, bool) or duration == 0 or math.isnan(duration):
        raise ArgumentError(f"bad argument with duration to time_limit: {duration!r}")

    gen = _source(gen)
    source_step, source_param = gen.gen, gen.param
    start_time = time.monotonic()
    tripped = [False]

    def _time_limit_step(param, state):
        if tripped[0]:
            return EXHAUSTED
        tripped[0] = time.monotonic() - start_time >= duration
        return source_step(source_param, state)

    return Generator(_time_limit_step, duration, gen.state)


def _mix_step(param, state):
    rng, sources = param
    live = [i for i, sub_state in builtins.enumerate(state) if sub_state is not _DONE]
    while live:
        i = rng.choice(live)
        gen, gen_param = sources[i]
        result = gen(gen_param, state[i])
        if result is EXHAUSTED:
            state = state[:i] + (_DONE,) + state[i + 1:]
            live.remove(i)
            continue
        return state[:i] + (result[0],) + state[i + 1:], result[1]
    return EXHAUSTED


class _Done:
    def __repr__(self) -> str:
        return '<done>'


_DONE = _Done()


def mix(*gens, rng: Optional[random.Random] = None) -> Generator:
    """
    A random mixture of several generators: every pull picks one live source
    uniformly at random. Exhausted sources drop out of the mix, which ends
    when all of them have ended.
    """
    sources = [_source(g) for g in gens]
    if not sources:
        raise ArgumentError("mix: at least one generator is required")
    rng = rng or random.Random()
    return Generator(
        _mix_step,
        (rng, tuple((g.gen, g.param) for g in sources)),
        tuple(g.state for g in sources)
    )


def _flip_flop_step(param, state):
    turn, states = state
    gen, gen_param = param[turn]
    result = gen(gen_param, states[turn])
    if result is EXHAUSTED:
        return EXHAUSTED
    states = states[:turn] + (result[0],) + states[turn + 1:]
    return (1 - turn, states), result[1]


def flip_flop(a, b) -> Generator:
    """Emit from A, then B, then A again, ...; stop as soon as either ends"""
    a, b = _source(a), _source(b)
    return Generator(_flip_flop_step, ((a.gen, a.param), (b.gen, b.param)), (0, (a.state, b.state)))
