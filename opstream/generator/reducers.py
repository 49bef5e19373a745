"""
Reducers - consume a generator into a single result

These run a private cursor from the generator's initial state, so they never
disturb a generator shared with a running test. Reducing an infinite
generator does not terminate unless the reducer can short-circuit.
"""
from typing import Any, Callable, Dict, List, Optional

from .base import EXHAUSTED
from .producers import iterate


def each(fn: Callable[[Any], Any], gen) -> None:
    """Call ``fn`` for every value"""
    for value in iterate(gen):
        fn(value)


for_each = each
foreach = each


def foldl(accfn: Callable[[Any, Any], Any], initval: Any, gen) -> Any:
    """Reduce from left to right with ``accfn(acc, value)``"""
    acc = initval
    for value in iterate(gen):
        acc = accfn(acc, value)
    return acc


reduce = foldl


def length(gen) -> int:
    count = 0
    for _ in iterate(gen):
        count += 1
    return count


def to_list(gen) -> List[Any]:
    return list(iterate(gen))


totable = to_list


def to_dict(gen) -> Dict[Any, Any]:
    """Build a dict from a generator of ``(key, value)`` pairs"""
    return {key: value for key, value in iterate(gen)}


tomap = to_dict


def all(predicate: Callable[[Any], bool], gen) -> bool:
    for value in iterate(gen):
        if not predicate(value):
            return False
    return True


every = all


def any(predicate: Callable[[Any], bool], gen) -> bool:
    for value in iterate(gen):
        if predicate(value):
            return True
    return False


some = any


def is_null(gen) -> bool:
    """True if the generator yields nothing"""
    gen = iterate(gen)
    return gen.pull(gen.state) is EXHAUSTED


def is_prefix_of(prefix, gen) -> bool:
    """True if every value of ``prefix`` matches the start of ``gen``"""
    prefix, gen = iterate(prefix), iterate(gen)
    prefix_state, gen_state = prefix.state, gen.state
    while True:
        prefix_result = prefix.pull(prefix_state)
        if prefix_result is EXHAUSTED:
            return True
        gen_result = gen.pull(gen_state)
        if gen_result is EXHAUSTED or prefix_result[1] != gen_result[1]:
            return False
        prefix_state, gen_state = prefix_result[0], gen_result[0]


def index(x: Any, gen) -> Optional[int]:
    """0-based position of the first value equal to ``x``, or None"""
    for i, value in enumerate(iterate(gen)):
        if value == x:
            return i
    return None


index_of = index
elem_index = index


def indexes(x: Any, gen) -> List[int]:
    """0-based positions of every value equal to ``x``"""
    return [i for i, value in enumerate(iterate(gen)) if value == x]


indices = indexes
elem_indexes = indexes
