"""
Generator base - the (step, param, state) triple behind every operation stream

A generator is a pure step function, an opaque parameter and an initial
state. Calling ``step(param, state)`` returns either ``(new_state, value)`` or
the ``EXHAUSTED`` sentinel. Generators never hold a cursor of their own: the
consumer keeps the current state, so the same generator can be iterated any
number of times and shared by reference between workers.

Combinators build new generators around the step function of their source.
A combinator that replays its source (``cycle``) is only correct when the
source is pure given its state; generators that read the clock or a random
number generator are valid but not replayable.
"""
from typing import Any, Callable, Tuple, Union


class _Exhausted:
    """Sentinel returned by a step function when the sequence has ended"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return '<exhausted>'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Exhausted, ())


EXHAUSTED = _Exhausted()

StepResult = Union[Tuple[Any, Any], _Exhausted]
StepFunction = Callable[[Any, Any], StepResult]


def nil_step(param: Any, state: Any) -> StepResult:
    """Step function of the empty generator"""
    return EXHAUSTED


class Generator:
    """Lazy, pull-based, possibly infinite sequence of values"""

    __slots__ = ('gen', 'param', 'state')

    def __init__(self, gen: StepFunction, param: Any = None, state: Any = None):
        self.gen = gen
        self.param = param
        self.state = state

    def __call__(self, param: Any, state: Any) -> StepResult:
        return self.gen(param, state)

    def __repr__(self) -> str:
        return '<generator>'

    def __iter__(self):
        state = self.state
        while True:
            result = self.gen(self.param, state)
            if result is EXHAUSTED:
                return
            state, value = result
            yield value

    def unwrap(self) -> Tuple[StepFunction, Any, Any]:
        return self.gen, self.param, self.state

    def pull(self, state: Any) -> StepResult:
        """Advance from ``state``: returns ``(new_state, value)`` or EXHAUSTED"""
        return self.gen(self.param, state)

    # Chaining methods delegate to the module-level functions, which take the
    # source generator as their last argument.

    def map(self, fn):
        from .combinators import map as _map
        return _map(fn, self)

    def filter(self, predicate):
        from .combinators import filter as _filter
        return _filter(predicate, self)

    remove_if = filter

    def zip(self, *others):
        from .combinators import zip as _zip
        return _zip(self, *others)

    def chain(self, *others):
        from .combinators import chain as _chain
        return _chain(self, *others)

    def cycle(self):
        from .combinators import cycle as _cycle
        return _cycle(self)

    def take(self, n_or_predicate):
        from .combinators import take as _take
        return _take(n_or_predicate, self)

    def take_n(self, n):
        from .combinators import take_n as _take_n
        return _take_n(n, self)

    def take_while(self, predicate):
        from .combinators import take_while as _take_while
        return _take_while(predicate, self)

    def drop(self, n_or_predicate):
        from .combinators import drop as _drop
        return _drop(n_or_predicate, self)

    def drop_n(self, n):
        from .combinators import drop_n as _drop_n
        return _drop_n(n, self)

    def drop_while(self, predicate):
        from .combinators import drop_while as _drop_while
        return _drop_while(predicate, self)

    def span(self, n_or_predicate):
        from .combinators import span as _span
        return _span(n_or_predicate, self)

    split = span

    def partition(self, predicate):
        from .combinators import partition as _partition
        return _partition(predicate, self)

    def enumerate(self):
        from .combinators import enumerate as _enumerate
        return _enumerate(self)

    def intersperse(self, x):
        from .combinators import intersperse as _intersperse
        return _intersperse(x, self)

    def time_limit(self, duration):
        from .combinators import time_limit as _time_limit
        return _time_limit(self, duration)

    def each(self, fn):
        from .reducers import each as _each
        return _each(fn, self)

    for_each = each

    def foldl(self, accfn, initval):
        from .reducers import foldl as _foldl
        return _foldl(accfn, initval, self)

    reduce = foldl

    def length(self):
        from .reducers import length as _length
        return _length(self)

    def to_list(self):
        from .reducers import to_list as _to_list
        return _to_list(self)

    def to_dict(self):
        from .reducers import to_dict as _to_dict
        return _to_dict(self)

    def all(self, predicate):
        from .reducers import all as _all
        return _all(predicate, self)

    every = all

    def any(self, predicate):
        from .reducers import any as _any
        return _any(predicate, self)

    some = any

    def is_null(self):
        from .reducers import is_null as _is_null
        return _is_null(self)

    def is_prefix_of(self, other):
        from .reducers import is_prefix_of as _is_prefix_of
        return _is_prefix_of(self, other)

    def index(self, x):
        from .reducers import index as _index
        return _index(x, self)

    index_of = index

    def indexes(self, x):
        from .reducers import indexes as _indexes
        return _indexes(x, self)


def wrap(gen: StepFunction, param: Any = None, state: Any = None) -> Generator:
    """Build a generator from a raw step function"""
    return Generator(gen, param, state)


def unwrap(generator: Generator) -> Tuple[StepFunction, Any, Any]:
    return generator.unwrap()
