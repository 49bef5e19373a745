"""
Generator library - lazy, composable operation streams

Typical use::

    from opstream import generator as gen

    w = lambda x: {"f": "w", "value": x}
    r = lambda _: {"f": "r", "value": None}
    ops = gen.rands(0, 2).map(lambda x: r(x) if x == 0 else w(x)).take(100)

A test usually shares one client generator between all of its workers and
bounds it with ``time_limit`` or ``take``.
"""
from .base import EXHAUSTED, Generator, wrap, unwrap
from .producers import (
    iterate, range, duplicate, xrepeat, replicate, tabulate, zeros, ones, rands
)
from .combinators import (
    map, filter, remove_if, grep, zip, chain, cycle,
    take, take_n, take_while, drop, drop_n, drop_while,
    span, split, split_at, partition, enumerate, intersperse,
    time_limit, mix, flip_flop
)
from .reducers import (
    each, for_each, foreach, foldl, reduce, length, to_list, totable,
    to_dict, tomap, all, every, any, some, is_null, is_prefix_of,
    index, index_of, elem_index, indexes, indices, elem_indexes
)

iter = iterate

__all__ = [
    'EXHAUSTED', 'Generator', 'wrap', 'unwrap',
    'iterate', 'iter', 'range', 'duplicate', 'xrepeat', 'replicate', 'tabulate',
    'zeros', 'ones', 'rands',
    'map', 'filter', 'remove_if', 'grep', 'zip', 'chain', 'cycle',
    'take', 'take_n', 'take_while', 'drop', 'drop_n', 'drop_while',
    'span', 'split', 'split_at', 'partition', 'enumerate', 'intersperse',
    'time_limit', 'mix', 'flip_flop',
    'each', 'for_each', 'foreach', 'foldl', 'reduce', 'length', 'to_list', 'totable',
    'to_dict', 'tomap', 'all', 'every', 'any', 'some', 'is_null', 'is_prefix_of',
    'index', 'index_of', 'elem_index', 'indexes', 'indices', 'elem_indexes',
]
