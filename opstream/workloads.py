"""
Built-in workloads - generators of operation templates for common tests
"""
import random
import numbers
from typing import Optional

from .generator import Generator, tabulate
from .runner_engine.error_handler import ArgumentError


def list_append_gen(keys: int = 5, read_ratio: float = 0.5, rng: Optional[random.Random] = None) -> Generator:
    """
    Infinite stream of single micro-operation list-append transactions.

    Each template is ``{"f": "txn", "value": [[mop, key, val]]}`` where mop is
    ``"append"`` with a value unique across the stream, or ``"r"`` with value
    None. Keys are drawn from ``range(keys)``.
    """
    if isinstance(keys, bool) or not isinstance(keys, int) or keys < 1:
        raise ArgumentError(f"keys must be a positive integer, got {keys!r}")
    if isinstance(read_ratio, bool) or not isinstance(read_ratio, numbers.Real) or not 0 <= read_ratio <= 1:
        raise ArgumentError(f"read_ratio must be a number between 0 and 1, got {read_ratio!r}")
    rng = rng or random.Random()

    def op(i):
        key = rng.randrange(keys)
        if rng.random() < read_ratio:
            return {"f": "txn", "value": [["r", key, None]]}
        return {"f": "txn", "value": [["append", key, i + 1]]}

    return tabulate(op)


WORKLOADS = {
    'list-append': list_append_gen,
}


def build_workload(name: str, params: Optional[dict] = None, seed: Optional[int] = None) -> Generator:
    """Look up a registered workload and build its generator"""
    if name not in WORKLOADS:
        raise ArgumentError(f"Unknown workload {name!r}, expected one of {sorted(WORKLOADS)}")
    params = dict(params or {})
    params.setdefault('rng', random.Random(seed))
    try:
        return WORKLOADS[name](**params)
    except TypeError as e:
        raise ArgumentError(f"Invalid parameters for workload {name!r}: {e}")
