"""
Operation Source - the shared generator cursor, index counter and history

Pulling from the shared generator, allocating an index and appending to the
history happen under one lock, so history order equals index order and no
two workers ever observe the same generator state transition.
"""
import time
import logging
import threading
from typing import Optional

from ..generator.base import EXHAUSTED, Generator
from ..models import Operation, OpType
from .history import History

logger = logging.getLogger(__name__)

INDEX_BASE = 1


class OperationSource:
    """Synchronized entry point workers use to obtain and record operations"""

    def __init__(self, generator: Generator, history: Optional[History] = None, index_base: int = INDEX_BASE):
        self._step, self._param, self._state = generator.unwrap()
        self.history = history if history is not None else History()
        self._next_index = index_base
        self._exhausted = False
        self.abort_reason: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def _allocate_index(self) -> int:
        index = self._next_index
        self._next_index += 1
        return index

    def next_invocation(self, process: int) -> Optional[Operation]:
        """
        Pull the next template, stamp it as an invoke for ``process`` and
        append it to the history. Returns None once the generator is
        exhausted; it is not pulled again after that. Errors raised by the
        generator propagate to the caller.
        """
        with self._lock:
            if self._exhausted:
                return None

            result = self._step(self._param, self._state)
            if result is EXHAUSTED:
                self._exhausted = True
                logger.debug(f"Generator exhausted at index {self._next_index}")
                return None

            self._state, template = result
            operation = Operation.from_template(template)
            operation.type = OpType.INVOKE
            operation.process = process
            operation.index = self._allocate_index()
            operation.time = time.monotonic_ns()
            self.history.append(operation)
            return operation

    def record_completion(self, process: int, completion: Operation) -> Operation:
        """Stamp a completion with the next index, ``process`` and the current time, then append it"""
        with self._lock:
            completion.process = process
            completion.index = self._allocate_index()
            completion.time = time.monotonic_ns()
            self.history.append(completion)
            return completion

    @property
    def aborted(self) -> bool:
        return self.abort_reason is not None

    def abort(self, reason: str) -> None:
        """
        Stop handing out operations. Workers finish the invoke they have in
        flight and see exhaustion on their next pull.
        """
        with self._lock:
            if self.abort_reason is None:
                self.abort_reason = reason
                logger.warning(f"Operation source aborted: {reason}")
            self._exhausted = True
