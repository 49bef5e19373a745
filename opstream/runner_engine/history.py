"""
History - append-only, thread-visible log of operation events
"""
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union

from ..interfaces import IHistory
from ..models import Operation, OpType

logger = logging.getLogger(__name__)

HISTORY_JSON = "history.json"
HISTORY_TXT = "history.txt"


class History(IHistory):
    """
    Ordered sequence of invoke and completion records.
    Records are only ever appended; readers get copies.
    """

    def __init__(self):
        self._operations: List[Operation] = []
        self._lock = threading.Lock()

    def append(self, operation: Operation) -> None:
        with self._lock:
            self._operations.append(operation)

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __getitem__(self, i: int) -> Operation:
        return self._operations[i]

    @property
    def operations(self) -> List[Operation]:
        with self._lock:
            return list(self._operations)

    def invocations(self) -> List[Operation]:
        return [op for op in self.operations if op.type == OpType.INVOKE]

    def completions(self) -> List[Operation]:
        return [op for op in self.operations if op.type is not None and op.type.is_completion]

    def pairs(self) -> List[Tuple[Operation, Operation]]:
        """
        Match every invoke with the next completion of the same process.
        Raises ValueError when a completion has no pending invoke or an
        invoke is never completed.
        """
        pending: Dict[int, Operation] = {}
        matched = []
        for op in self.operations:
            if op.type == OpType.INVOKE:
                if op.process in pending:
                    raise ValueError(f"Process {op.process} invoked index {op.index} "
                                     f"while index {pending[op.process].index} is pending")
                pending[op.process] = op
            else:
                invoke = pending.pop(op.process, None)
                if invoke is None:
                    raise ValueError(f"Completion at index {op.index} has no matching invoke")
                matched.append((invoke, op))
        if pending:
            indexes = sorted(op.index for op in pending.values())
            raise ValueError(f"Invocations without completion: {indexes}")
        return matched

    def to_dicts(self) -> List[Dict]:
        return [op.to_dict() for op in self.operations]

    def to_text(self) -> str:
        return "\n".join(op.to_string() for op in self.operations) + "\n"

    def save(self, directory: Union[str, Path]) -> Dict[str, str]:
        """Write history.json and history.txt; returns the paths written"""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        json_path = directory / HISTORY_JSON
        txt_path = directory / HISTORY_TXT

        with open(json_path, 'w') as f:
            json.dump(self.to_dicts(), f, indent=2, default=str)
        txt_path.write_text(self.to_text())

        logger.info(f"History with {len(self)} records written to {directory}")
        return {'json': str(json_path), 'text': str(txt_path)}

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'History':
        """Read a history back from its history.json form"""
        with open(path, 'r') as f:
            records = json.load(f)

        history = cls()
        for record in records:
            history.append(Operation.from_dict(record))
        return history
