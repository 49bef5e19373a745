"""
Core data models for the operation stream harness
"""
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional
from enum import Enum


class OpType(Enum):
    """Lifecycle phase of a history event"""
    INVOKE = "invoke"
    OK = "ok"
    FAIL = "fail"
    INFO = "info"  # Indeterminate outcome

    @property
    def is_completion(self) -> bool:
        return self is not OpType.INVOKE


@dataclass
class Operation:
    """A single invoke or completion record exchanged between generator, worker and client"""
    f: Any = None
    value: Any = None
    type: Optional[OpType] = None
    process: Optional[int] = None
    index: Optional[int] = None
    time: Optional[int] = None  # time.monotonic_ns()
    error: Optional[str] = None

    @classmethod
    def from_template(cls, template: Any) -> 'Operation':
        """
        Build a fresh operation from a value pulled from a generator.
        Accepts an Operation, a mapping with 'f'/'value' keys, or a zero-argument
        callable returning either of those.
        """
        if callable(template):
            template = template()

        if isinstance(template, Operation):
            return cls(f=template.f, value=template.value, error=template.error)
        if isinstance(template, dict):
            return cls(f=template.get('f'), value=template.get('value'))

        raise TypeError(f"Generator produced {type(template).__name__}, expected an operation template")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Operation':
        """Build an operation from its persisted or client-returned mapping form"""
        op_type = data.get('type')
        if op_type is not None and not isinstance(op_type, OpType):
            op_type = OpType(op_type)
        return cls(
            f=data.get('f'),
            value=data.get('value'),
            type=op_type,
            process=data.get('process'),
            index=data.get('index'),
            time=data.get('time'),
            error=data.get('error')
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.type.value if self.type else None,
            'f': self.f,
            'value': self.value,
            'process': self.process,
            'index': self.index,
            'time': self.time
        }
        if self.error is not None:
            data['error'] = self.error
        return data

    def to_string(self) -> str:
        """Human-readable single-line rendering used in logs and history.txt"""
        op_type = self.type.value if self.type else 'nil'
        line = (f"{{:process {self.process}, :type :{op_type}, :f :{self.f}, "
                f":value {self._render(self.value)}, :index {self.index}, :time {self.time}}}")
        if self.error is not None:
            line = line[:-1] + f", :error {self.error!r}}}"
        return line

    @staticmethod
    def _render(value: Any) -> str:
        if value is None:
            return 'nil'
        if isinstance(value, (list, tuple)):
            return '[' + ' '.join(Operation._render(v) for v in value) + ']'
        if isinstance(value, str):
            return f'"{value}"' if ' ' in value else f':{value}'
        return str(value)


class WorkerState(Enum):
    """States of a simulated client process"""
    IDLE = "idle"
    OPENING = "opening"
    SETTING_UP = "setting_up"
    RUNNING = "running"
    TEARING_DOWN = "tearing_down"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunConfig:
    """Configuration for a single run"""
    threads: int = 1
    nodes: List[str] = field(default_factory=lambda: ["localhost"])
    create_reports: bool = True
    keep_history: bool = True
    history_dir: str = "/tmp/opstream/history"
    log_dir: str = "/tmp/opstream/logs"
    seed: Optional[int] = None
    open_attempts: int = 1
    run_id: Optional[str] = None


@dataclass
class WorkerResult:
    """Outcome of one simulated client process"""
    process: int
    address: Optional[str]
    state: WorkerState
    success: bool
    operations_invoked: int = 0
    operations_completed: int = 0
    error_message: Optional[str] = None
    error_category: Optional[str] = None
    error_time: Optional[float] = None
    teardown_errors: List[str] = field(default_factory=list)


@dataclass
class RunResult:
    """Complete run result"""
    run_id: str
    success: bool
    start_time: float
    end_time: float
    worker_results: List[WorkerResult]
    history: Any  # History
    error_message: Optional[str] = None
    seed: Optional[int] = None
    artifacts: Dict[str, str] = field(default_factory=dict)

    @property
    def operations_invoked(self) -> int:
        return sum(w.operations_invoked for w in self.worker_results)


@dataclass
class RunSpec:
    """A run described by a configuration file"""
    config: RunConfig
    workload: str = "list-append"
    workload_params: Dict[str, Any] = field(default_factory=dict)
    client: str = "noop"
    client_params: Dict[str, Any] = field(default_factory=dict)
    time_limit: Optional[float] = None
    ops: Optional[int] = None
