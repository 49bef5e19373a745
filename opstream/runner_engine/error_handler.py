"""
Error Handler - Error taxonomy, retry with backoff and error bookkeeping

Operation-level failures are recovered locally and turned into history data.
Lifecycle, protocol and generator errors terminate the affected worker and
are surfaced to the coordinator.
"""
import time
import random
import logging
import threading
from collections import Counter
from typing import Optional, Callable, Any, Dict, List, Tuple
from enum import Enum
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class OpStreamError(Exception):
    """Base class for harness errors"""


class ArgumentError(OpStreamError, ValueError):
    """Malformed combinator or configuration argument, raised at construction time"""


class ClientLifecycleError(OpStreamError):
    """open/setup/teardown/close returned failure or raised"""

    def __init__(self, step: str, process: int, message: str):
        super().__init__(f"Process {process} failed to {step}: {message}")
        self.step = step
        self.process = process


class OperationFailure(OpStreamError):
    """A client invoke raised; recorded as a fail completion, never fatal"""


class ProtocolViolation(OpStreamError):
    """A client completion is malformed, so the history can no longer be trusted"""


class ErrorSeverity(Enum):
    """How far an error reaches"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"  # worker stops
    FATAL = "fatal"  # run aborts


class ErrorCategory(Enum):
    """Where an error came from"""
    ARGUMENT = "argument"
    CLIENT_LIFECYCLE = "client_lifecycle"
    OPERATION_FAILURE = "operation_failure"
    PROTOCOL_VIOLATION = "protocol_violation"
    GENERATOR = "generator"
    HISTORY_PERSISTENCE = "history_persistence"


@dataclass
class ErrorContext:
    """One reported error"""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception: Optional[Exception] = None
    component: Optional[str] = None
    run_id: Optional[str] = None
    process: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class RetryConfig:
    """Attempt budget and exponential backoff parameters"""
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True


_CATEGORIES = (
    (ClientLifecycleError, ErrorCategory.CLIENT_LIFECYCLE),
    (ProtocolViolation, ErrorCategory.PROTOCOL_VIOLATION),
    (OperationFailure, ErrorCategory.OPERATION_FAILURE),
    (ArgumentError, ErrorCategory.ARGUMENT),
)


def categorize_exception(exc: Exception) -> ErrorCategory:
    """Map a harness exception onto its error category"""
    for exc_type, category in _CATEGORIES:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.GENERATOR


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.FATAL: logging.CRITICAL,
}


class ErrorHandler:
    """
    Error bookkeeping shared by every worker of a run.

    Workers report through ``handle_error``; ``retry_with_backoff`` wraps
    calls that may succeed on a later attempt, such as opening a client.
    """

    def __init__(self):
        self.error_history: List[ErrorContext] = []
        self._lock = threading.Lock()

    def handle_error(self, error_context: ErrorContext) -> bool:
        """Record an error. Returns True when the reporting worker can keep going."""
        self._record(error_context)
        return error_context.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)

    def retry_with_backoff(
        self,
        operation: Callable,
        config: RetryConfig,
        error_category: ErrorCategory,
        operation_name: str = "operation",
        **kwargs
    ) -> Tuple[bool, Any]:
        """
        Call ``operation(**kwargs)`` up to ``config.max_attempts`` times.

        Returns ``(True, result)`` on the first success, otherwise
        ``(False, last_exception)``. Every failed attempt is kept in the
        error history, followed by one entry for giving up.
        """
        last_exception = None

        for attempt in range(1, config.max_attempts + 1):
            try:
                logger.debug(f"{operation_name}: attempt {attempt}/{config.max_attempts}")
                return True, operation(**kwargs)
            except Exception as e:
                last_exception = e
                final = attempt == config.max_attempts
                logger.warning(f"{operation_name} failed on attempt {attempt}: {e}")
                self._append(ErrorContext(
                    category=error_category,
                    severity=ErrorSeverity.HIGH if final else ErrorSeverity.MEDIUM,
                    message=f"{operation_name} failed: {e}",
                    exception=e,
                    metadata={'attempt': attempt, 'max_attempts': config.max_attempts}
                ))
                if not final:
                    delay = self._backoff_delay(config, attempt)
                    logger.info(f"Retrying {operation_name} in {delay:.2f}s")
                    time.sleep(delay)

        self._record(ErrorContext(
            category=error_category,
            severity=ErrorSeverity.HIGH,
            message=f"{operation_name} gave up after {config.max_attempts} attempts",
            exception=last_exception,
            metadata={'attempts': config.max_attempts}
        ))
        return False, last_exception

    @staticmethod
    def _backoff_delay(config: RetryConfig, attempt: int) -> float:
        delay = min(config.initial_delay * config.exponential_base ** (attempt - 1), config.max_delay)
        if config.jitter:
            delay *= 0.5 + random.random()
        return delay

    def _record(self, error_context: ErrorContext):
        logger.log(_LOG_LEVELS[error_context.severity], self._describe(error_context))
        self._append(error_context)

    def _append(self, error_context: ErrorContext):
        with self._lock:
            self.error_history.append(error_context)

    @staticmethod
    def _describe(error_context: ErrorContext) -> str:
        parts = []
        if error_context.component:
            parts.append(f"[{error_context.component}]")
        parts.append(f"[{error_context.category.value}] {error_context.message}")
        if error_context.run_id:
            parts.append(f"(run: {error_context.run_id})")
        if error_context.process is not None:
            parts.append(f"(process: {error_context.process})")
        return " ".join(parts)

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts by category and severity plus the ten most recent errors"""
        with self._lock:
            errors = list(self.error_history)

        return {
            'total_errors': len(errors),
            'by_category': dict(Counter(e.category.value for e in errors)),
            'by_severity': dict(Counter(e.severity.value for e in errors)),
            'recent_errors': [
                {'category': e.category.value, 'severity': e.severity.value, 'message': e.message}
                for e in errors[-10:]
            ]
        }

    def clear_history(self):
        with self._lock:
            self.error_history.clear()
        logger.debug("Error history cleared")
