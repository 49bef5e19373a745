"""
Worker - one simulated client process

Lifecycle: IDLE -> OPENING -> SETTING_UP -> RUNNING -> TEARING_DOWN ->
CLOSING -> DONE, with FAILED reachable from every state after IDLE.
"""
import copy
import time
import logging
import threading
import dataclasses
from typing import Any, Callable, Optional, Tuple

from ..interfaces import IClient
from ..models import Operation, OpType, WorkerState, WorkerResult
from .operation_source import OperationSource
from .error_handler import (
    ErrorHandler, ErrorContext, ErrorCategory, ErrorSeverity, RetryConfig,
    ClientLifecycleError, OperationFailure, ProtocolViolation, categorize_exception
)

logger = logging.getLogger(__name__)


class Worker:
    """Pulls operations from the shared source, invokes them and records the results"""

    def __init__(
        self,
        process: int,
        client: IClient,
        address: Optional[str],
        source: OperationSource,
        error_handler: Optional[ErrorHandler] = None,
        start_barrier: Optional[threading.Barrier] = None,
        end_barrier: Optional[threading.Barrier] = None,
        open_attempts: int = 1
    ):
        self.process = process
        self.client = client
        self.address = address
        self.source = source
        self.error_handler = error_handler or ErrorHandler()
        self.start_barrier = start_barrier
        self.end_barrier = end_barrier
        self.open_attempts = open_attempts

        self.state = WorkerState.IDLE
        self.process_tag = f"[{process}]"
        self.operations_invoked = 0
        self.operations_completed = 0
        self.error: Optional[Exception] = None
        self.error_category: Optional[ErrorCategory] = None
        self.error_time: Optional[float] = None
        self.teardown_errors = []

    def run(self) -> WorkerResult:
        """Run the whole lifecycle and return the outcome; never raises"""
        opened = False
        try:
            self._open()
            opened = True
            self._setup()
        except ClientLifecycleError as e:
            self._fail(e, ErrorSeverity.HIGH)
            if opened:
                self._close_quietly()
        finally:
            self._arrive(self.start_barrier, "start")

        try:
            if self.state != WorkerState.FAILED:
                self._run_operations()
        except ProtocolViolation as e:
            self._fail(e, ErrorSeverity.FATAL)
            self.source.abort(f"process {self.process}: {e}")
        except Exception as e:
            # Errors raised by the generator itself; the shared stream is broken
            logger.exception(f"Process {self.process} failed to pull an operation")
            self._fail(e, ErrorSeverity.FATAL, ErrorCategory.GENERATOR)
            self.source.abort(f"process {self.process}: generator error: {e}")
        finally:
            self._arrive(self.end_barrier, "end")

        if opened and self.error_category != ErrorCategory.CLIENT_LIFECYCLE:
            self._shutdown()

        return self.result()

    def result(self) -> WorkerResult:
        return WorkerResult(
            process=self.process,
            address=self.address,
            state=self.state,
            success=self.state == WorkerState.DONE,
            operations_invoked=self.operations_invoked,
            operations_completed=self.operations_completed,
            error_message=str(self.error) if self.error else None,
            error_category=self.error_category.value if self.error_category else None,
            error_time=self.error_time,
            teardown_errors=list(self.teardown_errors)
        )

    def _open(self):
        self.state = WorkerState.OPENING
        logger.debug(f"Opening connection by process {self.process} to DB ({self.address})")

        retry_config = RetryConfig(
            max_attempts=max(1, self.open_attempts),
            initial_delay=0.5,
            exponential_base=2.0,
            jitter=True
        )
        success, result = self.error_handler.retry_with_backoff(
            operation=lambda: self._lifecycle('open', self.client.open, self.address),
            config=retry_config,
            error_category=ErrorCategory.CLIENT_LIFECYCLE,
            operation_name=f"open {self.address} by process {self.process}"
        )
        if not success:
            raise result

    def _setup(self):
        self.state = WorkerState.SETTING_UP
        logger.debug(f"Setting up DB ({self.address}) by process {self.process}")
        self._lifecycle('setup', self.client.setup)

    def _shutdown(self):
        """Tear down and close; failures are reported but never touch the history"""
        failed_before = self.state == WorkerState.FAILED

        self.state = WorkerState.TEARING_DOWN
        logger.debug(f"Tearing down DB ({self.address}) by process {self.process}")
        try:
            self._lifecycle('teardown', self.client.teardown)
        except ClientLifecycleError as e:
            self.teardown_errors.append(str(e))
            self._record(e)
            self._report(e, ErrorSeverity.HIGH)

        self.state = WorkerState.CLOSING
        logger.debug(f"Closing connection to DB ({self.address}) by process {self.process}")
        try:
            self._lifecycle('close', self.client.close)
        except ClientLifecycleError as e:
            self.teardown_errors.append(str(e))
            self._record(e)
            self._report(e, ErrorSeverity.HIGH)

        if failed_before or self.teardown_errors:
            self.state = WorkerState.FAILED
        else:
            self.state = WorkerState.DONE

    def _close_quietly(self):
        try:
            self.client.close()
        except Exception as e:
            logger.warning(f"Process {self.process} failed to close after setup failure: {e}")

    def _lifecycle(self, step: str, fn: Callable, *args) -> Any:
        try:
            ok = fn(*args)
        except Exception as e:
            raise ClientLifecycleError(step, self.process, str(e)) from e
        if not ok:
            raise ClientLifecycleError(step, self.process, f"{step} returned {ok!r}")
        return ok

    def _run_operations(self):
        self.state = WorkerState.RUNNING
        while True:
            operation = self.source.next_invocation(self.process)
            if operation is None:
                break
            self.operations_invoked += 1
            logger.debug('%-4s %s', self.process_tag, operation.to_string())

            completion, violation = self._invoke(operation)
            completion = self.source.record_completion(self.process, completion)
            self.operations_completed += 1
            logger.debug('%-4s %s', self.process_tag, completion.to_string())

            if violation is not None:
                raise violation

            # Let sibling workers make progress
            time.sleep(0)

    def _invoke(self, operation: Operation) -> Tuple[Operation, Optional[ProtocolViolation]]:
        """
        Invoke the client; a raised error becomes a fail completion. A
        malformed completion is recorded as info and the violation returned.
        """
        request = dataclasses.replace(operation, value=copy.deepcopy(operation.value))
        try:
            response = self.client.invoke(request)
        except Exception as e:
            logger.warning(f"Process {self.process} crashed ({e})")
            failure = OperationFailure(f"invoke of index {operation.index} failed: {e}")
            failure.__cause__ = e
            self._report(failure, ErrorSeverity.LOW)
            return Operation(f=operation.f, value=operation.value, type=OpType.FAIL, error=str(e)), None

        try:
            return self._validate_completion(response, operation), None
        except ProtocolViolation as e:
            return Operation(f=operation.f, value=operation.value, type=OpType.INFO, error=str(e)), e

    def _validate_completion(self, response: Any, operation: Operation) -> Operation:
        if isinstance(response, dict):
            try:
                response = Operation.from_dict(response)
            except ValueError as e:
                raise ProtocolViolation(f"Invalid operation type in completion of index {operation.index}: {e}")
        if not isinstance(response, Operation):
            raise ProtocolViolation(
                f"Client returned {type(response).__name__} for index {operation.index}, expected an operation")
        if response.type is None:
            raise ProtocolViolation(f"Operation type is empty in completion of index {operation.index}")
        if response.type == OpType.INVOKE:
            raise ProtocolViolation(f"Completion of index {operation.index} has type invoke")

        completion = dataclasses.replace(response)
        if completion.f is None:
            completion.f = operation.f
        return completion

    def _arrive(self, barrier: Optional[threading.Barrier], name: str):
        if barrier is None:
            return
        try:
            barrier.wait()
        except threading.BrokenBarrierError:
            logger.warning(f"Process {self.process}: {name} barrier broken, continuing")

    def _record(self, exc: Exception, category: Optional[ErrorCategory] = None):
        if self.error is None:
            self.error = exc
            self.error_category = category or categorize_exception(exc)
            self.error_time = time.time()

    def _fail(self, exc: Exception, severity: ErrorSeverity, category: Optional[ErrorCategory] = None):
        self._record(exc, category)
        self.state = WorkerState.FAILED
        self._report(exc, severity, category)

    def _report(self, exc: Exception, severity: ErrorSeverity, category: Optional[ErrorCategory] = None):
        self.error_handler.handle_error(ErrorContext(
            category=category or categorize_exception(exc),
            severity=severity,
            message=str(exc),
            exception=exc,
            component='worker',
            process=self.process
        ))
