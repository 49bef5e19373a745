"""
Run Coordinator - spawns one worker per process, waits for all of them and
reduces their outcomes to a single verdict
"""
import copy
import time
import uuid
import random
import shutil
import logging
import threading
from pathlib import Path
from typing import Any, List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..generator.base import Generator
from ..interfaces import IClient, IRunCoordinator
from ..models import RunConfig, RunResult, WorkerResult, WorkerState
from .history import History
from .operation_source import OperationSource
from .worker import Worker
from .run_logger import RunLogger
from .error_handler import (
    ErrorHandler, ErrorContext, ErrorCategory, ErrorSeverity, ArgumentError
)

logger = logging.getLogger(__name__)

CLIENT_METHODS = ('open', 'setup', 'invoke', 'teardown', 'close')


class RunCoordinator(IRunCoordinator):
    """Runs workers concurrently against one shared generator"""

    def __init__(self, run_logger: Optional[RunLogger] = None, error_handler: Optional[ErrorHandler] = None):
        self.run_logger = run_logger
        self.error_handler = error_handler or ErrorHandler()

    def run(self, generator: Any, client: Any, config: Optional[RunConfig] = None) -> RunResult:
        """
        Execute a run and return its result.

        ``client`` is either a factory (a client class or any callable
        returning a client) called once per worker, or a client instance that
        is deep-copied for every worker. ``generator`` is a Generator or
        anything ``iterate`` accepts.
        """
        config = config or RunConfig()
        validate_run_config(config)
        generator = self._as_generator(generator)

        run_id = config.run_id or str(uuid.uuid4())[:8]
        run_logger = self.run_logger or RunLogger(config.log_dir)
        rng = random.Random(config.seed)

        clients = [self._client_for(client, process) for process in range(config.threads)]
        addresses = [rng.choice(config.nodes) for _ in range(config.threads)]

        history = History()
        source = OperationSource(generator, history)
        start_barrier = threading.Barrier(config.threads)
        end_barrier = threading.Barrier(config.threads)

        workers = [
            Worker(
                process=process,
                client=clients[process],
                address=addresses[process],
                source=source,
                error_handler=self.error_handler,
                start_barrier=start_barrier,
                end_barrier=end_barrier,
                open_attempts=config.open_attempts
            )
            for process in range(config.threads)
        ]

        run_logger.log_run_start(run_id, config)
        start_time = time.time()

        worker_results: List[WorkerResult] = []
        with ThreadPoolExecutor(max_workers=config.threads, thread_name_prefix=f"opstream-{run_id}") as executor:
            futures = {executor.submit(worker.run): worker for worker in workers}

            for future in as_completed(futures):
                worker = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    # Worker.run reports its own failures; this is a harness bug
                    logger.error(f"Process {worker.process} raised unexpectedly: {e}")
                    result = worker.result()
                    result.state = WorkerState.FAILED
                    result.success = False
                    result.error_message = result.error_message or str(e)
                    result.error_time = result.error_time or time.time()
                worker_results.append(result)
                run_logger.log_worker_result(result)

        end_time = time.time()
        worker_results.sort(key=lambda r: r.process)

        success = all(r.state == WorkerState.DONE for r in worker_results) and not source.aborted
        error_message = self._first_error(worker_results, source)

        run_result = RunResult(
            run_id=run_id,
            success=success,
            start_time=start_time,
            end_time=end_time,
            worker_results=worker_results,
            history=history,
            error_message=error_message,
            seed=config.seed
        )

        if config.create_reports:
            run_result.artifacts = self._save_history(history, Path(config.history_dir) / run_id, run_id, run_logger)

        if error_message:
            run_logger.log_error(error_message, {'aborted': source.aborted})
        run_logger.log_run_completion(run_result)

        if config.create_reports and not config.keep_history and run_result.artifacts:
            self._discard_history(Path(config.history_dir) / run_id)
            run_result.artifacts = {}

        return run_result

    def _as_generator(self, generator: Any) -> Generator:
        if isinstance(generator, Generator):
            return generator
        from ..generator.producers import iterate
        return iterate(generator)

    def _client_for(self, client: Any, process: int) -> IClient:
        """Build the independent client instance used by one worker"""
        if isinstance(client, type) or (callable(client) and not _is_client(client)):
            instance = client()
        else:
            instance = copy.deepcopy(client)

        if not _is_client(instance):
            raise ArgumentError(
                f"Client for process {process} must implement {', '.join(CLIENT_METHODS)}, "
                f"got {type(instance).__name__}")
        return instance

    def _first_error(self, worker_results: List[WorkerResult], source: OperationSource) -> Optional[str]:
        failed = [r for r in worker_results if r.error_message]
        if failed:
            first = min(failed, key=lambda r: r.error_time if r.error_time is not None else float('inf'))
            return first.error_message
        return source.abort_reason

    def _save_history(self, history: History, directory: Path, run_id: str, run_logger: RunLogger) -> dict:
        try:
            return history.save(directory)
        except OSError as e:
            self.error_handler.handle_error(ErrorContext(
                category=ErrorCategory.HISTORY_PERSISTENCE,
                severity=ErrorSeverity.HIGH,
                message=f"Failed to write history to {directory}: {e}",
                exception=e,
                component='coordinator',
                run_id=run_id
            ))
            run_logger.log_error(f"Failed to write history: {e}", {'directory': str(directory)})
            return {}

    def _discard_history(self, directory: Path):
        try:
            shutil.rmtree(directory)
            logger.debug(f"Removed history {directory}")
        except OSError as e:
            logger.warning(f"Failed to remove history {directory}: {e}")


def _is_client(obj: Any) -> bool:
    return all(callable(getattr(obj, method, None)) for method in CLIENT_METHODS)


def validate_run_config(config: RunConfig) -> None:
    """Raise ArgumentError when a RunConfig cannot describe a run"""
    if isinstance(config.threads, bool) or not isinstance(config.threads, int) or config.threads < 1:
        raise ArgumentError(f"threads must be a positive integer, got {config.threads!r}")
    if not config.nodes or isinstance(config.nodes, str):
        raise ArgumentError(f"nodes must be a non-empty list of addresses, got {config.nodes!r}")
    if isinstance(config.open_attempts, bool) or not isinstance(config.open_attempts, int) or config.open_attempts < 1:
        raise ArgumentError(f"open_attempts must be a positive integer, got {config.open_attempts!r}")
    if config.seed is not None and (isinstance(config.seed, bool) or not isinstance(config.seed, int)):
        raise ArgumentError(f"seed must be an integer, got {config.seed!r}")
