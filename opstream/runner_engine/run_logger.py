"""
Run Logger - per-run JSON log and summary reporting
"""
import json
import time
import logging
import threading
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime

from ..interfaces import IRunLogger
from ..models import RunConfig, RunResult, WorkerResult


logger = logging.getLogger(__name__)


class RunLogger(IRunLogger):
    """
    Thread-safe run logging system with summary reporting.
    Workers report their outcomes concurrently; every update is written
    through to ``log_dir/<run_id>.json``.
    """

    def __init__(self, log_dir: str = "/tmp/opstream/logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.current_run_id: Optional[str] = None
        self.run_logs: Dict[str, Dict[str, Any]] = {}
        self.run_start_times: Dict[str, float] = {}
        self._lock = threading.Lock()

    def log_run_start(self, run_id: str, config: RunConfig) -> None:
        """Log the start of a run with its configuration."""
        with self._lock:
            self.current_run_id = run_id
            self.run_start_times[run_id] = time.time()

            self.run_logs[run_id] = {
                'run_id': run_id,
                'seed': config.seed,
                'start_time': self.run_start_times[run_id],
                'start_timestamp': datetime.now().isoformat(),
                'config': {
                    'threads': config.threads,
                    'nodes': list(config.nodes),
                    'create_reports': config.create_reports,
                    'keep_history': config.keep_history,
                    'history_dir': config.history_dir,
                    'open_attempts': config.open_attempts
                },
                'workers': [],
                'errors': [],
                'status': 'running'
            }

            logger.info(f"Starting run {run_id}: {config.threads} worker(s) on {', '.join(config.nodes)}"
                        + (f", seed {config.seed}" if config.seed is not None else ""))
            self._write_log_to_disk(run_id)

    def log_worker_result(self, worker_result: WorkerResult) -> None:
        """Log the outcome of one worker."""
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to log worker result to")
                return

            self.run_logs[self.current_run_id]['workers'].append({
                'timestamp': time.time(),
                'process': worker_result.process,
                'address': worker_result.address,
                'state': worker_result.state.value,
                'success': worker_result.success,
                'operations_invoked': worker_result.operations_invoked,
                'operations_completed': worker_result.operations_completed,
                'error_message': worker_result.error_message,
                'error_category': worker_result.error_category,
                'teardown_errors': worker_result.teardown_errors
            })

            status = 'SUCCESS' if worker_result.success else 'FAILED'
            logger.info(f"Process {worker_result.process} on {worker_result.address} - {status} "
                        f"({worker_result.operations_invoked} operations)")
            self._write_log_to_disk(self.current_run_id)

    def log_error(self, error_message: str, error_details: Optional[Dict[str, Any]] = None) -> None:
        """Log an error that occurred during the run."""
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to log error to")
                return

            self.run_logs[self.current_run_id]['errors'].append({
                'timestamp': time.time(),
                'datetime': datetime.now().isoformat(),
                'message': error_message,
                'details': error_details or {}
            })

            logger.error(f"Logged error: {error_message}")
            self._write_log_to_disk(self.current_run_id)

    def log_run_completion(self, run_result: RunResult) -> None:
        """Log the completion of a run with its verdict."""
        with self._lock:
            if run_result.run_id not in self.run_logs:
                logger.warning(f"No log found for run {run_result.run_id}")
                return

            duration = run_result.end_time - run_result.start_time
            self.run_logs[run_result.run_id].update({
                'end_time': run_result.end_time,
                'end_timestamp': datetime.fromtimestamp(run_result.end_time).isoformat(),
                'duration': duration,
                'success': run_result.success,
                'operations_invoked': run_result.operations_invoked,
                'history_records': len(run_result.history),
                'artifacts': dict(run_result.artifacts),
                'final_error_message': run_result.error_message,
                'status': 'completed' if run_result.success else 'failed'
            })

            logger.info(f"Completed run {run_result.run_id} - {'SUCCESS' if run_result.success else 'FAILED'} "
                        f"(duration: {duration:.2f}s)")
            self._write_log_to_disk(run_result.run_id)

            if self.current_run_id == run_result.run_id:
                self.current_run_id = None

    def generate_report(self, run_results: List[RunResult]) -> str:
        """
        Summarize several runs as text and write it to
        ``report_<timestamp>.txt`` in the log directory.
        """
        if not run_results:
            return "No run results to report"

        runs = len(run_results)
        passed = sum(result.success for result in run_results)
        elapsed = [result.end_time - result.start_time for result in run_results]
        rule = "=" * 80

        lines = [
            rule,
            "OPSTREAM RUN REPORT",
            rule,
            f"Runs:             {runs}",
            f"Passed:           {passed}/{runs}",
            f"Failed:           {runs - passed}/{runs}",
            f"Operations:       {sum(result.operations_invoked for result in run_results)}",
            f"History Records:  {sum(len(result.history) for result in run_results)}",
            f"Elapsed:          {sum(elapsed):.2f}s total, {sum(elapsed) / runs:.2f}s mean",
            rule,
        ]

        for result, seconds in zip(run_results, elapsed):
            lines.append(f"{'PASS' if result.success else 'FAIL'} | {result.run_id} | {seconds:.2f}s | "
                         f"{result.operations_invoked} ops | {len(result.worker_results)} workers")
            if result.seed is not None:
                lines.append(f"     seed {result.seed}")
            if result.error_message:
                lines.append(f"     error: {result.error_message}")
            for worker in result.worker_results:
                if not worker.success:
                    lines.append(f"     process {worker.process} ended {worker.state.value} on {worker.address}")

        lines.append(rule)
        report = "\n".join(lines)

        report_file = self.log_dir / f"report_{time.strftime('%Y%m%d_%H%M%S')}.txt"
        report_file.write_text(report)
        logger.info(f"Report written to {report_file}")
        return report

    def _write_log_to_disk(self, run_id: str) -> None:
        """Write run log to disk as JSON"""
        if run_id not in self.run_logs:
            return

        log_file = self.log_dir / f"{run_id}.json"

        try:
            with open(log_file, 'w') as f:
                json.dump(self.run_logs[run_id], f, indent=2, default=str)
        except Exception as e:
            logger.error(f"Failed to write log to disk: {e}")

    def get_run_log(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get the log for a specific run, or None if not found."""
        return self.run_logs.get(run_id)
