"""
Tests for the run logger
"""
import json
import pytest

from opstream.models import RunConfig, RunResult, WorkerResult, WorkerState
from opstream.runner_engine.history import History
from opstream.runner_engine.run_logger import RunLogger


@pytest.fixture
def run_logger(tmp_path):
    """Create a run logger with temporary directory"""
    return RunLogger(log_dir=str(tmp_path / "logs"))


@pytest.fixture
def worker_result():
    return WorkerResult(
        process=0,
        address="node-1",
        state=WorkerState.DONE,
        success=True,
        operations_invoked=5,
        operations_completed=5
    )


def make_result(run_id, success=True, error_message=None, workers=()):
    return RunResult(
        run_id=run_id,
        success=success,
        start_time=1000.0,
        end_time=1002.5,
        worker_results=list(workers),
        history=History(),
        error_message=error_message,
        seed=7
    )


def read_log(run_logger, run_id):
    with open(run_logger.log_dir / f"{run_id}.json") as f:
        return json.load(f)


def test_logger_initialization(run_logger):
    """Test logger initialization"""
    assert run_logger.log_dir.exists()
    assert run_logger.current_run_id is None
    assert run_logger.run_logs == {}


def test_log_run_start(run_logger):
    """Test run start is written to disk with its configuration"""
    run_logger.log_run_start("run-1", RunConfig(threads=3, seed=7))

    log = read_log(run_logger, "run-1")
    assert log['status'] == 'running'
    assert log['seed'] == 7
    assert log['config']['threads'] == 3
    assert run_logger.current_run_id == "run-1"


def test_log_worker_result(run_logger, worker_result):
    run_logger.log_run_start("run-1", RunConfig())
    run_logger.log_worker_result(worker_result)

    workers = read_log(run_logger, "run-1")['workers']
    assert len(workers) == 1
    assert workers[0]['state'] == 'done'
    assert workers[0]['operations_invoked'] == 5


def test_log_without_active_run(run_logger, worker_result, caplog):
    """Test logging outside a run only warns"""
    run_logger.log_worker_result(worker_result)
    run_logger.log_error("lost")
    assert "No active run" in caplog.text


def test_log_error(run_logger):
    run_logger.log_run_start("run-1", RunConfig())
    run_logger.log_error("open failed", {'process': 2})

    errors = read_log(run_logger, "run-1")['errors']
    assert errors[0]['message'] == "open failed"
    assert errors[0]['details'] == {'process': 2}


def test_log_run_completion(run_logger, worker_result):
    """Test completion records the verdict and closes the run"""
    run_logger.log_run_start("run-1", RunConfig())
    run_logger.log_run_completion(make_result("run-1", success=False, error_message="boom",
                                              workers=[worker_result]))

    log = read_log(run_logger, "run-1")
    assert log['status'] == 'failed'
    assert log['duration'] == 2.5
    assert log['operations_invoked'] == 5
    assert log['final_error_message'] == "boom"
    assert run_logger.current_run_id is None


def test_log_completion_of_unknown_run(run_logger, caplog):
    run_logger.log_run_completion(make_result("ghost"))
    assert "No log found for run ghost" in caplog.text


def test_generate_report(run_logger, worker_result):
    """Test the summary report covers every run"""
    results = [
        make_result("run-1", workers=[worker_result]),
        make_result("run-2", success=False, error_message="Process 1 failed to open: refused"),
    ]

    report = run_logger.generate_report(results)

    assert "Runs:             2" in report
    assert "Passed:           1/2" in report
    assert "PASS | run-1" in report
    assert "FAIL | run-2" in report
    assert "error: Process 1 failed to open: refused" in report
    assert "seed 7" in report
    assert len(list(run_logger.log_dir.glob("report_*.txt"))) == 1


def test_generate_empty_report(run_logger):
    assert run_logger.generate_report([]) == "No run results to report"
