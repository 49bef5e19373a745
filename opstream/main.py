"""
Main entry point for the operation stream harness
"""
from typing import Any, Optional, Union
from pathlib import Path

from .models import RunConfig, RunResult, RunSpec
from .generator import Generator, take, time_limit
from .runner_engine import RunCoordinator, RunLogger, ConfigLoader
from .workloads import build_workload
from .clients import CLIENTS


class OpStream:
    """Runs tests built from generators and clients"""

    def __init__(self, coordinator: Optional[RunCoordinator] = None):
        self.coordinator = coordinator or RunCoordinator()

    def run(self, generator: Any, client: Any, config: Optional[RunConfig] = None) -> RunResult:
        """
        Run ``generator`` against ``client`` and return the result.
        """
        return self.coordinator.run(generator, client, config or RunConfig())

    def run_spec(self, spec: RunSpec) -> RunResult:
        """
        Run a test described by a configuration file.
        """
        ConfigLoader.validate(spec)
        return self.run(build_generator(spec), build_client_factory(spec), spec.config)

    def run_from_config(self, config_path: Union[str, Path]) -> RunResult:
        return self.run_spec(ConfigLoader.load_from_file(config_path))

    def report(self, run_results, log_dir: Optional[str] = None) -> str:
        """Summarize several runs; the report is also written to the log directory"""
        run_logger = self.coordinator.run_logger or RunLogger(log_dir or RunConfig().log_dir)
        return run_logger.generate_report(run_results)


def build_generator(spec: RunSpec) -> Generator:
    """Build the bounded workload generator a RunSpec describes"""
    generator = build_workload(spec.workload, spec.workload_params, spec.config.seed)
    if spec.ops is not None:
        generator = take(spec.ops, generator)
    if spec.time_limit is not None:
        generator = time_limit(generator, spec.time_limit)
    return generator


def build_client_factory(spec: RunSpec):
    client_cls = CLIENTS[spec.client]
    params = dict(spec.client_params)
    return lambda: client_cls(**params)
