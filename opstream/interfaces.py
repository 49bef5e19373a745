"""
Base interfaces and abstract classes for all major components
"""
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional
from .models import Operation, RunConfig, RunResult, WorkerResult


class IClient(ABC):
    """
    Capability set a system-under-test adapter implements.

    One instance serves one worker for that worker's lifetime. Lifecycle
    methods return True on success; returning False or raising fails the
    worker. ``invoke`` returns the completion of the given operation, whose
    ``type`` must be set. It is recommended to raise on fatal errors such as a
    failed connection and to complete with ``fail`` when the database
    reports an expected error (a missing key, an aborted transaction).
    """

    @abstractmethod
    def open(self, address: Optional[str]) -> bool:
        """Open a connection to a database instance"""
        pass

    @abstractmethod
    def setup(self) -> bool:
        """Set up the database instance before operations run"""
        pass

    @abstractmethod
    def invoke(self, operation: Operation) -> Operation:
        """Execute an operation and return its completion"""
        pass

    @abstractmethod
    def teardown(self) -> bool:
        """Tear down state created by setup"""
        pass

    @abstractmethod
    def close(self) -> bool:
        """Close the connection opened by open"""
        pass


class IHistory(ABC):
    """Interface for the append-only history log"""

    @abstractmethod
    def append(self, operation: Operation) -> None:
        """Append an operation record"""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def __iter__(self) -> Iterator[Operation]:
        pass


class IRunCoordinator(ABC):
    """Interface for running workers against a shared generator"""

    @abstractmethod
    def run(self, generator, client, config: RunConfig) -> RunResult:
        """Run every worker to completion and return the verdict"""
        pass


class IRunLogger(ABC):
    """Interface for run logging and reporting"""

    @abstractmethod
    def log_run_start(self, run_id: str, config: RunConfig) -> None:
        """Log run start"""
        pass

    @abstractmethod
    def log_worker_result(self, worker_result: WorkerResult) -> None:
        """Log a worker outcome"""
        pass

    @abstractmethod
    def log_run_completion(self, run_result: RunResult) -> None:
        """Log run completion"""
        pass

    @abstractmethod
    def generate_report(self, run_results: List[RunResult]) -> str:
        """Generate summary report"""
        pass
