"""
Runner Engine - runs simulated client processes against a shared generator
and records the resulting history
"""
from .error_handler import (
    OpStreamError, ArgumentError, ClientLifecycleError, OperationFailure, ProtocolViolation,
    ErrorHandler
)
from .history import History
from .operation_source import OperationSource
from .worker import Worker
from .run_logger import RunLogger
from .coordinator import RunCoordinator
from .config_loader import ConfigLoader

__all__ = [
    'RunCoordinator',
    'Worker',
    'OperationSource',
    'History',
    'RunLogger',
    'ConfigLoader',
    'ErrorHandler',
    'OpStreamError',
    'ArgumentError',
    'ClientLifecycleError',
    'OperationFailure',
    'ProtocolViolation',
]
