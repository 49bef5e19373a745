"""
Base client with no-op lifecycle
"""
import logging
from typing import Optional

from ..interfaces import IClient
from ..models import Operation, OpType

logger = logging.getLogger(__name__)


class BaseClient(IClient):
    """
    Client that connects to nothing and completes every operation as ok.
    Subclass it and override what the database under test needs.
    """

    def open(self, address: Optional[str]) -> bool:
        self.address = address
        return True

    def setup(self) -> bool:
        return True

    def invoke(self, operation: Operation) -> Operation:
        return Operation(type=OpType.OK, f=operation.f, value=None, process=operation.process)

    def teardown(self) -> bool:
        return True

    def close(self) -> bool:
        return True
