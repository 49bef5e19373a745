"""
Valkey list-append client

Appends are RPUSH and reads are LRANGE over the whole list. A connection
error during an append leaves its effect unknown, so it completes as info.
"""
import logging
from typing import Optional, Set

import valkey

from ..models import Operation, OpType
from ..utils.valkey_utils import parse_address, create_client
from .base import BaseClient

logger = logging.getLogger(__name__)

MOP_TYPE, MOP_KEY, MOP_VAL = 0, 1, 2


class ValkeyListAppendClient(BaseClient):
    """List-append client for a standalone Valkey server"""

    def __init__(self, timeout: float = 2.0, key_prefix: str = "opstream:list:", cleanup: bool = False):
        self.timeout = timeout
        self.key_prefix = key_prefix
        self.cleanup = cleanup
        self.conn: Optional[valkey.Valkey] = None
        self.keys_written: Set[str] = set()

    def open(self, address: Optional[str]) -> bool:
        host, port = parse_address(address)
        self.conn = create_client(host, port, self.timeout)
        self.conn.ping()
        logger.debug(f"Connected to Valkey at {host}:{port}")
        return True

    def invoke(self, operation: Operation) -> Operation:
        mop = list(operation.value[0])
        key = f"{self.key_prefix}{mop[MOP_KEY]}"

        if mop[MOP_TYPE] == 'append':
            try:
                self.conn.rpush(key, mop[MOP_VAL])
                self.keys_written.add(key)
            except (valkey.ConnectionError, valkey.TimeoutError) as e:
                return Operation(type=OpType.INFO, f=operation.f, value=[mop], error=str(e))
            except valkey.ResponseError as e:
                return Operation(type=OpType.FAIL, f=operation.f, value=[mop], error=str(e))
        elif mop[MOP_TYPE] == 'r':
            try:
                mop[MOP_VAL] = [int(v) for v in self.conn.lrange(key, 0, -1)]
            except (valkey.ConnectionError, valkey.TimeoutError, valkey.ResponseError) as e:
                return Operation(type=OpType.FAIL, f=operation.f, value=[mop], error=str(e))
        else:
            raise ValueError(f"Unknown operation: {mop[MOP_TYPE]!r}")

        return Operation(type=OpType.OK, f=operation.f, value=[mop], process=operation.process)

    def teardown(self) -> bool:
        if self.cleanup and self.keys_written:
            self.conn.delete(*self.keys_written)
            self.keys_written.clear()
        return True

    def close(self) -> bool:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
        return True
