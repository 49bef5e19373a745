"""
Valkey connection helpers
"""
import logging
import valkey
from typing import Optional, Tuple

from ..runner_engine.error_handler import ArgumentError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379


def parse_address(address: Optional[str], default_port: int = DEFAULT_PORT) -> Tuple[str, int]:
    """Split ``host[:port]`` into host and port"""
    if not address:
        return 'localhost', default_port

    host, sep, port = address.rpartition(':')
    if not sep:
        return address, default_port
    if not host:
        raise ArgumentError(f"Address {address!r} has no host")
    try:
        return host, int(port)
    except ValueError:
        raise ArgumentError(f"Invalid port in address {address!r}")


def create_client(host: str, port: int, timeout: float, decode_responses: bool = True) -> valkey.Valkey:
    return valkey.Valkey(
        host=host,
        port=port,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        decode_responses=decode_responses
    )
