"""
Clients - adapters between the harness and a database under test
"""
from .base import BaseClient
from .sqlite_list_append import SqliteListAppendClient
from .valkey_list_append import ValkeyListAppendClient

CLIENTS = {
    'noop': BaseClient,
    'sqlite-list-append': SqliteListAppendClient,
    'valkey-list-append': ValkeyListAppendClient,
}

__all__ = [
    'BaseClient',
    'SqliteListAppendClient',
    'ValkeyListAppendClient',
    'CLIENTS',
]
