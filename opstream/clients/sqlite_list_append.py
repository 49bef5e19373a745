"""
SQLite list-append client

Each key maps to the list of values appended to it, stored as rows of the
list_append table in insertion order. Workers opened on ``:memory:`` share
one in-process database, which lives until the last of them closes.
"""
import sqlite3
import logging
import threading
from typing import Optional

from ..models import Operation, OpType
from .base import BaseClient

logger = logging.getLogger(__name__)

MEMORY = ':memory:'

PRAGMAS = [
    'PRAGMA journal_mode = WAL',
    'PRAGMA synchronous = normal',
    'PRAGMA mmap_size = 30000000000',
    'PRAGMA page_size = 32768',
]

# Micro-operation layout: [type, key, value]
MOP_TYPE, MOP_KEY, MOP_VAL = 0, 1, 2


class _SharedMemoryDatabase:
    """The in-memory database every client opened on ``:memory:`` attaches to"""

    _lock = threading.Lock()
    _current: Optional['_SharedMemoryDatabase'] = None

    def __init__(self):
        self.connection = sqlite3.connect(MEMORY, check_same_thread=False, isolation_level=None)
        # Serializes statements on the one connection
        self.lock = threading.Lock()
        self.users = 0

    @classmethod
    def attach(cls) -> '_SharedMemoryDatabase':
        with cls._lock:
            if cls._current is None:
                cls._current = cls()
                logger.debug("Created shared in-memory SQLite database")
            cls._current.users += 1
            return cls._current

    @classmethod
    def detach(cls, database: '_SharedMemoryDatabase'):
        with cls._lock:
            database.users -= 1
            if database.users == 0:
                database.connection.close()
                if cls._current is database:
                    cls._current = None
                logger.debug("Dropped shared in-memory SQLite database")


class SqliteListAppendClient(BaseClient):
    """List-append client over the standard library sqlite3 module"""

    def __init__(self, database: Optional[str] = None, timeout: float = 5.0):
        self.database = database
        self.timeout = timeout
        self.db: Optional[sqlite3.Connection] = None
        self._memory: Optional[_SharedMemoryDatabase] = None
        self._lock: Optional[threading.Lock] = None

    def open(self, address: Optional[str]) -> bool:
        path = self.database or address or MEMORY
        if path == MEMORY:
            self._memory = _SharedMemoryDatabase.attach()
            self.db, self._lock = self._memory.connection, self._memory.lock
        else:
            self.db = sqlite3.connect(path, timeout=self.timeout, check_same_thread=False, isolation_level=None)
            self._lock = threading.Lock()
            for pragma in PRAGMAS:
                self.db.execute(pragma)
        logger.debug(f"Opened SQLite database {path} (version {sqlite3.sqlite_version})")
        return True

    def setup(self) -> bool:
        """Create the table and drop rows left by earlier runs"""
        with self._lock:
            self.db.execute('CREATE TABLE IF NOT EXISTS list_append (key INT NOT NULL, val INT)')
            self.db.execute('DELETE FROM list_append')
        return True

    def invoke(self, operation: Operation) -> Operation:
        # TODO: Support more than one micro-operation per transaction.
        mop = list(operation.value[0])
        completion_type = OpType.OK

        if mop[MOP_TYPE] == 'r':
            mop[MOP_VAL] = self._select(mop[MOP_KEY])
        elif mop[MOP_TYPE] == 'append':
            if not self._insert(mop[MOP_KEY], mop[MOP_VAL]):
                completion_type = OpType.FAIL
        else:
            raise ValueError(f"Unknown operation: {mop[MOP_TYPE]!r}")

        return Operation(type=completion_type, f=operation.f, value=[mop], process=operation.process)

    def close(self) -> bool:
        if self._memory is not None:
            _SharedMemoryDatabase.detach(self._memory)
            self._memory = None
        elif self.db is not None:
            self.db.close()
        self.db = None
        self._lock = None
        return True

    def _insert(self, key, val) -> bool:
        try:
            with self._lock:
                self.db.execute('INSERT INTO list_append VALUES (?, ?)', (key, val))
            return True
        except sqlite3.Error as e:
            logger.debug(f"Append of {val} to key {key} failed: {e}")
            return False

    def _select(self, key) -> list:
        with self._lock:
            rows = self.db.execute('SELECT val FROM list_append WHERE key = ? ORDER BY rowid', (key,)).fetchall()
        return [row[0] for row in rows]
