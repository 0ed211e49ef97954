"""
Serializes the availability check and the assignment commit per table and day.

Two layers are taken for every (table_id, date) key, always in sorted order:

* PostgreSQL transaction-scoped advisory locks, released on commit/rollback,
  which serialize writers across processes;
* an in-process lock per key, which covers single-process deployments on
  databases without advisory locks (SQLite).

In-process entries are reference counted and dropped once nobody holds or
waits on them.
"""
import hashlib
import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date
from typing import Iterable, Iterator

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class _KeyedLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


_registry_guard = threading.Lock()
_local_locks: dict[tuple[int, date], _KeyedLock] = {}


def lock_key(table_id: int, day: date) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    digest = hashlib.blake2b(f"table:{table_id}:{day.isoformat()}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


@contextmanager
def local_lock(table_id: int, day: date) -> Iterator[None]:
    key = (table_id, day)
    with _registry_guard:
        entry = _local_locks.get(key)
        if entry is None:
            entry = _local_locks[key] = _KeyedLock()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_guard:
            entry.users -= 1
            if entry.users == 0:
                del _local_locks[key]


def is_locked(table_id: int, day: date) -> bool:
    with _registry_guard:
        entry = _local_locks.get((table_id, day))
        return entry is not None and entry.lock.locked()


@contextmanager
def table_date_locks(db: Session, table_ids: Iterable[int], day: date) -> Iterator[None]:
    """
    Holds every (table, day) lock for the duration of the block.

    The advisory locks live until the surrounding transaction ends, so the
    caller must commit or roll back inside the block.
    """
    keys = sorted(set(table_ids))
    use_advisory = db.get_bind().dialect.name == "postgresql"

    with ExitStack() as stack:
        for table_id in keys:
            stack.enter_context(local_lock(table_id, day))
        if use_advisory:
            for table_id in keys:
                db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": lock_key(table_id, day)})
        logger.debug("Locked %d table(s) for %s", len(keys), day)
        yield
