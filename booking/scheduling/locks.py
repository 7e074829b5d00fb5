"""Serialise check-then-write sequences per employee and day.

Two bookings for the same employee on the same day must not both pass the
overlap check. Every key is guarded by an in-process lock, and the database is
asked for a lock that other processes honour as well:

* PostgreSQL: a transaction-scoped advisory lock per key.
* SQLite: a no-op write on the employee's windows, which takes the database
  write lock up front instead of at the first real insert.
* anything else: ``SELECT ... FOR UPDATE`` on the employee's windows for that day.

All of them are held until the caller's transaction ends.
"""

from contextlib import contextmanager
from datetime import date
from threading import Lock

from sqlalchemy import text
from sqlalchemy.orm import Session


class _KeyLock:
    __slots__ = ('lock', 'users')

    def __init__(self):
        self.lock = Lock()
        self.users = 0


_registry_lock = Lock()
_key_locks: dict[tuple[int, date], _KeyLock] = {}


def _checkout(key: tuple[int, date]) -> Lock:
    with _registry_lock:
        entry = _key_locks.get(key)
        if entry is None:
            entry = _key_locks[key] = _KeyLock()
        entry.users += 1
        return entry.lock


def _checkin(key: tuple[int, date]) -> None:
    with _registry_lock:
        entry = _key_locks[key]
        entry.users -= 1
        if not entry.users:
            del _key_locks[key]


def _acquire_database_locks(db: Session, keys: list[tuple[int, date]]) -> None:
    dialect = db.get_bind().dialect.name

    for employee_id, day in keys:
        if dialect == 'postgresql':
            db.execute(
                text('SELECT pg_advisory_xact_lock(:employee_id, :day)'),
                {'employee_id': employee_id, 'day': day.toordinal()},
            )
        elif dialect == 'sqlite':
            db.execute(
                text(
                    'UPDATE availability SET employee_id = employee_id '
                    'WHERE employee_id = :employee_id AND date = :day'
                ),
                {'employee_id': employee_id, 'day': day.isoformat()},
            )
        else:
            db.execute(
                text(
                    'SELECT id FROM availability '
                    'WHERE employee_id = :employee_id AND date = :day FOR UPDATE'
                ),
                {'employee_id': employee_id, 'day': day},
            )


@contextmanager
def employee_day_lock(db: Session, keys):
    """Hold the locks for every ``(employee_id, day)`` in ``keys``.

    Keys are taken in sorted order so overlapping lock sets cannot deadlock.
    Commit or roll back inside the block; the database locks are released with
    the transaction.
    """
    ordered = sorted(set(keys))
    acquired: list[tuple[tuple[int, date], Lock]] = []
    try:
        for key in ordered:
            lock = _checkout(key)
            try:
                lock.acquire()
            except BaseException:
                _checkin(key)
                raise
            acquired.append((key, lock))

        _acquire_database_locks(db, ordered)
        yield
    finally:
        for key, lock in reversed(acquired):
            lock.release()
            _checkin(key)
