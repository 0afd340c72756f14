"""Per-entity exclusive sections.

Transitions that touch inventory hold the lock of the project they affect
and of the application or assignment they change.  Locks are keyed, so
unrelated projects never serialize against each other, and re-entrant, so
a ledger call made while a workflow already holds the project key does
not deadlock.

New identifiers are drawn and inserted under a per-collection sequence
key, taken last and held only around the insert.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

LockKey = tuple[str, str]


class KeyedLocks:
    """Lazily created ``RLock`` per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[LockKey, threading.RLock] = {}

    def _lock_for(self, key: LockKey) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        """Acquire every key in sorted order and release them on exit."""

        with ExitStack() as stack:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                lock.acquire()
                stack.callback(lock.release)
            yield


def project_key(name: str) -> LockKey:
    return ("project", str(name))


def application_key(application_id: int) -> LockKey:
    return ("application", str(application_id))


def assignment_key(assignment_id: int) -> LockKey:
    return ("assignment", str(assignment_id))


def applicant_key(user_id: str) -> LockKey:
    return ("applicant", str(user_id))


def sequence_key(collection: str) -> LockKey:
    return ("sequence", collection)
