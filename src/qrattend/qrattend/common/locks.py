from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class StudentLocks:
    """Per-student serialization point for ledger read-modify-write.

    Scans and sweep closures for the same student run one at a time; different
    students never wait on each other.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, student_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(student_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[student_id] = lock
            return lock

    @contextmanager
    def hold(self, student_id: int) -> Iterator[None]:
        lock = self._lock_for(int(student_id))
        with lock:
            yield
