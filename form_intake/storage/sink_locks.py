import threading
from contextlib import contextmanager
from typing import Dict


class SinkLockRegistry:
    """
    One re-entrant lock per sink name.

    Every mutation of a sink (header growth, append, snapshot rewrite,
    pruning) happens while holding that sink's lock, so two requests
    for the same form are serialized while different forms proceed
    in parallel.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def lock_for(self, sink: str) -> threading.RLock:
        with self._lock:
            lock = self._locks.get(sink)
            if lock is None:
                lock = threading.RLock()
                self._locks[sink] = lock
            return lock

    @contextmanager
    def hold(self, sink: str):
        lock = self.lock_for(sink)
        with lock:
            yield
