import threading
from contextlib import contextmanager


class KeyedLocks:
    """One mutex per key, created on demand and dropped once nobody holds or waits on it."""

    def __init__(self, name):
        self.name = name
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


# Lock order: schedule before consultant
schedule_locks = KeyedLocks('schedule')
consultant_locks = KeyedLocks('consultant')
