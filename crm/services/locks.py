# crm/services/locks.py
import threading
from contextlib import contextmanager


class ContactLocks:
    """
    In-process locks keyed by contact id (or any hashable key).

    Entries are reference counted and dropped once no thread holds or waits
    on them, so the registry only grows with the number of contacts being
    mutated at the same moment.
    """
    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            lock, waiters = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, waiters + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                lock, waiters = self._locks[key]
                if waiters <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, waiters - 1)

    def __len__(self):
        with self._guard:
            return len(self._locks)
