from __future__ import annotations
from typing import Callable, Dict, Any
from contextlib import contextmanager
import threading
import functools

__all__ = [
    "ReadWriteLock",
    "store_write_lock",
    "store_read_lock",
]

_store_locks: Dict[str, ReadWriteLock] = {}
_create_store_lock = threading.Lock()


class ReadWriteLock:
    """Many concurrent readers or one writer. Waiting writers block new readers."""

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._condition:
            while self._writer_active or self._writers_waiting:
                self._condition.wait()
            self._readers += 1

    def release_read(self):
        with self._condition:
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def acquire_write(self):
        with self._condition:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._condition.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self):
        with self._condition:
            self._writer_active = False
            self._condition.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


def get_store_lock(store_id: str) -> ReadWriteLock:
    lock = _store_locks.get(store_id)
    if lock is not None:
        return lock

    with _create_store_lock:
        lock = _store_locks.get(store_id)
        if lock is None:
            lock = ReadWriteLock()
            _store_locks[store_id] = lock
        return lock


def _lock_for(instance: Any) -> ReadWriteLock:
    store_id = getattr(instance, "id", None)
    if store_id is None:
        raise AttributeError(
            "store lock decorated methods require the instance to "
            "have an 'id' attribute"
        )
    return get_store_lock(str(store_id))


def store_read_lock(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        with _lock_for(self).read_locked():
            return func(self, *args, **kwargs)

    return wrapper


def store_write_lock(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        with _lock_for(self).write_locked():
            return func(self, *args, **kwargs)

    return wrapper
