"""Spin locks held by a thread and sleep locks held by a process id."""

from __future__ import annotations

import threading


class LockError(RuntimeError):
    """A lock was acquired twice or released by a non-holder."""


class SpinLock:
    """A non-reentrant mutual exclusion lock that remembers its holder."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self.cpu: int | None = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        if self.holding():
            raise LockError(f"acquire: {self.name} already held")
        self._lock.acquire()
        self.cpu = threading.get_ident()

    def release(self) -> None:
        if not self.holding():
            raise LockError(f"release: {self.name} not held")
        self.cpu = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._lock.locked() and self.cpu == threading.get_ident()

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters sleep until it is released."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._cond = threading.Condition()
        self.locked = False
        self.pid = 0

    def acquire(self, pid: int) -> None:
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether the process pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid