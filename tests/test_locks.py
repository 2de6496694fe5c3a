import threading
import time

import pytest

from kernsim.locks import LockError, SleepLock, SpinLock


def test_spinlock_acquire_release():
    lock = SpinLock("test")
    assert lock.holding() is False
    lock.acquire()
    assert lock.holding() is True
    lock.release()
    assert lock.holding() is False


def test_spinlock_double_acquire_raises():
    lock = SpinLock("test")
    lock.acquire()
    with pytest.raises(LockError):
        lock.acquire()
    lock.release()
    assert lock.locked is False


def test_spinlock_release_unheld_raises():
    with pytest.raises(LockError):
        SpinLock("test").release()


def test_spinlock_context_manager():
    lock = SpinLock("test")
    with lock:
        assert lock.holding() is True
    assert lock.locked is False


def test_spinlock_not_held_by_other_thread():
    lock = SpinLock("test")
    lock.acquire()
    seen = []
    thread = threading.Thread(target=lambda: seen.append(lock.holding()))
    thread.start()
    thread.join()
    assert seen == [False]
    errors = []

    def release_from_other():
        try:
            lock.release()
        except LockError:
            errors.append("release")

    thread = threading.Thread(target=release_from_other)
    thread.start()
    thread.join()
    assert errors == ["release"]
    assert lock.holding() is True
    lock.release()
    assert lock.holding() is False


def test_spinlock_blocks_other_thread_until_release():
    lock = SpinLock("test")
    lock.acquire()
    got = threading.Event()

    def worker():
        lock.acquire()
        got.set()
        lock.release()

    thread = threading.Thread(target=worker)
    thread.start()
    time.sleep(0.05)
    assert not got.is_set()
    assert lock.holding() is True
    lock.release()
    thread.join(timeout=5)
    assert got.is_set()
    assert lock.holding() is False
    assert lock.locked is False


def test_sleeplock_holding_by_pid():
    lock = SleepLock("buf")
    lock.acquire(3)
    assert lock.holding(3) is True
    assert lock.holding(4) is False
    lock.release()
    assert lock.holding(3) is False
    assert lock.pid == 0


def test_sleeplock_waiter_wakes_on_release():
    lock = SleepLock("buf")
    lock.acquire(1)
    got = threading.Event()

    def worker():
        lock.acquire(2)
        got.set()

    thread = threading.Thread(target=worker)
    thread.start()
    time.sleep(0.05)
    assert not got.is_set()
    lock.release()
    thread.join(timeout=5)
    assert got.is_set()
    assert lock.holding(2) is True