"""File locking utilities for atomic I/O operations."""
from __future__ import annotations

import fcntl
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .core import ensure_directory

_THREAD_MUTEXES: dict[str, threading.Lock] = {}

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.05


class LockTimeoutError(TimeoutError):
    """Raised when an OS file lock cannot be acquired within timeout."""


def _thread_mutex(path: Path) -> threading.Lock:
    key = str(path.resolve())
    lock = _THREAD_MUTEXES.get(key)
    if lock is None:
        lock = _THREAD_MUTEXES.setdefault(key, threading.Lock())
    return lock


@contextmanager
def acquire_file_lock(
    file_path: Path | str,
    timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> Iterator[Optional[object]]:
    """Acquire an exclusive lock on the ``<file>.lock`` sidecar of ``file_path``.

    Uses ``fcntl.flock`` with ``LOCK_EX | LOCK_NB`` in a retry loop so two
    light-http processes never interleave writes to the same server list.

    Raises:
        LockTimeoutError: when the lock is still held after ``timeout`` seconds.
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    if poll_interval <= 0:
        raise ValueError(f"poll_interval must be positive, got {poll_interval}")

    start = time.time()
    target = Path(file_path)
    lock_target = target.with_suffix(target.suffix + ".lock")
    ensure_directory(lock_target.parent)

    mutex = _thread_mutex(lock_target)
    if not mutex.acquire(timeout=timeout):
        raise LockTimeoutError(f"Could not acquire lock on {target} within {timeout}s")

    fh = open(lock_target, "a+")
    acquired = False
    try:
        while True:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                acquired = True
                break
            except OSError:
                if (time.time() - start) >= timeout:
                    raise LockTimeoutError(
                        f"Could not acquire lock on {target} within {timeout}s"
                    )
                time.sleep(poll_interval)

        yield fh
    finally:
        try:
            if acquired:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        finally:
            try:
                fh.close()
            finally:
                lock_target.unlink(missing_ok=True)
            mutex.release()


__all__ = ["LockTimeoutError", "acquire_file_lock"]
