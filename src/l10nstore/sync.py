"""Synchronization primitives for the bundle store.

RWLock:
    Readers-writer lock with writer preference. Readers take the shared
    side while they read the current generation and register a reference
    to it; the swap to a new generation takes the exclusive side. A
    reader can therefore never observe a generation that is half promoted
    or register a reference to one already scheduled for deletion.

ReferenceTable:
    Reference counts keyed by bundle version. A superseded generation is
    retired rather than deleted; its files are reclaimed only once the
    last reader has released it. This keeps open file streams valid on
    platforms without delete-while-open semantics.

Python 3.13+.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from l10nstore.types import BundleVersion

__all__ = ["RWLock", "ReferenceTable"]


class RWLock:
    """Readers-writer lock with writer preference.

    Allows multiple concurrent readers OR a single exclusive writer.
    Waiting writers block new readers, so a steady stream of lookups
    cannot starve an update.

    Limitations:
        Not reentrant. Acquiring the write side twice, or the read side
        while holding the write side, raises RuntimeError. Upgrading a
        held read side to the write side is not detected: the writer waits
        for its own reader and times out (or blocks forever without a
        timeout).

    Example:
        >>> lock = RWLock()
        >>> with lock.read():
        ...     pass
        >>> with lock.write(timeout=1.0):
        ...     pass
    """

    __slots__ = ("_active_readers", "_active_writer", "_condition", "_waiting_writers")

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._active_readers: int = 0
        self._active_writer: int | None = None
        self._waiting_writers: int = 0

    @contextmanager
    def read(self, timeout: float | None = None) -> Generator[None]:
        """Acquire the shared side for the duration of the block.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Raises:
            RuntimeError: If the calling thread holds the write side
            TimeoutError: If the lock cannot be acquired within timeout
            ValueError: If timeout is negative
        """
        self._acquire_read(timeout)
        try:
            yield
        finally:
            self._release_read()

    @contextmanager
    def write(self, timeout: float | None = None) -> Generator[None]:
        """Acquire the exclusive side for the duration of the block.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Raises:
            RuntimeError: If the calling thread already holds the write side
            TimeoutError: If the lock cannot be acquired within timeout
            ValueError: If timeout is negative
        """
        self._acquire_write(timeout)
        try:
            yield
        finally:
            self._release_write()

    @staticmethod
    def _deadline(timeout: float | None) -> float | None:
        if timeout is None:
            return None
        if timeout < 0:
            msg = f"Timeout must be non-negative, got {timeout}"
            raise ValueError(msg)
        return time.monotonic() + timeout

    def _wait(self, deadline: float | None, what: str) -> None:
        """Wait on the condition once, honouring the deadline. Caller holds the condition."""
        if deadline is None:
            self._condition.wait()
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            msg = f"Timed out waiting for {what} lock"
            raise TimeoutError(msg)
        self._condition.wait(timeout=remaining)

    def _acquire_read(self, timeout: float | None) -> None:
        deadline = self._deadline(timeout)
        with self._condition:
            if self._active_writer == threading.get_ident():
                msg = "Cannot acquire read lock while holding write lock"
                raise RuntimeError(msg)
            while self._active_writer is not None or self._waiting_writers > 0:
                self._wait(deadline, "read")
            self._active_readers += 1

    def _release_read(self) -> None:
        with self._condition:
            if self._active_readers == 0:
                msg = "Read lock released more times than acquired"
                raise RuntimeError(msg)
            self._active_readers -= 1
            if self._active_readers == 0:
                self._condition.notify_all()

    def _acquire_write(self, timeout: float | None) -> None:
        deadline = self._deadline(timeout)
        with self._condition:
            if self._active_writer == threading.get_ident():
                msg = "Cannot acquire write lock: already holding write lock"
                raise RuntimeError(msg)
            self._waiting_writers += 1
            try:
                while self._active_readers > 0 or self._active_writer is not None:
                    self._wait(deadline, "write")
                self._active_writer = threading.get_ident()
            finally:
                # Readers blocked on _waiting_writers need a wakeup when a writer times out.
                self._waiting_writers -= 1
                self._condition.notify_all()

    def _release_write(self) -> None:
        with self._condition:
            if self._active_writer != threading.get_ident():
                msg = "Thread does not hold write lock"
                raise RuntimeError(msg)
            self._active_writer = None
            self._condition.notify_all()

    @property
    def reader_count(self) -> int:
        """Number of readers currently holding the shared side."""
        with self._condition:
            return self._active_readers

    @property
    def writer_active(self) -> bool:
        """True if a thread currently holds the exclusive side."""
        with self._condition:
            return self._active_writer is not None


class ReferenceTable:
    """Reference counts for bundle generations with deferred reclamation.

    A version becomes reclaimable once it is retired AND its count drops
    to zero. The reclaim callback runs exactly once per version, outside
    the table's lock, in whichever thread performed the final retire or
    release.

    Example:
        >>> reclaimed = []
        >>> table = ReferenceTable(reclaimed.append)
        >>> table.acquire("v1")
        >>> table.retire("v1")
        >>> reclaimed
        []
        >>> table.release("v1")
        >>> reclaimed
        ['v1']
    """

    __slots__ = ("_counts", "_lock", "_on_reclaim", "_retired")

    def __init__(self, on_reclaim: Callable[[BundleVersion], None]) -> None:
        """Initialize the table.

        Args:
            on_reclaim: Called with a version once it is retired and unreferenced
        """
        self._on_reclaim = on_reclaim
        self._lock = threading.Lock()
        self._counts: dict[BundleVersion, int] = {}
        self._retired: set[BundleVersion] = set()

    def acquire(self, version: BundleVersion) -> None:
        """Register one more reader of version.

        Raises:
            RuntimeError: If version has already been retired
        """
        with self._lock:
            if version in self._retired:
                msg = f"Bundle {version} has been retired"
                raise RuntimeError(msg)
            self._counts[version] = self._counts.get(version, 0) + 1

    def release(self, version: BundleVersion) -> None:
        """Drop one reader of version, reclaiming it if retired and unreferenced.

        Raises:
            RuntimeError: If version has no outstanding references
        """
        with self._lock:
            count = self._counts.get(version, 0)
            if count == 0:
                msg = f"Bundle {version} released more times than acquired"
                raise RuntimeError(msg)
            if count == 1:
                del self._counts[version]
                reclaim = version in self._retired
                self._retired.discard(version)
            else:
                self._counts[version] = count - 1
                reclaim = False
        if reclaim:
            self._on_reclaim(version)

    def retire(self, version: BundleVersion) -> bool:
        """Mark version as superseded.

        Returns:
            True if version was reclaimed immediately, False if deferred
        """
        with self._lock:
            if self._counts.get(version, 0) > 0:
                self._retired.add(version)
                return False
        self._on_reclaim(version)
        return True

    def count(self, version: BundleVersion) -> int:
        """Number of outstanding references to version."""
        with self._lock:
            return self._counts.get(version, 0)

    def pending(self) -> tuple[BundleVersion, ...]:
        """Retired versions still waiting for their readers, oldest first."""
        with self._lock:
            return tuple(sorted(self._retired))
