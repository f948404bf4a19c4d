"""Tests for RWLock and ReferenceTable.

Tests verify:
- Concurrent readers, exclusive writers, writer preference
- Timeouts and misuse errors
- Deferred reclamation once retired and unreferenced
- Reclaim callback runs exactly once, outside the table lock
"""

from __future__ import annotations

import threading
import time

import pytest

from l10nstore.sync import ReferenceTable, RWLock


class TestRWLock:
    """Readers-writer lock behaviour."""

    def test_multiple_readers_concurrent(self) -> None:
        """Several readers hold the lock at once."""
        lock = RWLock()
        inside = threading.Barrier(3, timeout=2)

        def reader() -> None:
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)
        assert not any(thread.is_alive() for thread in threads)
        assert lock.reader_count == 0

    def test_writer_waits_for_reader(self) -> None:
        """A writer cannot enter while a reader is active."""
        lock = RWLock()
        reader_in = threading.Event()
        release_reader = threading.Event()
        order: list[str] = []

        def reader() -> None:
            with lock.read():
                reader_in.set()
                release_reader.wait(timeout=2)
                order.append("reader-exit")

        def writer() -> None:
            reader_in.wait(timeout=2)
            with lock.write():
                order.append("writer")

        threads = [threading.Thread(target=reader), threading.Thread(target=writer)]
        for thread in threads:
            thread.start()
        reader_in.wait(timeout=2)
        time.sleep(0.05)
        assert order == []
        release_reader.set()
        for thread in threads:
            thread.join(timeout=5)
        assert order == ["reader-exit", "writer"]

    def test_waiting_writer_blocks_new_readers(self) -> None:
        """Writer preference: new readers queue behind a waiting writer."""
        lock = RWLock()
        writer_started = threading.Event()
        late_reader_errors: list[BaseException] = []

        def writer() -> None:
            writer_started.set()
            with lock.write():
                pass

        def late_reader() -> None:
            try:
                with lock.read(timeout=0.05):
                    pass
            except TimeoutError as e:
                late_reader_errors.append(e)

        with lock.read():
            writer_thread = threading.Thread(target=writer)
            writer_thread.start()
            writer_started.wait(timeout=2)
            time.sleep(0.05)
            reader_thread = threading.Thread(target=late_reader)
            reader_thread.start()
            reader_thread.join(timeout=2)
        writer_thread.join(timeout=5)

        assert len(late_reader_errors) == 1
        assert not writer_thread.is_alive()

    def test_write_timeout(self) -> None:
        """A writer blocked by a reader times out."""
        lock = RWLock()
        outcome: list[BaseException] = []

        def writer() -> None:
            try:
                with lock.write(timeout=0.05):
                    pass
            except TimeoutError as e:
                outcome.append(e)

        with lock.read():
            thread = threading.Thread(target=writer)
            thread.start()
            thread.join(timeout=2)
        assert len(outcome) == 1
        assert not lock.writer_active

    def test_reader_proceeds_after_writer_times_out(self) -> None:
        """A timed-out writer wakes readers it was holding back."""
        lock = RWLock()

        def writer() -> None:
            with pytest.raises(TimeoutError):
                with lock.write(timeout=0.05):
                    pass

        with lock.read():
            thread = threading.Thread(target=writer)
            thread.start()
            thread.join(timeout=2)
        with lock.read(timeout=1):
            assert lock.reader_count == 1

    def test_negative_timeout_rejected(self) -> None:
        """Negative timeouts raise ValueError."""
        lock = RWLock()
        with pytest.raises(ValueError, match="non-negative"):
            with lock.read(timeout=-1):
                pass
        with pytest.raises(ValueError, match="non-negative"):
            with lock.write(timeout=-1):
                pass

    def test_write_reentry_rejected(self) -> None:
        """Acquiring the write side twice raises RuntimeError."""
        lock = RWLock()
        with lock.write():
            assert lock.writer_active
            with pytest.raises(RuntimeError, match="already holding"):
                with lock.write():
                    pass
            with pytest.raises(RuntimeError, match="while holding write"):
                with lock.read():
                    pass
        assert not lock.writer_active


    def test_read_to_write_upgrade_times_out(self) -> None:
        """Upgrading a held read side waits on itself until the timeout."""
        lock = RWLock()
        with lock.read():
            with pytest.raises(TimeoutError, match="write"):
                with lock.write(timeout=0.05):
                    pass
            assert lock.reader_count == 1
        assert not lock.writer_active


class TestReferenceTable:
    """Reference counting with deferred reclamation."""

    def test_retire_unreferenced_reclaims_immediately(self) -> None:
        """A version with no readers is reclaimed on retire."""
        reclaimed: list[str] = []
        table = ReferenceTable(reclaimed.append)
        assert table.retire("v1") is True
        assert reclaimed == ["v1"]

    def test_retire_referenced_defers(self) -> None:
        """A referenced version is reclaimed by its last release."""
        reclaimed: list[str] = []
        table = ReferenceTable(reclaimed.append)
        table.acquire("v1")
        table.acquire("v1")
        assert table.retire("v1") is False
        assert table.pending() == ("v1",)
        table.release("v1")
        assert reclaimed == []
        assert table.count("v1") == 1
        table.release("v1")
        assert reclaimed == ["v1"]
        assert table.pending() == ()
        assert table.count("v1") == 0

    def test_release_without_retire_keeps_version(self) -> None:
        """Releasing the current version never reclaims it."""
        reclaimed: list[str] = []
        table = ReferenceTable(reclaimed.append)
        table.acquire("v1")
        table.release("v1")
        assert reclaimed == []

    def test_over_release_rejected(self) -> None:
        """Releasing more than acquired raises RuntimeError."""
        table = ReferenceTable(lambda version: None)
        with pytest.raises(RuntimeError, match="more times than acquired"):
            table.release("v1")

    def test_acquire_retired_rejected(self) -> None:
        """A retired version cannot gain new readers."""
        table = ReferenceTable(lambda version: None)
        table.acquire("v1")
        table.retire("v1")
        with pytest.raises(RuntimeError, match="retired"):
            table.acquire("v1")

    def test_reclaim_runs_outside_lock(self) -> None:
        """The callback may call back into the table without deadlocking."""
        table: ReferenceTable
        seen: list[int] = []

        def on_reclaim(version: str) -> None:
            seen.append(table.count(version))

        table = ReferenceTable(on_reclaim)
        table.acquire("v1")
        table.retire("v1")
        table.release("v1")
        assert seen == [0]

    def test_concurrent_release_reclaims_once(self) -> None:
        """Many threads releasing the same version reclaim it exactly once."""
        reclaimed: list[str] = []
        table = ReferenceTable(reclaimed.append)
        for _ in range(50):
            table.acquire("v1")
        table.retire("v1")
        threads = [threading.Thread(target=table.release, args=("v1",)) for _ in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert reclaimed == ["v1"]
