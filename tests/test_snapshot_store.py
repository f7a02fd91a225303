"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Tests for the reader/writer lock and the snapshot store.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import List

import pytest

from epsscache.models import Metadata, Score
from epsscache.storage import (LockTimeout, ReadWriteLock, Snapshot,
                               SnapshotStore)

METADATA = Metadata(
    model_version="v2023.03.01",
    score_date=datetime(2024, 2, 22, tzinfo=timezone.utc),
)


def _snapshot(epss: float, when: datetime) -> Snapshot:
    scores = {
        "CVE-1999-0001": Score("CVE-1999-0001", epss, epss),
        "CVE-1999-0002": Score("CVE-1999-0002", epss, epss),
    }
    return Snapshot.build(scores, METADATA, when)


def test_store_starts_empty() -> None:
    store = SnapshotStore()
    snapshot = store.read()

    assert len(snapshot) == 0
    assert snapshot.metadata is None
    assert store.last_updated is None


def test_commit_replaces_snapshot() -> None:
    store = SnapshotStore()
    when = datetime(2024, 2, 22, 8, tzinfo=timezone.utc)
    snapshot = _snapshot(0.1, when)

    store.commit(snapshot)

    assert store.read() is snapshot
    assert store.last_updated == when


def test_snapshot_build_copies_and_freezes_scores() -> None:
    scores = {"CVE-1999-0001": Score("CVE-1999-0001", 0.1, 0.2)}
    snapshot = Snapshot.build(
        scores, METADATA, datetime(2024, 2, 22, tzinfo=timezone.utc)
    )

    scores["CVE-1999-0002"] = Score("CVE-1999-0002", 0.3, 0.4)

    assert list(snapshot.scores) == ["CVE-1999-0001"]
    with pytest.raises(TypeError):
        snapshot.scores["CVE-1999-0003"] = scores["CVE-1999-0002"]  # type: ignore[index]


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=5)
    errors: List[BaseException] = []

    def reader() -> None:
        try:
            with lock.read():
                # All three readers must be inside at once to pass.
                inside.wait()
        except BaseException as error:  # noqa: BLE001 - surfaced below
            errors.append(error)

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert lock.readers == 0


def test_writer_waits_for_readers() -> None:
    lock = ReadWriteLock()

    with lock.read():
        with pytest.raises(LockTimeout):
            with lock.write(timeout=0.05):
                pass

    with lock.write(timeout=1):
        pass


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    writer_waiting = threading.Event()
    writer_done = threading.Event()

    def writer() -> None:
        writer_waiting.set()
        with lock.write(timeout=5):
            pass
        writer_done.set()

    with lock.read():
        thread = threading.Thread(target=writer)
        thread.start()
        writer_waiting.wait(timeout=5)
        # Give the writer a moment to register as waiting.
        for _ in range(100):
            if lock._waiting_writers:
                break
            time.sleep(0.01)
        with pytest.raises(LockTimeout):
            with lock.read(timeout=0.05):
                pass

    thread.join(timeout=5)
    assert writer_done.is_set()
    with lock.read(timeout=1):
        pass


def test_write_timeout_releases_waiting_readers() -> None:
    lock = ReadWriteLock()

    with lock.read():
        with pytest.raises(LockTimeout):
            with lock.write(timeout=0.01):
                pass
        # The abandoned writer must not keep blocking readers.
        with lock.read(timeout=0.5):
            pass


def test_concurrent_reads_see_whole_snapshots() -> None:
    store = SnapshotStore()
    store.commit(_snapshot(0.0, datetime(2024, 1, 1, tzinfo=timezone.utc)))
    stop = threading.Event()
    mixed: List[Snapshot] = []

    def writer() -> None:
        step = 0
        while not stop.is_set():
            step = (step + 1) % 100
            store.commit(
                _snapshot(step / 100, datetime(2024, 1, 1, tzinfo=timezone.utc))
            )

    def reader() -> None:
        for _ in range(2000):
            snapshot = store.read()
            values = {score.epss for score in snapshot.scores.values()}
            if len(values) != 1:
                mixed.append(snapshot)

    writer_thread = threading.Thread(target=writer)
    readers = [threading.Thread(target=reader) for _ in range(4)]
    writer_thread.start()
    for thread in readers:
        thread.start()
    for thread in readers:
        thread.join(timeout=30)
    stop.set()
    writer_thread.join(timeout=5)

    assert mixed == []
