"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Reader/writer lock guarding the published score snapshot.
"""

from __future__ import annotations

import contextlib
import threading
from typing import Iterator, Optional

from epsscache.errors import EPSSError


class LockTimeout(EPSSError):
    """Raised when a lock cannot be acquired within the requested timeout."""


class ReadWriteLock:
    """Allow many concurrent readers or a single writer.

    Waiting writers take precedence over new readers so a commit is never
    starved by a steady stream of reads. The lock is not re-entrant:
    acquiring it again from the thread that holds it deadlocks.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextlib.contextmanager
    def read(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the shared lock for the duration of the block."""
        with self._condition:
            acquired = self._condition.wait_for(
                lambda: not self._writer and not self._waiting_writers,
                timeout=timeout,
            )
            if not acquired:
                raise LockTimeout("Timed out acquiring read lock")
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextlib.contextmanager
    def write(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the exclusive lock for the duration of the block."""
        with self._condition:
            self._waiting_writers += 1
            try:
                acquired = self._condition.wait_for(
                    lambda: not self._writer and self._readers == 0,
                    timeout=timeout,
                )
            finally:
                self._waiting_writers -= 1
            if not acquired:
                # Readers blocked on our waiting flag may proceed now.
                self._condition.notify_all()
                raise LockTimeout("Timed out acquiring write lock")
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()

    @property
    def readers(self) -> int:
        with self._condition:
            return self._readers
