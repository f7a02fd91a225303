"""Snapshot storage and locking primitives."""

from .locks import LockTimeout, ReadWriteLock
from .snapshot import Snapshot, SnapshotStore

__all__ = [
    "LockTimeout",
    "ReadWriteLock",
    "Snapshot",
    "SnapshotStore",
]
