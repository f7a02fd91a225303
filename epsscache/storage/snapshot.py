"""In-memory snapshot store holding the currently published scores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from epsscache.models import Metadata, Score

from .locks import ReadWriteLock


def _empty_scores() -> Mapping[str, Score]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Snapshot:
    """Scores, metadata and refresh time published together as one unit."""

    scores: Mapping[str, Score] = field(default_factory=_empty_scores)
    metadata: Optional[Metadata] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        scores: Mapping[str, Score],
        metadata: Metadata,
        last_updated: datetime,
    ) -> "Snapshot":
        """Copy ``scores`` into a read-only mapping and wrap it."""
        return cls(
            scores=MappingProxyType(dict(scores)),
            metadata=metadata,
            last_updated=last_updated,
        )

    def __len__(self) -> int:
        return len(self.scores)


class SnapshotStore:
    """Own the current :class:`Snapshot` and swap it atomically."""

    def __init__(self, snapshot: Optional[Snapshot] = None) -> None:
        self._lock = ReadWriteLock()
        self._snapshot = snapshot if snapshot is not None else Snapshot()

    def read(self) -> Snapshot:
        with self._lock.read():
            return self._snapshot

    def commit(self, snapshot: Snapshot) -> None:
        """Replace the published snapshot in a single step."""
        with self._lock.write():
            self._snapshot = snapshot

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.read().last_updated
