"""Read-through EPSS score client backed by an in-memory snapshot."""

from __future__ import annotations

import gzip
import logging
import threading
import time
import zlib
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from epsscache.clients import HTTPTransport, Transport
from epsscache.config import DEFAULT_DATA_URL
from epsscache.errors import (DecompressFailed, FetchFailed, InvalidCVE,
                              ParseError, ParseFailed, RefreshError,
                              ScoreNotFound, TransportError)
from epsscache.models import Metadata, Score, is_cve_id
from epsscache.parser import ScoreParser
from epsscache.staleness import StalenessPolicy
from epsscache.storage import Snapshot, SnapshotStore
from epsscache.utils import env

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EPSSClient:
    """Serve EPSS scores from memory, refreshing the dataset when stale.

    Every read first checks the staleness policy. A stale snapshot is
    refreshed inline by the calling thread: the dataset is downloaded,
    decompressed and parsed into a new snapshot which then replaces the old
    one in a single commit. Any failure leaves the previous snapshot in
    place and is raised to the caller as a :class:`RefreshError`.
    """

    def __init__(
        self,
        *,
        data_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        update_interval: Any = None,
        clock: Optional[Clock] = None,
        parser: Optional[ScoreParser] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._data_url = data_url or DEFAULT_DATA_URL
        self._transport: Transport = transport or HTTPTransport()
        self._policy = StalenessPolicy(update_interval)
        self._clock = clock or _utc_now
        self._parser = parser or ScoreParser()
        self._store = SnapshotStore()
        self._refresh_lock = threading.Lock()
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_env(
        cls,
        *,
        transport: Optional[Transport] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "EPSSClient":
        """Build a client from ``EPSS_*`` environment variables."""
        env.load_dotenv()
        if transport is None:
            timeout = env.http_timeout_from_env()
            transport = (
                HTTPTransport(timeout=timeout)
                if timeout is not None
                else HTTPTransport()
            )
        return cls(
            data_url=env.data_url_from_env(),
            transport=transport,
            update_interval=env.update_interval_from_env(),
            clock=clock,
            logger=logger,
        )

    # Refresh ---------------------------------------------------------------

    @property
    def data_url(self) -> str:
        return self._data_url

    @property
    def policy(self) -> StalenessPolicy:
        return self._policy

    def is_stale(self) -> bool:
        return self._policy.is_stale(self._store.last_updated, self._clock())

    def ensure_fresh(self) -> None:
        """Refresh the snapshot if the staleness policy requires it."""
        self.refresh()

    def refresh(self, *, force: bool = False) -> bool:
        """Reload the dataset when stale, or unconditionally with ``force``.

        Returns ``True`` when a new snapshot was committed.
        """
        if not force and not self.is_stale():
            return False

        with self._refresh_lock:
            # A concurrent caller may have committed while we waited.
            if not force and not self.is_stale():
                return False
            try:
                snapshot = self._load_snapshot()
            except RefreshError as error:
                self._logger.warning("EPSS refresh failed: %s", error)
                raise
            self._store.commit(snapshot)

        metadata = snapshot.metadata
        self._logger.info(
            "Loaded %d EPSS scores (model %s, score date %s)",
            len(snapshot),
            metadata.model_version if metadata else "<unknown>",
            metadata.score_date.isoformat() if metadata else "<unknown>",
        )
        return True

    def _load_snapshot(self) -> Snapshot:
        self._logger.debug("Refreshing EPSS scores from %s", self._data_url)
        payload = self._fetch()
        data = self._decompress(payload)

        started_at = time.perf_counter()
        try:
            parsed = self._parser.parse(data)
        except ParseError as error:
            raise ParseFailed(error) from error
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "Parsed dataset in %.2f ms (%d rows skipped)",
                (time.perf_counter() - started_at) * 1000.0,
                parsed.skipped_rows,
            )

        return Snapshot.build(
            scores=parsed.scores,
            metadata=parsed.metadata,
            last_updated=self._clock(),
        )

    def _fetch(self) -> bytes:
        try:
            response = self._transport.fetch(self._data_url)
        except TransportError as error:
            raise FetchFailed(
                f"Failed to fetch {self._data_url}: {error}"
            ) from error

        if not response.ok:
            raise FetchFailed(
                f"Unexpected HTTP status {response.status_code} "
                f"from {self._data_url}"
            )
        if not response.content:
            raise FetchFailed(f"Empty response body from {self._data_url}")
        return response.content

    @staticmethod
    def _decompress(payload: bytes) -> bytes:
        try:
            return gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as error:
            raise DecompressFailed(
                f"Failed to decompress EPSS dataset: {error}"
            ) from error

    # Queries ---------------------------------------------------------------

    def get_all_scores(self) -> List[Score]:
        """Return every score of the current snapshot, in no fixed order."""
        self.ensure_fresh()
        return list(self._store.read().scores.values())

    def get_score(self, cve: str) -> Score:
        """Return the score for ``cve`` or raise :class:`ScoreNotFound`."""
        self._validate_cve(cve)
        self.ensure_fresh()
        try:
            return self._store.read().scores[cve]
        except KeyError as exc:
            raise ScoreNotFound(f"Score not found for CVE: {cve}") from exc

    def get_scores(self, cves: Iterable[str]) -> Dict[str, Score]:
        """Look up several CVEs at once; unknown ones are left out."""
        requested = list(cves)
        for cve in requested:
            self._validate_cve(cve)
        self.ensure_fresh()
        scores = self._store.read().scores
        return {cve: scores[cve] for cve in requested if cve in scores}

    @staticmethod
    def _validate_cve(cve: Any) -> None:
        if not is_cve_id(cve):
            raise InvalidCVE(f"Invalid CVE format: {cve}")

    # Snapshot accessors ----------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._store.read()

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._store.last_updated

    @property
    def metadata(self) -> Optional[Metadata]:
        return self._store.read().metadata

    @property
    def model_version(self) -> Optional[str]:
        metadata = self.metadata
        return metadata.model_version if metadata else None

    @property
    def score_date(self) -> Optional[datetime]:
        metadata = self.metadata
        return metadata.score_date if metadata else None
