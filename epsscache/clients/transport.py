"""Transports that download the compressed EPSS dataset."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol, cast

import requests

from epsscache.config import DEFAULT_HTTP_TIMEOUT_SECONDS, USER_AGENT
from epsscache.errors import TransportError


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body returned by a transport."""

    status_code: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(Protocol):
    """Anything able to fetch a URL; failures raise ``TransportError``."""

    def fetch(self, url: str) -> TransportResponse: ...


class _SessionWithGet(Protocol):
    def get(self, url: str, **kwargs: Any) -> Any: ...


class HTTPTransport:
    """Download datasets over HTTP(S) with a ``requests`` session.

    Each transport owns its session; pass one in to share connection pools
    or to substitute a fake in tests.
    """

    def __init__(
        self,
        *,
        session: Optional[_SessionWithGet] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive.")
        self._session = cast(_SessionWithGet, session or requests.Session())
        self._timeout = timeout
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def timeout(self) -> float:
        return self._timeout

    def fetch(self, url: str) -> TransportResponse:
        """GET ``url`` and return its status and body."""
        started_at = time.perf_counter()
        try:
            response = self._session.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
            )
            content = response.content or b""
        except requests.RequestException as error:
            raise TransportError(
                f"Failed to send request to {url}: {error}"
            ) from error
        finally:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            if self._logger.isEnabledFor(logging.DEBUG):
                self._logger.debug(
                    "GET %s completed in %.2f ms",
                    url,
                    elapsed_ms,
                )

        return TransportResponse(
            status_code=int(response.status_code),
            content=content,
        )
