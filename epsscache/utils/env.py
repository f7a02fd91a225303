from __future__ import annotations

"""Helpers for loading environment configuration."""

import logging
import math
import os
from datetime import timedelta
from pathlib import Path
from typing import Optional, Tuple, Union

from epsscache.config import (ENV_DATA_URL, ENV_HTTP_TIMEOUT,
                              ENV_UPDATE_INTERVAL_HOURS)

_ENV_LOADED = False

_LOGGER = logging.getLogger(__name__)


def load_dotenv(dotenv_path: Union[str, Path] = ".env") -> None:
    """Load environment variables from a simple ``.env`` file if present."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    path = Path(dotenv_path)
    if path.exists():
        for line in path.read_text().splitlines():
            parsed = _parse_line(line)
            if parsed:
                key, value = parsed
                os.environ.setdefault(key, value)

    _ENV_LOADED = True


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    if "=" not in stripped:
        return None

    key, value = stripped.split("=", 1)
    return (key.strip(), value.strip().strip("'\""))


def _read_non_negative_float(key: str) -> Optional[float]:
    raw = os.environ.get(key, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        _LOGGER.warning("Ignoring non-numeric %s=%r", key, raw)
        return None
    if value < 0 or math.isnan(value):
        _LOGGER.warning("Ignoring invalid %s=%r", key, raw)
        return None
    return value


def data_url_from_env() -> Optional[str]:
    """Return the dataset URL override from ``EPSS_DATA_URL``."""
    load_dotenv()
    value = os.environ.get(ENV_DATA_URL, "").strip()
    return value or None


def update_interval_from_env() -> Optional[timedelta]:
    """Return the refresh interval from ``EPSS_UPDATE_INTERVAL_HOURS``."""
    load_dotenv()
    hours = _read_non_negative_float(ENV_UPDATE_INTERVAL_HOURS)
    if hours is None:
        return None
    try:
        return timedelta(hours=hours)
    except OverflowError:
        _LOGGER.warning("Ignoring oversized %s", ENV_UPDATE_INTERVAL_HOURS)
        return None


def http_timeout_from_env() -> Optional[float]:
    """Return the download timeout in seconds from ``EPSS_HTTP_TIMEOUT``."""
    load_dotenv()
    timeout = _read_non_negative_float(ENV_HTTP_TIMEOUT)
    if timeout == 0:
        _LOGGER.warning("Ignoring zero %s", ENV_HTTP_TIMEOUT)
        return None
    return timeout
