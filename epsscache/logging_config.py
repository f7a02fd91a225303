"""Central logging configuration driven by LOG_LEVEL and LOG_FILE."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

_CONFIGURED = False

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> None:
    """Configure global logging based on LOG_LEVEL and LOG_FILE.

    ``LOG_LEVEL`` 0 (the default) keeps logging silent, 1 enables INFO and
    2 or more enables DEBUG. Output goes to ``LOG_FILE`` when set and to
    stderr otherwise.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _read_level(os.getenv("LOG_LEVEL", "0"))
    log_path = os.getenv("LOG_FILE")

    if level is None or level <= 0:
        # Silent mode; keep logging disabled.
        _CONFIGURED = True
        return

    options: Dict[str, Any] = {
        "level": _map_level(level),
        "format": _FORMAT,
        "force": True,
    }
    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        options["filename"] = log_file
        options["filemode"] = "a"

    logging.basicConfig(**options)
    _CONFIGURED = True


def _read_level(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _map_level(level: int) -> int:
    if level >= 2:
        return logging.DEBUG
    return logging.INFO
