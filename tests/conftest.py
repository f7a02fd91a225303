"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Shared fixtures for EPSS cache tests.
"""

from __future__ import annotations

import gzip
from typing import Callable, Iterable, Optional

import pytest

from epsscache.utils import env

METADATA_LINE = (
    "#model_version:v2023.03.01,score_date:2024-02-22T00:00:00+0000"
)
HEADER_LINE = "cve,epss,percentile"
SAMPLE_ROWS = (
    "CVE-1999-0001,0.00383,0.72361",
    "CVE-1999-0002,0.02091,0.88751",
)

DatasetBuilder = Callable[..., bytes]


def _build_dataset(
    rows: Iterable[str] = SAMPLE_ROWS,
    *,
    metadata_line: Optional[str] = METADATA_LINE,
    header: Optional[str] = HEADER_LINE,
) -> bytes:
    lines = []
    if metadata_line is not None:
        lines.append(metadata_line)
    if header is not None:
        lines.append(header)
    lines.extend(rows)
    return "\n".join(lines).encode("utf-8")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer ``.env`` files and EPSS_* variables out of tests."""

    monkeypatch.setattr(env, "_ENV_LOADED", True)
    for key in ("EPSS_DATA_URL", "EPSS_UPDATE_INTERVAL_HOURS", "EPSS_HTTP_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def dataset() -> DatasetBuilder:
    """Return a builder for decompressed dataset bytes."""

    return _build_dataset


@pytest.fixture
def gzip_dataset() -> DatasetBuilder:
    """Return a builder for gzip-compressed dataset bytes."""

    def _build(*args, **kwargs) -> bytes:  # type: ignore[no-untyped-def]
        return gzip.compress(_build_dataset(*args, **kwargs))

    return _build
