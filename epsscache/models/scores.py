"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Domain models for EPSS scores and dataset metadata.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from epsscache.config import CVE_PREFIX, SCORE_DATE_FORMAT


def is_cve_id(value: Any) -> bool:
    """Return ``True`` when ``value`` is a string carrying the CVE prefix."""
    return isinstance(value, str) and value.startswith(CVE_PREFIX)


def validate_cve_id(value: Any) -> str:
    """Ensure CVE identifiers carry the ``CVE-`` prefix."""
    if not is_cve_id(value):
        raise ValueError(
            f"CVE identifier {value!r} is invalid. "
            f"Expected prefix {CVE_PREFIX!r}"
        )
    return value


def is_probability(value: float) -> bool:
    """Return ``True`` for finite values inside ``[0.0, 1.0]``."""
    return not math.isnan(value) and 0.0 <= value <= 1.0


@dataclass(frozen=True)
class Score:
    """Exploit prediction score for a single CVE."""

    cve: str
    epss: float
    percentile: float

    def __post_init__(self) -> None:
        validate_cve_id(self.cve)
        for field_name in ("epss", "percentile"):
            value = getattr(self, field_name)
            if not is_probability(value):
                raise ValueError(
                    f"{field_name} for {self.cve} must be within [0, 1], "
                    f"got {value!r}"
                )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "cve": self.cve,
            "epss": self.epss,
            "percentile": self.percentile,
        }


@dataclass(frozen=True)
class Metadata:
    """Publication stamp of an EPSS dataset."""

    model_version: str
    score_date: datetime

    def __post_init__(self) -> None:
        if not self.model_version:
            raise ValueError("model_version cannot be empty")

    def as_dict(self) -> Dict[str, Any]:
        return {
            "model_version": self.model_version,
            "score_date": self.score_date.strftime(SCORE_DATE_FORMAT),
        }
