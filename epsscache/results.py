from __future__ import annotations

"""Utilities for transforming scores and snapshots into CLI output records."""

import json
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from epsscache.models import Score
from epsscache.storage import Snapshot

SCORE_FIELD_ORDER: Sequence[str] = ("cve", "epss", "percentile")

FLOAT_QUANTUM = Decimal("0.00001")


class ResultsFormatter:
    """Format scores and snapshot metadata into NDJSON-ready dictionaries."""

    def format_scores(
        self,
        scores: Iterable[Score],
        *,
        min_epss: float = 0.0,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return score records ordered by EPSS, highest first."""
        selected = [score for score in scores if score.epss >= min_epss]
        selected.sort(key=lambda score: (-score.epss, score.cve))
        if limit is not None:
            selected = selected[: max(limit, 0)]
        return [self.format_score(score) for score in selected]

    @staticmethod
    def format_score(score: Score) -> Dict[str, Any]:
        values = score.as_dict()
        return {field: values[field] for field in SCORE_FIELD_ORDER}

    @staticmethod
    def format_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
        metadata = snapshot.metadata
        record: Dict[str, Any] = {
            "model_version": metadata.model_version if metadata else None,
            "score_date": metadata.score_date if metadata else None,
            "last_updated": snapshot.last_updated,
            "count": len(snapshot),
        }
        return record


def to_ndjson_line(record: Mapping[str, Any]) -> str:
    """Serialize a record to JSON with fixed decimal formatting."""

    pairs = [
        f"{_serialize_string(key)}:{_serialize_value(value)}"
        for key, value in record.items()
    ]
    return "{" + ",".join(pairs) + "}"


def _serialize_value(value: Any) -> str:
    if isinstance(value, str):
        return _serialize_string(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, datetime):
        return _serialize_string(value.isoformat())
    return str(value)


def _serialize_string(value: str) -> str:
    return json.dumps(value)


def _format_float(value: float) -> str:
    decimal_value = Decimal(str(value))
    rounded = decimal_value.quantize(FLOAT_QUANTUM, rounding=ROUND_HALF_UP)
    return format(rounded, ".5f")
