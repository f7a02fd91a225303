"""Parser for decompressed EPSS score datasets."""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from epsscache.config import CVE_PREFIX, EXPECTED_HEADER, SCORE_DATE_FORMAT
from epsscache.errors import (InvalidScoreDate, MalformedMetadata,
                              MalformedRow, ParseError, UnexpectedHeader)
from epsscache.models import Metadata, Score, is_probability

_LOGGER = logging.getLogger(__name__)

_COMMENT_PREFIX = "#"

# strptime alone also accepts single-digit fields.
_SCORE_DATE_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\+0000"
)


@dataclass(frozen=True)
class ParsedDataset:
    """Result of parsing one dataset: metadata plus validated scores."""

    metadata: Metadata
    scores: Mapping[str, Score] = field(default_factory=dict)
    skipped_rows: int = 0


class ScoreParser:
    """Parse the EPSS CSV format into :class:`Score` records.

    The first line is a comment holding the model version and score date,
    followed by a ``cve,epss,percentile`` header and three-field rows.
    Structural problems (metadata, header, field counts) abort the parse.
    Cell problems (identifier prefix, unparsable or out-of-range values)
    only drop the offending row.
    """

    EXPECTED_HEADER: Tuple[str, ...] = EXPECTED_HEADER

    def parse(self, data: bytes) -> ParsedDataset:
        """Convert decompressed dataset bytes into a :class:`ParsedDataset`."""
        text = self._decode(data)
        metadata_line, _, body = text.partition("\n")
        metadata = self.parse_metadata(metadata_line)
        scores, skipped = self._parse_body(body)

        _LOGGER.debug(
            "Parsed %d scores (%d rows skipped) for model %s",
            len(scores),
            skipped,
            metadata.model_version,
        )
        return ParsedDataset(
            metadata=metadata,
            scores=scores,
            skipped_rows=skipped,
        )

    def parse_metadata(self, line: str) -> Metadata:
        """Parse ``#model_version:<v>,score_date:<timestamp>``."""
        stripped = line.strip()
        if stripped.startswith(_COMMENT_PREFIX):
            stripped = stripped[len(_COMMENT_PREFIX):].strip()

        parts = stripped.split(",")
        if len(parts) != 2:
            raise MalformedMetadata(
                "Invalid metadata format: expected 2 parts, "
                f"got {len(parts)}"
            )

        values: Dict[str, str] = {}
        for part in parts:
            key, separator, value = part.partition(":")
            if not separator:
                continue
            values[key.strip()] = value.strip()

        model_version = values.get("model_version", "")
        if not model_version:
            raise MalformedMetadata("Model version not found in metadata")

        raw_score_date = values.get("score_date")
        if not raw_score_date:
            raise MalformedMetadata("Score date not found in metadata")

        return Metadata(
            model_version=model_version,
            score_date=self._parse_score_date(raw_score_date),
        )

    @staticmethod
    def _parse_score_date(value: str) -> datetime:
        if not _SCORE_DATE_PATTERN.fullmatch(value):
            raise InvalidScoreDate(f"Invalid score date format: {value!r}")
        try:
            parsed = datetime.strptime(value, SCORE_DATE_FORMAT)
        except ValueError as error:
            raise InvalidScoreDate(
                f"Invalid score date format: {value!r}"
            ) from error
        return parsed.replace(tzinfo=timezone.utc)

    @staticmethod
    def _decode(data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as error:
            raise ParseError("Dataset is not valid UTF-8") from error

    def _parse_body(self, body: str) -> Tuple[Dict[str, Score], int]:
        reader = csv.reader(io.StringIO(body))
        rows = self._iter_rows(reader)

        # Comment lines are only allowed ahead of the header.
        header = next(rows, None)
        while header is not None and header[1][0].startswith(_COMMENT_PREFIX):
            header = next(rows, None)
        if header is None:
            raise UnexpectedHeader(
                "Missing CSV header: expected "
                f"{list(self.EXPECTED_HEADER)}"
            )
        _, header_fields = header
        if tuple(header_fields) != self.EXPECTED_HEADER:
            raise UnexpectedHeader(
                "Invalid CSV header format: expected "
                f"{list(self.EXPECTED_HEADER)}, got {header_fields}"
            )

        scores: Dict[str, Score] = {}
        skipped = 0
        for line_number, fields in rows:
            if len(fields) != len(self.EXPECTED_HEADER):
                raise MalformedRow(
                    f"Invalid number of fields at line {line_number}: "
                    f"expected {len(self.EXPECTED_HEADER)}, "
                    f"got {len(fields)}",
                    line_number=line_number,
                )
            score = self._build_score(fields)
            if score is None:
                skipped += 1
                _LOGGER.debug("Skipping invalid row at line %d", line_number)
                continue
            # Later rows replace earlier ones for the same CVE.
            scores[score.cve] = score

        return scores, skipped

    @staticmethod
    def _iter_rows(reader):  # type: ignore[no-untyped-def]
        """Yield ``(line_number, fields)`` for every non-blank line.

        Line numbers count from the start of the dataset, so the metadata
        line is line 1.
        """
        while True:
            try:
                fields: List[str] = next(reader)
            except StopIteration:
                return
            except csv.Error as error:
                line_number = reader.line_num + 1
                raise MalformedRow(
                    f"Error reading CSV line {line_number}: {error}",
                    line_number=line_number,
                ) from error
            if not fields:
                continue
            yield reader.line_num + 1, fields

    @staticmethod
    def _build_score(fields: Sequence[str]) -> Optional[Score]:
        """Return a validated score, or ``None`` when a cell is invalid."""
        cve, raw_epss, raw_percentile = fields
        if not cve.startswith(CVE_PREFIX):
            return None

        epss = _parse_float(raw_epss)
        percentile = _parse_float(raw_percentile)
        if epss is None or percentile is None:
            return None

        if not (is_probability(epss) and is_probability(percentile)):
            return None

        return Score(cve=cve, epss=epss, percentile=percentile)


def _parse_float(raw: str) -> Optional[float]:
    """Strict float parsing: no padding, digit separators or non-ASCII."""
    if raw != raw.strip() or "_" in raw or not raw.isascii():
        return None
    try:
        return float(raw)
    except ValueError:
        return None
