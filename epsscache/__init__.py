"""In-memory, read-through cache for EPSS exploit prediction scores."""

from .client import EPSSClient
from .clients import HTTPTransport, Transport, TransportResponse
from .errors import (DecompressFailed, EPSSError, FetchFailed, InvalidCVE,
                     InvalidScoreDate, MalformedMetadata, MalformedRow,
                     ParseError, ParseFailed, RefreshError, ScoreNotFound,
                     TransportError, UnexpectedHeader)
from .models import Metadata, Score
from .parser import ParsedDataset, ScoreParser
from .staleness import StalenessPolicy
from .storage import Snapshot, SnapshotStore

__all__ = [
    "EPSSClient",
    "HTTPTransport",
    "Transport",
    "TransportResponse",
    "EPSSError",
    "InvalidCVE",
    "ScoreNotFound",
    "TransportError",
    "ParseError",
    "MalformedMetadata",
    "InvalidScoreDate",
    "UnexpectedHeader",
    "MalformedRow",
    "RefreshError",
    "FetchFailed",
    "DecompressFailed",
    "ParseFailed",
    "Metadata",
    "Score",
    "ParsedDataset",
    "ScoreParser",
    "StalenessPolicy",
    "Snapshot",
    "SnapshotStore",
]
