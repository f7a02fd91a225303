"""Error taxonomy shared by the parser, the transport and the client."""

from __future__ import annotations

from typing import Optional


class EPSSError(RuntimeError):
    """Base class for EPSS cache failures."""


class InvalidCVE(EPSSError, ValueError):
    """Raised when a caller passes a malformed CVE identifier."""


class ScoreNotFound(EPSSError, LookupError):
    """Raised when a well-formed CVE has no score in the current snapshot."""


class TransportError(EPSSError):
    """Raised by transports when the dataset cannot be retrieved."""


# Parse failures ------------------------------------------------------------


class ParseError(EPSSError):
    """Raised when the decompressed dataset cannot be parsed."""


class MalformedMetadata(ParseError):
    """The leading ``#model_version:...,score_date:...`` line is unusable."""


class InvalidScoreDate(ParseError):
    """The ``score_date`` value does not match the published format."""


class UnexpectedHeader(ParseError):
    """The CSV header is not exactly ``cve,epss,percentile``."""


class MalformedRow(ParseError):
    """A data row does not have exactly three fields."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.line_number = line_number


# Refresh failures ----------------------------------------------------------


class RefreshError(EPSSError):
    """Raised when a refresh attempt fails; the previous snapshot is kept."""


class FetchFailed(RefreshError):
    """The transport failed, returned a bad status or an empty body."""


class DecompressFailed(RefreshError):
    """The downloaded payload is not valid gzip data."""


class ParseFailed(RefreshError):
    """The decompressed payload failed to parse."""

    def __init__(self, reason: ParseError):
        super().__init__(f"Failed to parse EPSS dataset: {reason}")
        self.reason = reason
