"""Transport clients for retrieving the EPSS dataset."""

from .transport import HTTPTransport, Transport, TransportResponse

__all__ = [
    "HTTPTransport",
    "Transport",
    "TransportResponse",
]
