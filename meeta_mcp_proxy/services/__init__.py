from .forwarder import (
    RequestForwarder,
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeout,
    UpstreamTransportError,
)
from .translator import ProtocolTranslator

__all__ = [
    "RequestForwarder",
    "UpstreamError",
    "UpstreamResponseError",
    "UpstreamTimeout",
    "UpstreamTransportError",
    "ProtocolTranslator",
]
