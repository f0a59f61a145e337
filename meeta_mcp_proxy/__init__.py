from .config import SERVER_NAME, SERVER_VERSION, Settings, get_settings, resolve_endpoint
from .core.framing import FrameAssembler, FrameWriter, encode_frame
from .services.forwarder import RequestForwarder, UpstreamError
from .services.translator import ProtocolTranslator

__version__ = SERVER_VERSION

__all__ = [
    "SERVER_NAME",
    "Settings",
    "get_settings",
    "resolve_endpoint",
    "FrameAssembler",
    "FrameWriter",
    "encode_frame",
    "RequestForwarder",
    "UpstreamError",
    "ProtocolTranslator",
]
