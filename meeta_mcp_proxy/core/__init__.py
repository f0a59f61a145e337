from .framing import MAX_BUFFER_CHARS, FrameAssembler, FrameWriter, encode_frame

__all__ = [
    "MAX_BUFFER_CHARS",
    "FrameAssembler",
    "FrameWriter",
    "encode_frame",
]
