"""
Stdio framing for the MCP proxy.

Inbound: lines are accumulated until the buffer parses as one JSON value.
Outbound: each response is written as ``Content-Length: <n>\\r\\n\\r\\n<json>``.
"""
import asyncio
import json
import logging
import re
from typing import Any, BinaryIO, List

logger = logging.getLogger(__name__)

# Garbage that never parses is dropped once the buffer grows past this many characters
MAX_BUFFER_CHARS = 10_000

# LSP-style header lines carry nothing the assembler needs
HEADER_LINE = re.compile(r"^(content-length|content-type)\s*:", re.IGNORECASE)


def reject_constant(name: str) -> Any:
    """parse_constant hook: NaN, Infinity and -Infinity are not JSON."""
    raise ValueError(f"invalid JSON constant: {name}")


def loads_strict(text: Any) -> Any:
    return json.loads(text, parse_constant=reject_constant)


class FrameAssembler:
    """
    Reassembles JSON-RPC messages from a line stream.

    A message may arrive on one line or be split across several (pretty-printed
    or chunked). Completion is detected by a successful parse, never by a
    declared length.
    """

    def __init__(self, max_chars: int = MAX_BUFFER_CHARS):
        self.max_chars = max_chars
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, line: str) -> List[Any]:
        """
        Consume one line (terminator removed).
        Returns the messages this line completed: empty, or exactly one parsed JSON value.
        """
        if line == "":
            return []
        if HEADER_LINE.match(line):
            return []

        self._buffer += line
        try:
            message = loads_strict(self._buffer)
        except (ValueError, RecursionError):
            # Incomplete (or garbage); keep accumulating unless it is too big
            if len(self._buffer) > self.max_chars:
                logger.debug(f"Buffer overflow ({len(self._buffer)} chars), resetting")
                self._buffer = ""
            return []

        self._buffer = ""
        return [message]


def encode_frame(payload: Any) -> bytes:
    """Serialize a response with its Content-Length header; the length counts UTF-8 bytes."""
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")
    return b"Content-Length: %d\r\n\r\n" % len(body) + body


class FrameWriter:
    """
    Single writer for the protocol output channel.
    Requests complete concurrently, so every frame is written and flushed under one lock.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self._lock = asyncio.Lock()

    async def write(self, payload: Any) -> None:
        frame = encode_frame(payload)
        async with self._lock:
            self.stream.write(frame)
            self.stream.flush()
