import sys
import json
import signal
import logging
import asyncio
import argparse
from typing import AsyncIterator, BinaryIO, List, Optional, Set

from meeta_mcp_proxy.config import DEFAULT_ENDPOINT, Settings, get_settings, resolve_endpoint
from meeta_mcp_proxy.core.framing import FrameAssembler, FrameWriter
from meeta_mcp_proxy.core.utils import configure_logging
from meeta_mcp_proxy.services.forwarder import RequestForwarder, UpstreamError
from meeta_mcp_proxy.services.translator import ProtocolTranslator

logger = logging.getLogger(__name__)

# Upper bound for a single stdin line; framing limits only apply to unparseable input
STDIN_LINE_LIMIT = 16 * 1024 * 1024


class StdioBridge:
    """
    Pumps stdin lines through the frame assembler and answers each completed request.

    Requests are dispatched as tasks so the next line can be assembled while an
    earlier request is still waiting on the network. All output goes through a
    single FrameWriter.
    """

    def __init__(self, translator: ProtocolTranslator, writer: FrameWriter,
                 assembler: Optional[FrameAssembler] = None):
        self.translator = translator
        self.writer = writer
        self.assembler = assembler or FrameAssembler()
        self._in_flight: Set[asyncio.Task] = set()

    def handle_line(self, line: str) -> List[asyncio.Task]:
        tasks = []
        for request in self.assembler.feed(line):
            task = asyncio.create_task(self._answer(request))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            task.add_done_callback(self._report_failure)
            tasks.append(task)
        return tasks

    @staticmethod
    def _report_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Failed to write response: %r", exc, exc_info=exc)

    async def _answer(self, request) -> None:
        response = await self.translator.handle(request)
        await self.writer.write(response)

    async def serve(self, lines: AsyncIterator[str]) -> None:
        """Runs until the input ends, then lets requests already in flight finish."""
        async for line in lines:
            self.handle_line(line)

        if self._in_flight:
            logger.debug(f"Input closed, waiting for {len(self._in_flight)} request(s)")
            await asyncio.gather(*self._in_flight, return_exceptions=True)


async def read_stdin_lines(stream: Optional[BinaryIO] = None) -> AsyncIterator[str]:
    """Yields decoded stdin lines with the line terminator removed."""
    stream = stream or sys.stdin.buffer
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STDIN_LINE_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    try:
        await loop.connect_read_pipe(lambda: protocol, stream)
    except ValueError:
        # stdin redirected from a regular file cannot be watched by the loop
        while True:
            raw = await asyncio.to_thread(stream.readline)
            if not raw:
                return
            yield raw.decode("utf-8", errors="replace").rstrip("\r\n")

    while True:
        raw = await reader.readline()
        if not raw:
            return
        yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _shutdown(signame: str) -> None:
        logger.debug(f"Received {signame}. Shutting down...")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown, sig.name)
        except (NotImplementedError, RuntimeError):
            # No loop signal support on this platform; default handlers stay in place
            pass


async def run_bridge(settings: Settings, endpoint: str) -> int:
    """
    Application Lifecycle:
    1. Build the forwarder/translator pair for the resolved endpoint
    2. Serve stdin until EOF or SIGINT/SIGTERM
    """
    stop = asyncio.Event()
    _install_signal_handlers(stop)

    forwarder = RequestForwarder(endpoint, timeout=settings.request_timeout, user_agent=settings.user_agent)
    bridge = StdioBridge(ProtocolTranslator(forwarder), FrameWriter(sys.stdout.buffer))

    logger.debug("Meeta MCP HTTP Proxy started")
    logger.debug(f"API Endpoint: {endpoint}")

    serve_task = asyncio.create_task(bridge.serve(read_stdin_lines()))
    stop_task = asyncio.create_task(stop.wait())
    done, _ = await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    if stop_task in done:
        # In-flight calls are abandoned; asyncio.run() cancels what is left
        serve_task.cancel()
        return 0

    stop_task.cancel()
    serve_task.result()
    logger.debug("Input closed, exiting")
    return 0


async def run_self_test(endpoint: str, settings: Settings) -> int:
    """
    Manual connectivity check: one tools/list call, result on the console.
    Exit status 0 on success, 1 on failure.
    """
    print(f"Testing connection to: {endpoint}")

    forwarder = RequestForwarder(endpoint, timeout=settings.request_timeout, user_agent=settings.user_agent)
    try:
        response = await forwarder.send({"method": "tools/list", "params": {}})
    except UpstreamError as e:
        print(f"Connection failed: {e}", file=sys.stderr)
        return 1

    print("Success! Available tools:")
    print(json.dumps(response, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meeta-mcp-proxy",
        description="Bridge MCP JSON-RPC on stdin/stdout to a remote HTTP JSON API.",
    )
    parser.add_argument(
        "endpoint",
        nargs="?",
        default=None,
        help=f"Remote MCP HTTP endpoint (MEETA_MCP_ENDPOINT wins over this; default: {DEFAULT_ENDPOINT})",
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Call tools/list once against the endpoint and exit (0 = success, 1 = failure)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    if args.test:
        # Only a literal URL argument or the built-in default; MEETA_MCP_ENDPOINT is not consulted
        test_endpoint = args.endpoint or DEFAULT_ENDPOINT
        return asyncio.run(run_self_test(test_endpoint, settings))

    endpoint = resolve_endpoint(settings, args.endpoint)
    try:
        return asyncio.run(run_bridge(settings, endpoint))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
