import json
import httpx
import logging
from typing import Dict, Any, Optional

from meeta_mcp_proxy.config import SERVER_NAME, SERVER_VERSION
from meeta_mcp_proxy.core.framing import loads_strict

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The remote endpoint could not produce a usable JSON reply."""


class UpstreamTimeout(UpstreamError):
    def __init__(self, message: str = "Request timeout"):
        super().__init__(message)


class UpstreamTransportError(UpstreamError):
    pass


class UpstreamResponseError(UpstreamError):
    """Reply body was not JSON. The raw text is kept for diagnostics."""

    def __init__(self, body: str, status_code: Optional[int] = None):
        super().__init__(f"Failed to parse response: {body}")
        self.body = body
        self.status_code = status_code


class RequestForwarder:
    """
    Sends one JSON envelope to the remote MCP HTTP API per call.
    A fresh httpx.AsyncClient is opened for every request; nothing is pooled or retried.
    """
    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        user_agent: str = f"{SERVER_NAME}/{SERVER_VERSION}",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "User-Agent": user_agent,
        }
        # Injected by tests (httpx.MockTransport); None means real network I/O
        self._transport = transport

    async def send(self, envelope: Any) -> Any:
        """
        POST the envelope and return the decoded JSON body.
        Raises UpstreamTimeout, UpstreamTransportError or UpstreamResponseError.
        """
        payload = json.dumps(envelope, ensure_ascii=False, allow_nan=False)
        logger.debug(f"Sending: {payload}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    content=payload.encode("utf-8"),
                    headers=self.headers,
                )
        except httpx.TimeoutException as exc:
            logger.error(f"Timeout after {self.timeout}s calling {self.endpoint}: {exc!r}")
            raise UpstreamTimeout() from exc
        except httpx.HTTPError as exc:
            logger.error(f"Network Error forwarding to {self.endpoint}: {exc}")
            raise UpstreamTransportError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            # The body is still the answer; status alone does not fail the call
            logger.warning(f"Remote returned HTTP {response.status_code}")

        try:
            return loads_strict(response.content)
        except ValueError as exc:
            raise UpstreamResponseError(response.text, response.status_code) from exc
