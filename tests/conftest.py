"""Pytest fixtures shared by the proxy tests."""

import json
import logging

import httpx
import pytest

from meeta_mcp_proxy.config import get_settings
from meeta_mcp_proxy.services.forwarder import RequestForwarder

ENDPOINT = "https://remote.example.test/dev/mcp"


class RecordingRemote:
    """Fake remote API: records every POST body and answers through a handler."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    @property
    def bodies(self):
        return [json.loads(r.content) for r in self.requests]

    async def __call__(self, request: httpx.Request):
        self.requests.append(request)
        response = self.handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response


@pytest.fixture
def remote_factory():
    """Build (remote, forwarder) pairs wired through httpx.MockTransport."""

    def _build(handler, timeout=30.0):
        remote = RecordingRemote(handler)
        forwarder = RequestForwarder(ENDPOINT, timeout=timeout, transport=httpx.MockTransport(remote))
        return remote, forwarder

    return _build


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No proxy env vars, no stray .env file, fresh settings cache."""
    for name in ("MEETA_MCP_ENDPOINT", "DEBUG", "MEETA_MCP_LOG_LEVEL", "MEETA_MCP_TIMEOUT", "MEETA_MCP_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    pkg = logging.getLogger("meeta_mcp_proxy")
    saved = (list(root.handlers), root.level, list(pkg.handlers), pkg.level, pkg.propagate)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    pkg.handlers[:] = saved[2]
    pkg.setLevel(saved[3])
    pkg.propagate = saved[4]
