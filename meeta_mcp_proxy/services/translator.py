import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from meeta_mcp_proxy.config import MCP_PROTOCOL_VERSION, SERVER_NAME, SERVER_VERSION
from meeta_mcp_proxy.models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JsonRpcRequest,
    JsonRpcResponse,
    OutboundEnvelope,
    ToolCallParams,
)
from meeta_mcp_proxy.services.forwarder import RequestForwarder, UpstreamError

logger = logging.getLogger(__name__)

# Advertised during initialize; the proxy itself offers no optional features
MCP_SERVER_CAPABILITIES = {
    "tools": {},
    "resources": {},
}


def _validation_summary(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


class ProtocolTranslator:
    """
    Maps one parsed JSON-RPC request onto a JSON-RPC response.

    initialize is answered locally, tools/list and tools/call are reshaped
    into a {method, params} envelope for the remote API, and every other
    method is forwarded as-is. handle() always returns a response dict.
    """

    def __init__(self, forwarder: RequestForwarder):
        self.forwarder = forwarder

    async def handle(self, request: Any) -> Dict[str, Any]:
        req_id = request.get("id") if isinstance(request, dict) else None
        try:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Received MCP request: %s", json.dumps(request, ensure_ascii=False))
            response = await self._dispatch(request, req_id)
        except UpstreamError as e:
            logger.error(f"Error: {e}")
            response = JsonRpcResponse.error_response(
                req_id, INTERNAL_ERROR, "Internal error", data=str(e)
            )
        except Exception as e:
            logger.exception("Unexpected failure while translating request")
            response = JsonRpcResponse.error_response(
                req_id, INTERNAL_ERROR, "Internal error", data=str(e) or e.__class__.__name__
            )

        wire = response.to_wire()
        if isinstance(request, dict) and "id" not in request:
            # A request sent without an id gets a reply without one
            wire.pop("id")
        return wire

    async def _dispatch(self, request: Any, req_id: Any) -> JsonRpcResponse:
        if not isinstance(request, dict):
            return JsonRpcResponse.error_response(
                None, INVALID_REQUEST, "Invalid Request", data="request must be a JSON object"
            )

        try:
            rpc_req = JsonRpcRequest.model_validate(request)
        except ValidationError as e:
            logger.warning(f"Malformed Request: {e}")
            return JsonRpcResponse.error_response(
                req_id, INVALID_REQUEST, "Invalid Request", data=_validation_summary(e)
            )

        method = rpc_req.method
        if method == "initialize":
            return self.handle_initialize(req_id)
        if method == "tools/list":
            return await self.handle_tools_list(req_id)
        if method == "tools/call":
            return await self.handle_tools_call(req_id, request.get("params"))

        # Anything else goes out untouched and comes back untouched
        reply = await self.forwarder.send(request)
        return JsonRpcResponse.success(req_id, reply)

    def handle_initialize(self, req_id: Any) -> JsonRpcResponse:
        """
        MCP initialize handler - fixed reply, no network call.
        https://spec.modelcontextprotocol.io/specification/basic/lifecycle/
        """
        return JsonRpcResponse.success(req_id, {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "serverInfo": {
                "name": SERVER_NAME,
                "version": SERVER_VERSION,
            },
            "capabilities": MCP_SERVER_CAPABILITIES,
        })

    async def handle_tools_list(self, req_id: Any) -> JsonRpcResponse:
        envelope = OutboundEnvelope(method="tools/list", params={})
        reply = await self.forwarder.send(envelope.model_dump())

        tools = reply.get("tools") if isinstance(reply, dict) else None
        return JsonRpcResponse.success(req_id, {"tools": tools or []})

    async def handle_tools_call(self, req_id: Any, params: Any) -> JsonRpcResponse:
        if not isinstance(params, dict):
            return JsonRpcResponse.error_response(
                req_id, INVALID_PARAMS, "Invalid params", data="tools/call params must be an object"
            )
        try:
            ToolCallParams.model_validate(params)
        except ValidationError as e:
            return JsonRpcResponse.error_response(
                req_id, INVALID_PARAMS, "Invalid params", data=_validation_summary(e)
            )

        # name and arguments go out exactly as the client sent them
        envelope = {
            "method": "tools/call",
            "params": {"name": params["name"], "arguments": params["arguments"]},
        }
        reply = await self.forwarder.send(envelope)

        text = reply if isinstance(reply, str) else json.dumps(reply, indent=2, ensure_ascii=False)
        return JsonRpcResponse.success(req_id, {
            "content": [
                {"type": "text", "text": text}
            ]
        })
