from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union, Any, Dict, List, Literal

# JSON-RPC 2.0 error codes used by the proxy
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcRequest(BaseModel):
    """
    Strict implementation of JSON-RPC 2.0 Request object.
    Unknown members are kept so the request can still be forwarded verbatim.
    """
    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = "2.0"
    method: str = Field(..., min_length=1, description=" The name of the method to be invoked.")
    params: Optional[Union[Dict[str, Any], List[Any]]] = None
    id: Optional[Union[str, int, float]] = None


class ToolCallParams(BaseModel):
    """params of a tools/call request; both members are required before forwarding."""
    name: str = Field(..., min_length=1)
    arguments: Dict[str, Any]


class OutboundEnvelope(BaseModel):
    """Body POSTed to the remote HTTP API for the methods the proxy reshapes."""
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcResponse(BaseModel):
    """
    Standard JSON-RPC 2.0 Response.
    The id is copied from the request untouched, whatever its JSON type.
    """
    jsonrpc: Literal["2.0"] = "2.0"
    id: Any = None
    result: Optional[Any] = None
    error: Optional[JsonRpcError] = None

    @classmethod
    def success(cls, req_id: Any, result: Any):
        return cls(id=req_id, result=result)

    @classmethod
    def error_response(cls, req_id: Any, code: int, message: str, data: Any = None):
        return cls(
            id=req_id,
            error=JsonRpcError(code=code, message=message, data=data)
        )

    def to_wire(self) -> Dict[str, Any]:
        """
        Wire form: jsonrpc, id, then exactly one of result / error.
        A null result is still sent; error.data is dropped when absent.
        """
        if self.error is not None:
            return {
                "jsonrpc": self.jsonrpc,
                "id": self.id,
                "error": self.error.model_dump(exclude_none=True),
            }
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}
