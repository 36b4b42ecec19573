"""JSON-RPC 2.0 request model, error codes and response envelopes."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr


PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SESSION_REQUIRED = -32000

NOTIFICATION_PREFIX = "notifications/"

RequestId = Union[StrictStr, StrictInt, StrictFloat, None]


class JsonRpcRequest(BaseModel):
    """Standard JSON-RPC 2.0 request (or notification when id is missing)."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    method: str
    params: Any = None
    id: RequestId = None

    @property
    def is_notification(self) -> bool:
        return self.id is None and self.method.startswith(NOTIFICATION_PREFIX)


class JsonRpcError(Exception):
    """Protocol-level failure carried back as a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def success(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


def error(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id}


def peek_id(payload: Any) -> Any:
    """Best-effort id of a request that failed validation, else None."""
    if isinstance(payload, dict):
        rid = payload.get("id")
        if isinstance(rid, (str, int, float)) and not isinstance(rid, bool):
            return rid
    return None


__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JsonRpcError",
    "JsonRpcRequest",
    "METHOD_NOT_FOUND",
    "NOTIFICATION_PREFIX",
    "PARSE_ERROR",
    "SESSION_REQUIRED",
    "error",
    "peek_id",
    "success",
]
