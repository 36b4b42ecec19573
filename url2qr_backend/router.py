from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from . import config, jsonrpc
from .jsonrpc import JsonRpcError, JsonRpcRequest
from .protocol import McpDispatcher
from .sessions import Session, SessionNotFound, SessionRegistry
from .url2qr import ToolContext


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcOutcome:
    status_code: int
    # None means an empty-body acknowledgement.
    body: Optional[dict] = None
    # Set when the response must carry the session header.
    session_id: Optional[str] = None


def _transport_error(status_code: int, code: int, message: str, request_id: Any = None) -> RpcOutcome:
    return RpcOutcome(status_code, jsonrpc.error(request_id, code, message))


class RequestRouter:
    """Single entry point for protocol traffic.

    Resolves (or creates) the session for each request, dispatches through
    that session's method table and turns every failure into a response.
    """

    def __init__(
        self,
        registry: SessionRegistry | None = None,
        output_dir: Path | None = None,
        max_body_bytes: int | None = None,
    ) -> None:
        self.registry = registry if registry is not None else SessionRegistry(handler_factory=McpDispatcher)
        self.output_dir = output_dir
        self.max_body_bytes = max_body_bytes if max_body_bytes is not None else config.MAX_BODY_BYTES

    async def handle(
        self,
        http_method: str,
        raw_body: bytes,
        session_header: str | None = None,
        host_base_url: str | None = None,
    ) -> RpcOutcome:
        if http_method.upper() != "POST":
            return _transport_error(405, jsonrpc.INVALID_REQUEST, "Method Not Allowed")
        if len(raw_body) > self.max_body_bytes:
            return _transport_error(413, jsonrpc.INVALID_REQUEST, "Request body too large")
        if not raw_body or not raw_body.strip():
            return _transport_error(400, jsonrpc.INVALID_REQUEST, "Empty body")

        try:
            payload = json.loads(raw_body)
        except ValueError:
            return _transport_error(400, jsonrpc.PARSE_ERROR, "Parse error: body is not valid JSON")

        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError:
            return _transport_error(
                400, jsonrpc.INVALID_REQUEST, "Invalid Request: expected a JSON-RPC 2.0 request object", jsonrpc.peek_id(payload)
            )

        if request.is_notification:
            if session_header:
                with contextlib.suppress(SessionNotFound):
                    self.registry.touch(session_header)
            return RpcOutcome(204)

        session = self._resolve_session(session_header)
        if session is None:
            if request.method != "initialize":
                reason = "unknown or expired session" if session_header else "no session and not initialize"
                return _transport_error(400, jsonrpc.SESSION_REQUIRED, f"Session required: {reason}", request.id)
            session = self.registry.create()

        body = await self._dispatch(session, request, host_base_url)
        echo_session = session.id if request.method == "initialize" else None
        return RpcOutcome(200, body, echo_session)

    def _resolve_session(self, session_header: str | None) -> Session | None:
        if not session_header:
            return None
        try:
            return self.registry.touch(session_header)
        except SessionNotFound:
            return None

    async def _dispatch(self, session: Session, request: JsonRpcRequest, host_base_url: str | None) -> dict:
        context = ToolContext(host_base_url=host_base_url, output_dir=self.output_dir)
        try:
            result = await session.handler.dispatch(request.method, request.params, context)
        except JsonRpcError as e:
            return jsonrpc.error(request.id, e.code, e.message)
        except Exception:
            logger.exception("Unhandled error in %s (session %s)", request.method, session.id)
            return jsonrpc.error(request.id, jsonrpc.INTERNAL_ERROR, "Internal error")
        return jsonrpc.success(request.id, result)
