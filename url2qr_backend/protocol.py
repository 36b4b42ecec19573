from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from . import config, url2qr
from .jsonrpc import INVALID_PARAMS, METHOD_NOT_FOUND, JsonRpcError
from .url2qr import ToolContext


MethodHandler = Callable[[Any, ToolContext], Awaitable[Any]]
ToolRunner = Callable[[dict, ToolContext], Awaitable[dict]]


class McpDispatcher:
    """Method table bound to a single session.

    New protocol methods are added with register(); tools with add_tool().
    """

    def __init__(self) -> None:
        self._methods: Dict[str, MethodHandler] = {}
        self._tools: Dict[str, tuple[dict, ToolRunner]] = {}
        self.register("initialize", self._initialize)
        self.register("ping", self._ping)
        self.register("tools/list", self._list_tools)
        self.register("tools/call", self._call_tool)
        self.add_tool(url2qr.describe(), url2qr.run)

    def register(self, method: str, handler: MethodHandler) -> None:
        self._methods[method] = handler

    def add_tool(self, description: dict, runner: ToolRunner) -> None:
        self._tools[description["name"]] = (description, runner)

    @property
    def tools(self) -> list[dict]:
        return [description for description, _ in self._tools.values()]

    async def dispatch(self, method: str, params: Any, context: ToolContext) -> Any:
        handler = self._methods.get(method)
        if handler is None:
            raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")
        return await handler(params, context)

    async def _initialize(self, params: Any, context: ToolContext) -> dict:
        return {
            "protocolVersion": config.PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": config.SERVER_NAME, "version": config.SERVER_VERSION},
        }

    async def _ping(self, params: Any, context: ToolContext) -> dict:
        return {}

    async def _list_tools(self, params: Any, context: ToolContext) -> dict:
        return {"tools": self.tools}

    async def _call_tool(self, params: Any, context: ToolContext) -> dict:
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: tools/call requires a tool name")
        name = params["name"]
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: arguments must be an object")

        entry = self._tools.get(name)
        if entry is None:
            raise JsonRpcError(INVALID_PARAMS, f"Unknown tool: {name}")
        _, runner = entry
        return await runner(arguments, context)
