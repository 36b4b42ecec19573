from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response

from url2qr_backend import config
from url2qr_backend.artifacts import artifact_path, detect_forwarded_base_url
from url2qr_backend.protocol import McpDispatcher
from url2qr_backend.router import RequestRouter, RpcOutcome
from url2qr_backend.sessions import SessionRegistry
from url2qr_backend.sweeper import run_periodic, sweep_once


logger = logging.getLogger(__name__)

registry = SessionRegistry(handler_factory=McpDispatcher)
router = RequestRouter(registry)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Sweep once at startup, then keep evicting idle sessions in the background.
    sweep_once(registry, config.SESSION_TTL_SECONDS)
    task = asyncio.create_task(
        run_periodic(registry, config.CLEANUP_INTERVAL_SECONDS, config.SESSION_TTL_SECONDS)
    )
    app.state._sweeper_task = task
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization", config.SESSION_HEADER, "Last-Event-ID"],
    expose_headers=["Content-Type", config.SESSION_HEADER],
)


@app.middleware("http")
async def _no_cache_protocol(request: Request, call_next):
    response = await call_next(request)
    # Protocol responses are per-session state; never let a proxy cache them.
    if request.url.path == config.MCP_PATH:
        response.headers["Cache-Control"] = "no-store"
    return response


@app.get("/health")
async def health() -> JSONResponse:
    return JSONResponse(
        {
            "status": "healthy",
            "transport": "streamable-http",
            "activeSessions": len(registry),
            "serverName": config.SERVER_NAME,
            "version": config.SERVER_VERSION,
        }
    )


@app.get("/")
async def root() -> JSONResponse:
    return JSONResponse(
        {
            "name": "URL2QR MCP Server",
            "version": config.SERVER_VERSION,
            "description": "MCP server that converts URLs to QR codes",
            "endpoints": {
                "mcp": config.MCP_PATH,
                "health": "/health",
                "qrcodes": f"{config.ARTIFACT_ROUTE}/:filename",
            },
        }
    )


def _to_response(outcome: RpcOutcome) -> Response:
    headers = {config.SESSION_HEADER: outcome.session_id} if outcome.session_id else None
    if outcome.body is None:
        return Response(status_code=outcome.status_code, headers=headers)
    return JSONResponse(outcome.body, status_code=outcome.status_code, headers=headers)


async def _read_body(request: Request, limit: int) -> bytes:
    # Stop after limit + 1 bytes; the router answers anything longer with 413.
    chunks = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            break
    return b"".join(chunks)[: limit + 1]


@app.api_route(config.MCP_PATH, methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
async def mcp_endpoint(request: Request) -> Response:
    """JSON-RPC over HTTP. Only POST carries protocol traffic; other verbs get 405."""
    body = await _read_body(request, router.max_body_bytes) if request.method == "POST" else b""
    host_base_url = detect_forwarded_base_url(request.headers, request.url.scheme)
    outcome = await router.handle(
        request.method,
        body,
        request.headers.get(config.SESSION_HEADER),
        host_base_url,
    )
    return _to_response(outcome)


@app.get(config.ARTIFACT_ROUTE + "/{filename}")
async def get_artifact(filename: str) -> Response:
    """Serve a generated QR code.

    - filename must be a plain basename ending in .png
    - artifact_path keeps it inside QR_OUTPUT_DIR
    """
    try:
        path = artifact_path(filename)
    except ValueError:
        raise HTTPException(status_code=404, detail="Not found")
    if not path.exists() or not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(path, media_type="image/png", headers={"X-Content-Type-Options": "nosniff"})


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    port = config.PORT
    logger.info("URL2QR MCP Server starting (streamable HTTP)")
    logger.info("MCP endpoint: http://localhost:%d%s", port, config.MCP_PATH)
    logger.info("Health check: http://localhost:%d/health", port)
    logger.info("QR codes: http://localhost:%d%s/", port, config.ARTIFACT_ROUTE)
    uvicorn.run("server:app", host=config.HOST, port=port, reload=False)
