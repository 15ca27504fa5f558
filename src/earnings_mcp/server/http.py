"""HTTP transport — a stateless FastAPI app serving JSON-RPC on ``POST /mcp``.

Routes::

    POST /mcp          JSON-RPC 2.0 envelope -> JSON-RPC response
    GET  /mcp          405 with usage guidance
    GET  / and /health health JSON
    GET  /tools        tool catalog
    OPTIONS *          CORS preflight (204)

Every response carries permissive CORS headers.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from earnings_mcp import SERVER_NAME, __version__
from earnings_mcp.config import ServerConfig
from earnings_mcp.errors import PARSE_ERROR
from earnings_mcp.protocol.models import JsonRpcResponse
from earnings_mcp.server.dispatcher import McpDispatcher, build_dispatcher

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Auth-Token",
}

_BODY_PREVIEW = 50


def create_app(config: ServerConfig, dispatcher: McpDispatcher | None = None) -> FastAPI:
    """Build the FastAPI app around one shared dispatcher."""
    dispatcher = dispatcher or build_dispatcher(config)

    app = FastAPI(
        title="Earnings MCP Server",
        description="Portfolio, stock and AI-analysis tools over the Model Context Protocol.",
        version=__version__,
    )
    app.state.dispatcher = dispatcher

    @app.middleware("http")
    async def cors(request: Request, call_next: Any) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response: Response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.get("/")
    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "server": SERVER_NAME,
            "version": __version__,
            "endpoints": {"mcp": "/mcp", "tools": "/tools"},
        }

    @app.get("/tools")
    async def tools() -> dict[str, Any]:
        return {"tools": dispatcher.list_tools()}

    @app.get("/mcp")
    async def mcp_get() -> PlainTextResponse:
        return PlainTextResponse(
            "MCP Server is running. Please use POST with JSON-RPC payload.",
            status_code=405,
            headers={"Allow": "POST, OPTIONS"},
        )

    @app.post("/mcp")
    async def mcp_post(request: Request) -> JSONResponse:
        raw = await request.body()
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            return _parse_error("Parse error: Empty body", text)
        try:
            envelope = json.loads(text)
        except ValueError as exc:
            return _parse_error(f"Parse error: {exc}", text)
        return JSONResponse(await dispatcher.dispatch(envelope))

    return app


def _parse_error(message: str, body: str) -> JSONResponse:
    logger.warning("Rejected /mcp body (%s): %r", message, body[:_BODY_PREVIEW])
    return JSONResponse(
        JsonRpcResponse.failure(None, PARSE_ERROR, message).to_wire(),
        status_code=400,
    )


def serve(config: ServerConfig, host: str | None = None, port: int | None = None) -> None:
    """Run the HTTP transport under uvicorn until interrupted."""
    app = create_app(config)
    host = host or config.host
    port = port or config.port
    logger.info("Serving %s %s on http://%s:%d/mcp", SERVER_NAME, __version__, host, port)
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower(), log_config=None)
