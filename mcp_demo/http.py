"""FastAPI application exposing the MCP server over HTTP.

Endpoints:
  POST /mcp             -> one JSON-RPC message, fresh transport per request
  GET  /mcp/sse         -> legacy SSE stream (when MCP_ENABLE_SSE is on)
  POST /mcp/messages/   -> client->server messages for an open SSE stream
  GET  /health          -> {"status": "ok"}
"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from mcp_demo.config import Settings
from mcp_demo.protocol import create_mcp_server
from mcp_demo.registry import ToolRegistry
from mcp_demo.resources import ResourceRegistry, build_resources
from mcp_demo.session import ConnectionSession, HttpSession, SseSession, new_session_id
from mcp_demo.tools import build_registry

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
SSE_PATH = "/mcp/sse"
SSE_MESSAGES_PATH = "/mcp/messages/"

INTERNAL_ERROR_BODY = {"error": "Internal MCP server error"}

SessionFactory = Callable[[], ConnectionSession]


class SessionEndpoint:
    """Raw ASGI endpoint: build a session, serve it, degrade failures to 500."""

    def __init__(self, session_factory: SessionFactory, label: str) -> None:
        self.session_factory = session_factory
        self.label = label

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        session = self.session_factory()
        logger.info(f"[{session.label}] {self.label} request received")
        try:
            await session.handle(scope, receive, send)
        except Exception:
            logger.exception(f"[{session.label}] Error handling MCP request")
            if not session.committed:
                response = JSONResponse(INTERNAL_ERROR_BODY, status_code=500)
                await response(scope, receive, send)
        finally:
            await session.close()


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ToolRegistry] = None,
    resources: Optional[ResourceRegistry] = None,
    *,
    server: Optional[Server] = None,
    http_session_factory: Optional[SessionFactory] = None,
) -> FastAPI:
    if settings is None:
        settings = Settings()
    if registry is None:
        registry = build_registry()
    if resources is None:
        resources = build_resources()
    if server is None:
        server = create_mcp_server(registry, resources, settings)

    app = FastAPI(title=f"{settings.server_name} HTTP", version=settings.server_version)
    app.state.settings = settings
    app.state.registry = registry
    app.state.mcp_server = server

    @app.get("/health")
    def health():
        return {"status": "ok", "service": settings.server_name}

    def make_http_session() -> ConnectionSession:
        return HttpSession(
            server,
            mode=settings.response_mode,
            session_id=new_session_id(settings.session_ids),
        )

    app.router.routes.append(
        Route(MCP_PATH, endpoint=SessionEndpoint(http_session_factory or make_http_session, "POST /mcp"), methods=["POST"])
    )

    if settings.enable_sse:
        sse = SseServerTransport(SSE_MESSAGES_PATH)

        def make_sse_session() -> ConnectionSession:
            return SseSession(server, sse, session_id=new_session_id(settings.session_ids))

        app.router.routes.append(
            Route(SSE_PATH, endpoint=SessionEndpoint(make_sse_session, "GET /mcp/sse"), methods=["GET"])
        )
        app.mount(SSE_MESSAGES_PATH.rstrip("/"), app=sse.handle_post_message)

    return app
