"""MCP server wiring: session gateway, Starlette app and uvicorn runner.

The gateway serves one remote caller at a time over SSE:

    GET  /sse                     open the session (event stream)
    POST /messages/?session_id=   client -> server messages
    GET  /healthz                 liveness probe

A new SSE connection takes over the session slot; the displaced session is
cancelled first.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import anyio
import uvicorn
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Mount, Route

from ahrefs_mcp import __version__
from ahrefs_mcp.catalog import Catalog
from ahrefs_mcp.dispatch import ToolDispatcher
from ahrefs_mcp.logging import get_logger
from ahrefs_mcp.settings import Settings
from ahrefs_mcp.upstream import UpstreamInvoker

__all__ = [
    "SERVER_NAME",
    "ASGIEndpoint",
    "ActiveSession",
    "GatewayServer",
    "SessionGateway",
    "SessionState",
    "build_app",
    "build_server",
    "serve",
]

log = get_logger(__name__)

SERVER_NAME = "ahrefs-mcp-server"
SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"
HEALTH_PATH = "/healthz"


# =============================================================================
# MCP request handlers
# =============================================================================


def build_server(dispatcher: ToolDispatcher) -> Server:
    """Low-level MCP server bound to a dispatcher.

    Handlers are registered directly (not through the `call_tool` decorator)
    so an `McpError` raised by the dispatcher reaches the caller as a
    JSON-RPC error instead of being folded into an isError result.
    """
    server = Server(SERVER_NAME, version=__version__)

    async def list_tools(_req: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=dispatcher.list_tools()))

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        envelope = await dispatcher.call_tool(req.params.name, req.params.arguments or {})
        return types.ServerResult(envelope.to_result())

    server.request_handlers[types.ListToolsRequest] = list_tools
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


# =============================================================================
# Session gateway
# =============================================================================


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass
class ActiveSession:
    scope: anyio.CancelScope
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    connected_at: float = field(default_factory=time.time)


class SessionGateway:
    """Owns the SSE transport and the single active session slot."""

    def __init__(self, server: Server, *, messages_path: str = MESSAGES_PATH) -> None:
        self.server = server
        self.transport = SseServerTransport(messages_path)
        self.state = SessionState.IDLE
        self._active: Optional[ActiveSession] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def active(self) -> Optional[ActiveSession]:
        return self._active

    def bind(self, scope: anyio.CancelScope) -> ActiveSession:
        """Put a new session in the slot, cancelling whichever one held it."""
        displaced = self._active
        if displaced is not None:
            log.warning(
                "Replacing active session %s with a new connection", displaced.id, session=displaced.id
            )
            displaced.scope.cancel()

        session = ActiveSession(scope=scope)
        self._active = session
        self.state = SessionState.CONNECTED
        log.info("MCP server connected via SSE and running (session %s)", session.id, session=session.id)
        return session

    def release(self, session: ActiveSession) -> None:
        if self._active is not session:
            return
        self._active = None
        if self.state is SessionState.CONNECTED:
            self.state = SessionState.IDLE
        log.info("Session %s disconnected", session.id, session=session.id)

    def close(self) -> None:
        """Cancel the active session and refuse new ones. Idempotent."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        if self._active is not None:
            log.info("Closing session %s", self._active.id)
            self._active.scope.cancel()
            self._active = None

    def request_shutdown(self) -> None:
        """Thread/signal-safe `close()`."""
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.close)
        else:
            self.close()

    async def handle_sse(self, scope: Any, receive: Any, send: Any) -> None:
        if self.state is SessionState.CLOSED:
            response = PlainTextResponse("Server is shutting down", status_code=503)
            await response(scope, receive, send)
            return

        self._loop = asyncio.get_running_loop()
        async with self.transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
            with anyio.CancelScope() as cancel_scope:
                session = self.bind(cancel_scope)
                try:
                    await self.server.run(
                        read_stream,
                        write_stream,
                        self.server.create_initialization_options(),
                    )
                finally:
                    self.release(session)
            # Ends the event stream of a displaced or closed session.
            await write_stream.aclose()

    async def handle_messages(self, scope: Any, receive: Any, send: Any) -> None:
        if self._active is None:
            if self.state is SessionState.CLOSED:
                response = PlainTextResponse("Server is closed", status_code=404)
            else:
                response = PlainTextResponse("No active session", status_code=503)
            await response(scope, receive, send)
            return
        await self.transport.handle_post_message(scope, receive, send)


# =============================================================================
# ASGI app
# =============================================================================


class ASGIEndpoint:
    """Route endpoint that Starlette hands raw `(scope, receive, send)`.

    Bound methods given to `Route` are wrapped as request/response
    handlers; the SSE handler writes its own response instead.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        await self.app(scope, receive, send)


def build_app(
    settings: Settings,
    catalog: Catalog,
    *,
    invoker: UpstreamInvoker | None = None,
) -> Starlette:
    invoker = invoker or UpstreamInvoker(settings)
    dispatcher = ToolDispatcher(catalog, invoker, settings)
    gateway = SessionGateway(build_server(dispatcher))

    async def health(_req: Request) -> JSONResponse:
        return JSONResponse(
            {"status": "ok", "session": gateway.state.value, "tools": len(catalog)}
        )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette):
        try:
            yield
        finally:
            gateway.close()
            await invoker.aclose()
            log.info("Server closed.")

    app = Starlette(
        routes=[
            Route(SSE_PATH, endpoint=ASGIEndpoint(gateway.handle_sse), methods=["GET"]),
            Mount(MESSAGES_PATH, app=gateway.handle_messages),
            Route(HEALTH_PATH, endpoint=health, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.state.dispatcher = dispatcher
    return app


class GatewayServer(uvicorn.Server):
    """uvicorn server that closes the MCP session on SIGINT/SIGTERM and exits 0."""

    def __init__(self, config: uvicorn.Config, gateway: SessionGateway) -> None:
        super().__init__(config)
        self.gateway = gateway

    def handle_exit(self, sig: int, frame: Any) -> None:
        log.info("Received %s, shutting down server...", signal.Signals(sig).name)
        self.gateway.request_shutdown()
        super().handle_exit(sig, frame)

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn re-raises captured signals after shutdown; exit cleanly instead.
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original = {
            sig: signal.signal(sig, self.handle_exit) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            yield
        finally:
            for sig, handler in original.items():
                signal.signal(sig, handler)


def serve(settings: Settings, catalog: Catalog) -> None:
    app = build_app(settings, catalog)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    log.info("Starting %s on %s:%s with %d tools", SERVER_NAME, settings.host, settings.port, len(catalog))
    GatewayServer(config, app.state.gateway).run()
