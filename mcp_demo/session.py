"""Per-connection lifecycle.

Every inbound connection gets its own session object; nothing here is shared
or reused across connections. The shared piece is the SDK ``Server`` bound to
the (read-only) registries.

    IDLE -> BOUND -> SERVING -> CLOSED

``close()`` releases the transport exactly once no matter how many times it is
called or whether the request completed or the peer vanished.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

import anyio
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Message, Receive, Scope, Send

from mcp_demo.config import ResponseMode, SessionIdPolicy

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    BOUND = "bound"
    SERVING = "serving"
    CLOSED = "closed"


def new_session_id(policy: SessionIdPolicy) -> Optional[str]:
    if policy is SessionIdPolicy.GENERATED:
        return uuid.uuid4().hex
    return None


class ConnectionSession(ABC):
    """Base session: state tracking, commit tracking and idempotent close."""

    def __init__(self, server: Server, *, mode: ResponseMode, session_id: Optional[str] = None) -> None:
        self.server = server
        self.mode = mode
        self.session_id = session_id
        self.state = SessionState.IDLE
        self.committed = False
        self.releases = 0

    @property
    def label(self) -> str:
        return self.session_id or f"anon-{id(self):x}"

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def _bind(self) -> None:
        self.state = SessionState.BOUND
        logger.debug(f"[{self.label}] session bound (mode={self.mode.value})")

    def tracking_send(self, send: Send) -> Send:
        """Wrap ``send`` so we know once response headers have gone out."""

        async def wrapped(message: Message) -> None:
            if message["type"] == "http.response.start":
                self.committed = True
            await send(message)

        return wrapped

    async def close(self) -> bool:
        """Release the session. Returns True only for the call that released it."""
        if self.state is SessionState.CLOSED:
            return False
        self.state = SessionState.CLOSED
        with anyio.CancelScope(shield=True):
            await self._release()
        self.releases += 1
        logger.debug(f"[{self.label}] session closed")
        return True

    @abstractmethod
    async def _release(self) -> None:
        """Free the transport. Called at most once, shielded from cancellation."""

    @abstractmethod
    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve the connection, closing the session when it ends."""


class HttpSession(ConnectionSession):
    """One ``POST /mcp`` request served on a fresh streamable-HTTP transport."""

    def __init__(
        self,
        server: Server,
        *,
        mode: ResponseMode = ResponseMode.JSON,
        session_id: Optional[str] = None,
        transport: Any = None,
    ) -> None:
        super().__init__(server, mode=mode, session_id=session_id)
        # Session-less on the wire: cross-request sessions are not supported.
        self.transport = transport if transport is not None else StreamableHTTPServerTransport(
            mcp_session_id=None,
            is_json_response_enabled=mode is ResponseMode.JSON,
        )
        self._bind()

    async def _run_server(self, *, task_status=anyio.TASK_STATUS_IGNORED) -> None:
        async with self.transport.connect() as (read_stream, write_stream):
            task_status.started()
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
                stateless=True,
            )

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.state = SessionState.SERVING
        async with anyio.create_task_group() as tg:
            await tg.start(self._run_server)
            try:
                await self.transport.handle_request(scope, receive, self.tracking_send(send))
            finally:
                await self.close()

    async def _release(self) -> None:
        await self.transport.terminate()


class SseSession(ConnectionSession):
    """One long-lived ``GET /mcp/sse`` stream, held until the peer disconnects."""

    def __init__(self, server: Server, sse: SseServerTransport, *, session_id: Optional[str] = None) -> None:
        super().__init__(server, mode=ResponseMode.STREAM, session_id=session_id)
        self.sse = sse
        self._cancel_scope: Optional[anyio.CancelScope] = None
        self._bind()

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.state = SessionState.SERVING
        with anyio.CancelScope() as cancel_scope:
            self._cancel_scope = cancel_scope
            try:
                async with self.sse.connect_sse(scope, receive, self.tracking_send(send)) as (
                    read_stream,
                    write_stream,
                ):
                    await self.server.run(
                        read_stream,
                        write_stream,
                        self.server.create_initialization_options(),
                    )
            finally:
                await self.close()

    async def _release(self) -> None:
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
