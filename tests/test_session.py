from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import anyio
import pytest
from mcp.server.sse import SseServerTransport

from mcp_demo.config import ResponseMode, SessionIdPolicy, Settings
from mcp_demo.protocol import create_mcp_server
from mcp_demo.resources import build_resources
from mcp_demo.session import ConnectionSession, HttpSession, SessionState, SseSession, new_session_id
from mcp_demo.tools import build_registry


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.terminated = 0
        self.closed = None

    @asynccontextmanager
    async def connect(self):
        self.closed = anyio.Event()
        yield ("read", "write")

    async def handle_request(self, scope, receive, send):
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"{}"})
        if self.fail:
            raise RuntimeError("transport blew up after commit")

    async def terminate(self):
        self.terminated += 1
        self.closed.set()


class FakeServer:
    """Stands in for the SDK server: runs until its transport is terminated."""

    def __init__(self, transport: FakeTransport | None = None) -> None:
        self.transport = transport
        self.runs = []

    def create_initialization_options(self):
        return None

    async def run(self, read_stream, write_stream, options, stateless=False):
        self.runs.append(stateless)
        if self.transport is not None:
            await self.transport.closed.wait()
        else:
            await anyio.sleep_forever()


class FakeSse:
    @asynccontextmanager
    async def connect_sse(self, scope, receive, send):
        await send({"type": "http.response.start", "status": 200, "headers": []})
        yield ("read", "write")


async def _noop_send(message):
    pass


def test_new_session_id_policy() -> None:
    assert new_session_id(SessionIdPolicy.NONE) is None
    first = new_session_id(SessionIdPolicy.GENERATED)
    second = new_session_id(SessionIdPolicy.GENERATED)
    assert first and second and first != second


def test_http_session_close_is_idempotent() -> None:
    transport = FakeTransport()
    session = HttpSession(FakeServer(transport), transport=transport)
    assert session.state is SessionState.BOUND

    async def run():
        transport.closed = anyio.Event()
        assert await session.close() is True
        assert await session.close() is False

    asyncio.run(run())
    assert transport.terminated == 1
    assert session.releases == 1
    assert session.closed


def test_http_session_serves_one_request_then_closes() -> None:
    transport = FakeTransport()
    server = FakeServer(transport)
    session = HttpSession(server, mode=ResponseMode.JSON, session_id="abc", transport=transport)

    asyncio.run(session.handle({"type": "http"}, None, _noop_send))

    assert server.runs == [True]
    assert session.committed
    assert session.state is SessionState.CLOSED
    assert transport.terminated == 1
    assert asyncio.run(session.close()) is False
    assert transport.terminated == 1


def test_http_session_releases_once_when_serving_fails() -> None:
    transport = FakeTransport(fail=True)
    session = HttpSession(FakeServer(transport), transport=transport)

    with pytest.raises(Exception):
        asyncio.run(session.handle({"type": "http"}, None, _noop_send))

    assert session.committed
    assert session.closed
    assert transport.terminated == 1


def test_sse_session_peer_disconnect_and_repeat_close() -> None:
    session = SseSession(FakeServer(), FakeSse(), session_id="stream-1")
    assert session.mode is ResponseMode.STREAM

    async def run():
        async with anyio.create_task_group() as tg:
            tg.start_soon(session.handle, {"type": "http"}, None, _noop_send)
            while session.state is not SessionState.SERVING:
                await anyio.sleep(0)
            # Peer goes away mid-stream: the disconnect signal arrives twice.
            assert await session.close() is True
            assert await session.close() is False

    asyncio.run(run())
    assert session.closed
    assert session.committed
    assert session.releases == 1


def test_base_session_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        ConnectionSession(None, mode=ResponseMode.JSON)


def sse_scope() -> dict:
    return {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/mcp/sse",
        "raw_path": b"/mcp/sse",
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"test"), (b"accept", b"text/event-stream")],
        "client": ("127.0.0.1", 50000),
        "server": ("test", 80),
    }


def test_sse_session_on_real_transport_releases_once_on_disconnect() -> None:
    server = create_mcp_server(build_registry(), build_resources(), Settings())
    session = SseSession(server, SseServerTransport("/mcp/messages/"), session_id="stream-2")
    sent = []

    async def run():
        disconnected = anyio.Event()

        async def receive():
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if b"endpoint" in message.get("body", b""):
                disconnected.set()

        with anyio.fail_after(5):
            await session.handle(sse_scope(), receive, send)

    asyncio.run(run())

    assert sent[0]["type"] == "http.response.start"
    assert sent[0]["status"] == 200
    assert any(b"/mcp/messages/?session_id=" in m.get("body", b"") for m in sent)
    assert session.committed
    assert session.closed
    assert session.releases == 1
