# -*- coding: utf-8 -*-
"""
MCP demo server that can run in two modes:
  1) HTTP (FastAPI)  ->  `python -m mcp_demo --mode http --host 0.0.0.0 --port 3000`
  2) MCP over stdio  ->  `python -m mcp_demo --mode stdio`

Env (a .env file is honoured):
  PORT / HOST          listening address for --mode http (default 0.0.0.0:3000)
  MCP_LOG_LEVEL        DEBUG|INFO|WARNING|ERROR (default INFO)
  MCP_RESPONSE_MODE    json|stream (default json)
  MCP_SESSION_IDS      none|generated (default none)
  MCP_ENABLE_SSE       expose GET /mcp/sse (default true)
"""

import argparse
import logging
import signal
import sys
import traceback
from dataclasses import replace
from typing import Optional, Sequence

import anyio
from dotenv import load_dotenv
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from mcp_demo.config import Settings, load_settings
from mcp_demo.errors import ConfigError
from mcp_demo.protocol import create_mcp_server
from mcp_demo.resources import build_resources
from mcp_demo.tools import build_registry

logger = logging.getLogger("mcp_demo")


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
def setup_logging(level: str, stream=None) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=stream or sys.stdout,
        force=True,
    )


# -----------------------------------------------------------------------------
# Graceful shutdown handling (stdio mode; uvicorn installs its own)
# -----------------------------------------------------------------------------
def _install_signal_handlers():
    def _handler(signum, _frame):
        name = signal.Signals(signum).name
        logger.info(f"Received {name}. Shutting down gracefully…")
        for h in logging.getLogger().handlers:
            h.flush()
        sys.exit(0)

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError) as e:
        # Not all environments allow installing signal handlers (e.g. non-main thread).
        logger.debug(f"Signal handlers not installed: {e}")


# -----------------------------------------------------------------------------
# Runners
# -----------------------------------------------------------------------------
async def run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run_http(settings: Settings) -> None:
    import uvicorn

    from mcp_demo.http import create_app

    app = create_app(settings)
    logger.info(f"MCP demo server running at http://{settings.host}:{settings.port}/mcp")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


# -----------------------------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------------------------
def parse_args(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> argparse.Namespace:
    settings = settings or Settings()
    p = argparse.ArgumentParser(description="MCP demo server (HTTP or stdio).")
    p.add_argument("--mode", choices=["http", "stdio"], default="http",
                   help="Expose the server over HTTP (default) or run MCP over stdio.")
    p.add_argument("--host", default=settings.host, help="HTTP host (when --mode http).")
    p.add_argument("--port", type=int, default=settings.port, help="HTTP port (when --mode http).")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    load_dotenv()
    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging("INFO", sys.stderr)
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    args = parse_args(argv, settings)
    # stdout carries protocol frames in stdio mode, so logs go to stderr there.
    setup_logging(settings.log_level, sys.stderr if args.mode == "stdio" else sys.stdout)
    logger.info(f"Starting {settings.server_name} in mode={args.mode}")
    logger.debug(f"Effective LOG_LEVEL={settings.log_level}")

    try:
        if args.mode == "stdio":
            _install_signal_handlers()
            server = create_mcp_server(build_registry(), build_resources(), settings)
            anyio.run(run_stdio, server)
        else:
            run_http(replace(settings, host=args.host, port=args.port))
    except Exception as e:
        tb = "".join(traceback.format_exception(type(e), e, e.__traceback__))
        logger.critical(f"Fatal server error:\n{tb}")
        sys.exit(1)


if __name__ == "__main__":
    main()
