"""Smoke-test client: call one tool on a running server and print the result.

    python -m mcp_demo.client --tool add_numbers --args '{"a": 145, "b": 87}'
    python -m mcp_demo.client --tool list_project_directory --url http://127.0.0.1:3000/mcp
"""

import argparse
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastmcp import Client

logging.basicConfig(
    level=logging.INFO,  # DEBUG for detailed debug info
    format="%(asctime)s | %(levelname)s | %(message)s",
)
log = logging.getLogger(__name__)


async def call_tool(url: str, name: str, arguments: Dict[str, Any], timeout_s: float = 10.0) -> Any:
    """
    Connect to the MCP server at `url` and call tool `name` with `arguments`.
    Returns the raw result (a fastmcp CallToolResult).
    """
    log.debug("Preparing Client with URL: %s", url)
    client = Client(url)

    try:
        async with client:
            log.debug("Client connected. Calling tool %r with %r", name, arguments)
            result = await asyncio.wait_for(client.call_tool(name, arguments), timeout=timeout_s)
            log.debug("Raw result received from server: %r", result)
            return result
    except asyncio.TimeoutError:
        log.error("Timed out after %.1f seconds waiting for tool response.", timeout_s)
        raise
    except Exception as e:
        log.exception("Error while calling %r tool: %s", name, e)
        raise


def structured_from_result(result: Any) -> Dict[str, Any]:
    """
    Extract the structured payload from common result shapes:

    - CallToolResult with .structured_content == {...}
    - CallToolResult whose first text content is the JSON rendering
    - a plain dict with a "structuredContent" key, or the payload itself
    """
    structured = getattr(result, "structured_content", None)
    if isinstance(structured, dict):
        return structured

    content = getattr(result, "content", None)
    if content:
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else getattr(first, "text", None)
        if isinstance(text, str):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed

    if isinstance(result, dict):
        inner = result.get("structuredContent")
        return inner if isinstance(inner, dict) else result

    raise ValueError(
        "Could not determine structured payload from server response. "
        f"Got: {type(result).__name__} -> {result!r}"
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Call a tool on the MCP demo server.")
    parser.add_argument(
        "--url",
        default="http://127.0.0.1:3000/mcp",
        help="MCP server URL (default: %(default)s)",
    )
    parser.add_argument("--tool", default="add_numbers", help="Tool name (default: %(default)s)")
    parser.add_argument(
        "--args",
        default='{"a": 145, "b": 87}',
        help="Tool arguments as a JSON object (default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Timeout in seconds for the tool call (default: %(default)s)",
    )
    return parser


def parse_arguments(raw: str) -> Dict[str, Any]:
    arguments = json.loads(raw) if raw else {}
    if not isinstance(arguments, dict):
        raise ValueError("--args must be a JSON object")
    return arguments


async def main_async(url: str, tool: str, arguments: Dict[str, Any], timeout_s: float) -> None:
    log.info("Calling MCP %r tool at %s with %r", tool, url, arguments)
    result = await call_tool(url, tool, arguments, timeout_s=timeout_s)
    print(json.dumps(structured_from_result(result), indent=2, ensure_ascii=False))


def run_entry(argv: Optional[list] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    asyncio.run(main_async(args.url, args.tool, parse_arguments(args.args), args.timeout))


if __name__ == "__main__":
    run_entry()
