"""Bind the tool and resource registries to an MCP SDK server.

The SDK owns JSON-RPC framing and transports; this module only supplies the
request handlers. ``tools/call`` and ``resources/read`` are installed as raw
request handlers so dispatch-layer failures leave as JSON-RPC errors
(``McpError``) while tool-reported failures stay ordinary results.
"""

import logging
from typing import List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from mcp_demo.config import Settings
from mcp_demo.envelope import InvocationResult
from mcp_demo.errors import OutputValidationError, ToolValidationError, UnknownOperation, UnknownResource
from mcp_demo.registry import OperationDescriptor, ToolRegistry
from mcp_demo.resources import ResourceRegistry, ResourceTemplate

logger = logging.getLogger(__name__)


def as_tool(descriptor: OperationDescriptor) -> types.Tool:
    return types.Tool(
        name=descriptor.name,
        title=descriptor.title,
        description=descriptor.description,
        inputSchema=descriptor.input_schema(),
        outputSchema=descriptor.output_schema(),
    )


def as_resource_template(template: ResourceTemplate) -> types.ResourceTemplate:
    return types.ResourceTemplate(
        name=template.name,
        title=template.title or None,
        uriTemplate=template.uri_template,
        description=template.description or None,
        mimeType=template.mime_type,
    )


def as_call_result(result: InvocationResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        structuredContent=result.payload,
        isError=False,
    )


def _protocol_error(code: int, message: str, data=None) -> McpError:
    return McpError(types.ErrorData(code=code, message=message, data=data))


def create_mcp_server(registry: ToolRegistry, resources: ResourceRegistry, settings: Settings) -> Server:
    """Build the SDK server shared (read-only) by every connection."""
    server = Server(settings.server_name, version=settings.server_version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [as_tool(d) for d in registry.list_tools()]

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        # Only templates are registered; none of them names a concrete URI.
        return []

    @server.list_resource_templates()
    async def list_resource_templates() -> List[types.ResourceTemplate]:
        return [as_resource_template(t) for t in resources.templates()]

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        name = req.params.name
        try:
            result = await registry.dispatch(name, req.params.arguments or {})
        except UnknownOperation as e:
            raise _protocol_error(types.METHOD_NOT_FOUND, str(e), {"tool": name}) from e
        except ToolValidationError as e:
            raise _protocol_error(types.INVALID_PARAMS, str(e), {"tool": name, "fields": e.fields}) from e
        except OutputValidationError as e:
            raise _protocol_error(types.INTERNAL_ERROR, str(e), {"tool": name}) from e
        return types.ServerResult(as_call_result(result))

    async def read_resource(req: types.ReadResourceRequest) -> types.ServerResult:
        uri = str(req.params.uri)
        try:
            template, text = await resources.resolve(uri)
        except UnknownResource as e:
            raise _protocol_error(types.INVALID_PARAMS, str(e), {"uri": uri}) from e
        logger.debug(f"Resolved resource {uri} via template {template.name}")
        return types.ServerResult(
            types.ReadResourceResult(
                contents=[types.TextResourceContents(uri=uri, text=text, mimeType=template.mime_type)]
            )
        )

    server.request_handlers[types.CallToolRequest] = call_tool
    server.request_handlers[types.ReadResourceRequest] = read_resource
    return server
