"""Exception hierarchy for the demo server.

Dispatch-layer failures are raised as exceptions and surface to clients as
JSON-RPC errors. Handler-level I/O problems are *not* modelled here: tools
report those as a :class:`mcp_demo.envelope.Failure` value instead.
"""

from typing import List, Optional


class McpDemoError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(McpDemoError):
    """An environment variable holds a value we cannot use."""


class RegistrationError(McpDemoError):
    """A tool could not be added to the registry."""


class UnknownOperation(McpDemoError):
    def __init__(self, name: Optional[str]):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolValidationError(McpDemoError):
    """Raw tool arguments did not match the tool's input model."""

    def __init__(self, name: str, fields: List[str], detail: str = ""):
        self.name = name
        self.fields = fields
        self.detail = detail
        joined = ", ".join(fields) if fields else "(root)"
        super().__init__(f"Invalid arguments for tool {name}: {joined}")


class OutputValidationError(McpDemoError):
    """A handler produced a payload its own output model rejects."""

    def __init__(self, name: str, detail: str = ""):
        self.name = name
        self.detail = detail
        super().__init__(f"Tool {name} returned an invalid payload")


class UnknownResource(McpDemoError):
    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Resource not found: {uri}")
