"""Demo MCP server: four example tools and a greeting resource over HTTP."""

__version__ = "1.0.0"
