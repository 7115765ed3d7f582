"""Import tools from MCP servers into a ToolCatalog."""

from .wrapper import MCPClientWrapper, describe_parameters

__all__ = ["MCPClientWrapper", "describe_parameters"]
