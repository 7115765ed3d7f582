"""Bridge MCP server tools into ToolCatalog descriptors through async stdio client sessions."""

from contextlib import AsyncExitStack
from types import TracebackType
from typing import Any, Dict, Mapping, Optional, Type, cast

from mcp import ClientSession
from mcp.client.stdio import stdio_client, StdioServerParameters
from mcp.types import Tool as MCPTool, TextContent, ImageContent, EmbeddedResource

from content_agent.agent_core import ToolCatalog, ToolExecutionError, ToolRegistrationError, get_logger

logger = get_logger(__name__)

__all__ = ["MCPClientWrapper"]


def describe_parameters(input_schema: Mapping[str, Any]) -> str:
    """Render the top-level parameters of an MCP input schema as a short hint for the model.

    Args:
        input_schema: The tool's JSON schema.

    Returns:
        Something like ``params: postId (string, required), limit (integer)``, or an
        empty string when the tool takes no parameters.
    """
    properties = input_schema.get("properties") or {}
    if not isinstance(properties, Mapping) or not properties:
        return ""
    required = set(input_schema.get("required") or [])
    parts = []
    for name, prop in properties.items():
        kind = prop.get("type", "any") if isinstance(prop, Mapping) else "any"
        parts.append(f"{name} ({kind}, required)" if name in required else f"{name} ({kind})")
    return "params: " + ", ".join(parts)


class MCPClientWrapper:
    """Wrapper for the Model Context Protocol (MCP) client to integrate with ToolCatalog."""

    def __init__(
        self,
        command: str,
        args: list[str],
        env: Optional[dict[str, str]] = None,
        capabilities: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        """Initializes the wrapper with parameters for the MCP server process.

        Args:
            command: The command to run the server.
            args: List of arguments for the command.
            env: Optional dictionary of environment variables.
            capabilities: Optional descriptor capabilities per remote tool name, e.g.
                ``{"create_post": {"produces_entity_id": True, "id_key": "postId"}}``.
                MCP servers do not advertise these, so creation signals must be declared here.
        """
        self._server_params = StdioServerParameters(command=command, args=args, env=env)
        self._capabilities = capabilities or {}
        self._session: Optional[ClientSession] = None
        self._exit_stack = AsyncExitStack()

    async def __aenter__(self) -> "MCPClientWrapper":
        """Opens the connection (transport) and initializes the session.

        Returns:
            The initialized MCPClientWrapper instance.
        """
        logger.debug("Initializing MCP client session...")
        read, write = await self._exit_stack.enter_async_context(stdio_client(self._server_params))

        self._session = await self._exit_stack.enter_async_context(ClientSession(read, write))

        await self._session.initialize()
        logger.info("MCP client session initialized successfully.")
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        """Cleanly closes all connections."""
        logger.debug("Closing MCP client session...")
        await self._exit_stack.aclose()
        self._session = None
        logger.info("MCP client session closed.")

    async def load_into(self, catalog: ToolCatalog) -> int:
        """Loads all tools from the MCP server and registers them in the given catalog.

        Args:
            catalog: The ToolCatalog to register the tools into.

        Returns:
            The number of tools registered.

        Raises:
            RuntimeError: If the MCP Client is not connected.
        """
        if not self._session:
            raise RuntimeError("MCP Client is not connected. Use 'async with'.")

        logger.debug("Fetching tools from MCP server...")
        result = await self._session.list_tools()
        logger.info(f"Found {len(result.tools)} tools from MCP server.")

        registered = 0
        for tool in result.tools:
            if self._register_single_tool(catalog, tool):
                registered += 1
        return registered

    def _register_single_tool(self, catalog: ToolCatalog, tool: MCPTool) -> bool:
        """Creates the proxy handler and registers it.

        Args:
            catalog: The ToolCatalog to register the tool into.
            tool: The MCPTool object containing tool metadata.

        Returns:
            Whether the tool was registered. Name clashes with existing tools are skipped.
        """
        tool_name = tool.name
        description = tool.description or f"Tool {tool_name} provided by MCP server."
        param_hint = describe_parameters(tool.inputSchema or {})
        if param_hint:
            description = f"{description} ({param_hint})"

        async def mcp_proxy(params: Dict[str, Any], caller_id: Optional[str] = None) -> Any:
            """Proxy a tool call through the active client session.

            Args:
                params: Arguments forwarded to the remote MCP tool.
                caller_id: Identifier of the calling agent. Not forwarded.

            Returns:
                The structured content when the server returns some, otherwise the text
                blocks joined by newlines.

            Raises:
                ToolExecutionError: If the session is closed or the server reports an error.
            """
            if not self._session:
                raise ToolExecutionError(f"Cannot call tool '{tool_name}': MCP session is not active.")

            logger.info(f"Delegating tool '{tool_name}' to MCP Server...")
            logger.debug(f"Tool arguments: {params}")

            mcp_result = await self._session.call_tool(tool_name, arguments=dict(params))
            result_text = self._render_content(mcp_result.content)

            if mcp_result.isError:
                raise ToolExecutionError(result_text or f"MCP tool '{tool_name}' failed.")

            logger.debug(
                f"Tool '{tool_name}' result: "
                f"{result_text[:200] + '...' if len(result_text) > 200 else result_text}"
            )
            structured = getattr(mcp_result, "structuredContent", None)
            if structured:
                return structured
            return result_text or "Success"

        mcp_proxy.__name__ = tool_name
        mcp_proxy.__doc__ = description

        try:
            catalog.register(tool_name, description, mcp_proxy, **self._capabilities.get(tool_name, {}))
        except ToolRegistrationError as e:
            logger.error(f"Error registering MCP Tool '{tool_name}': {e}")
            return False
        logger.info(f"MCP Tool '{tool_name}' successfully registered.")
        return True

    @staticmethod
    def _render_content(content: Any) -> str:
        output = []
        for c in content or []:
            if c.type == "text":
                text_content = cast(TextContent, c)
                output.append(text_content.text)
            elif c.type == "image":
                image_content = cast(ImageContent, c)
                output.append(f"[Image: {image_content.mimeType}]")
            elif c.type == "resource":
                resource_content = cast(EmbeddedResource, c)
                output.append(f"[Resource: {resource_content.resource.uri}]")
            else:
                output.append(f"[Unknown content type: {c.type}]")
        return "\n".join(output)
