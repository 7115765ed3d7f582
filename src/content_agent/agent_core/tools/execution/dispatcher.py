"""Routes tool calls to their handlers with argument normalization, validation and a timeout."""

import asyncio
import inspect
import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..catalog import ToolCatalog
from ..models import ToolDescriptor
from ...exceptions import InvalidParamsError, ToolExecutionError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolDispatcher:
    """
    Executes a single tool call against the catalog.

    The dispatcher owns no state besides the catalog and performs no persistence;
    side effects belong to the invoked handler. Errors are raised, never swallowed:
    containing them into a failed result is the caller's decision.
    """

    def __init__(self, catalog: ToolCatalog, tool_timeout: float = 180.0) -> None:
        """
        Args:
            catalog: The catalog used to look up handlers.
            tool_timeout: Maximum time in seconds a single handler may run.
        """
        self.catalog = catalog
        self.tool_timeout = tool_timeout

    async def call_tool(
        self,
        name: str,
        params: Any = None,
        caller_id: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> Any:
        """Execute the named tool.

        Args:
            name: Name of the tool, as requested by the model.
            params: Raw parameters. A mapping, a JSON object string or None.
            caller_id: Identity of the calling agent, forwarded to the handler.
            mode: Target draft mode, injected as ``mode`` for tools that accept it.

        Returns:
            Whatever the handler returns.

        Raises:
            ToolNotFoundError: If the tool is not in the catalog.
            InvalidParamsError: If the params cannot be decoded or fail validation.
            ToolExecutionError: If the handler times out.
        """
        descriptor = self.catalog.get(name)
        args = self._normalize_function_args(name, params)

        if mode and descriptor.accepts_mode and not args.get("mode"):
            args["mode"] = mode

        handler_params = self._validate(descriptor, args)

        logger.info(f"Executing tool '{name}'...")
        result = await self._execute_tool(descriptor, handler_params, caller_id)
        logger.info(f"Tool '{name}' executed successfully.")
        return result

    @staticmethod
    def _normalize_function_args(tool_name: str, raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a fresh dictionary.

        Handles JSON strings, mappings or None values.

        Raises:
            InvalidParamsError: If arguments cannot be parsed or are not an object.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, dict):
            return dict(raw_args)

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise InvalidParamsError(f"Failed to parse arguments for tool '{tool_name}': {exc}") from exc

            if parsed is None:
                return {}
            if not isinstance(parsed, dict):
                raise InvalidParamsError(f"Arguments for tool '{tool_name}' must decode to a JSON object.")
            return parsed

        try:
            return dict(raw_args)
        except (TypeError, ValueError) as exc:
            raise InvalidParamsError(f"Failed to parse arguments for tool '{tool_name}': {exc}") from exc

    @staticmethod
    def _validate(descriptor: ToolDescriptor, args: Dict[str, Any]) -> Any:
        """Validate args with the descriptor's params model, if it declares one.

        Returns:
            The model instance, or the plain dict when the tool owns its validation.
        """
        if descriptor.params_model is None:
            return args
        try:
            return descriptor.params_model.model_validate(args)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<params>'}: {err['msg']}" for err in exc.errors()
            )
            raise InvalidParamsError(f"Invalid params for tool '{descriptor.name}': {details}") from exc

    async def _execute_tool(self, descriptor: ToolDescriptor, params: Any, caller_id: Optional[str]) -> Any:
        """Execute the handler, handling async/sync and timeouts.

        Raises:
            ToolExecutionError: If execution times out.
        """
        handler = descriptor.handler
        try:
            if inspect.iscoroutinefunction(handler):
                return await asyncio.wait_for(handler(params, caller_id=caller_id), timeout=self.tool_timeout)

            return await asyncio.wait_for(
                asyncio.to_thread(handler, params, caller_id=caller_id),
                timeout=self.tool_timeout,
            )
        except asyncio.TimeoutError as exc:
            msg = f"Tool '{descriptor.name}' timed out after {self.tool_timeout} seconds."
            raise ToolExecutionError(msg) from exc
