"""Post-run reactions: webhooks, Slack messages, catalog tools and in-process callables."""

import inspect
import json
import re
from typing import Any, Dict, Mapping, Optional, Sequence

import httpx

from .config import ReactionCondition, ReactionConfig, TriggerContext
from .results import AgentExecutionResult
from ..exceptions import ReactionError
from ..messages import interpolate
from ..tools.execution import ToolDispatcher
from ..logger import get_logger

logger = get_logger(__name__)


def get_path(data: Any, path: str) -> Any:
    """Resolve a dotted path like ``data.post.title``; missing segments yield None."""
    current = data
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def evaluate_condition(condition: ReactionCondition, variables: Mapping[str, Any]) -> bool:
    """Evaluate a reaction condition against the result variables."""
    actual = get_path(variables, condition.field)
    expected = condition.value
    op = condition.operator

    if op == "equals":
        return bool(actual == expected)
    if op == "contains":
        return str(expected if expected is not None else "") in str(actual if actual is not None else "")
    if op == "greater_than":
        return _as_number(actual) > _as_number(expected)
    if op == "less_than":
        return _as_number(actual) < _as_number(expected)
    if op == "matches":
        return re.search(str(expected or ""), str(actual if actual is not None else "")) is not None
    if op == "exists":
        return actual is not None
    return False


def should_trigger(reaction: ReactionConfig, result: AgentExecutionResult) -> bool:
    if reaction.trigger == "always":
        return True
    if reaction.trigger == "on_success":
        return result.success
    if reaction.trigger == "on_error":
        return not result.success
    if reaction.trigger == "on_condition":
        return reaction.condition is not None and evaluate_condition(reaction.condition, result.to_variables())
    return False


class ReactionDispatcher:
    """
    Notifies the configured reactions once a run has terminated.

    Reactions run one after another in declaration order. A failing reaction is logged
    and never prevents the following ones from running.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            http_client: Client used for webhook and Slack reactions. Created per call if None.
            dispatcher: Dispatcher used for ``tool`` reactions.
            timeout: HTTP timeout in seconds when no client is injected.
        """
        self._http_client = http_client
        self._dispatcher = dispatcher
        self._timeout = timeout

    async def notify(
        self,
        reactions: Sequence[ReactionConfig],
        context: TriggerContext,
        result: AgentExecutionResult,
        agent_name: str = "",
    ) -> None:
        """Run every enabled reaction whose trigger matches ``result``.

        Args:
            reactions: The agent's reactions, in declaration order.
            context: The trigger context of the run.
            result: The terminal result of the run.
            agent_name: Display name of the agent, available to templates as ``agent``.
        """
        for index, reaction in enumerate(reactions):
            if not reaction.enabled:
                continue
            try:
                if not should_trigger(reaction, result):
                    continue
                await self._run(reaction, context, result, agent_name)
                logger.info(f"Reaction #{index} ({reaction.type}) executed.")
            except Exception as exc:
                logger.warning(f"Reaction #{index} ({reaction.type}) failed: {exc}", exc_info=True)

    async def _run(
        self,
        reaction: ReactionConfig,
        context: TriggerContext,
        result: AgentExecutionResult,
        agent_name: str,
    ) -> None:
        variables: Dict[str, Any] = {
            "agent": agent_name,
            "scope": context.scope.value,
            "result": result.data,
            "summary": result.summary,
            "error": result.error_message,
            "success": result.success,
            **context.data,
        }

        if reaction.type == "webhook":
            await self._webhook(reaction, variables, result)
        elif reaction.type == "slack":
            await self._slack(reaction, variables, agent_name, result)
        elif reaction.type == "tool":
            await self._tool(reaction, variables)
        elif reaction.type == "callable":
            await self._callable(reaction, context, result)
        else:
            raise ReactionError(f"Unknown reaction type: {reaction.type}")

    async def _webhook(self, reaction: ReactionConfig, variables: Mapping[str, Any], result: AgentExecutionResult) -> None:
        if not reaction.url:
            raise ReactionError("Webhook URL is required")

        body: Any = result.data
        if reaction.body_template:
            rendered = interpolate(reaction.body_template, variables)
            try:
                body = json.loads(rendered)
            except json.JSONDecodeError:
                body = rendered

        headers = {"Content-Type": "application/json", **reaction.headers}
        await self._send(reaction.method, reaction.url, body, headers, "Webhook")

    async def _slack(
        self, reaction: ReactionConfig, variables: Mapping[str, Any], agent_name: str, result: AgentExecutionResult
    ) -> None:
        if not reaction.webhook_url:
            raise ReactionError("Slack webhook URL is required")

        if reaction.template:
            text = interpolate(reaction.template, variables)
        else:
            text = f"Agent {agent_name} {'completed successfully' if result.success else 'failed'}"

        payload: Dict[str, Any] = {"text": text}
        if reaction.channel:
            payload["channel"] = reaction.channel
        await self._send("POST", reaction.webhook_url, payload, {"Content-Type": "application/json"}, "Slack webhook")

    async def _tool(self, reaction: ReactionConfig, variables: Mapping[str, Any]) -> None:
        if not reaction.tool_name:
            raise ReactionError("Tool name is required")
        if self._dispatcher is None:
            raise ReactionError("Tool reactions need a tool dispatcher")

        params: Any = reaction.tool_params or {}
        if isinstance(params, str):
            try:
                params = json.loads(interpolate(params, variables))
            except json.JSONDecodeError as exc:
                raise ReactionError("Invalid toolParams template") from exc

        await self._dispatcher.call_tool(reaction.tool_name, params)

    @staticmethod
    async def _callable(reaction: ReactionConfig, context: TriggerContext, result: AgentExecutionResult) -> None:
        if reaction.handler is None:
            raise ReactionError("Callable reactions need a handler")
        outcome = reaction.handler(context, result)
        if inspect.isawaitable(outcome):
            await outcome

    async def _send(self, method: str, url: str, body: Any, headers: Dict[str, str], label: str) -> None:
        content = json.dumps(body, default=str)
        if self._http_client is not None:
            response = await self._http_client.request(method, url, content=content, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, content=content, headers=headers)

        if response.is_error:
            raise ReactionError(f"{label} failed: {response.status_code} {response.reason_phrase}")
