"""The multi-turn execution loop driving completions and tool calls for one agent run."""

import time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import AgentConfig, EngineSettings, TriggerContext, resolve_provider_config
from .parsing import mark_truncated, normalize_final, parse_json_object, synthesize_summary, tool_calls_of
from .reactions import ReactionDispatcher
from .results import AgentExecutionResult, ExecutionMeta, TurnRecord
from ..completion import ProviderRegistry
from ..exceptions import ToolNotAllowedError
from ..messages import MessageBuilder
from ..tools.catalog import ToolCatalog
from ..tools.execution import PlaceholderResolver, ToolDispatcher
from ..tools.models import ToolCallRequest, ToolCallResult
from ..logger import get_logger, run_logger

logger = get_logger(__name__)


class RunState(str, Enum):
    AWAITING_COMPLETION = "awaiting_completion"
    PARSING_RESPONSE = "parsing_response"
    EXECUTING_TOOLS = "executing_tools"
    TERMINATED = "terminated"


class AgentExecutor:
    """
    Runs an agent: completion, parse, execute requested tools, re-prompt, until the model
    gives a final answer or the turn ceiling is reached.

    Tool failures are contained into failed results and reported back to the model.
    Failures while resolving the provider, obtaining a completion or assembling the final
    result end the run with ``success=False``. Reactions are notified in both cases.
    The executor holds no per-run state, so independent runs may share one instance.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        catalog: ToolCatalog,
        settings: Optional[EngineSettings] = None,
        *,
        dispatcher: Optional[ToolDispatcher] = None,
        reactions: Optional[ReactionDispatcher] = None,
        message_builder: Optional[MessageBuilder] = None,
        placeholder_resolver: Optional[PlaceholderResolver] = None,
        max_turns: Optional[int] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            providers: Completion providers by name.
            catalog: The tool catalog.
            settings: Engine settings. Defaults are used when None.
            dispatcher: Tool dispatcher. Built over ``catalog`` when None.
            reactions: Reaction dispatcher. Built over the tool dispatcher when None.
            message_builder: Conversation builder.
            placeholder_resolver: Same-turn placeholder resolver.
            max_turns: Turn ceiling. Defaults to ``settings.max_turns``.
            environ: Environment used for API key fallbacks. Defaults to ``os.environ``.
        """
        self.settings = settings or EngineSettings()
        self.providers = providers
        self.catalog = catalog
        self.dispatcher = dispatcher or ToolDispatcher(catalog, tool_timeout=self.settings.tool_timeout)
        self.reactions = reactions or ReactionDispatcher(dispatcher=self.dispatcher)
        self.message_builder = message_builder or MessageBuilder()
        self.placeholder_resolver = placeholder_resolver or PlaceholderResolver()
        self.max_turns = max_turns if max_turns is not None else self.settings.max_turns
        self._environ = environ

    async def execute(
        self,
        agent: AgentConfig,
        trigger: TriggerContext,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> AgentExecutionResult:
        """Run the agent once.

        Args:
            agent: The agent configuration.
            trigger: Why and where the run was started.
            payload: Current-state context and the free-form user instruction.

        Returns:
            The terminal result. Never raises for run failures; those are reported with
            ``success=False`` and the original exception in ``error``.
        """
        started = time.monotonic()
        meta = ExecutionMeta()
        log = run_logger(logger, agent.id, trigger.scope.value)
        log.info("Starting run.")

        try:
            result = await self._run(agent, trigger, payload or {}, meta)
        except Exception as exc:
            log.error(f"Run failed: {exc}", exc_info=True)
            result = AgentExecutionResult(success=False, error=exc, execution_meta=meta)

        meta.duration_ms = int((time.monotonic() - started) * 1000)
        log.info(
            f"Finished: success={result.success}, turns={meta.total_turns}, "
            f"tokens={meta.usage.total_tokens}, {meta.duration_ms}ms."
        )

        if agent.reactions:
            await self.reactions.notify(agent.reactions, trigger, result, agent_name=agent.display_name)
        return result

    async def _run(
        self,
        agent: AgentConfig,
        trigger: TriggerContext,
        payload: Mapping[str, Any],
        meta: ExecutionMeta,
    ) -> AgentExecutionResult:
        debug = self.settings.debug
        log = run_logger(logger, agent.id, trigger.scope.value)

        provider_config = resolve_provider_config(agent, self.settings, self._environ)
        provider = self.providers.get(provider_config.provider)
        provider.validate_config(provider_config)
        meta.provider = provider_config.provider

        tools = self.catalog.filtered(agent.allowed_tools) if agent.use_tools else []
        messages = self.message_builder.build(agent, trigger, payload, tools, debug=debug)

        if debug:
            meta.debug = {
                "ingestion": {
                    "systemPrompt": messages[0].content,
                    "conversation": [m.model_dump() for m in messages if m.role != "system"],
                    "currentPayload": dict(payload),
                },
                "configuration": {
                    "provider": provider_config.provider,
                    "model": provider_config.model,
                    "options": agent.options.model_dump(),
                },
            }

        completion = await provider.complete(messages, agent.options, provider_config)
        meta.model = completion.model or provider_config.model
        meta.total_turns = 1
        meta.usage.add(completion.usage)
        content = completion.content

        turn = 1
        all_results: List[ToolCallResult] = []
        transcript: List[TurnRecord] = []
        last_created_id: Optional[str] = None

        state = RunState.PARSING_RESPONSE
        while state is not RunState.TERMINATED:
            parsed = parse_json_object(content) or {}
            calls = tool_calls_of(parsed) if agent.use_tools else []
            if not calls or turn >= self.max_turns:
                state = RunState.TERMINATED
                continue

            state = RunState.EXECUTING_TOOLS
            log.info(f"Turn {turn}: executing {len(calls)} tool call(s).")
            results = await self._execute_tools(agent, calls, trigger.target_mode)
            all_results.extend(results)

            created_id = next((r.created_id for r in results if r.creates_entity and r.created_id), None)
            if created_id:
                last_created_id = created_id
                log.info(f"Turn {turn}: entity created (ID: {created_id}).")

            reasoning = parsed.get("determination") or parsed.get("reasoning")
            transcript.append(
                TurnRecord(
                    turn=turn,
                    summary=str(parsed["summary"]) if parsed.get("summary") else None,
                    tool_calls=calls,
                    tool_results=results,
                    determination=str(reasoning) if debug and reasoning else None,
                )
            )

            messages = self.message_builder.extend(messages, content, turn, results, created_id)

            state = RunState.AWAITING_COMPLETION
            completion = await provider.complete(messages, agent.options, provider_config)
            content = completion.content
            turn += 1
            meta.total_turns = turn
            meta.usage.add(completion.usage)
            state = RunState.PARSING_RESPONSE

        if agent.use_tools and turn >= self.max_turns and tool_calls_of(parse_json_object(content)):
            log.warning(f"Reached max turns ({self.max_turns}).")
            content = mark_truncated(content)

        return self._assemble(content, all_results, transcript, last_created_id, meta, debug)

    async def _execute_tools(
        self, agent: AgentConfig, calls: Sequence[Any], mode: str
    ) -> List[ToolCallResult]:
        """Execute the tool calls of one turn sequentially, in request order."""
        results: List[ToolCallResult] = []
        for raw in calls:
            request = ToolCallRequest.from_raw(raw)
            if not request.tool:
                logger.warning(f"Malformed tool call entry skipped: {raw!r}")
                results.append(ToolCallResult.failed("", "Tool call is missing a tool name"))
                continue
            results.append(await self._execute_one(agent, request, results, mode))
        return results

    async def _execute_one(
        self,
        agent: AgentConfig,
        request: ToolCallRequest,
        prior: Sequence[ToolCallResult],
        mode: str,
    ) -> ToolCallResult:
        try:
            if not agent.allows(request.tool):
                raise ToolNotAllowedError(f"Tool '{request.tool}' is not in the allowed list")
            descriptor = self.catalog.get(request.tool)
            params = self.placeholder_resolver.resolve(request.params, prior)
            value = await self.dispatcher.call_tool(request.tool, params, caller_id=agent.id, mode=mode)
        except Exception as exc:
            logger.warning(f"Tool '{request.tool}' failed: {exc}")
            return ToolCallResult.failed(request.tool, str(exc))

        created_id = descriptor.created_id(value)
        return ToolCallResult.ok(
            request.tool,
            value,
            created_id=created_id,
            media_kind=descriptor.produces_media if created_id else None,
            creates_entity=descriptor.produces_entity_id,
        )

    @staticmethod
    def _assemble(
        content: str,
        all_results: Sequence[ToolCallResult],
        transcript: List[TurnRecord],
        last_created_id: Optional[str],
        meta: ExecutionMeta,
        debug: bool,
    ) -> AgentExecutionResult:
        data: Dict[str, Any] = normalize_final(content)
        if all_results:
            data["toolResults"] = [r.to_dict() for r in all_results]

        summary = data.pop("summary", None)
        determination: Optional[str] = None
        if debug:
            candidates = data.pop("determination", None), data.pop("reasoning", None)
            determination = next((str(r) for r in candidates if r), None)

        return AgentExecutionResult(
            success=True,
            data=data,
            summary=str(summary) if summary else synthesize_summary(content, data),
            determination=determination,
            last_created_entity_id=last_created_id,
            raw_response=content,
            execution_meta=meta,
            transcript=transcript,
        )
