"""Builds the turn-1 conversation and extends it with tool results on later turns."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from .models import AssistantMessage, ConversationMessage, SystemMessage, UserMessage
from ..tools.models import ToolCallResult, ToolDescriptor
from ..logger import get_logger

if TYPE_CHECKING:
    from ..engine.config import AgentConfig, TriggerContext

logger = get_logger(__name__)

TEMPLATE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_SYSTEM_PROMPT = """You are a helpful content assistant. You must respond with valid JSON only in this format:
{
  "post": {
    "title": "Updated title"
  }
}

Only include fields that you are actually changing. NEVER leave module copy fields with their default "Lorem Ipsum" values; always replace them with high-quality, relevant content."""

DEBUG_INSTRUCTIONS = (
    '\n\nDEBUG MODE ENABLED: Please include a "determination" field in your JSON responses explaining your '
    "reasoning, what you gathered from context/tools, and why you are taking the next steps."
)

HISTORY_INSTRUCTIONS = (
    "\n\nNOTE: Conversation history is provided above. Treat each user request as the primary directive. "
    'If the current request represents a "new task" or a significant departure from previous turns, prioritize '
    "the new instructions and do not let previous context restrict the scope of the current request unless "
    "explicitly asked to do so."
)

OUTPUT_CONTRACT = """

IMPORTANT: You must respond with a JSON object. If you need to use tools, include a "tool_calls" array. If you are providing a final response, include a "summary".{extra}

Format for tool calls:
{{
  "tool_calls": [
    {{ "tool": "tool_name", "params": {{ "key": "value", "mode": "{mode}" }} }}
  ]
}}

Format for final response:
{{
  "summary": "A brief natural language description of what you've done",
  "post": {{ "title": "..." }},
  "modules": [ {{ "type": "...", "props": {{ "...": "..." }} }} ]
}}

Only include fields/modules that you are actually changing. Do not include any text outside the JSON object."""

HISTORY_START = "--- PREVIOUS CONVERSATION HISTORY (FOR CONTEXT ONLY) ---"
HISTORY_END = "--- END OF PREVIOUS HISTORY. THE FOLLOWING IS THE CURRENT REQUEST. ---"

CREATION_DIRECTIVE = """IMPORTANT: Post/Translation created (ID: {entity_id}). To fulfill the user's request, you MUST now:
1. Use get_post_context(postId: "{entity_id}") to see the seeded or cloned modules and their current IDs.
2. For each module or field that needs content:
   - Use update_post_module with the specific postModuleId and overrides.
   - Use save_post for post-level fields like title and excerpt.
3. Once all translations/edits are finished, provide a final response with "redirectPostId": "{entity_id}" so the user can be taken to the new version.

RESPOND WITH YOUR NEXT TOOL CALLS IN JSON FORMAT."""

CONTINUE_DIRECTIVE = (
    'Analyze the results above. If you need more tools to complete the user\'s request, include a "tool_calls" '
    'array. If the task is finished, provide your final response with a "summary". RESPOND IN JSON FORMAT.'
)

SCOPE_NARRATIVES: Dict[str, List[str]] = {
    "manual": ["Scope: Manual execution requested by user on an existing post."],
    "global": [
        "Scope: Global execution (System-wide).",
        "- You are NOT currently editing a specific post.",
        "- Focus on media generation or creating NEW posts.",
        '- Use "list_post_types" first if you need to create a post to see what is available.',
        '- Do NOT assume you are creating a "blog post" unless explicitly asked for that type.',
    ],
    "post.publish": ["Scope: The post is being published. Review it and prepare any final edits."],
    "post.review.save": ["Scope: A review draft of the post was saved. Review the draft and suggest edits."],
    "post.create-translation": [
        "Scope: A translation of the post is being created. Translate the content into the target locale."
    ],
}


def interpolate(template: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders. Unknown or null names stay literally."""

    def substitute(match: "re.Match[str]") -> str:
        value = variables.get(match.group(1))
        if value is None:
            return match.group(0)
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    return TEMPLATE_PATTERN.sub(substitute, template)


def _scope_value(trigger: "TriggerContext") -> str:
    return getattr(trigger.scope, "value", str(trigger.scope))


class MessageBuilder:
    """
    Assembles the conversation sent to the completion provider.

    The builder never mutates a conversation it is given: ``extend`` returns a new list
    holding the old messages followed by the new ones.
    """

    def __init__(
        self,
        creation_directive: str = CREATION_DIRECTIVE,
        continue_directive: str = CONTINUE_DIRECTIVE,
    ) -> None:
        self.creation_directive = creation_directive
        self.continue_directive = continue_directive

    def build(
        self,
        agent: "AgentConfig",
        trigger: "TriggerContext",
        payload: Optional[Mapping[str, Any]],
        tools: Sequence[ToolDescriptor] = (),
        debug: bool = False,
    ) -> List[ConversationMessage]:
        """Build the turn-1 conversation.

        Args:
            agent: The agent configuration.
            trigger: Why and where the run was started.
            payload: Current-state context (``post``, ``modules``, ``context``) and the
                free-form instruction (``openEndedContext``).
            tools: Tools visible to the agent, already filtered by its allow-list.
            debug: Ask the model for a ``determination`` field.

        Returns:
            System message, optional framed history, then the task message.
        """
        payload = payload or {}
        messages: List[ConversationMessage] = [
            SystemMessage(content=self._system_prompt(agent, trigger, payload, debug))
        ]

        if trigger.history:
            messages.append(SystemMessage(content=HISTORY_START))
            messages.extend(trigger.history)
            messages.append(SystemMessage(content=HISTORY_END))

        messages.append(UserMessage(content=self._user_message(agent, trigger, payload, tools)))
        logger.debug(f"Built {len(messages)} turn-1 messages ({sum(len(m.content) for m in messages)} chars).")
        return messages

    def extend(
        self,
        messages: Sequence[ConversationMessage],
        assistant_content: str,
        turn: int,
        results: Sequence[ToolCallResult],
        created_entity_id: Optional[str] = None,
    ) -> List[ConversationMessage]:
        """Append the model's reply and the results of the turn.

        Args:
            messages: The conversation so far.
            assistant_content: The raw assistant text of this turn, appended verbatim.
            turn: The turn whose results are reported.
            results: Results of this turn, in execution order.
            created_entity_id: Identifier of an entity created this turn, if any.

        Returns:
            A new conversation list.
        """
        serialized = json.dumps([r.to_dict() for r in results], indent=2, default=str)
        prompt = f"Tool execution results (Turn {turn}):\n{serialized}\n\n"
        if created_entity_id:
            prompt += self.creation_directive.format(entity_id=created_entity_id)
        else:
            prompt += self.continue_directive

        return [*messages, AssistantMessage(content=assistant_content), UserMessage(content=prompt)]

    def _system_prompt(
        self,
        agent: "AgentConfig",
        trigger: "TriggerContext",
        payload: Mapping[str, Any],
        debug: bool,
    ) -> str:
        if not agent.system_prompt:
            return DEFAULT_SYSTEM_PROMPT

        variables: Dict[str, Any] = {
            "agent": agent.display_name,
            "scope": _scope_value(trigger),
            "targetMode": trigger.target_mode,
            **trigger.data,
            **payload,
        }
        prompt = interpolate(agent.system_prompt, variables)

        style = agent.style_guide
        if style is not None:
            lines = ["STYLE GUIDE FOR MEDIA GENERATION:"]
            if style.design_style:
                lines.append(f"- Design Style: {style.design_style}")
            if style.color_palette:
                lines.append(f"- Color Palette: {style.color_palette}")
            if style.design_treatments:
                lines.append(f"- Design Treatments: {', '.join(style.design_treatments)}")
            if style.notes:
                lines.append(f"- Additional Notes: {style.notes}")
            prompt += "\n\n" + "\n".join(lines) + "\n\nWhen generating images, follow the style guide above."

        writing = agent.writing_style
        if writing is not None:
            lines = ["WRITING STYLE PREFERENCES:"]
            if writing.tone:
                lines.append(f"- Tone: {writing.tone}")
            if writing.voice:
                lines.append(f"- Voice: {writing.voice}")
            if writing.conventions:
                lines.append(f"- Conventions: {', '.join(writing.conventions)}")
            if writing.notes:
                lines.append(f"- Additional Notes: {writing.notes}")
            prompt += (
                "\n\n"
                + "\n".join(lines)
                + "\n\nWhen writing or editing text content, follow the writing style preferences above."
            )

        extra = (DEBUG_INSTRUCTIONS if debug else "") + (HISTORY_INSTRUCTIONS if trigger.history else "")
        return prompt + OUTPUT_CONTRACT.format(extra=extra, mode=trigger.target_mode)

    def _user_message(
        self,
        agent: "AgentConfig",
        trigger: "TriggerContext",
        payload: Mapping[str, Any],
        tools: Sequence[ToolDescriptor],
    ) -> str:
        parts: List[str] = []
        scope = _scope_value(trigger)

        instructions = payload.get("openEndedContext") or payload.get("instructions")
        if instructions:
            parts.append("=" * 72)
            parts.append("CURRENT USER INSTRUCTIONS (PRIORITY):")
            parts.append(str(instructions))
            parts.append("=" * 72)
            parts.append(
                "Please fulfill the CURRENT USER INSTRUCTIONS above using the tools provided below. "
                "If these instructions represent a new task, ignore irrelevant previous conversation history."
            )

        parts.append("\n--- TECHNICAL CONTEXT ---")
        parts.append(
            "IMPORTANT: Use the following technical context to inform your tool calls, but PRIORITIZE "
            "the USER INSTRUCTIONS above for your creative decisions."
        )

        if scope == "field":
            parts.append(f"Scope: Per-field AI assistance for: {trigger.data.get('fieldKey') or 'unknown'}")
            parts.append("- Your primary goal is to provide a value for this specific field.")
        else:
            parts.extend(SCOPE_NARRATIVES.get(scope, [f"Scope: {scope}"]))

        if scope != "global":
            post = payload.get("post")
            if isinstance(post, Mapping):
                parts.append(f"\nTarget Post ID: {post.get('id')}")
                parts.append(f"Current post data:\n{json.dumps(post, indent=2, default=str)}")

            modules = payload.get("modules")
            if isinstance(modules, list):
                parts.append(f"\nCurrent modules ({len(modules)} total):")
                for idx, module in enumerate(modules):
                    if not isinstance(module, Mapping):
                        continue
                    order_index = module.get("orderIndex", idx)
                    parts.append(
                        f"\n{idx + 1}. {module.get('type')} "
                        f"(postModuleId: \"{module.get('postModuleId')}\", orderIndex: {order_index}):"
                    )
                    parts.append(json.dumps(module.get("props") or {}, indent=2, default=str))
                parts.append(
                    '\nIMPORTANT: If asked to update "all modules" or "all copy", you MUST include entries for all '
                    'relevant modules in your response array. Use "postModuleId" to ensure your changes apply to '
                    "the correct instance."
                )

        context = payload.get("context")
        if context:
            parts.append(f"\nAdditional context:\n{json.dumps(context, indent=2, default=str)}")

        if agent.use_tools:
            parts.append("\n\nYou have access to the following tools:")
            for tool in tools:
                parts.append(f"- {tool.name}: {tool.description}")
            parts.append('\nTo use a tool, include a "tool_calls" array in your JSON response with tool name and params.')

        return "\n".join(parts)
