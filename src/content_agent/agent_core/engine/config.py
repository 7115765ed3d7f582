"""Agent configuration, trigger context and environment-driven engine settings."""

import os
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from ..completion import CompletionOptions, ProviderConfig
from ..exceptions import ConfigurationError
from ..messages import ConversationMessage
from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TURNS = 10
DEFAULT_TOOL_TIMEOUT = 180.0


class TriggerScope(str, Enum):
    """The kind of event that started a run. Only affects the task narrative."""

    MANUAL = "manual"
    GLOBAL = "global"
    POST_PUBLISH = "post.publish"
    POST_REVIEW_SAVE = "post.review.save"
    POST_CREATE_TRANSLATION = "post.create-translation"
    FIELD = "field"


class TriggerContext(BaseModel):
    """
    Describes why and where a run was started.

    Attributes:
        scope: The trigger kind.
        data: Trigger-specific data, e.g. ``fieldKey`` and ``viewMode`` for field runs.
        user_id: Identity of the user that triggered the run, if any.
        history: Earlier conversation supplied by the caller, for context only.
    """

    scope: TriggerScope = TriggerScope.MANUAL
    data: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None
    history: List[ConversationMessage] = Field(default_factory=list)

    @property
    def target_mode(self) -> str:
        """Draft mode tool calls write into."""
        if self.scope == TriggerScope.FIELD:
            return str(self.data.get("viewMode") or "source")
        return "ai-review"


class ProviderSelection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    base_url: Optional[str] = Field(default=None, alias="baseUrl")


class StyleGuide(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    design_style: Optional[str] = Field(default=None, alias="designStyle")
    color_palette: Optional[str] = Field(default=None, alias="colorPalette")
    design_treatments: List[str] = Field(default_factory=list, alias="designTreatments")
    notes: Optional[str] = None


class WritingStyle(BaseModel):
    tone: Optional[str] = None
    voice: Optional[str] = None
    conventions: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


ReactionKind = Literal["webhook", "slack", "tool", "callable"]
ReactionTrigger = Literal["always", "on_success", "on_error", "on_condition"]
ConditionOperator = Literal["equals", "contains", "greater_than", "less_than", "matches", "exists"]


class ReactionCondition(BaseModel):
    """Condition over a dotted path into the run result, e.g. ``data.post.title``."""

    field: str
    operator: ConditionOperator
    value: Any = None


class ReactionConfig(BaseModel):
    """
    A downstream notification run once after every run.

    Attributes:
        type: Reaction kind.
        trigger: When the reaction fires.
        condition: Condition for ``on_condition`` triggers.
        enabled: Disabled reactions are skipped.
        url: Target URL for webhooks.
        method: HTTP method for webhooks.
        headers: Extra HTTP headers for webhooks.
        body_template: Optional ``{{var}}`` template for the webhook body.
        webhook_url: Slack incoming-webhook URL.
        channel: Optional Slack channel override.
        template: Slack message template.
        tool_name: Catalog tool invoked by ``tool`` reactions.
        tool_params: Params for the tool, a mapping or a ``{{var}}`` JSON template.
        handler: In-process callable for ``callable`` reactions, called with ``(context, result)``.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    type: ReactionKind
    trigger: ReactionTrigger = "always"
    condition: Optional[ReactionCondition] = None
    enabled: bool = True

    url: Optional[str] = None
    method: str = "POST"
    headers: Dict[str, str] = Field(default_factory=dict)
    body_template: Optional[str] = Field(default=None, alias="bodyTemplate")

    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")
    channel: Optional[str] = None
    template: Optional[str] = None

    tool_name: Optional[str] = Field(default=None, alias="toolName")
    tool_params: Optional[Dict[str, Any] | str] = Field(default=None, alias="toolParams")

    handler: Optional[Callable[..., Any]] = None


class AgentConfig(BaseModel):
    """
    Everything the engine needs to know about one agent.

    Attributes:
        id: Stable agent identifier, forwarded to tools as the caller identity.
        name: Display name used in prompts and notifications.
        system_prompt: Base instructions. ``{{var}}`` placeholders are interpolated.
        use_tools: Whether the agent may call tools.
        allowed_tools: Optional allow-list of tool names. Empty means every tool.
        provider: Provider selection for text completions.
        options: Sampling options.
        style_guide: Optional visual style preferences.
        writing_style: Optional writing style preferences.
        reactions: Downstream notifications run after every run.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    use_tools: bool = Field(default=False, alias="useTools")
    allowed_tools: List[str] = Field(default_factory=list, alias="allowedTools")
    provider: ProviderSelection = Field(default_factory=ProviderSelection)
    options: CompletionOptions = Field(default_factory=CompletionOptions)
    style_guide: Optional[StyleGuide] = Field(default=None, alias="styleGuide")
    writing_style: Optional[WritingStyle] = Field(default=None, alias="writingStyle")
    reactions: List[ReactionConfig] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def allows(self, tool_name: str) -> bool:
        return not self.allowed_tools or tool_name in self.allowed_tools


def _env_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class EngineSettings(BaseModel):
    """
    Process-wide engine settings.

    Attributes:
        max_turns: Turn ceiling for a run.
        tool_timeout: Maximum seconds a single tool call may run.
        debug: Ask the model for a ``determination`` and keep prompt snapshots.
        default_text_provider: Provider used when the agent does not select one.
        default_text_model: Model used when the agent does not select one.
    """

    max_turns: int = DEFAULT_MAX_TURNS
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    debug: bool = False
    default_text_provider: Optional[str] = None
    default_text_model: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Build settings from environment variables.

        Args:
            env_file: Optional ``.env`` file loaded first. Existing variables win.
            environ: Mapping to read from instead of ``os.environ``.

        Returns:
            The settings.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        try:
            return cls(
                max_turns=int(environ.get("AGENT_MAX_TURNS") or DEFAULT_MAX_TURNS),
                tool_timeout=float(environ.get("AGENT_TOOL_TIMEOUT") or DEFAULT_TOOL_TIMEOUT),
                debug=_env_bool(environ.get("AGENT_DEBUG")),
                default_text_provider=environ.get("AGENT_DEFAULT_TEXT_PROVIDER") or None,
                default_text_model=environ.get("AGENT_DEFAULT_TEXT_MODEL") or None,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid engine setting in environment: {exc}") from exc


def api_key_env_var(provider: str) -> str:
    return f"AI_PROVIDER_{provider.upper()}_API_KEY"


def resolve_provider_config(
    agent: AgentConfig,
    settings: EngineSettings,
    environ: Optional[Mapping[str, str]] = None,
) -> ProviderConfig:
    """Resolve the provider, model and credential for a run.

    The agent's own selection wins, then the settings defaults. The API key falls back to
    ``AI_PROVIDER_<PROVIDER>_API_KEY``.

    Raises:
        ConfigurationError: If the provider, the model or the credential cannot be resolved.
    """
    environ = os.environ if environ is None else environ
    selection = agent.provider

    provider = selection.provider or settings.default_text_provider
    model = selection.model or settings.default_text_model
    if not provider:
        raise ConfigurationError(f"AI provider not specified for agent '{agent.id}'.")
    if not model:
        raise ConfigurationError(f"AI model not specified for agent '{agent.id}'.")

    env_var = api_key_env_var(provider)
    api_key = selection.api_key or environ.get(env_var)
    if not api_key:
        raise ConfigurationError(
            f"API key not found for provider {provider}. Set api_key in the agent config or {env_var}."
        )

    return ProviderConfig(provider=provider, model=model, api_key=api_key, base_url=selection.base_url)
