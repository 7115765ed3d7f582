"""Public exports for the provider- and tool-agnostic agent engine."""

from .logger import get_logger, setup_logging
from .exceptions import (
    AgentEngineError,
    ConfigurationError,
    CompletionTransportError,
    ToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolNotAllowedError,
    InvalidParamsError,
    ToolExecutionError,
    ConflictError,
    RetryExhaustedError,
    ReactionError,
)
from .messages import ConversationMessage, SystemMessage, UserMessage, AssistantMessage, MessageBuilder
from .completion import Completion, CompletionOptions, CompletionProvider, ProviderConfig, ProviderRegistry, TokenUsage
from .tools import (
    ToolCatalog,
    ToolDispatcher,
    PlaceholderResolver,
    ToolDescriptor,
    ToolCallRequest,
    ToolCallResult,
)
from .engine import (
    AgentConfig,
    AgentExecutionResult,
    AgentExecutor,
    EngineSettings,
    ExecutionMeta,
    ProviderSelection,
    ReactionConfig,
    ReactionCondition,
    ReactionDispatcher,
    StyleGuide,
    TriggerContext,
    TriggerScope,
    TurnRecord,
    WritingStyle,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "AgentEngineError",
    "ConfigurationError",
    "CompletionTransportError",
    "ToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolNotAllowedError",
    "InvalidParamsError",
    "ToolExecutionError",
    "ConflictError",
    "RetryExhaustedError",
    "ReactionError",
    "ConversationMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "MessageBuilder",
    "Completion",
    "CompletionOptions",
    "CompletionProvider",
    "ProviderConfig",
    "ProviderRegistry",
    "TokenUsage",
    "ToolCatalog",
    "ToolDispatcher",
    "PlaceholderResolver",
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "AgentConfig",
    "AgentExecutionResult",
    "AgentExecutor",
    "EngineSettings",
    "ExecutionMeta",
    "ProviderSelection",
    "ReactionConfig",
    "ReactionCondition",
    "ReactionDispatcher",
    "StyleGuide",
    "TriggerContext",
    "TriggerScope",
    "TurnRecord",
    "WritingStyle",
]
