"""Content Agent - A provider-agnostic tool-calling agent engine with a content tool set."""

from .agent_core import (
    AgentConfig,
    AgentExecutionResult,
    AgentExecutor,
    EngineSettings,
    ProviderSelection,
    ReactionConfig,
    ReactionDispatcher,
    ToolCatalog,
    ToolDescriptor,
    ToolCallResult,
    TriggerContext,
    TriggerScope,
    setup_logging,
)
from .llm_impl import default_provider_registry
from .llm_impl.gemini import GeminiCompletionProvider
from .llm_impl.openai_api import OpenAICompletionProvider
from .content_tools import InMemoryContentStore, build_content_catalog

__all__ = [
    "AgentConfig",
    "AgentExecutionResult",
    "AgentExecutor",
    "EngineSettings",
    "ProviderSelection",
    "ReactionConfig",
    "ReactionDispatcher",
    "ToolCatalog",
    "ToolDescriptor",
    "ToolCallResult",
    "TriggerContext",
    "TriggerScope",
    "setup_logging",
    "default_provider_registry",
    "GeminiCompletionProvider",
    "OpenAICompletionProvider",
    "InMemoryContentStore",
    "build_content_catalog",
]
