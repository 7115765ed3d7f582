"""Execution engine: configuration, the run loop, result parsing and reactions."""

from .config import (
    AgentConfig,
    EngineSettings,
    ProviderSelection,
    ReactionCondition,
    ReactionConfig,
    StyleGuide,
    TriggerContext,
    TriggerScope,
    WritingStyle,
    resolve_provider_config,
)
from .executor import AgentExecutor, RunState
from .parsing import extract_json, normalize_final, synthesize_summary
from .reactions import ReactionDispatcher
from .results import AgentExecutionResult, ExecutionMeta, TurnRecord, Usage

__all__ = [
    "AgentConfig",
    "EngineSettings",
    "ProviderSelection",
    "ReactionCondition",
    "ReactionConfig",
    "StyleGuide",
    "TriggerContext",
    "TriggerScope",
    "WritingStyle",
    "resolve_provider_config",
    "AgentExecutor",
    "RunState",
    "extract_json",
    "normalize_final",
    "synthesize_summary",
    "ReactionDispatcher",
    "AgentExecutionResult",
    "ExecutionMeta",
    "TurnRecord",
    "Usage",
]
