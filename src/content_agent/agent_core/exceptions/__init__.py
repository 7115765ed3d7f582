"""Export the engine exception hierarchy used across configuration, completion and tool paths."""

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

__all__ = [
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
]
