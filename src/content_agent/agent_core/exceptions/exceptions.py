"""
Custom exception classes for the agent engine.

Configuration and completion errors are fatal for a run. Everything deriving from
``ToolError`` is contained to a single tool call and reported back to the model.
"""


class AgentEngineError(Exception):
    """Base exception for all engine errors."""

    pass


class ConfigurationError(AgentEngineError):
    """Raised when provider selection or credentials are missing or invalid."""

    pass


class CompletionTransportError(AgentEngineError):
    """Raised when a completion provider fails to return a completion."""

    pass


class ToolError(AgentEngineError):
    """Base exception for errors raised while executing a single tool call."""

    pass


class ToolRegistrationError(ToolError):
    """Raised when there is an error registering a tool descriptor."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when a requested tool is not found in the catalog."""

    pass


class ToolNotAllowedError(ToolError):
    """Raised when a tool exists but is not in the calling agent's allow-list."""

    pass


class InvalidParamsError(ToolError):
    """Raised when tool parameters are missing or malformed."""

    pass


class ToolExecutionError(ToolError):
    """Raised when a tool fails during execution."""

    pass


class ConflictError(ToolError):
    """Raised by a content store when a unique key is already taken."""

    def __init__(self, message: str, field: str | None = None, value: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class RetryExhaustedError(ToolExecutionError):
    """Raised when a creation handler runs out of candidate keys. Not retryable."""

    pass


class ReactionError(AgentEngineError):
    """Raised when a post-run reaction fails or is misconfigured."""

    pass
