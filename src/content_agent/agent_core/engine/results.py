"""Result models produced by a run."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..completion import TokenUsage
from ..tools.models import ToolCallResult


class Usage(BaseModel):
    """Token usage summed across all turns of a run."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def add(self, usage: Optional[TokenUsage]) -> None:
        if usage is None:
            return
        self.prompt_tokens += usage.prompt_tokens
        self.completion_tokens += usage.completion_tokens
        self.total_tokens += usage.total_tokens


class ExecutionMeta(BaseModel):
    """
    Bookkeeping for a run. Mutated in place while the run progresses.

    Attributes:
        model: Model that served the first completion.
        provider: Provider name.
        total_turns: Highest turn index reached.
        duration_ms: Wall-clock duration of the run.
        usage: Summed token usage.
        debug: Prompt snapshot of turn 1, only kept in debug mode.
    """

    model: Optional[str] = None
    provider: Optional[str] = None
    total_turns: int = 0
    duration_ms: int = 0
    usage: Usage = Field(default_factory=Usage)
    debug: Optional[Dict[str, Any]] = None


class TurnRecord(BaseModel):
    """One tool-executing turn of the transcript."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    turn: int
    summary: Optional[str] = None
    tool_calls: List[Any] = Field(default_factory=list)
    tool_results: List[ToolCallResult] = Field(default_factory=list)
    determination: Optional[str] = None


class AgentExecutionResult(BaseModel):
    """
    Terminal value of a run, returned to the caller and handed to reactions.

    On failure ``error`` holds the original exception and no partial data is set.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[Exception] = None
    summary: Optional[str] = None
    determination: Optional[str] = None
    last_created_entity_id: Optional[str] = None
    raw_response: Optional[str] = None
    execution_meta: ExecutionMeta = Field(default_factory=ExecutionMeta)
    transcript: List[TurnRecord] = Field(default_factory=list)

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    def to_variables(self) -> Dict[str, Any]:
        """Plain mapping view used by condition paths and templates."""
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error_message,
            "summary": self.summary,
            "lastCreatedEntityId": self.last_created_entity_id,
            "executionMeta": self.execution_meta.model_dump(),
        }
