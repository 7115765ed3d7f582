"""Provider-agnostic completion request and response models."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionOptions(BaseModel):
    """Sampling options forwarded to the completion provider.

    Attributes:
        temperature: Sampling temperature.
        max_tokens: Maximum number of tokens to generate.
        top_p: Nucleus sampling cutoff.
        stop: Stop sequences.
    """

    model_config = ConfigDict(populate_by_name=True)

    temperature: float = 0.7
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    top_p: Optional[float] = Field(default=None, alias="topP")
    stop: Optional[List[str]] = None


class ProviderConfig(BaseModel):
    """Resolved provider selection for one run.

    Attributes:
        provider: Registered provider name, e.g. ``openai`` or ``gemini``.
        model: Model identifier understood by the provider.
        api_key: Credential for the provider.
        base_url: Optional endpoint override.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    api_key: str
    base_url: Optional[str] = None


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Completion(BaseModel):
    """Normalized completion returned by provider implementations.

    Attributes:
        content: Text content returned by the provider.
        usage: Token usage, if the provider reports it.
        model: Model that actually served the request, if reported.
        raw: Provider-specific response payload for advanced use cases.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: str
    usage: Optional[TokenUsage] = None
    model: Optional[str] = None
    raw: Any = None
