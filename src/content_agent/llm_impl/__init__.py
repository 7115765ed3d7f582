"""Collect concrete completion providers and a registry pre-populated with them."""

from typing import Optional

from google.genai.client import AsyncClient
from openai import AsyncOpenAI

from content_agent.agent_core.completion import ProviderRegistry
from .gemini import GeminiCompletionProvider
from .openai_api import OpenAICompletionProvider


def default_provider_registry(
    openai_client: Optional[AsyncOpenAI] = None,
    gemini_client: Optional[AsyncClient] = None,
) -> ProviderRegistry:
    """Build a registry with the OpenAI and Gemini providers.

    Gemini is registered as ``gemini`` and ``google``.
    """
    registry = ProviderRegistry()
    registry.register("openai", OpenAICompletionProvider(openai_client))
    gemini = GeminiCompletionProvider(gemini_client)
    registry.register("gemini", gemini)
    registry.register("google", gemini)
    return registry


__all__ = ["GeminiCompletionProvider", "OpenAICompletionProvider", "default_provider_registry"]
