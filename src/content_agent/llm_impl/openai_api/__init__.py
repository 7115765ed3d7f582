"""Expose the OpenAI chat completions provider."""

from .core import OpenAICompletionProvider

__all__ = ["OpenAICompletionProvider"]
