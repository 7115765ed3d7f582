"""Expose the Google Gemini completion provider."""

from .core import GeminiCompletionProvider

__all__ = ["GeminiCompletionProvider"]
