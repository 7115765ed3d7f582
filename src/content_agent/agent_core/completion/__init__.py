"""Completion capability: provider base class, registry and models."""

from .base import CompletionProvider, ProviderRegistry
from .models import Completion, CompletionOptions, ProviderConfig, TokenUsage

__all__ = [
    "CompletionProvider",
    "ProviderRegistry",
    "Completion",
    "CompletionOptions",
    "ProviderConfig",
    "TokenUsage",
]
