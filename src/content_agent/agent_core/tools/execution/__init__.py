"""Tool execution: dispatching calls and resolving same-turn placeholders."""

from .dispatcher import ToolDispatcher
from .placeholders import PlaceholderResolver, build_media_map, PLACEHOLDER_PATTERN

__all__ = ["ToolDispatcher", "PlaceholderResolver", "build_media_map", "PLACEHOLDER_PATTERN"]
