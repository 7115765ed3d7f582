"""Tool-related data models."""

from .models import ToolDescriptor, MediaKind
from .tool_call import ToolCallRequest, ToolCallResult

__all__ = ["ToolDescriptor", "MediaKind", "ToolCallRequest", "ToolCallResult"]
