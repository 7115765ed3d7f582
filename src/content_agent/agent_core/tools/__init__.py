"""Tool catalog, models, execution and schema helpers."""

from .catalog import ToolCatalog
from .execution import ToolDispatcher, PlaceholderResolver
from .models import ToolDescriptor, MediaKind, ToolCallRequest, ToolCallResult

__all__ = [
    "ToolCatalog",
    "ToolDispatcher",
    "PlaceholderResolver",
    "ToolDescriptor",
    "MediaKind",
    "ToolCallRequest",
    "ToolCallResult",
]
