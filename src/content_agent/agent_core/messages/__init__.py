"""Conversation message models and the turn message builder."""

from .models import ConversationMessage, SystemMessage, UserMessage, AssistantMessage, Role
from .builder import (
    MessageBuilder,
    interpolate,
    DEFAULT_SYSTEM_PROMPT,
    CREATION_DIRECTIVE,
    CONTINUE_DIRECTIVE,
    HISTORY_START,
    HISTORY_END,
)

__all__ = [
    "ConversationMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "Role",
    "MessageBuilder",
    "interpolate",
    "DEFAULT_SYSTEM_PROMPT",
    "CREATION_DIRECTIVE",
    "CONTINUE_DIRECTIVE",
    "HISTORY_START",
    "HISTORY_END",
]
