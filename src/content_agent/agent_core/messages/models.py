"""Provider-agnostic message models for the agent conversation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["system", "user", "assistant"]


class ConversationMessage(BaseModel):
    """A single message exchanged with the completion provider.

    Messages are frozen: once appended to a conversation they are never mutated.

    Attributes:
        role: Role associated with the message.
        content: Text payload of the message.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class SystemMessage(ConversationMessage):
    """Message authored by the system to steer behavior."""

    role: Role = "system"


class UserMessage(ConversationMessage):
    """Message authored on behalf of the user or the engine."""

    role: Role = "user"


class AssistantMessage(ConversationMessage):
    """Message authored by the model."""

    role: Role = "assistant"
