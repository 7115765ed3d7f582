from typing import Any, Callable, Literal, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict

MediaKind = Literal["image", "video"]


class ToolDescriptor(BaseModel):
    """
    Describes one operation of the tool catalog.

    Attributes:
        name: The unique name of the tool.
        description: Human-readable description, shown to the model verbatim.
        handler: The callable implementing the tool. Called as ``handler(params, caller_id=...)``.
        params_model: Optional Pydantic model used to validate and normalize the params
                      before they reach the handler.
        produces_entity_id: Whether a successful call creates a new primary entity.
        produces_media: Kind of media a successful call creates, if any.
        id_key: Result key holding the identifier of the created entity or media.
        accepts_mode: Whether the handler understands a ``mode`` param (target draft mode).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    handler: Callable[..., Any]
    params_model: Optional[Type[BaseModel]] = None
    produces_entity_id: bool = False
    produces_media: Optional[MediaKind] = None
    id_key: str = "id"
    accepts_mode: bool = False

    def created_id(self, result: Any) -> Optional[str]:
        """Extract the identifier a creating tool reports in its result.

        Args:
            result: The value returned by the handler.

        Returns:
            The created identifier as a string, or None if the tool creates nothing
            or the result does not carry the identifier.
        """
        if not (self.produces_entity_id or self.produces_media):
            return None
        if not isinstance(result, Mapping):
            return None
        value = result.get(self.id_key)
        if value is None or value == "":
            return None
        return str(value)
