"""Tool catalog: the fixed, ordered set of operations an agent may call."""

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Type

from pydantic import BaseModel

from ..models import ToolDescriptor, MediaKind
from ...exceptions import ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolCatalog:
    """
    A registry of tool descriptors, advertised to the model and used to route calls.

    Descriptors are registered at startup; afterwards the catalog is read-only from the
    engine's point of view. Names are unique and the registration order is preserved,
    so ``list()`` is stable for the lifetime of the catalog.
    """

    def __init__(self, descriptors: Optional[Iterable[ToolDescriptor]] = None) -> None:
        """Initialize the catalog.

        Args:
            descriptors: Optional descriptors to register immediately, in order.
        """
        self._tools: Dict[str, ToolDescriptor] = {}
        for descriptor in descriptors or ():
            self.register(descriptor)

    def register(
        self,
        name_or_descriptor: ToolDescriptor | str,
        description: Optional[str] = None,
        handler: Optional[Callable[..., Any]] = None,
        params_model: Optional[Type[BaseModel]] = None,
        **capabilities: Any,
    ) -> ToolDescriptor:
        """
        Register a new tool.

        Either pass a ready ``ToolDescriptor``, or a name together with a description
        and a handler.

        Args:
            name_or_descriptor: A descriptor, or the name of the tool.
            description: Description shown to the model. Required when passing a name.
            handler: The callable implementing the tool. Required when passing a name.
            params_model: Optional Pydantic model validating the params.
            **capabilities: Extra descriptor fields (``produces_entity_id``, ``produces_media``,
                ``id_key``, ``accepts_mode``).

        Returns:
            The registered descriptor.

        Raises:
            ToolRegistrationError: If arguments are missing or the name is already taken.
        """
        if isinstance(name_or_descriptor, ToolDescriptor):
            descriptor = name_or_descriptor
        else:
            if handler is None:
                raise ToolRegistrationError("If passing name as string, handler is required.")
            if not description:
                raise ToolRegistrationError(f"Tool '{name_or_descriptor}' needs a description for the model.")
            descriptor = ToolDescriptor(
                name=name_or_descriptor,
                description=description,
                handler=handler,
                params_model=params_model,
                **capabilities,
            )

        if not descriptor.name:
            raise ToolRegistrationError("Tool name must not be empty.")

        if descriptor.name in self._tools:
            msg = f"Tool '{descriptor.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool: '{descriptor.name}'")
        return descriptor

    def tool(
        self,
        description: str,
        *,
        name: Optional[str] = None,
        params_model: Optional[Type[BaseModel]] = None,
        produces_entity_id: bool = False,
        produces_media: Optional[MediaKind] = None,
        id_key: str = "id",
        accepts_mode: bool = False,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """A decorator to register a function as a tool.

        Args:
            description: Description shown to the model.
            name: Optional name override; defaults to the function name.
            params_model: Optional Pydantic model validating the params.
            produces_entity_id: Whether the tool creates a primary entity.
            produces_media: Kind of media the tool creates, if any.
            id_key: Result key holding the created identifier.
            accepts_mode: Whether the handler understands a ``mode`` param.

        Returns:
            A decorator returning the original function after registering it.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(
                ToolDescriptor(
                    name=name or func.__name__,
                    description=description,
                    handler=func,
                    params_model=params_model,
                    produces_entity_id=produces_entity_id,
                    produces_media=produces_media,
                    id_key=id_key,
                    accepts_mode=accepts_mode,
                )
            )
            return func

        return decorator

    def list(self) -> List[ToolDescriptor]:
        """Return all descriptors in registration order.

        The returned list is a fresh copy; descriptors themselves are immutable.
        """
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ToolDescriptor:
        """Look up a descriptor by name.

        Raises:
            ToolNotFoundError: If the tool does not exist in the catalog.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{name}' not found in the catalog.") from None

    def filtered(self, allowed: Optional[Sequence[str]]) -> List[ToolDescriptor]:
        """Return the descriptors visible to an agent.

        Args:
            allowed: The agent's allow-list. None or empty means every tool.

        Returns:
            Matching descriptors in catalog order.
        """
        if not allowed:
            return self.list()
        allowed_set = set(allowed)
        return [tool for tool in self._tools.values() if tool.name in allowed_set]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
