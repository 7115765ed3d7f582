"""Bounded-depth traversal over JSON-like trees produced by the model."""

from typing import Any, Protocol, Tuple

from ...logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 32

Path = Tuple[Any, ...]


class TreeVisitor(Protocol):
    """Visitor applied to the leaves of a JSON-like tree."""

    def visit_string(self, value: str, path: Path) -> Any:
        """Return the replacement for a string leaf."""
        ...


def walk(value: Any, visitor: TreeVisitor, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Rebuild ``value`` with every string leaf passed through ``visitor``.

    Dicts and lists are copied, other values are returned unchanged. Containers nested
    deeper than ``max_depth`` are returned as-is instead of being descended into.

    Args:
        value: The tree to traverse.
        visitor: The visitor deciding string replacements.
        max_depth: Maximum container nesting that is visited.

    Returns:
        The rebuilt tree.
    """
    return _walk(value, visitor, (), max_depth)


def _walk(value: Any, visitor: TreeVisitor, path: Path, remaining: int) -> Any:
    if isinstance(value, str):
        return visitor.visit_string(value, path)

    if not isinstance(value, (dict, list)):
        return value

    if remaining <= 0:
        logger.warning(f"Tree deeper than the traversal limit at {'/'.join(map(str, path)) or '<root>'}; left untouched.")
        return value

    if isinstance(value, dict):
        return {key: _walk(item, visitor, path + (key,), remaining - 1) for key, item in value.items()}
    return [_walk(item, visitor, path + (index,), remaining - 1) for index, item in enumerate(value)]
