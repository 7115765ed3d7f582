"""Typed field schemas and the single normalization pass run before a handler persists values."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .markdown import markdown_to_document
from .traversal import DEFAULT_MAX_DEPTH
from ...logger import get_logger

logger = get_logger(__name__)


class FieldSchema(BaseModel):
    """Describes one editable field of a module.

    Attributes:
        slug: Key of the field inside the module props.
        type: Field type, e.g. ``text``, ``richtext``, ``media``, ``object``, ``repeater``.
        label: Optional human-readable label.
        store_as: For media fields, ``id`` when only the media identifier is stored.
        fields: Child fields of an ``object`` field.
        item_fields: Fields of each item of a ``repeater`` field.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    slug: str
    type: str
    label: Optional[str] = None
    store_as: Optional[str] = Field(default=None, alias="storeAs")
    fields: List["FieldSchema"] = Field(default_factory=list)
    item_fields: List["FieldSchema"] = Field(default_factory=list, alias="itemFields")


def looks_like_json(value: str) -> bool:
    stripped = value.strip()
    return stripped.startswith("{") or stripped.startswith("[")


class FieldNormalizer:
    """Normalizes loosely shaped field values against a field schema.

    - ``richtext`` strings that are not JSON are converted from markdown to a document.
    - ``media`` fields stored as ids accept ``{"id": ...}`` objects and flatten them.
    - ``object`` and ``repeater`` fields are descended into, up to ``max_depth`` levels.

    The input mapping is never mutated; a normalized copy is returned.
    """

    def __init__(
        self,
        converter: Callable[[str], Any] = markdown_to_document,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._converter = converter
        self._max_depth = max_depth

    def normalize(self, values: Mapping[str, Any], schema: Sequence[FieldSchema]) -> Dict[str, Any]:
        """Return a normalized copy of ``values``.

        Args:
            values: Field values keyed by slug. Keys without a schema entry pass through.
            schema: The field schema of the module.

        Returns:
            The normalized values.
        """
        return self._normalize_object(values, schema, depth=0)

    def _normalize_object(self, values: Mapping[str, Any], schema: Sequence[FieldSchema], depth: int) -> Dict[str, Any]:
        by_slug = {f.slug: f for f in schema}
        out: Dict[str, Any] = {}
        for key, value in values.items():
            field = by_slug.get(key)
            out[key] = value if field is None else self._normalize_value(value, field, depth)
        return out

    def _normalize_value(self, value: Any, field: FieldSchema, depth: int) -> Any:
        if field.type == "richtext":
            if isinstance(value, str) and value.strip() and not looks_like_json(value):
                return self._converter(value)
            return value

        if field.type == "media" and field.store_as == "id":
            if isinstance(value, Mapping) and value.get("id"):
                return str(value["id"])
            return value

        if field.type not in ("object", "repeater"):
            return value

        if depth + 1 > self._max_depth:
            logger.warning(f"Field '{field.slug}' nested deeper than {self._max_depth} levels; left unnormalized.")
            return value

        if field.type == "object" and field.fields and isinstance(value, Mapping):
            return self._normalize_object(value, field.fields, depth + 1)

        if field.type == "repeater" and field.item_fields and isinstance(value, list):
            return [
                self._normalize_object(item, field.item_fields, depth + 1) if isinstance(item, Mapping) else item
                for item in value
            ]
        return value


def first_richtext_field(schema: Sequence[FieldSchema]) -> Optional[FieldSchema]:
    """Return the first top-level rich-text field of a schema, if any."""
    return next((f for f in schema if f.type == "richtext"), None)
