"""Field schemas, bounded traversal and markdown conversion used by tool handlers."""

from .field_schema import FieldSchema, FieldNormalizer, first_richtext_field, looks_like_json
from .markdown import markdown_to_document, extract_h1, extract_paragraphs, strip_inline
from .traversal import TreeVisitor, walk, DEFAULT_MAX_DEPTH

__all__ = [
    "FieldSchema",
    "FieldNormalizer",
    "first_richtext_field",
    "looks_like_json",
    "markdown_to_document",
    "extract_h1",
    "extract_paragraphs",
    "strip_inline",
    "TreeVisitor",
    "walk",
    "DEFAULT_MAX_DEPTH",
]
