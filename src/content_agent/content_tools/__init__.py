"""Content tool set: handlers, parameter models and the content store they operate on."""

from .store import (
    ContentStore,
    InMemoryContentStore,
    MediaAsset,
    ModuleDefinition,
    Post,
    PostModule,
    PostType,
)
from .media import GeneratedMedia, MediaGenerator, OpenAIMediaGenerator
from .handlers import ContentToolset, MAX_SLUG_ATTEMPTS, slugify
from .catalog import build_content_catalog

__all__ = [
    "ContentStore",
    "InMemoryContentStore",
    "MediaAsset",
    "ModuleDefinition",
    "Post",
    "PostModule",
    "PostType",
    "GeneratedMedia",
    "MediaGenerator",
    "OpenAIMediaGenerator",
    "ContentToolset",
    "MAX_SLUG_ATTEMPTS",
    "slugify",
    "build_content_catalog",
]
