"""Registers the content tool set into a ``ToolCatalog``."""

from typing import Optional

from content_agent.agent_core import ToolCatalog
from .handlers import ContentToolset
from .media import MediaGenerator
from .params import (
    AddModuleParams,
    BulkTranslationParams,
    CreatePostParams,
    CreateTranslationParams,
    GenerateImageParams,
    GenerateVideoParams,
    ListModulesParams,
    ListPostsParams,
    ModuleSchemaParams,
    PostContextParams,
    PostTypeConfigParams,
    RemoveModuleParams,
    SavePostParams,
    SearchMediaParams,
    SuggestModulesParams,
    UpdateModuleParams,
)
from .store import ContentStore


def build_content_catalog(
    store: ContentStore,
    media_generator: Optional[MediaGenerator] = None,
    catalog: Optional[ToolCatalog] = None,
) -> ToolCatalog:
    """Register the content tools over ``store``.

    Args:
        store: The content store the handlers read and write.
        media_generator: Backend for ``generate_image`` / ``generate_video``. When None the
            media tools are still advertised but fail with a ``ToolExecutionError``.
        catalog: Catalog to register into. A new one is created when None.

    Returns:
        The catalog holding the content tools, in a stable order.
    """
    catalog = catalog or ToolCatalog()
    tools = ContentToolset(store, media_generator)

    catalog.register("list_post_types", "List all registered post types", tools.list_post_types)
    catalog.register(
        "get_post_type_config",
        "Get a post type config with normalized defaults (seeded and allowed modules)",
        tools.get_post_type_config,
        PostTypeConfigParams,
    )
    catalog.register(
        "list_modules",
        "List all module configs (optionally filtered to modules allowed for a post type)",
        tools.list_modules,
        ListModulesParams,
    )
    catalog.register(
        "get_module_schema",
        "Get a module schema (field schema with slugs, types and nested fields)",
        tools.get_module_schema,
        ModuleSchemaParams,
    )
    catalog.register(
        "list_posts",
        "List posts (lightweight). Intended for discovery before reading full context.",
        tools.list_posts,
        ListPostsParams,
    )
    catalog.register(
        "get_post_context",
        "Get full post context for editing: post fields, the draft for the current mode and its modules.",
        tools.get_post_context,
        PostContextParams,
        accepts_mode=True,
    )
    catalog.register(
        "create_post",
        "Create a new post and stage its first content into a draft. Accepts contentMarkdown for the body "
        "and moduleEdits for seeded modules. The live post remains a draft until a human approves.",
        tools.create_post,
        CreatePostParams,
        produces_entity_id=True,
        id_key="postId",
        accepts_mode=True,
    )
    catalog.register(
        "save_post",
        "Save edits for a post into its draft (patch: title, slug, excerpt, featuredImageId...). "
        "Does NOT modify approved/live post fields.",
        tools.save_post,
        SavePostParams,
        accepts_mode=True,
    )
    catalog.register(
        "add_module_to_post",
        "Add a module to a post as a staged change (does not touch approved modules).",
        tools.add_module_to_post,
        AddModuleParams,
        accepts_mode=True,
    )
    catalog.register(
        "update_post_module",
        "Update a post module as a staged change. Identify it by postModuleId, moduleInstanceId, "
        "or postId plus moduleType (and orderIndex).",
        tools.update_post_module,
        UpdateModuleParams,
        accepts_mode=True,
    )
    catalog.register(
        "remove_post_module",
        "Stage removal of a module. Identify it like update_post_module.",
        tools.remove_post_module,
        RemoveModuleParams,
        accepts_mode=True,
    )
    catalog.register(
        "create_translation",
        "Create a translation post for a base post and initialize its draft (optionally cloning module structure).",
        tools.create_translation,
        CreateTranslationParams,
        produces_entity_id=True,
        id_key="translationId",
        accepts_mode=True,
    )
    catalog.register(
        "create_translations_bulk",
        "Create translation posts for multiple locales and initialize their drafts (optionally cloning module structure).",
        tools.create_translations_bulk,
        BulkTranslationParams,
        accepts_mode=True,
    )
    catalog.register(
        "suggest_modules_for_layout",
        "Suggest a module plan for a page layout and identify missing module gaps.",
        tools.suggest_modules_for_layout,
        SuggestModulesParams,
    )
    catalog.register(
        "search_media",
        "Search media assets by free text, alt text, description or category. Returns mediaIds usable in module props.",
        tools.search_media,
        SearchMediaParams,
    )
    catalog.register(
        "generate_image",
        "Generate an image from a prompt and store it as a media asset. Returns its mediaId.",
        tools.generate_image,
        GenerateImageParams,
        produces_media="image",
        id_key="mediaId",
    )
    catalog.register(
        "generate_video",
        "Generate a video from a prompt and store it as a media asset. Returns its mediaId.",
        tools.generate_video,
        GenerateVideoParams,
        produces_media="video",
        id_key="mediaId",
    )
    return catalog
