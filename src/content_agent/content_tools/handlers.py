"""Handlers for the content tools, operating on an injected store and media generator."""

import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from content_agent.agent_core import (
    ConflictError,
    InvalidParamsError,
    RetryExhaustedError,
    ToolExecutionError,
    get_logger,
)
from content_agent.agent_core.tools.schema import (
    FieldNormalizer,
    extract_h1,
    extract_paragraphs,
    first_richtext_field,
    markdown_to_document,
)
from .media import GeneratedMedia, MediaGenerator
from .params import (
    AddModuleParams,
    BulkTranslationParams,
    CreatePostParams,
    CreateTranslationParams,
    GenerateImageParams,
    GenerateVideoParams,
    ListModulesParams,
    ListPostsParams,
    ModuleEdit,
    ModuleSchemaParams,
    ModuleTargetParams,
    PostContextParams,
    PostTypeConfigParams,
    RemoveModuleParams,
    SavePostParams,
    SearchMediaParams,
    SuggestModulesParams,
    UpdateModuleParams,
)
from .store import ContentStore, MediaAsset, Post, PostModule

logger = get_logger(__name__)

MAX_SLUG_ATTEMPTS = 10
DEFAULT_MODE = "ai-review"
_EXTENSIONS = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/webp": ".webp", "video/mp4": ".mp4"}


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-") or "post"


def _saved_by(caller_id: Optional[str]) -> str:
    return f"agent:{caller_id}" if caller_id else "system"


class ContentToolset:
    """
    The content operations exposed to agents.

    Every public coroutine is a tool handler called as ``handler(params, caller_id=...)``.
    Draft edits go to the draft mode given in ``params.mode`` (``ai-review`` by default).
    """

    def __init__(
        self,
        store: ContentStore,
        media_generator: Optional[MediaGenerator] = None,
        normalizer: Optional[FieldNormalizer] = None,
    ) -> None:
        self.store = store
        self.media_generator = media_generator
        self.normalizer = normalizer or FieldNormalizer()

    # Discovery

    async def list_post_types(self, params: Any, caller_id: Optional[str] = None) -> Dict[str, Any]:
        return {"success": True, "postTypes": [pt.model_dump(by_alias=True) for pt in self.store.post_types()]}

    async def get_post_type_config(
        self, params: PostTypeConfigParams, caller_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Post type config with defaults filled in: no allow-list means every module is allowed."""
        post_type = self.store.get_post_type(params.post_type)
        if post_type is None:
            raise InvalidParamsError(f"Unknown post type: {params.post_type}")
        return {
            "success": True,
            "config": {
                "slug": post_type.slug,
                "label": post_type.label,
                "seedModules": list(post_type.seed_modules),
                "allowedModules": [m.type for m in self.store.module_definitions(post_type.slug)],
            },
        }

    async def list_modules(self, params: ListModulesParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        modules = self.store.module_definitions(params.post_type)
        return {
            "success": True,
            "modules": [{"type": m.type, "name": m.name, "description": m.description} for m in modules],
        }

    async def get_module_schema(self, params: ModuleSchemaParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        definition = self.store.get_module_definition(params.type)
        if definition is None:
            raise InvalidParamsError(f"Unknown module type: {params.type}")
        return {
            "success": True,
            "schema": {
                "type": definition.type,
                "name": definition.name,
                "fieldSchema": [f.model_dump(by_alias=True, exclude_none=True) for f in definition.field_schema],
            },
        }

    async def list_posts(self, params: ListPostsParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        posts = self.store.list_posts(
            type=params.type, status=params.status, locale=params.locale, q=params.q, limit=params.limit
        )
        return {"success": True, "posts": [p.summary() for p in posts]}

    async def get_post_context(self, params: PostContextParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        post = self._require_post(params.post_id)
        mode = params.mode or DEFAULT_MODE
        draft = post.drafts.get(mode, {})
        modules = [
            {
                "postModuleId": pm.id,
                "moduleInstanceId": pm.module_instance_id,
                "type": pm.type,
                "scope": pm.scope,
                "orderIndex": pm.order_index,
                "locked": pm.locked,
                "props": pm.effective_props(mode),
            }
            for pm in self.store.post_modules(post.id)
            if mode not in pm.deleted_in
        ]
        return {
            "success": True,
            "post": {**post.summary(), "excerpt": post.excerpt, "featuredImageId": post.featured_image_id, **draft},
            "modules": modules,
        }

    # Posts

    async def create_post(self, params: CreatePostParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a draft post, retrying with ``-2``, ``-3``... suffixes on slug conflicts."""
        if self.store.get_post_type(params.type) is None:
            raise InvalidParamsError(f"Unknown post type: {params.type}")

        mode = params.mode or DEFAULT_MODE
        base_slug = params.slug or slugify(params.title)
        post = self._create_with_unique_slug(params.type, base_slug, params.title, params.locale)

        self.store.save_draft(
            post.id,
            mode,
            {
                "slug": post.slug,
                "title": params.title,
                "status": "draft",
                "excerpt": params.excerpt,
                "featuredImageId": params.featured_image_id,
                "savedAt": datetime.now(timezone.utc).isoformat(),
                "savedBy": _saved_by(caller_id),
            },
        )

        seeded = self.store.post_modules(post.id)
        edits: List[ModuleEdit] = list(params.module_edits)
        applied: List[Dict[str, Any]] = []

        markdown = (params.content_markdown or "").strip()
        if markdown:
            if not any(self._edits_rich_text(edit, seeded) for edit in edits):
                target = next((pm for pm in seeded if self._rich_text_slug(pm.type)), None)
                if target is not None:
                    edits.append(ModuleEdit(post_module_id=target.id, content_markdown=markdown))
                else:
                    applied.append(
                        {"ok": False, "error": "contentMarkdown was provided but no seeded content module exists to populate."}
                    )

            hero = next((pm for pm in seeded if pm.type == "hero"), None)
            if hero is not None and not any(e.post_module_id == hero.id for e in edits):
                paragraphs = extract_paragraphs(markdown)
                hero_title = params.title.strip() or extract_h1(markdown) or ""
                hero_subtitle = (params.excerpt or "").strip() or (paragraphs[0] if paragraphs else "")
                overrides = {k: v for k, v in (("title", hero_title), ("subtitle", hero_subtitle)) if v}
                if overrides:
                    edits.append(ModuleEdit(post_module_id=hero.id, overrides=overrides))

        for edit in edits:
            applied.append(self._apply_edit(edit, seeded, mode))

        logger.info(f"Created post '{post.id}' with slug '{post.slug}' ({len(applied)} module edit(s)).")
        return {
            "success": True,
            "postId": post.id,
            "slug": post.slug,
            "title": post.title,
            "message": f"Post created successfully in {mode} mode",
            "appliedEdits": applied,
        }

    def _create_with_unique_slug(self, post_type: str, slug: str, title: str, locale: str) -> Post:
        candidate = slug
        for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
            try:
                return self.store.create_post(type=post_type, slug=candidate, title=title, locale=locale)
            except ConflictError:
                logger.warning(f"Slug '{candidate}' already taken (attempt {attempt}/{MAX_SLUG_ATTEMPTS}).")
                if attempt == MAX_SLUG_ATTEMPTS:
                    break
                candidate = f"{slug}-{attempt + 1}"
        raise RetryExhaustedError(
            f"Failed to create post: unable to find available slug after {MAX_SLUG_ATTEMPTS} attempts. "
            f"Last attempted slug: {candidate}"
        )

    def _edits_rich_text(self, edit: ModuleEdit, seeded: List[PostModule]) -> bool:
        has_content = bool((edit.content_markdown or "").strip())
        if not has_content and edit.overrides:
            has_content = any(key in edit.overrides for key in ("content", "body"))
        if not has_content:
            return False
        if edit.post_module_id:
            target = next((pm for pm in seeded if pm.id == edit.post_module_id), None)
            return target is not None and self._rich_text_slug(target.type) is not None
        return bool(edit.type and self._rich_text_slug(edit.type))

    def _apply_edit(self, edit: ModuleEdit, seeded: List[PostModule], mode: str) -> Dict[str, Any]:
        target: Optional[PostModule]
        if edit.post_module_id:
            target = next((pm for pm in seeded if pm.id == edit.post_module_id), None)
            if target is None:
                return {"ok": False, "postModuleId": edit.post_module_id, "error": "Target module meta not found"}
        else:
            target = next(
                (
                    pm
                    for pm in seeded
                    if edit.type
                    and pm.type == edit.type
                    and (edit.order_index is None or pm.order_index == edit.order_index)
                ),
                None,
            )
            if target is None:
                return {
                    "ok": False,
                    "error": f"No module found to edit (type={edit.type or 'n/a'} orderIndex={edit.order_index if edit.order_index is not None else 'n/a'})",
                }

        overrides: Dict[str, Any] = dict(edit.overrides or {})
        markdown = (edit.content_markdown or "").strip()
        if markdown:
            slug = self._rich_text_slug(target.type)
            if slug is None:
                return {
                    "ok": False,
                    "postModuleId": target.id,
                    "error": f"contentMarkdown is not supported for module type {target.type} (no richtext field found).",
                }
            overrides[slug] = markdown_to_document(markdown)

        try:
            self.store.update_module(target.id, mode, overrides=self._normalize(target.type, overrides))
        except Exception as exc:
            logger.warning(f"Module edit on '{target.id}' failed: {exc}")
            return {"ok": False, "postModuleId": target.id, "error": str(exc) or "Failed to apply module edit"}
        return {"ok": True, "postModuleId": target.id}

    async def save_post(self, params: SavePostParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        """Merge a patch into the post's draft for the mode. ``None`` values do not overwrite."""
        post = self._require_post(params.post_id)
        mode = params.mode or DEFAULT_MODE
        merged = dict(post.drafts.get(mode, {}))
        merged.update({key: value for key, value in params.patch.items() if value is not None})
        merged["savedAt"] = datetime.now(timezone.utc).isoformat()
        merged["savedBy"] = _saved_by(caller_id)
        self.store.save_draft(post.id, mode, merged)
        return {"success": True, "message": f"{mode} draft updated successfully"}

    # Modules

    async def add_module_to_post(self, params: AddModuleParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        self._require_post(params.post_id)
        props = self._normalize(params.module_type, params.props)
        pm = self.store.add_module(
            params.post_id,
            params.module_type,
            props,
            scope=params.scope,
            order_index=params.order_index,
            global_slug=params.global_slug,
        )
        mode = params.mode or DEFAULT_MODE
        return {
            "success": True,
            "postModuleId": pm.id,
            "moduleInstanceId": pm.module_instance_id,
            "message": f"Module added to {mode} draft",
        }

    async def update_post_module(self, params: UpdateModuleParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        pm = self._resolve_module(params, "update_post_module")
        mode = params.mode or DEFAULT_MODE
        overrides = params.effective_overrides()
        self.store.update_module(
            pm.id,
            mode,
            overrides=self._normalize(pm.type, overrides) if overrides else None,
            locked=params.locked,
            order_index=params.order_index if params.post_module_id == pm.id else None,
        )
        return {"success": True, "postModuleId": pm.id, "message": f"Module updated in {mode} draft"}

    async def remove_post_module(self, params: RemoveModuleParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        pm = self._resolve_module(params, "remove_post_module")
        mode = params.mode or DEFAULT_MODE
        self.store.mark_module_deleted(pm.id, mode)
        return {"success": True, "postModuleId": pm.id, "message": f"Module marked as deleted in {mode} draft"}

    def _resolve_module(self, params: ModuleTargetParams, tool: str) -> PostModule:
        """Resolve the target module: explicit id, then module instance id, then post and type (and position).

        A ``postModuleId`` that names no module is treated as a module type when a post id is given.
        """
        if params.post_module_id:
            pm = self.store.get_post_module(params.post_module_id)
            if pm is not None:
                return pm

        if params.module_instance_id:
            pm = self.store.find_post_module_by_instance(params.module_instance_id)
            if pm is not None:
                return pm

        module_type = params.module_type or params.post_module_id
        if params.post_id and module_type:
            for pm in self.store.post_modules(params.post_id):
                if pm.type == module_type and (params.order_index is None or pm.order_index == params.order_index):
                    return pm

        raise InvalidParamsError(f'{tool} requires a valid "postModuleId". Received: "{params.post_module_id}"')

    # Translations

    async def create_translation(
        self, params: CreateTranslationParams, caller_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a translation of a post and stage its draft, optionally cloning the module structure."""
        base = self._require_post(params.post_id)
        source = self.store.get_post(base.translation_of_id) if base.translation_of_id else base
        source = source or base
        mode = params.mode or DEFAULT_MODE

        existing = self.store.get_translation(source.id, params.locale)
        if existing is not None:
            raise ConflictError(
                f"Translation already exists for locale: {params.locale} (translationId: {existing.id})",
                "locale",
                params.locale,
            )

        title = params.title or source.title
        slug = params.slug or f"{source.slug}-{params.locale.lower()}"
        translation = self.store.create_post(
            type=source.type,
            slug=slug,
            title=title,
            locale=params.locale,
            translation_of_id=source.id,
            seed=False,
        )

        base_draft = source.drafts.get("review") or {
            "slug": source.slug,
            "title": source.title,
            "status": source.status,
            "excerpt": source.excerpt,
            "featuredImageId": source.featured_image_id,
        }
        featured = params.featured_image_id if params.featured_image_id is not None else base_draft.get("featuredImageId")
        self.store.save_draft(
            translation.id,
            mode,
            {
                **base_draft,
                "slug": translation.slug,
                "title": translation.title,
                "status": translation.status,
                "featuredImageId": featured,
                "savedAt": datetime.now(timezone.utc).isoformat(),
                "savedBy": _saved_by(caller_id),
                "translation": {
                    "sourcePostId": source.id,
                    "sourceLocale": source.locale,
                    "targetLocale": params.locale,
                },
            },
        )

        result: Dict[str, Any] = {
            "success": True,
            "translationId": translation.id,
            "locale": translation.locale,
            "slug": translation.slug,
            "title": translation.title,
        }

        if params.clone_modules:
            cloned = []
            for pm in self.store.post_modules(source.id):
                if "review" in pm.deleted_in:
                    continue
                added = self.store.add_module(
                    translation.id,
                    pm.type,
                    pm.effective_props("review"),
                    scope=pm.scope,
                    order_index=pm.order_index,
                    global_slug=pm.global_slug if pm.scope == "global" else None,
                    locked=pm.locked,
                )
                cloned.append({"sourcePostModuleId": pm.id, "newPostModuleId": added.id})
            result["clonedModules"] = cloned

        logger.info(f"Created translation '{translation.id}' ({params.locale}) of post '{source.id}'.")
        return result

    async def create_translations_bulk(
        self, params: BulkTranslationParams, caller_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create one translation per locale. A failing locale does not stop the others."""
        results: List[Dict[str, Any]] = []
        for locale in params.locales:
            single = CreateTranslationParams(
                post_id=params.post_id, locale=locale, clone_modules=params.clone_modules, mode=params.mode
            )
            try:
                created = await self.create_translation(single, caller_id=caller_id)
            except Exception as exc:
                logger.warning(f"Translation into '{locale}' failed: {exc}")
                results.append({"locale": locale, "success": False, "error": str(exc)})
                continue
            results.append({**created, "locale": locale, "success": True})
        return {"success": True, "results": results}

    async def suggest_modules_for_layout(
        self, params: SuggestModulesParams, caller_id: Optional[str] = None
    ) -> Dict[str, Any]:
        modules = self.store.module_definitions(params.post_type)
        suggestions = []
        missing_roles = []
        for role in params.desired_layout_roles:
            match = next(
                (m for m in modules if m.type not in params.exclude_module_types and role in m.layout_roles),
                None,
            )
            if match is None:
                missing_roles.append(role)
                continue
            suggestions.append(
                {"role": role, "moduleType": match.type, "name": match.name, "reason": f"Matches desired role: {role}"}
            )
        return {
            "success": True,
            "suggestions": suggestions,
            "missingRoles": missing_roles,
            "allAvailableModules": [{"type": m.type, "name": m.name, "roles": m.layout_roles} for m in modules],
        }

    # Media

    async def search_media(self, params: SearchMediaParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        items = self.store.search_media(
            q=(params.q or "").strip() or None,
            alt_text=(params.alt_text or "").strip() or None,
            description=(params.description or "").strip() or None,
            category=(params.category or "").strip() or None,
            limit=min(50, max(1, params.limit)),
        )
        return {"success": True, "count": len(items), "items": [m.to_result() for m in items]}

    async def generate_image(self, params: GenerateImageParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        generator = self._require_generator()
        generated = await generator.generate_image(
            params.prompt, model=params.model, size=params.size, quality=params.quality
        )
        asset = self._store_media(generated, "image", params.prompt, params.alt_text, params.description)
        return {
            "success": True,
            "mediaId": asset.id,
            "url": asset.url,
            "altText": asset.alt_text,
            "description": asset.description,
        }

    async def generate_video(self, params: GenerateVideoParams, caller_id: Optional[str] = None) -> Dict[str, Any]:
        generator = self._require_generator()
        generated = await generator.generate_video(
            params.prompt, model=params.model, aspect_ratio=params.aspect_ratio, duration=params.duration
        )
        asset = self._store_media(generated, "video", params.prompt, None, params.description)
        return {"success": True, "mediaId": asset.id, "url": asset.url, "description": asset.description}

    def _store_media(
        self,
        generated: GeneratedMedia,
        kind: str,
        prompt: str,
        alt_text: Optional[str],
        description: Optional[str],
    ) -> MediaAsset:
        default_ext = ".mp4" if kind == "video" else ".png"
        ext = _EXTENSIONS.get(generated.mime_type, default_ext)
        asset = MediaAsset(
            url=generated.url,
            kind="video" if kind == "video" else "image",
            mime_type=generated.mime_type,
            original_filename=f"generated-{re.sub(r'[^a-z0-9]', '-', prompt[:50], flags=re.IGNORECASE)}{ext}",
            alt_text=alt_text or prompt[:200],
            description=description,
        )
        self.store.add_media(asset)
        logger.info(f"Stored generated {kind} '{asset.id}'.")
        return asset

    # Helpers

    def _require_post(self, post_id: str) -> Post:
        post = self.store.get_post(post_id)
        if post is None:
            raise InvalidParamsError(f"Post not found: {post_id}")
        return post

    def _require_generator(self) -> MediaGenerator:
        if self.media_generator is None:
            raise ToolExecutionError("No media generator is configured.")
        return self.media_generator

    def _rich_text_slug(self, module_type: str) -> Optional[str]:
        definition = self.store.get_module_definition(module_type)
        if definition is None:
            return None
        field = first_richtext_field(definition.field_schema)
        return field.slug if field else None

    def _normalize(self, module_type: str, values: Dict[str, Any]) -> Dict[str, Any]:
        definition = self.store.get_module_definition(module_type)
        if definition is None or not values:
            return dict(values)
        return self.normalizer.normalize(values, definition.field_schema)
