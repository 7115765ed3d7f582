"""Content models and the storage capability the content tools operate on."""

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from content_agent.agent_core import ConflictError, InvalidParamsError, get_logger
from content_agent.agent_core.tools.schema import FieldSchema

logger = get_logger(__name__)

ModuleScope = Literal["local", "global"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class PostType(BaseModel):
    """A registered post type and the modules seeded into new posts of that type."""

    slug: str
    label: str
    seed_modules: List[str] = Field(default_factory=list)
    allowed_modules: List[str] = Field(default_factory=list)


class ModuleDefinition(BaseModel):
    type: str
    name: str
    description: str = ""
    field_schema: List[FieldSchema] = Field(default_factory=list)
    layout_roles: List[str] = Field(default_factory=list)


class Post(BaseModel):
    id: str = Field(default_factory=_new_id)
    type: str
    locale: str = "en"
    slug: str
    title: str
    status: str = "draft"
    excerpt: Optional[str] = None
    featured_image_id: Optional[str] = None
    translation_of_id: Optional[str] = None
    drafts: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "type": self.type,
            "status": self.status,
            "locale": self.locale,
        }


class PostModule(BaseModel):
    """A module placed on a post. Staged edits are kept per draft mode."""

    id: str = Field(default_factory=_new_id)
    post_id: str
    module_instance_id: str = Field(default_factory=_new_id)
    type: str
    scope: ModuleScope = "local"
    global_slug: Optional[str] = None
    order_index: int = 0
    props: Dict[str, Any] = Field(default_factory=dict)
    locked: bool = False
    overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    deleted_in: List[str] = Field(default_factory=list)

    def effective_props(self, mode: Optional[str] = None) -> Dict[str, Any]:
        if not mode:
            return dict(self.props)
        return {**self.props, **self.overrides.get(mode, {})}


class MediaAsset(BaseModel):
    id: str = Field(default_factory=_new_id)
    url: str
    kind: Literal["image", "video"] = "image"
    mime_type: Optional[str] = None
    original_filename: Optional[str] = None
    alt_text: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)

    def to_result(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "originalFilename": self.original_filename,
            "altText": self.alt_text,
            "description": self.description,
            "categories": list(self.categories),
            "mimeType": self.mime_type,
        }


class ContentStore(ABC):
    """
    Storage capability used by the content tools.

    Implementations own persistence and uniqueness. ``create_post`` must raise
    ``ConflictError`` when the slug is already taken for the locale.
    """

    @abstractmethod
    def post_types(self) -> List[PostType]: ...

    @abstractmethod
    def get_post_type(self, slug: str) -> Optional[PostType]: ...

    @abstractmethod
    def module_definitions(self, post_type: Optional[str] = None) -> List[ModuleDefinition]: ...

    @abstractmethod
    def get_module_definition(self, module_type: str) -> Optional[ModuleDefinition]: ...

    @abstractmethod
    def list_posts(
        self,
        type: Optional[str] = None,
        status: Optional[str] = None,
        locale: Optional[str] = None,
        q: Optional[str] = None,
        limit: int = 20,
    ) -> List[Post]: ...

    @abstractmethod
    def get_post(self, post_id: str) -> Optional[Post]: ...

    @abstractmethod
    def get_translation(self, source_id: str, locale: str) -> Optional[Post]:
        """Return the post holding ``source_id``'s content in ``locale``, the source itself included."""

    @abstractmethod
    def create_post(
        self,
        type: str,
        slug: str,
        title: str,
        locale: str = "en",
        translation_of_id: Optional[str] = None,
        seed: bool = True,
    ) -> Post: ...

    @abstractmethod
    def save_draft(self, post_id: str, mode: str, payload: Dict[str, Any]) -> Post: ...

    @abstractmethod
    def post_modules(self, post_id: str) -> List[PostModule]: ...

    @abstractmethod
    def get_post_module(self, post_module_id: str) -> Optional[PostModule]: ...

    @abstractmethod
    def find_post_module_by_instance(self, module_instance_id: str) -> Optional[PostModule]: ...

    @abstractmethod
    def add_module(
        self,
        post_id: str,
        module_type: str,
        props: Dict[str, Any],
        scope: ModuleScope = "local",
        order_index: Optional[int] = None,
        global_slug: Optional[str] = None,
        locked: bool = False,
    ) -> PostModule: ...

    @abstractmethod
    def update_module(
        self,
        post_module_id: str,
        mode: str,
        overrides: Optional[Dict[str, Any]] = None,
        locked: Optional[bool] = None,
        order_index: Optional[int] = None,
    ) -> PostModule: ...

    @abstractmethod
    def mark_module_deleted(self, post_module_id: str, mode: str) -> PostModule: ...

    @abstractmethod
    def search_media(
        self,
        q: Optional[str] = None,
        alt_text: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 10,
    ) -> List[MediaAsset]: ...

    @abstractmethod
    def add_media(self, asset: MediaAsset) -> MediaAsset: ...


def _icontains(haystack: Optional[str], needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


class InMemoryContentStore(ContentStore):
    """A process-local ``ContentStore``, guarded by a lock so concurrent runs can share it."""

    def __init__(
        self,
        post_types: Iterable[PostType] = (),
        modules: Iterable[ModuleDefinition] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._post_types: Dict[str, PostType] = {pt.slug: pt for pt in post_types}
        self._modules: Dict[str, ModuleDefinition] = {m.type: m for m in modules}
        self._posts: Dict[str, Post] = {}
        self._post_modules: Dict[str, PostModule] = {}
        self._media: Dict[str, MediaAsset] = {}

    def post_types(self) -> List[PostType]:
        return list(self._post_types.values())

    def get_post_type(self, slug: str) -> Optional[PostType]:
        return self._post_types.get(slug)

    def module_definitions(self, post_type: Optional[str] = None) -> List[ModuleDefinition]:
        definitions = list(self._modules.values())
        if not post_type:
            return definitions
        pt = self._post_types.get(post_type)
        if pt is None or not pt.allowed_modules:
            return definitions
        return [m for m in definitions if m.type in pt.allowed_modules]

    def get_module_definition(self, module_type: str) -> Optional[ModuleDefinition]:
        return self._modules.get(module_type)

    def list_posts(
        self,
        type: Optional[str] = None,
        status: Optional[str] = None,
        locale: Optional[str] = None,
        q: Optional[str] = None,
        limit: int = 20,
    ) -> List[Post]:
        with self._lock:
            posts = sorted(self._posts.values(), key=lambda p: p.created_at, reverse=True)
        matches = [
            p
            for p in posts
            if (not type or p.type == type)
            and (not status or p.status == status)
            and (not locale or p.locale == locale)
            and (not q or _icontains(p.title, q) or _icontains(p.slug, q))
        ]
        return matches[:limit]

    def get_post(self, post_id: str) -> Optional[Post]:
        return self._posts.get(post_id)

    def get_translation(self, source_id: str, locale: str) -> Optional[Post]:
        with self._lock:
            return next(
                (
                    p
                    for p in self._posts.values()
                    if p.locale == locale and (p.id == source_id or p.translation_of_id == source_id)
                ),
                None,
            )

    def create_post(
        self,
        type: str,
        slug: str,
        title: str,
        locale: str = "en",
        translation_of_id: Optional[str] = None,
        seed: bool = True,
    ) -> Post:
        with self._lock:
            if any(p.slug == slug and p.locale == locale for p in self._posts.values()):
                raise ConflictError(f"A post with slug '{slug}' already exists for locale '{locale}'.", "slug", slug)
            post = Post(type=type, slug=slug, title=title, locale=locale, translation_of_id=translation_of_id)
            self._posts[post.id] = post

            post_type = self._post_types.get(type)
            if seed and post_type is not None:
                for index, module_type in enumerate(post_type.seed_modules):
                    pm = PostModule(post_id=post.id, type=module_type, order_index=index)
                    self._post_modules[pm.id] = pm
        logger.debug(f"Created post '{post.id}' (slug={slug}, locale={locale}).")
        return post

    def save_draft(self, post_id: str, mode: str, payload: Dict[str, Any]) -> Post:
        with self._lock:
            post = self._require_post(post_id)
            post.drafts[mode] = dict(payload)
            return post

    def post_modules(self, post_id: str) -> List[PostModule]:
        with self._lock:
            modules = [pm for pm in self._post_modules.values() if pm.post_id == post_id]
        return sorted(modules, key=lambda pm: pm.order_index)

    def get_post_module(self, post_module_id: str) -> Optional[PostModule]:
        return self._post_modules.get(post_module_id)

    def find_post_module_by_instance(self, module_instance_id: str) -> Optional[PostModule]:
        with self._lock:
            return next((pm for pm in self._post_modules.values() if pm.module_instance_id == module_instance_id), None)

    def add_module(
        self,
        post_id: str,
        module_type: str,
        props: Dict[str, Any],
        scope: ModuleScope = "local",
        order_index: Optional[int] = None,
        global_slug: Optional[str] = None,
        locked: bool = False,
    ) -> PostModule:
        with self._lock:
            self._require_post(post_id)
            if order_index is None:
                order_index = len([pm for pm in self._post_modules.values() if pm.post_id == post_id])
            pm = PostModule(
                post_id=post_id,
                type=module_type,
                scope=scope,
                global_slug=global_slug,
                order_index=order_index,
                props=dict(props),
                locked=locked,
            )
            self._post_modules[pm.id] = pm
            return pm

    def update_module(
        self,
        post_module_id: str,
        mode: str,
        overrides: Optional[Dict[str, Any]] = None,
        locked: Optional[bool] = None,
        order_index: Optional[int] = None,
    ) -> PostModule:
        with self._lock:
            pm = self._require_post_module(post_module_id)
            if overrides:
                pm.overrides[mode] = {**pm.overrides.get(mode, {}), **overrides}
            if locked is not None:
                pm.locked = locked
            if order_index is not None:
                pm.order_index = order_index
            return pm

    def mark_module_deleted(self, post_module_id: str, mode: str) -> PostModule:
        with self._lock:
            pm = self._require_post_module(post_module_id)
            if mode not in pm.deleted_in:
                pm.deleted_in.append(mode)
            return pm

    def search_media(
        self,
        q: Optional[str] = None,
        alt_text: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 10,
    ) -> List[MediaAsset]:
        with self._lock:
            assets = sorted(self._media.values(), key=lambda m: m.created_at, reverse=True)
        matches = [
            m
            for m in assets
            if (
                not q
                or _icontains(m.alt_text, q)
                or _icontains(m.description, q)
                or _icontains(m.original_filename, q)
            )
            and (not alt_text or _icontains(m.alt_text, alt_text))
            and (not description or _icontains(m.description, description))
            and (not category or category in m.categories)
        ]
        return matches[:limit]

    def add_media(self, asset: MediaAsset) -> MediaAsset:
        with self._lock:
            self._media[asset.id] = asset
        return asset

    def _require_post(self, post_id: str) -> Post:
        post = self._posts.get(post_id)
        if post is None:
            raise InvalidParamsError(f"Post not found: {post_id}")
        return post

    def _require_post_module(self, post_module_id: str) -> PostModule:
        pm = self._post_modules.get(post_module_id)
        if pm is None:
            raise InvalidParamsError(f"Post module not found: {post_module_id}")
        return pm
