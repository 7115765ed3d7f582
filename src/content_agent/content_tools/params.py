"""Parameter models for the content tools.

Models accept both camelCase (what the model usually sends) and snake_case keys,
and ignore unknown keys.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ModeParams(ToolParams):
    mode: Optional[str] = None


class PostTypeConfigParams(ToolParams):
    post_type: str = Field(min_length=1)


class ListModulesParams(ToolParams):
    post_type: Optional[str] = None


class ModuleSchemaParams(ToolParams):
    type: str = Field(min_length=1)


class ListPostsParams(ToolParams):
    type: Optional[str] = None
    status: Optional[str] = None
    q: Optional[str] = None
    locale: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=100)


class PostContextParams(ModeParams):
    post_id: str = Field(min_length=1)


class ModuleEdit(ToolParams):
    """One module edit applied while creating a post."""

    post_module_id: Optional[str] = None
    type: Optional[str] = None
    order_index: Optional[int] = None
    overrides: Optional[Dict[str, Any]] = None
    content_markdown: Optional[str] = None


class CreatePostParams(ModeParams):
    type: str = Field(min_length=1)
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    locale: str = "en"
    excerpt: Optional[str] = None
    featured_image_id: Optional[str] = None
    content_markdown: Optional[str] = None
    module_edits: List[ModuleEdit] = Field(default_factory=list)


class SavePostParams(ModeParams):
    post_id: str = Field(min_length=1)
    patch: Dict[str, Any]


class AddModuleParams(ModeParams):
    post_id: str = Field(min_length=1)
    module_type: str = Field(min_length=1)
    scope: Literal["local", "global"] = "local"
    props: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("props", "overrides"))
    order_index: Optional[int] = None
    global_slug: Optional[str] = None


class ModuleTargetParams(ModeParams):
    """Loosely specified module identifiers, resolved in fallback order."""

    post_module_id: Optional[str] = None
    module_instance_id: Optional[str] = None
    post_id: Optional[str] = None
    module_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("moduleType", "module_type", "type"))
    order_index: Optional[int] = None


class UpdateModuleParams(ModuleTargetParams):
    overrides: Optional[Dict[str, Any]] = None
    props: Optional[Dict[str, Any]] = None
    locked: Optional[bool] = None

    def effective_overrides(self) -> Optional[Dict[str, Any]]:
        return self.overrides or self.props


class RemoveModuleParams(ModuleTargetParams):
    pass


class CreateTranslationParams(ModeParams):
    post_id: str = Field(min_length=1)
    locale: str = Field(min_length=1)
    slug: Optional[str] = None
    title: Optional[str] = None
    featured_image_id: Optional[str] = None
    clone_modules: bool = True


class BulkTranslationParams(ModeParams):
    post_id: str = Field(min_length=1)
    locales: List[str] = Field(min_length=1)
    clone_modules: bool = True


class SuggestModulesParams(ToolParams):
    desired_layout_roles: List[str] = Field(default_factory=list)
    post_type: Optional[str] = None
    exclude_module_types: List[str] = Field(default_factory=list)


class SearchMediaParams(ToolParams):
    q: Optional[str] = None
    alt_text: Optional[str] = Field(default=None, validation_alias=AliasChoices("alt_text", "altText"))
    description: Optional[str] = None
    category: Optional[str] = None
    limit: int = 10


class GenerateImageParams(ToolParams):
    prompt: str = Field(min_length=1)
    alt_text: Optional[str] = Field(default=None, validation_alias=AliasChoices("alt_text", "altText"))
    description: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    quality: Optional[str] = None


class GenerateVideoParams(ToolParams):
    prompt: str = Field(min_length=1)
    description: Optional[str] = None
    model: Optional[str] = None
    aspect_ratio: Optional[str] = Field(default=None, validation_alias=AliasChoices("aspect_ratio", "aspectRatio"))
    duration: Optional[int] = None
