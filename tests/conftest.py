import json
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from content_agent.agent_core import (
    AgentConfig,
    AgentExecutor,
    Completion,
    CompletionOptions,
    CompletionProvider,
    EngineSettings,
    ProviderConfig,
    ProviderRegistry,
    ProviderSelection,
    TokenUsage,
    ToolCatalog,
)
from content_agent.agent_core.messages import ConversationMessage
from content_agent.agent_core.tools.schema import FieldSchema
from content_agent.content_tools import (
    GeneratedMedia,
    InMemoryContentStore,
    MediaGenerator,
    ModuleDefinition,
    PostType,
    build_content_catalog,
)

Reply = Union[str, Dict[str, Any], Exception]


class ScriptedProvider(CompletionProvider):
    """Completion provider replaying canned replies and recording every conversation it saw."""

    def __init__(self, replies: Sequence[Reply] = (), usage: Optional[TokenUsage] = None):
        super().__init__(max_retries=0, base_retry_delay=0.0)
        self.replies: List[Reply] = list(replies)
        self.usage = usage or TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15)
        self.calls: List[List[ConversationMessage]] = []

    async def _complete_impl(
        self,
        messages: List[ConversationMessage],
        options: CompletionOptions,
        config: ProviderConfig,
    ) -> Completion:
        self.calls.append(list(messages))
        if not self.replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        content = reply if isinstance(reply, str) else json.dumps(reply)
        return Completion(content=content, usage=self.usage, model=config.model)


class FakeMediaGenerator(MediaGenerator):
    def __init__(self) -> None:
        self.prompts: List[str] = []

    async def generate_image(self, prompt, model=None, size=None, quality=None) -> GeneratedMedia:
        self.prompts.append(prompt)
        return GeneratedMedia(url=f"https://cdn.example.com/img-{len(self.prompts)}.png", mime_type="image/png")

    async def generate_video(self, prompt, model=None, aspect_ratio=None, duration=None) -> GeneratedMedia:
        self.prompts.append(prompt)
        return GeneratedMedia(url=f"https://cdn.example.com/vid-{len(self.prompts)}.mp4", mime_type="video/mp4")


MODULES = [
    ModuleDefinition(
        type="hero",
        name="Hero",
        description="Large heading with subtitle and image",
        field_schema=[
            FieldSchema(slug="title", type="text"),
            FieldSchema(slug="subtitle", type="text"),
            FieldSchema(slug="image", type="media", store_as="id"),
        ],
        layout_roles=["hero", "intro"],
    ),
    ModuleDefinition(
        type="prose",
        name="Prose",
        description="Rich text body",
        field_schema=[FieldSchema(slug="content", type="richtext")],
        layout_roles=["body"],
    ),
    ModuleDefinition(
        type="gallery",
        name="Gallery",
        field_schema=[
            FieldSchema(
                slug="items",
                type="repeater",
                item_fields=[FieldSchema(slug="image", type="media", store_as="id"), FieldSchema(slug="caption", type="text")],
            )
        ],
        layout_roles=["media"],
    ),
]

POST_TYPES = [
    PostType(slug="page", label="Page", seed_modules=["hero", "prose"]),
    PostType(slug="blog", label="Blog", seed_modules=["prose"], allowed_modules=["prose", "gallery"]),
]


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore(POST_TYPES, MODULES)


@pytest.fixture
def media_generator() -> FakeMediaGenerator:
    return FakeMediaGenerator()


@pytest.fixture
def content_catalog(store: InMemoryContentStore, media_generator: FakeMediaGenerator) -> ToolCatalog:
    return build_content_catalog(store, media_generator)


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(max_turns=10, tool_timeout=5.0)


@pytest.fixture
def agent() -> AgentConfig:
    return AgentConfig(
        id="writer",
        name="Writer",
        system_prompt="You are {{agent}}, working in {{scope}}.",
        use_tools=True,
        provider=ProviderSelection(provider="scripted", model="test-model", api_key="sk-test"),
    )


def make_executor(
    provider: ScriptedProvider,
    catalog: ToolCatalog,
    settings: Optional[EngineSettings] = None,
    **kwargs: Any,
) -> AgentExecutor:
    registry = ProviderRegistry()
    registry.register("scripted", provider)
    return AgentExecutor(registry, catalog, settings or EngineSettings(), environ={}, **kwargs)
