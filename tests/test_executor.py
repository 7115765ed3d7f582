import json
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

from content_agent.agent_core import (
    AgentConfig,
    CompletionTransportError,
    ConfigurationError,
    EngineSettings,
    ProviderSelection,
    ReactionConfig,
    ToolCatalog,
    TriggerContext,
    TriggerScope,
)
from content_agent.agent_core.engine.parsing import NO_CHANGES_SUMMARY, TRUNCATION_NOTE
from content_agent.agent_core.messages import UserMessage
from conftest import ScriptedProvider, make_executor


@pytest.mark.asyncio
async def test_creation_turn_injects_creation_directive(agent, content_catalog, store):
    provider = ScriptedProvider(
        [
            {"tool_calls": [{"tool": "create_post", "params": {"type": "page", "title": "Hello World"}}]},
            {"summary": "Created the page."},
        ]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(scope=TriggerScope.GLOBAL), {"openEndedContext": "Write a page"})

    assert result.success is True
    posts = store.list_posts()
    assert len(posts) == 1
    assert result.last_created_entity_id == posts[0].id
    assert result.execution_meta.total_turns == 2
    assert result.summary == "Created the page."

    second_prompt = provider.calls[1][-1]
    assert isinstance(second_prompt, UserMessage)
    assert second_prompt.content.startswith("Tool execution results (Turn 1):\n")
    assert f"Post/Translation created (ID: {posts[0].id})" in second_prompt.content
    assert provider.calls[1][-2].content == json.dumps(
        {"tool_calls": [{"tool": "create_post", "params": {"type": "page", "title": "Hello World"}}]}
    )

    assert len(result.transcript) == 1
    assert result.transcript[0].turn == 1
    assert result.data["toolResults"][0]["tool"] == "create_post"
    assert result.data["toolResults"][0]["success"] is True


@pytest.mark.asyncio
async def test_non_creating_turn_uses_continue_directive(agent, content_catalog):
    provider = ScriptedProvider(
        [
            {"tool_calls": [{"tool": "list_post_types", "params": {}}]},
            {"summary": "Listed the post types."},
        ]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.last_created_entity_id is None
    prompt = provider.calls[1][-1].content
    assert "Analyze the results above" in prompt
    assert "Post/Translation created" not in prompt


@pytest.mark.asyncio
async def test_plain_prose_response_becomes_content_and_summary(agent, content_catalog):
    text = "I reviewed the post and everything already looks great."
    provider = ScriptedProvider([text])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent.model_copy(update={"use_tools": False}), TriggerContext(), {})

    assert result.success is True
    assert result.data == {"content": text}
    assert result.summary == text
    assert result.raw_response == text
    assert result.execution_meta.total_turns == 1
    assert result.transcript == []


@pytest.mark.asyncio
async def test_tool_not_in_allow_list_is_reported_and_not_executed(agent, content_catalog, store):
    restricted = agent.model_copy(update={"allowed_tools": ["list_posts"]})
    provider = ScriptedProvider(
        [
            {"tool_calls": [{"tool": "create_post", "params": {"type": "page", "title": "Nope"}}]},
            {"summary": "Could not create the post."},
        ]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(restricted, TriggerContext(), {})

    assert store.list_posts() == []
    tool_result = result.data["toolResults"][0]
    assert tool_result == {
        "tool": "create_post",
        "success": False,
        "error": "Tool 'create_post' is not in the allowed list",
    }
    assert "Tool 'create_post' is not in the allowed list" in provider.calls[1][-1].content


@pytest.mark.asyncio
async def test_allow_list_filters_advertised_tools(agent, content_catalog):
    restricted = agent.model_copy(update={"allowed_tools": ["list_posts"]})
    provider = ScriptedProvider([{"summary": "Nothing to do here at all."}])
    executor = make_executor(provider, content_catalog)

    await executor.execute(restricted, TriggerContext(), {})

    task = provider.calls[0][-1].content
    assert "- list_posts:" in task
    assert "- create_post:" not in task


@pytest.mark.asyncio
async def test_turn_ceiling_truncates_and_notes_summary(agent, content_catalog):
    looping = {"summary": "Still working", "tool_calls": [{"tool": "list_post_types"}]}
    provider = ScriptedProvider([looping, looping, looping])
    executor = make_executor(provider, content_catalog, max_turns=3)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.success is True
    assert len(provider.calls) == 3
    assert result.execution_meta.total_turns == 3
    assert len(result.transcript) == 2
    assert result.summary == "Still working" + TRUNCATION_NOTE
    assert len(result.data["toolResults"]) == 2


@pytest.mark.asyncio
async def test_unknown_tool_and_malformed_entry_are_contained(agent, content_catalog):
    provider = ScriptedProvider(
        [
            {"tool_calls": [{"tool": "does_not_exist"}, {"params": {"a": 1}}, {"tool": "list_post_types"}]},
            {"summary": "Handled what I could."},
        ]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    results = result.data["toolResults"]
    assert [r["success"] for r in results] == [False, False, True]
    assert "not found" in results[0]["error"]
    assert results[1]["error"] == "Tool call is missing a tool name"


@pytest.mark.asyncio
async def test_fenced_json_wins_over_surrounding_text(agent, content_catalog):
    reply = 'Sure thing:\n```json\n{"summary": "Retitled.", "post": {"title": "Better"}}\n```\nThanks {not json}'
    provider = ScriptedProvider([reply])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.data == {"post": {"title": "Better"}}
    assert result.summary == "Retitled."


@pytest.mark.asyncio
async def test_bare_post_object_is_wrapped_and_summary_synthesized(agent, content_catalog):
    provider = ScriptedProvider(['Result: {"title": "New title"}'])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.data == {"post": {"title": "New title"}}
    assert result.summary == "Updated 1 post field(s)."


@pytest.mark.asyncio
async def test_empty_object_yields_no_changes_summary(agent, content_catalog):
    provider = ScriptedProvider(["{}"])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.summary == NO_CHANGES_SUMMARY


@pytest.mark.asyncio
async def test_usage_is_summed_over_turns(agent, content_catalog):
    provider = ScriptedProvider(
        [{"tool_calls": [{"tool": "list_post_types"}]}, {"summary": "All done with the listing."}]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    usage = result.execution_meta.usage
    assert usage.prompt_tokens == 20
    assert usage.completion_tokens == 10
    assert usage.total_tokens == 30
    assert result.execution_meta.model == "test-model"
    assert result.execution_meta.provider == "scripted"


@pytest.mark.asyncio
async def test_missing_credential_fails_before_first_turn_and_notifies_reactions(content_catalog):
    handler = AsyncMock()
    agent = AgentConfig(
        id="no-key",
        provider=ProviderSelection(provider="scripted", model="test-model"),
        reactions=[ReactionConfig(type="callable", trigger="on_error", handler=handler)],
    )
    provider = ScriptedProvider([])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.success is False
    assert isinstance(result.error, ConfigurationError)
    assert "AI_PROVIDER_SCRIPTED_API_KEY" in str(result.error)
    assert result.data is None
    assert provider.calls == []
    handler.assert_awaited_once()
    assert handler.await_args.args[1] is result


@pytest.mark.asyncio
async def test_credential_falls_back_to_environment(content_catalog):
    agent = AgentConfig(id="env-key", provider=ProviderSelection(provider="scripted", model="m"))
    provider = ScriptedProvider([{"summary": "Works with env credentials."}])
    executor = make_executor(provider, content_catalog)
    executor._environ = {"AI_PROVIDER_SCRIPTED_API_KEY": "sk-env"}

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.success is True


@pytest.mark.asyncio
async def test_transport_error_fails_the_run(agent, content_catalog):
    provider = ScriptedProvider([RuntimeError("connection reset")])
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    assert result.success is False
    assert isinstance(result.error, CompletionTransportError)
    assert "connection reset" in result.error_message


@pytest.mark.asyncio
async def test_generated_media_placeholder_resolves_within_turn(agent, content_catalog, store):
    post = store.create_post(type="blog", slug="gallery-post", title="Gallery")
    provider = ScriptedProvider(
        [
            {
                "tool_calls": [
                    {"tool": "generate_image", "params": {"prompt": "a red fox"}},
                    {
                        "tool": "add_module_to_post",
                        "params": {
                            "postId": post.id,
                            "moduleType": "gallery",
                            "props": {"items": [{"image": "GENERATED_IMAGE_ID_0", "caption": "Fox"}]},
                        },
                    },
                ]
            },
            {"summary": "Added a gallery with a generated image."},
        ]
    )
    executor = make_executor(provider, content_catalog)

    result = await executor.execute(agent, TriggerContext(), {})

    media_id = result.data["toolResults"][0]["result"]["mediaId"]
    gallery = [pm for pm in store.post_modules(post.id) if pm.type == "gallery"][0]
    assert gallery.props["items"][0]["image"] == media_id
    # media creation is not an entity creation
    assert result.last_created_entity_id is None


@pytest.mark.asyncio
async def test_field_scope_runs_tools_in_view_mode():
    seen: List[Dict[str, Any]] = []

    async def record(params: Dict[str, Any], caller_id: Any = None) -> Dict[str, Any]:
        seen.append({"params": params, "caller_id": caller_id})
        return {"ok": True}

    catalog = ToolCatalog()
    catalog.register("record", "Records its params", record, accepts_mode=True)
    agent = AgentConfig(
        id="field-agent",
        use_tools=True,
        provider=ProviderSelection(provider="scripted", model="m", api_key="k"),
    )
    provider = ScriptedProvider(
        [{"tool_calls": [{"tool": "record", "params": {"x": 1}}]}, {"summary": "Recorded the field value."}]
    )
    executor = make_executor(provider, catalog)

    trigger = TriggerContext(scope=TriggerScope.FIELD, data={"fieldKey": "post.title", "viewMode": "review"})
    await executor.execute(agent, trigger, {})

    assert seen == [{"params": {"x": 1, "mode": "review"}, "caller_id": "field-agent"}]


@pytest.mark.asyncio
async def test_debug_mode_keeps_determination_and_prompt_snapshot(agent, content_catalog):
    provider = ScriptedProvider([{"summary": "Kept the title.", "determination": "The title is already fine."}])
    executor = make_executor(provider, content_catalog, settings=EngineSettings(debug=True))

    result = await executor.execute(agent, TriggerContext(), {"post": {"id": "p1", "title": "T"}})

    assert result.determination == "The title is already fine."
    assert "determination" not in result.data
    debug = result.execution_meta.debug
    assert debug["configuration"]["model"] == "test-model"
    assert "DEBUG MODE ENABLED" in debug["ingestion"]["systemPrompt"]
    assert debug["ingestion"]["currentPayload"] == {"post": {"id": "p1", "title": "T"}}


@pytest.mark.asyncio
async def test_reactions_run_after_success(agent, content_catalog):
    calls: List[str] = []

    def on_success(context, result):
        calls.append(result.summary)

    with_reactions = agent.model_copy(
        update={
            "reactions": [
                ReactionConfig(type="callable", trigger="on_success", handler=on_success),
                ReactionConfig(type="callable", trigger="on_error", handler=on_success),
            ]
        }
    )
    provider = ScriptedProvider([{"summary": "Nothing needed changing."}])
    executor = make_executor(provider, content_catalog)

    await executor.execute(with_reactions, TriggerContext(), {})

    assert calls == ["Nothing needed changing."]
