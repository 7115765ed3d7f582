from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from content_agent.agent_core import (
    AssistantMessage,
    CompletionOptions,
    CompletionTransportError,
    ConfigurationError,
    ProviderConfig,
    SystemMessage,
    UserMessage,
)
from content_agent.llm_impl.openai_api import OpenAICompletionProvider


CONFIG = ProviderConfig(provider="openai", model="gpt-4o-mini", api_key="sk-test")


def chat_response(content: str = '{"summary": "ok"}'):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 12
    response.usage.completion_tokens = 3
    response.usage.total_tokens = 15
    response.model = "gpt-4o-mini-2024-07-18"
    return response


@pytest.fixture
def client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=chat_response())
    return client


@pytest.mark.asyncio
async def test_complete_sends_messages_and_options(client):
    provider = OpenAICompletionProvider(client)
    messages = [SystemMessage(content="sys"), UserMessage(content="hi"), AssistantMessage(content="hello")]

    completion = await provider.complete(messages, CompletionOptions(temperature=0.2, maxTokens=100), CONFIG)

    client.chat.completions.create.assert_awaited_once()
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 100
    assert "top_p" not in kwargs and "stop" not in kwargs
    assert kwargs["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]
    assert completion.content == '{"summary": "ok"}'
    assert completion.usage.total_tokens == 15
    assert completion.model == "gpt-4o-mini-2024-07-18"


@pytest.mark.asyncio
async def test_empty_choices_give_empty_content(client):
    response = chat_response()
    response.choices = []
    response.usage = None
    client.chat.completions.create.return_value = response

    completion = await OpenAICompletionProvider(client).complete([UserMessage(content="hi")], CompletionOptions(), CONFIG)

    assert completion.content == ""
    assert completion.usage is None


@pytest.mark.asyncio
async def test_retries_then_wraps_transport_error(client):
    client.chat.completions.create.side_effect = RuntimeError("503 upstream")
    provider = OpenAICompletionProvider(client, max_retries=2, base_retry_delay=0.0)

    with pytest.raises(CompletionTransportError) as excinfo:
        await provider.complete([UserMessage(content="hi")], CompletionOptions(), CONFIG)

    assert client.chat.completions.create.await_count == 3
    assert "503 upstream" in str(excinfo.value)


@pytest.mark.asyncio
async def test_retry_recovers(client):
    client.chat.completions.create.side_effect = [RuntimeError("flaky"), chat_response("recovered")]
    provider = OpenAICompletionProvider(client, max_retries=2, base_retry_delay=0.0)

    completion = await provider.complete([UserMessage(content="hi")], CompletionOptions(), CONFIG)

    assert completion.content == "recovered"


def test_clients_are_created_per_credential():
    with patch("content_agent.llm_impl.openai_api.core.AsyncOpenAI") as factory:
        provider = OpenAICompletionProvider()
        first = provider._client_for(CONFIG)
        again = provider._client_for(CONFIG)
        provider._client_for(CONFIG.model_copy(update={"api_key": "other"}))

    assert first is again
    assert factory.call_count == 2
    factory.assert_any_call(api_key="sk-test", base_url=None)


def test_validate_config_requires_key_and_model():
    provider = OpenAICompletionProvider(MagicMock())
    with pytest.raises(ConfigurationError):
        provider.validate_config(ProviderConfig(provider="openai", model="m", api_key=""))
    with pytest.raises(ConfigurationError):
        provider.validate_config(ProviderConfig(provider="openai", model="", api_key="k"))
