import os

import pytest

from content_agent.agent_core import AgentConfig, ConfigurationError, EngineSettings, ProviderSelection, TriggerContext, TriggerScope
from content_agent.agent_core.engine.config import api_key_env_var, resolve_provider_config


def test_settings_defaults_from_empty_environment():
    settings = EngineSettings.from_env(environ={})
    assert settings.max_turns == 10
    assert settings.tool_timeout == 180.0
    assert settings.debug is False
    assert settings.default_text_provider is None


def test_settings_read_environment():
    settings = EngineSettings.from_env(
        environ={
            "AGENT_MAX_TURNS": "4",
            "AGENT_TOOL_TIMEOUT": "12.5",
            "AGENT_DEBUG": "true",
            "AGENT_DEFAULT_TEXT_PROVIDER": "gemini",
            "AGENT_DEFAULT_TEXT_MODEL": "gemini-2.0-flash",
        }
    )
    assert settings.max_turns == 4
    assert settings.tool_timeout == 12.5
    assert settings.debug is True
    assert settings.default_text_provider == "gemini"
    assert settings.default_text_model == "gemini-2.0-flash"


def test_settings_load_dotenv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("AGENT_MAX_TURNS", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("AGENT_MAX_TURNS=7\n")

    settings = EngineSettings.from_env(env_file=str(env_file))

    assert settings.max_turns == 7
    os.environ.pop("AGENT_MAX_TURNS", None)


def test_invalid_number_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        EngineSettings.from_env(environ={"AGENT_MAX_TURNS": "many"})


def test_agent_config_accepts_camel_case():
    agent = AgentConfig.model_validate(
        {
            "id": "a",
            "systemPrompt": "Hi",
            "useTools": True,
            "allowedTools": ["save_post"],
            "provider": {"provider": "openai", "model": "gpt-4o", "apiKey": "k"},
            "options": {"temperature": 0.3, "maxTokens": 500},
            "reactions": [{"type": "slack", "webhookUrl": "https://hooks.slack.com/x", "trigger": "on_error"}],
        }
    )
    assert agent.use_tools and agent.allows("save_post") and not agent.allows("create_post")
    assert agent.options.max_tokens == 500
    assert agent.reactions[0].webhook_url == "https://hooks.slack.com/x"
    assert agent.display_name == "a"


def test_resolve_provider_prefers_agent_then_settings_then_env_key():
    settings = EngineSettings(default_text_provider="gemini", default_text_model="gemini-2.0-flash")
    agent = AgentConfig(id="a")

    config = resolve_provider_config(agent, settings, {"AI_PROVIDER_GEMINI_API_KEY": "env-key"})
    assert (config.provider, config.model, config.api_key) == ("gemini", "gemini-2.0-flash", "env-key")

    explicit = AgentConfig(id="b", provider=ProviderSelection(provider="openai", model="gpt-4o", api_key="own"))
    config = resolve_provider_config(explicit, settings, {"AI_PROVIDER_OPENAI_API_KEY": "env-key"})
    assert (config.provider, config.model, config.api_key) == ("openai", "gpt-4o", "own")


@pytest.mark.parametrize(
    "selection, message",
    [
        (ProviderSelection(model="m", api_key="k"), "provider not specified"),
        (ProviderSelection(provider="openai", api_key="k"), "model not specified"),
        (ProviderSelection(provider="openai", model="m"), "AI_PROVIDER_OPENAI_API_KEY"),
    ],
)
def test_resolve_provider_errors(selection, message):
    with pytest.raises(ConfigurationError, match=message):
        resolve_provider_config(AgentConfig(id="a", provider=selection), EngineSettings(), {})


def test_api_key_env_var_name():
    assert api_key_env_var("openai") == "AI_PROVIDER_OPENAI_API_KEY"


def test_target_mode():
    assert TriggerContext().target_mode == "ai-review"
    assert TriggerContext(scope=TriggerScope.FIELD).target_mode == "source"
    assert TriggerContext(scope=TriggerScope.FIELD, data={"viewMode": "review"}).target_mode == "review"
