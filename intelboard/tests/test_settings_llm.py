"""Tests for settings loading and the LLM gateway."""

from unittest.mock import MagicMock, patch

import pytest
from llama_index.core.base.llms.types import ChatMessage, MessageRole

from intelboard.api.core.exceptions import ServiceUnavailableError
from intelboard.core.ai.llm import LLMGateway, build_llm, chat_text
from intelboard.setting import LLMSettings, load_settings


# ── Tests: Settings ───────────────────────────────────────────────────────


class TestLoadSettings:

    def test_defaults_without_file_or_env(self, tmp_path):
        settings = load_settings(tmp_path / "missing.yaml", environ={})

        assert settings.database.url == "sqlite:///intelboard.db"
        assert settings.llm.provider == "openai"
        assert settings.invite_default_password == "password123"

    def test_yaml_overlay(self, tmp_path):
        path = tmp_path / "intelboard.yaml"
        path.write_text("llm:\n  provider: ollama\n  model: llama3\nserver:\n  log_level: DEBUG\n")

        settings = load_settings(path, environ={})

        assert settings.llm.provider == "ollama"
        assert settings.llm.model == "llama3"
        assert settings.server.log_level == "DEBUG"

    def test_environment_wins_over_file(self, tmp_path):
        path = tmp_path / "intelboard.yaml"
        path.write_text("llm:\n  model: llama3\n")
        environ = {
            "LLM_MODEL": "gpt-4o-mini",
            "OLLAMA_PORT": "9999",
            "DATABASE_URL": "",
            "CORS_ORIGINS": "http://a.test, http://b.test,",
            "INVITE_DEFAULT_PASSWORD": "changeme",
        }

        settings = load_settings(path, environ=environ)

        assert settings.llm.model == "gpt-4o-mini"
        assert settings.llm.ollama_port == 9999
        assert settings.database.url == "sqlite:///intelboard.db"
        assert settings.server.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.invite_default_password == "changeme"

    def test_broken_yaml_is_ignored(self, tmp_path):
        path = tmp_path / "intelboard.yaml"
        path.write_text("llm: [unclosed\n")

        assert load_settings(path, environ={}).llm.provider == "openai"


# ── Tests: Provider factory ───────────────────────────────────────────────


class TestBuildLlm:

    def test_openai_without_key(self):
        with pytest.raises(ServiceUnavailableError):
            build_llm(LLMSettings(provider="openai", api_key=None))

    def test_unknown_provider(self):
        with pytest.raises(ServiceUnavailableError):
            build_llm(LLMSettings(provider="watson"))


# ── Tests: Gateway ────────────────────────────────────────────────────────


def _inner_llm(reply="Hello there"):
    inner = MagicMock()
    inner.model = "gpt-4o"
    response = MagicMock()
    response.message = ChatMessage(role=MessageRole.ASSISTANT, content=reply)
    inner.chat.return_value = response
    return inner


class TestLLMGateway:

    def test_chat_passes_through_and_records_metrics(self):
        inner = _inner_llm()
        gateway = LLMGateway(inner)

        reply = chat_text(gateway, "You are helpful.", "Say hello", purpose="profile")

        assert reply == "Hello there"
        # The purpose tag is consumed by the gateway
        assert "gateway_purpose" not in inner.chat.call_args.kwargs
        metrics = gateway.get_metrics()
        assert metrics["total_calls"] == 1
        assert metrics["calls_by_purpose"] == {"profile": 1}
        assert metrics["model"] == "gpt-4o"
        assert metrics["estimated_cost_usd"] >= 0

    def test_errors_are_counted_and_raised(self):
        inner = _inner_llm()
        inner.chat.side_effect = ValueError("bad request")
        gateway = LLMGateway(inner)

        with pytest.raises(ValueError):
            chat_text(gateway, "sys", "user", purpose="architect_generate")

        metrics = gateway.get_metrics()
        assert metrics["errors"] == 1
        assert metrics["calls_by_purpose"] == {"architect_generate_error": 1}

    @patch("time.sleep")
    def test_transient_errors_are_retried(self, _sleep):
        inner = _inner_llm("ok")
        response = inner.chat.return_value
        inner.chat.side_effect = [ConnectionError("reset"), response]
        gateway = LLMGateway(inner, max_retries=3)

        assert chat_text(gateway, "sys", "user") == "ok"
        assert inner.chat.call_count == 2
        assert gateway.get_metrics()["retries"] == 1

    def test_reset_metrics(self):
        gateway = LLMGateway(_inner_llm())
        chat_text(gateway, "sys", "user")

        gateway.reset_metrics()

        assert gateway.get_metrics()["total_calls"] == 0
