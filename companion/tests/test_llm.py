"""Tests for services/llm.py and services/persona.py."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from services.llm import CompletionError, CompletionService, create_llm
from services.persona import build_system_prompt


def _character(**overrides):
    data = {
        "name": "Priya",
        "system_prompt": "A sweet, caring companion.",
        "personality": "sweet, caring",
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _turns(n):
    return [
        SimpleNamespace(sender="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(n)
    ]


# ── create_llm ────────────────────────────────────────────────────────────────

class TestCreateLlm:
    def test_openai_provider(self, monkeypatch):
        import config

        monkeypatch.setattr(config.settings, "LLM_PROVIDER", "openai")
        monkeypatch.setattr(config.settings, "LLM_API_KEY", "sk-test")
        mock_cls = MagicMock()
        with patch.dict("sys.modules", {"langchain_openai": MagicMock(ChatOpenAI=mock_cls)}):
            create_llm()
        kwargs = mock_cls.call_args[1]
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["model"] == config.settings.LLM_MODEL
        assert kwargs["temperature"] == 0.8
        assert kwargs["max_tokens"] == 150
        assert kwargs["presence_penalty"] == 0.6
        assert kwargs["frequency_penalty"] == 0.5

    def test_anthropic_provider_has_no_penalties(self, monkeypatch):
        import config

        monkeypatch.setattr(config.settings, "LLM_PROVIDER", "anthropic")
        monkeypatch.setattr(config.settings, "LLM_API_KEY", "sk-ant")
        mock_cls = MagicMock()
        with patch.dict("sys.modules", {"langchain_anthropic": MagicMock(ChatAnthropic=mock_cls)}):
            create_llm()
        kwargs = mock_cls.call_args[1]
        assert kwargs["api_key"] == "sk-ant"
        assert "presence_penalty" not in kwargs
        assert "frequency_penalty" not in kwargs

    def test_openai_compatible_uses_base_url(self, monkeypatch):
        import config

        monkeypatch.setattr(config.settings, "LLM_PROVIDER", "openai_compatible")
        monkeypatch.setattr(config.settings, "LLM_BASE_URL", "http://localhost:11434/v1")
        mock_cls = MagicMock()
        with patch.dict("sys.modules", {"langchain_openai": MagicMock(ChatOpenAI=mock_cls)}):
            create_llm(temperature=0.2)
        kwargs = mock_cls.call_args[1]
        assert kwargs["base_url"] == "http://localhost:11434/v1"
        assert kwargs["temperature"] == 0.2

    def test_unknown_provider(self, monkeypatch):
        import config

        monkeypatch.setattr(config.settings, "LLM_PROVIDER", "nope")
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_llm()


# ── persona prompt ────────────────────────────────────────────────────────────

class TestSystemPrompt:
    def test_includes_persona_and_language_directive(self):
        prompt = build_system_prompt(_character(), "hinglish")
        assert prompt.startswith("You are Priya")
        assert "A sweet, caring companion." in prompt
        assert "Traits: sweet, caring" in prompt
        assert "CRITICAL LANGUAGE REQUIREMENT: MANDATORY: Respond ONLY in Hinglish" in prompt

    def test_missing_personality_is_skipped(self):
        prompt = build_system_prompt(_character(personality=""), "english")
        assert "Traits:" not in prompt


# ── CompletionService ─────────────────────────────────────────────────────────

class TestCompletionService:
    def test_message_layout(self):
        service = CompletionService(llm=MagicMock(), window=15)
        messages = service.build_messages(_turns(2), _character(), "hello", "english")

        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage) and messages[1].content == "turn 0"
        assert isinstance(messages[2], AIMessage) and messages[2].content == "turn 1"
        assert isinstance(messages[-1], HumanMessage) and messages[-1].content == "hello"

    def test_history_window_keeps_last_15(self):
        service = CompletionService(llm=MagicMock(), window=15)
        messages = service.build_messages(_turns(40), _character(), "latest", "english")

        assert len(messages) == 1 + 15 + 1
        assert messages[1].content == "turn 25"
        assert messages[-2].content == "turn 39"

    def test_generate_returns_stripped_text(self):
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content="  Hi there! 💕 ")
        reply = CompletionService(llm=llm).generate([], _character(), "hello", "english")
        assert reply == "Hi there! 💕"
        llm.invoke.assert_called_once()

    def test_generate_joins_content_blocks(self):
        llm = MagicMock()
        llm.invoke.return_value = SimpleNamespace(content=[{"type": "text", "text": "Hello "}, {"type": "text", "text": "you"}])
        assert CompletionService(llm=llm).generate([], _character(), "hi", "english") == "Hello you"

    def test_provider_failure_wrapped(self):
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("rate limited")
        with pytest.raises(CompletionError, match="rate limited"):
            CompletionService(llm=llm).generate([], _character(), "hi", "english")

    def test_empty_reply_is_an_error(self):
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content="   ")
        with pytest.raises(CompletionError):
            CompletionService(llm=llm).generate([], _character(), "hi", "english")
