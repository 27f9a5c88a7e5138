"""LangChain chat-completion service for companion replies."""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from config import settings
from services.persona import build_system_prompt

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm sorry, I'm having trouble responding right now. Please try again! 💕"


class CompletionError(Exception):
    """The completion provider failed or returned nothing usable."""


def create_llm(**kwargs) -> BaseChatModel:
    """Create a LangChain chat model from settings.

    Args:
        **kwargs: Additional kwargs passed to the LLM constructor
    """
    provider = settings.LLM_PROVIDER.lower()
    common = {
        "model": settings.LLM_MODEL,
        "temperature": settings.LLM_TEMPERATURE,
        "max_tokens": settings.LLM_MAX_TOKENS,
        "timeout": settings.EXTERNAL_TIMEOUT_SECONDS,
    }
    common.update(kwargs)

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            api_key=settings.LLM_API_KEY or settings.OPENAI_API_KEY,
            frequency_penalty=settings.LLM_FREQUENCY_PENALTY,
            presence_penalty=settings.LLM_PRESENCE_PENALTY,
            **common,
        )

    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(api_key=settings.LLM_API_KEY, **common)

    elif provider == "openai_compatible":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            api_key=settings.LLM_API_KEY or "not-needed",
            base_url=settings.LLM_BASE_URL,
            frequency_penalty=settings.LLM_FREQUENCY_PENALTY,
            presence_penalty=settings.LLM_PRESENCE_PENALTY,
            **common,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")


def _turn_to_langchain(turn):
    if turn.sender == "user":
        return HumanMessage(content=turn.content)
    return AIMessage(content=turn.content)


def _content_text(content) -> str:
    # Anthropic models may return a list of content blocks.
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block) for block in content
        )
    return content or ""


class CompletionService:
    """Generates a persona reply from a trailing window of conversation turns."""

    def __init__(self, llm: BaseChatModel | None = None, window: int | None = None):
        self._llm = llm
        self.window = window if window is not None else settings.CONTEXT_WINDOW_TURNS

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = create_llm()
        return self._llm

    def build_messages(self, history, character, user_message: str, language: str) -> list:
        recent = list(history)[-self.window:] if self.window else []
        return [
            SystemMessage(content=build_system_prompt(character, language)),
            *(_turn_to_langchain(turn) for turn in recent),
            HumanMessage(content=user_message),
        ]

    def generate(self, history, character, user_message: str, language: str) -> str:
        """Return the reply text; raises CompletionError on any provider failure."""
        messages = self.build_messages(history, character, user_message, language)
        logger.info(
            "Generating reply as %s (language=%s, context=%d turns)",
            character.name, language, len(messages) - 2,
        )
        try:
            response = self.llm.invoke(messages)
        except Exception as exc:
            raise CompletionError(str(exc)) from exc

        text = _content_text(response.content).strip()
        if not text:
            raise CompletionError("No response generated")
        return text


_completion_service: CompletionService | None = None


def get_completion_service() -> CompletionService:
    """Get or create the completion service instance."""
    global _completion_service
    if _completion_service is None:
        _completion_service = CompletionService()
    return _completion_service
