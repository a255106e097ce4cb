"""Grounded answer synthesis over an assembled context."""

from __future__ import annotations

import asyncio
import logging

import openai
from langchain_core.language_models import BaseChatModel

from askdocs.errors import ProviderError, map_openai_error
from askdocs.synthesis.prompts import build_answer_prompt

logger = logging.getLogger(__name__)


class AnswerSynthesizer:
    """Ask a chat model to answer *question* from *context* only.

    Parameters
    ----------
    llm:
        Any LangChain chat model; production code passes the
        ``ChatOpenAI`` instance built by :func:`askdocs.synthesis.llm.get_llm`.
    """

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def synthesize(self, question: str, context: str) -> str:
        """Return the first completion's text, or ``""`` when there is none."""
        messages = build_answer_prompt(question, context)
        try:
            result = await self._llm.agenerate([messages])
        except openai.OpenAIError as exc:
            error = map_openai_error(exc, provider="chat")
            logger.error("Chat completion failed (retryable=%s): %s", error.retryable, exc)
            raise error from exc
        except asyncio.TimeoutError as exc:
            raise ProviderError("Chat completion timed out", provider="chat", retryable=True) from exc

        generations = result.generations[0] if result.generations else []
        if not generations:
            logger.warning("Chat model returned no choices")
            return ""
        return generations[0].text
