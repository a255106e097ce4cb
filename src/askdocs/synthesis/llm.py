"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **Any OpenAI-compatible endpoint** (Groq, vLLM, …) — additionally set
   ``OPENAI_BASE_URL``.  Those servers expose ``/v1/chat/completions``, so
   ``ChatOpenAI`` works unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from askdocs.errors import ConfigError

if TYPE_CHECKING:
    from askdocs.config import Settings

logger = logging.getLogger(__name__)


def get_llm(settings: Settings) -> ChatOpenAI:
    """Return the configured chat model.

    SDK retries are disabled; a failed completion is reported to the
    caller, which decides whether to repeat the whole request.

    A key is only mandatory for the OpenAI cloud.  Self-hosted endpoints
    such as vLLM accept any value, so ``"EMPTY"`` is sent when none is set.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature,
        "timeout": settings.request_timeout,
        "max_retries": 0,
    }
    if settings.openai_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.openai_base_url)
        kwargs["base_url"] = settings.openai_base_url
        # LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key
    else:
        raise ConfigError("OPENAI_API_KEY is required to answer questions")

    return ChatOpenAI(**kwargs)
