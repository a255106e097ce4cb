"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import re
from typing import Any

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from askdocs.ingestion.embedder import Embedder
from askdocs.retrieval.context import NO_CONTEXT
from askdocs.retrieval.memory_store import InMemoryDocumentStore
from askdocs.service import RAGService
from askdocs.synthesis.prompts import UNKNOWN_ANSWER
from askdocs.synthesis.synthesizer import AnswerSynthesizer

TEST_DIM = 256

_WORD = re.compile(r"[a-z0-9]+")


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class BagOfWordsEmbedder(Embedder):
    """Deterministic embedder: hashed word counts plus a constant bias term."""

    provider = "fake"

    def __init__(self, dimension: int = TEST_DIM) -> None:
        super().__init__("bag-of-words", dimension)
        self.calls: list[list[str]] = []

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dimension
        vec[-1] = 0.1
        for word in _WORD.findall(text.lower()):
            slot = int(hashlib.md5(word.encode()).hexdigest(), 16) % (self.dimension - 1)
            vec[slot] += 1.0
        return vec


class ContextEchoChatModel(BaseChatModel):
    """Chat model that answers with the first line of the best document.

    Mimics a grounded model: when the prompt carries the no-documents
    sentinel it admits it does not know.
    """

    prompts: list[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "context-echo"

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        self.prompts.append(messages)
        user = str(messages[-1].content)
        if NO_CONTEXT in user:
            answer = UNKNOWN_ANSWER
        else:
            documents = user.split("Documents:\n\n", 1)[1].split("\n\nQuestion:", 1)[0]
            answer = documents.split("\n")[1]
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=answer))])


@pytest.fixture()
def embedder() -> BagOfWordsEmbedder:
    return BagOfWordsEmbedder()


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(TEST_DIM)


@pytest.fixture()
def chat_model() -> ContextEchoChatModel:
    return ContextEchoChatModel()


@pytest.fixture()
def service(
    embedder: BagOfWordsEmbedder,
    store: InMemoryDocumentStore,
    chat_model: ContextEchoChatModel,
) -> RAGService:
    return RAGService(
        embedder,
        store,
        AnswerSynthesizer(chat_model),
        chunk_size=40,
        chunk_overlap=10,
        top_k=5,
        max_context_chars=2000,
    )
