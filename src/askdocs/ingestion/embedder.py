"""Embedding providers behind a single async interface.

Two variants are available and one is picked at configuration time by
:func:`build_embedder`:

1. **local** (default) — a sentence-transformer loaded in-process through
   ``HuggingFaceEmbeddings`` (mean pooling, L2-normalised).  No API cost;
   the first call pays the model download / load.
2. **remote** — an OpenAI-compatible embeddings endpoint through
   ``OpenAIEmbeddings``.  Subject to rate limits; failures are reported as
   retryable or fatal :class:`~askdocs.errors.ProviderError`, never retried
   here.

Whatever the provider, every vector leaving this module has exactly
``dimension`` components and unit length.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np
import openai
from langchain_huggingface import HuggingFaceEmbeddings
from langchain_openai import OpenAIEmbeddings

from askdocs.errors import ConfigError, DimensionError, ProviderError, map_openai_error

if TYPE_CHECKING:
    from askdocs.config import Settings

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Turns text into fixed-width, unit-length vectors.

    Parameters
    ----------
    model_id:
        Identifier of the embedding model.
    dimension:
        Expected vector width; any other width raises :class:`DimensionError`.
    """

    provider: str = ""

    def __init__(self, model_id: str, dimension: int) -> None:
        self.model_id = model_id
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per input in the same order."""
        if not texts:
            return []
        raw = await self._embed_batch(list(texts))
        if len(raw) != len(texts):
            raise ProviderError(
                "Embedding response size mismatch",
                provider=self.provider,
                details={"expected": len(texts), "got": len(raw)},
            )
        return [self._finalize(vector) for vector in raw]

    @abstractmethod
    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        ...

    def _finalize(self, vector: Sequence[float]) -> list[float]:
        if len(vector) != self.dimension:
            raise DimensionError(self.dimension, len(vector), where=f"{self.model_id} embedding")
        arr = np.asarray(vector, dtype=np.float64)
        norm = float(np.linalg.norm(arr))
        if norm == 0.0 or not np.isfinite(norm):
            raise ProviderError(f"{self.model_id} returned a degenerate embedding", provider=self.provider)
        return (arr / norm).tolist()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model_id={self.model_id!r}, dimension={self.dimension})"


class LocalModelEmbedder(Embedder):
    """Sentence-transformer running in this process.

    The model is loaded on first use and shared by every caller of this
    instance; an :class:`asyncio.Lock` makes sure concurrent cold-start
    requests trigger a single load.
    """

    provider = "local"

    def __init__(
        self,
        model_id: str,
        dimension: int,
        *,
        cache_dir: str | None = None,
        batch_size: int = 64,
    ) -> None:
        super().__init__(model_id, dimension)
        self._cache_dir = cache_dir
        self._batch_size = batch_size
        self._model: HuggingFaceEmbeddings | None = None
        self._init_lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._model is not None

    async def _get_model(self) -> HuggingFaceEmbeddings:
        if self._model is None:
            async with self._init_lock:
                if self._model is None:
                    logger.info("Loading local embedding model %s", self.model_id)
                    self._model = await asyncio.to_thread(self._load_model)
                    logger.info("Local embedding model %s ready", self.model_id)
        return self._model

    def _load_model(self) -> HuggingFaceEmbeddings:
        try:
            return HuggingFaceEmbeddings(
                model_name=self.model_id,
                cache_folder=self._cache_dir,
                encode_kwargs={"normalize_embeddings": True, "batch_size": self._batch_size},
            )
        except (OSError, ValueError, ImportError, RuntimeError) as exc:
            raise ConfigError(
                f"Could not load embedding model {self.model_id!r}: {exc}",
                details={"model": self.model_id},
            ) from exc

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        model = await self._get_model()
        try:
            return await asyncio.to_thread(model.embed_documents, texts)
        except (RuntimeError, ValueError) as exc:
            raise ProviderError(
                f"Local embedding failed: {exc}",
                provider=self.provider,
                details={"model": self.model_id},
            ) from exc


class RemoteAPIEmbedder(Embedder):
    """OpenAI-compatible embeddings endpoint.

    SDK-level retries are disabled: a failed call surfaces immediately as
    a :class:`ProviderError` whose ``retryable`` flag tells the caller
    whether to try the whole request again.
    """

    provider = "remote"

    def __init__(
        self,
        model_id: str,
        dimension: int,
        *,
        api_key: str,
        base_url: str = "",
        timeout: float = 30.0,
        batch_size: int = 64,
    ) -> None:
        super().__init__(model_id, dimension)
        if not api_key and not base_url:
            raise ConfigError(
                "OPENAI_API_KEY is required when EMBEDDING_PROVIDER=remote",
                details={"model": model_id},
            )
        kwargs: dict = {
            "model": model_id,
            # Self-hosted endpoints ignore the key; LangChain requires a non-empty value.
            "api_key": api_key or "EMPTY",
            "timeout": timeout,
            "max_retries": 0,
            "chunk_size": batch_size,
            # Send raw strings; OpenAI-compatible servers do not all accept token arrays.
            "check_embedding_ctx_length": False,
        }
        if base_url:
            kwargs["base_url"] = base_url
        if model_id.startswith("text-embedding-3"):
            kwargs["dimensions"] = dimension
        self._client = OpenAIEmbeddings(**kwargs)

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            return await self._client.aembed_documents(texts)
        except openai.OpenAIError as exc:
            error = map_openai_error(exc, provider="embeddings")
            logger.error("Embedding request failed (retryable=%s): %s", error.retryable, exc)
            raise error from exc


def build_embedder(settings: Settings) -> Embedder:
    """Instantiate the embedder selected by ``settings.embedding_provider``."""
    model_id = settings.resolved_embedding_model
    dimension = settings.resolved_embedding_dimension
    logger.info(
        "Embedding provider=%s model=%s dimension=%d",
        settings.embedding_provider,
        model_id,
        dimension,
    )
    if settings.embedding_provider == "remote":
        return RemoteAPIEmbedder(
            model_id,
            dimension,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
            batch_size=settings.embedding_batch_size,
        )
    return LocalModelEmbedder(
        model_id,
        dimension,
        cache_dir=settings.model_cache_dir,
        batch_size=settings.embedding_batch_size,
    )
