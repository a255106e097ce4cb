"""Pipeline service — ingestion and question answering over one document store.

A single :class:`RAGService` is built at process start and shared by
every request handler; it owns the embedder (and therefore the one
local model instance), the document store client and the chat model.

Usage::

    service = RAGService.from_settings(settings)
    await service.ingest("t1", "The sky is blue.")
    result = await service.ask("What color is the sky?")
    print(result.answer, [s.title for s in result.sources])
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from askdocs.config import Settings
from askdocs.errors import ConfigError, DimensionError, ValidationError
from askdocs.ingestion.chunker import chunk_text
from askdocs.ingestion.dedup import Deduplicator, content_hash, document_id
from askdocs.ingestion.embedder import Embedder, build_embedder
from askdocs.retrieval.base import DocumentStore
from askdocs.retrieval.context import assemble_context
from askdocs.retrieval.models import Document, DocumentSummary
from askdocs.retrieval.retriever import SemanticRetriever
from askdocs.synthesis.synthesizer import AnswerSynthesizer

logger = logging.getLogger(__name__)


class IngestResult(BaseModel):
    """Outcome of ingesting one document or chunk."""

    id: str
    deduped: bool = False


class Source(BaseModel):
    """A retrieved document cited by an answer."""

    title: str
    similarity: float


class AskResult(BaseModel):
    answer: str
    sources: list[Source] = Field(default_factory=list)


def build_store(settings: Settings, dimension: int) -> DocumentStore:
    """Instantiate the document store selected by ``settings.vector_store``."""
    if settings.vector_store == "memory":
        from askdocs.retrieval.memory_store import InMemoryDocumentStore

        return InMemoryDocumentStore(dimension)

    from askdocs.retrieval.chroma_store import ChromaDocumentStore

    return ChromaDocumentStore(
        dimension,
        settings.chroma_collection,
        host=settings.chroma_host,
        port=settings.chroma_port,
    )


class RAGService:
    """Ingestion and query flows wired over shared collaborators.

    Parameters
    ----------
    embedder:
        Produces document and query vectors.
    store:
        Persists documents and answers nearest-neighbour queries.
    synthesizer:
        Writes the grounded answer.  ``None`` for ingestion-only processes;
        :meth:`ask` then raises :class:`ConfigError`.
    chunk_size / chunk_overlap:
        Defaults for :meth:`ingest_chunked`.
    top_k:
        Number of documents retrieved per question.
    score_threshold:
        Minimum similarity for a retrieved document to be used; ``None`` keeps all.
    max_context_chars:
        Upper bound on the context handed to the chat model.

    Raises
    ------
    DimensionError
        When the embedder's width differs from the store's column width.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: DocumentStore,
        synthesizer: AnswerSynthesizer | None = None,
        *,
        chunk_size: int = 800,
        chunk_overlap: int = 100,
        top_k: int = 5,
        score_threshold: float | None = None,
        max_context_chars: int = 8000,
    ) -> None:
        if embedder.dimension != store.dimension:
            raise DimensionError(store.dimension, embedder.dimension, where=f"{embedder.model_id} output")
        self.embedder = embedder
        self.store = store
        self.synthesizer = synthesizer
        self.deduplicator = Deduplicator(store)
        self.retriever = SemanticRetriever(
            embedder, store, default_k=top_k, score_threshold=score_threshold
        )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_context_chars = max_context_chars

    @classmethod
    def from_settings(cls, settings: Settings, *, with_llm: bool = True) -> RAGService:
        """Build every collaborator from *settings*."""
        from askdocs.synthesis.llm import get_llm

        embedder = build_embedder(settings)
        store = build_store(settings, settings.resolved_embedding_dimension)
        synthesizer = AnswerSynthesizer(get_llm(settings)) if with_llm else None
        return cls(
            embedder,
            store,
            synthesizer,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            top_k=settings.top_k,
            score_threshold=settings.score_threshold,
            max_context_chars=settings.max_context_chars,
        )

    # -- ingestion ------------------------------------------------------------

    async def ingest(self, title: str | None, content: str | None) -> IngestResult:
        """Embed and store one document, unless ``(title, content)`` is known.

        A duplicate returns the existing id with ``deduped=True`` and
        costs no embedding call.
        """
        title, content = _require_document(title, content)

        existing = await self.deduplicator.find_existing(title, content)
        if existing is not None:
            logger.info("Skipping duplicate %r (id=%s)", title, existing)
            return IngestResult(id=existing, deduped=True)

        embedding = await self.embedder.embed(content)
        doc_id = await self.store.insert(_make_document(title, content, embedding))
        logger.info("Ingested %r (id=%s, %d chars)", title, doc_id, len(content))
        return IngestResult(id=doc_id)

    async def ingest_chunked(
        self,
        title: str | None,
        content: str | None,
        *,
        size: int | None = None,
        overlap: int | None = None,
    ) -> list[IngestResult]:
        """Split *content* and store each chunk as its own document.

        Every chunk keeps the document title; chunks already stored under
        that title (or repeated within *content*) are reported as deduped.
        All new chunks are embedded in one batch before anything is
        written.
        """
        title, content = _require_document(title, content)
        chunks = chunk_text(
            content,
            size=self.chunk_size if size is None else size,
            overlap=self.chunk_overlap if overlap is None else overlap,
        )

        results: list[IngestResult | None] = [None] * len(chunks)
        pending: list[int] = []
        pending_ids: set[str] = set()
        for i, chunk in enumerate(chunks):
            existing = await self.deduplicator.find_existing(title, chunk.content)
            if existing is None:
                doc_id = document_id(title, content_hash(chunk.content))
                if doc_id in pending_ids:
                    existing = doc_id
                else:
                    pending_ids.add(doc_id)
                    pending.append(i)
                    continue
            results[i] = IngestResult(id=existing, deduped=True)

        vectors = await self.embedder.embed_batch([chunks[i].content for i in pending])
        for i, vector in zip(pending, vectors):
            doc_id = await self.store.insert(_make_document(title, chunks[i].content, vector))
            results[i] = IngestResult(id=doc_id)

        logger.info(
            "Ingested %r as %d chunk(s): %d new, %d deduped",
            title,
            len(chunks),
            len(pending),
            len(chunks) - len(pending),
        )
        return [r for r in results if r is not None]

    # -- querying -------------------------------------------------------------

    async def ask(self, question: str | None, *, top_k: int | None = None) -> AskResult:
        """Answer *question* from the most similar stored documents."""
        question = (question or "").strip()
        if not question:
            raise ValidationError("Missing question")
        if self.synthesizer is None:
            raise ConfigError("This service was started without a chat model")

        hits = await self.retriever.search(question, k=top_k)
        context = assemble_context(hits, self.max_context_chars)
        answer = await self.synthesizer.synthesize(question, context)
        return AskResult(
            answer=answer,
            sources=[Source(title=h.title, similarity=h.similarity) for h in hits],
        )

    # -- housekeeping ---------------------------------------------------------

    async def list_documents(self, limit: int = 100) -> list[DocumentSummary]:
        return await self.store.list_documents(limit=limit)

    async def delete(self, doc_id: str | None) -> None:
        if not doc_id:
            raise ValidationError("Missing id")
        await self.store.delete(doc_id)
        logger.info("Deleted document %s", doc_id)


def _require_document(title: str | None, content: str | None) -> tuple[str, str]:
    if not title or not title.strip() or not content or not content.strip():
        raise ValidationError(
            "Both 'title' and 'content' are required",
            details={"missing": [name for name, v in (("title", title), ("content", content)) if not v or not v.strip()]},
        )
    return title, content


def _make_document(title: str, content: str, embedding: list[float]) -> Document:
    digest = content_hash(content)
    return Document(
        id=document_id(title, digest),
        title=title,
        content=content,
        content_hash=digest,
        embedding=embedding,
    )
