"""Abstract base class for document-store backends.

Adding a new backend (pgvector, Qdrant, Pinecone …) only requires
subclassing :class:`DocumentStore` and implementing the abstract
coroutines.  Input validation and result ordering live here so every
backend honours the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from askdocs.errors import DimensionError, ValidationError
from askdocs.retrieval.models import Document, DocumentSummary, SearchResult


class DocumentStore(ABC):
    """Backend-agnostic document store with nearest-neighbour search.

    Parameters
    ----------
    dimension:
        Width of the vector column.  Every inserted embedding and every
        query vector must have exactly this many components.
    """

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension

    # -- public API -----------------------------------------------------------

    async def insert(self, doc: Document) -> str:
        """Persist *doc* and return its id.

        Raises
        ------
        ValidationError
            When the content or the embedding is empty.
        DimensionError
            When the embedding width differs from :attr:`dimension`.
        """
        if not doc.content:
            raise ValidationError("Document content must not be empty")
        if not doc.embedding:
            raise ValidationError("Document embedding must not be empty")
        self._check_width(doc.embedding, where="document embedding")
        return await self._insert(doc)

    async def search(self, query_vector: list[float], top_k: int = 5) -> list[SearchResult]:
        """Return at most *top_k* results, most similar first.

        Ties keep insertion order.  An empty store yields ``[]``.
        """
        if top_k <= 0:
            return []
        self._check_width(query_vector, where="query vector")
        hits = await self._search(query_vector, top_k)
        # sorted() is stable, so backends returning hits in insertion order
        # keep that order among equal similarities.
        return sorted(hits, key=lambda h: -h.similarity)[:top_k]

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    async def _insert(self, doc: Document) -> str:
        ...

    @abstractmethod
    async def _search(self, query_vector: list[float], top_k: int) -> list[SearchResult]:
        """Return candidate hits, in insertion order among equal scores."""
        ...

    @abstractmethod
    async def delete(self, doc_id: str) -> None:
        """Delete a document by id.  Unknown ids are ignored."""
        ...

    @abstractmethod
    async def find_by_key(self, title: str, content_hash: str) -> str | None:
        """Return the id stored under ``(title, content_hash)``, if any."""
        ...

    @abstractmethod
    async def list_documents(self, limit: int = 100) -> list[DocumentSummary]:
        """Return up to *limit* documents, newest first."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- internals ------------------------------------------------------------

    def _check_width(self, vector: list[float], *, where: str) -> None:
        if len(vector) != self.dimension:
            raise DimensionError(self.dimension, len(vector), where=where)
