"""Semantic retriever — embed a question and search the document store.

Usage::

    retriever = SemanticRetriever(embedder, store)
    results   = await retriever.search("What color is the sky?", k=5)
    for r in results:
        print(r.title, r.similarity)
"""

from __future__ import annotations

import logging

from askdocs.ingestion.embedder import Embedder
from askdocs.retrieval.base import DocumentStore
from askdocs.retrieval.models import SearchResult

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever pairing an :class:`Embedder` with a :class:`DocumentStore`.

    Parameters
    ----------
    embedder:
        Produces the query vector; must match the store's dimension.
    store:
        Backend answering the nearest-neighbour query.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity; results below this are discarded.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: DocumentStore,
        *,
        default_k: int = 5,
        score_threshold: float | None = None,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.default_k = default_k
        self.score_threshold = score_threshold

    async def search(self, query: str, *, k: int | None = None) -> list[SearchResult]:
        """Embed *query* and return up to *k* results, most similar first."""
        embedding = await self._embedder.embed(query)
        return await self.search_by_embedding(embedding, k=k)

    async def search_by_embedding(self, embedding: list[float], *, k: int | None = None) -> list[SearchResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = self.default_k if k is None else k
        hits = await self._store.search(embedding, top_k=k)
        if self.score_threshold is not None:
            hits = [h for h in hits if h.similarity >= self.score_threshold]
        logger.info("Retrieved %d document(s) (k=%d)", len(hits), k)
        return hits
