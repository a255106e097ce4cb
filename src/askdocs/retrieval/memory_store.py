"""In-process document store with exact cosine search.

Useful for development (``VECTOR_STORE=memory``) and tests; nothing is
persisted across restarts.
"""

from __future__ import annotations

import logging

import numpy as np

from askdocs.retrieval.base import DocumentStore
from askdocs.retrieval.models import Document, DocumentSummary, SearchResult

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store; iteration order is insertion order."""

    def __init__(self, dimension: int) -> None:
        super().__init__(dimension)
        self._docs: dict[str, Document] = {}

    async def _insert(self, doc: Document) -> str:
        # Rows are immutable: re-inserting a known id keeps the original row.
        if doc.id not in self._docs:
            self._docs[doc.id] = doc
        return doc.id

    async def _search(self, query_vector: list[float], top_k: int) -> list[SearchResult]:
        if not self._docs:
            return []
        docs = list(self._docs.values())
        matrix = np.asarray([d.embedding for d in docs], dtype=np.float64)
        query = np.asarray(query_vector, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        norms[norms == 0] = 1.0
        scores = (matrix @ query) / norms

        return [
            SearchResult(id=d.id, title=d.title, content=d.content, similarity=float(s))
            for d, s in zip(docs, scores)
        ]

    async def delete(self, doc_id: str) -> None:
        self._docs.pop(doc_id, None)

    async def find_by_key(self, title: str, content_hash: str) -> str | None:
        for doc in self._docs.values():
            if doc.title == title and doc.content_hash == content_hash:
                return doc.id
        return None

    async def list_documents(self, limit: int = 100) -> list[DocumentSummary]:
        newest_first = reversed(list(self._docs.values()))
        return [d.summary() for d in newest_first][:limit]

    async def count(self) -> int:
        return len(self._docs)

    async def health_check(self) -> bool:
        return True
