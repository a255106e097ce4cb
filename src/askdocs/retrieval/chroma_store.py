"""Chroma implementation of the document-store abstraction."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, TypeVar

import chromadb

from askdocs.config import settings
from askdocs.errors import ProviderError
from askdocs.retrieval.base import DocumentStore
from askdocs.retrieval.models import PREVIEW_CHARS, Document, DocumentSummary, SearchResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _key_where(title: str, content_hash: str) -> dict[str, Any]:
    """Chroma ``where`` clause matching one dedup key."""
    return {"$and": [{"title": {"$eq": title}}, {"content_hash": {"$eq": content_hash}}]}


class ChromaDocumentStore(DocumentStore):
    """Chroma-backed document store.

    The collection is created with cosine distance, so the reported
    similarity is ``1 - distance``.  Ingestion order is kept in the
    ``created_ts`` metadata field and used to break similarity ties.

    Parameters
    ----------
    dimension:
        Width of the embedding column.
    collection_name:
        Name of the Chroma collection.
    host / port:
        Chroma server location.
    client:
        Pre-built Chroma client; overrides *host* / *port*.
    """

    def __init__(
        self,
        dimension: int,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any = None,
    ) -> None:
        super().__init__(dimension)
        self.collection_name = collection_name
        try:
            self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            logger.error("Could not open Chroma collection %r at %s:%s: %s", collection_name, host, port, exc)
            raise ProviderError(
                f"Chroma is unreachable: {exc}",
                provider="chroma",
                retryable=True,
                details={"host": host, "port": port},
            ) from exc

    # -- DocumentStore overrides ----------------------------------------------

    async def _insert(self, doc: Document) -> str:
        metadata = {
            "title": doc.title,
            "content_hash": doc.content_hash,
            "created_at": doc.created_at.isoformat(),
            "created_ts": doc.created_at.timestamp(),
        }
        # add() leaves an existing id untouched, so rows are never rewritten.
        await self._call(
            "add",
            lambda: self._collection.add(
                ids=[doc.id],
                embeddings=[doc.embedding],
                documents=[doc.content],
                metadatas=[metadata],
            ),
        )
        logger.info("Stored document %s in collection %r", doc.id, self.collection_name)
        return doc.id

    async def _search(self, query_vector: list[float], top_k: int) -> list[SearchResult]:
        total = await self.count()
        if total == 0:
            return []

        results = await self._call(
            "query",
            lambda: self._collection.query(
                query_embeddings=[query_vector],
                n_results=min(top_k, total),
                include=["documents", "metadatas", "distances"],
            ),
        )

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        rows = []
        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            meta = meta or {}
            rows.append(
                (
                    meta.get("created_ts", 0.0),
                    SearchResult(
                        id=doc_id,
                        title=meta.get("title", ""),
                        content=content or "",
                        similarity=1.0 - float(dist),
                    ),
                )
            )
        rows.sort(key=lambda r: r[0])
        return [hit for _, hit in rows]

    async def delete(self, doc_id: str) -> None:
        await self._call("delete", lambda: self._collection.delete(ids=[doc_id]))

    async def find_by_key(self, title: str, content_hash: str) -> str | None:
        found = await self._call(
            "get",
            lambda: self._collection.get(where=_key_where(title, content_hash), limit=1, include=[]),
        )
        ids = found.get("ids") or []
        return ids[0] if ids else None

    async def list_documents(self, limit: int = 100) -> list[DocumentSummary]:
        # Order on metadata alone, then fetch bodies for the page only.
        found = await self._call("get", lambda: self._collection.get(include=["metadatas"]))
        rows = [
            (meta or {}, doc_id)
            for doc_id, meta in zip(found.get("ids") or [], found.get("metadatas") or [])
        ]
        rows.sort(key=lambda r: r[0].get("created_ts", 0.0), reverse=True)
        page = rows[:limit]
        if not page:
            return []

        bodies = await self._call(
            "get",
            lambda: self._collection.get(ids=[doc_id for _, doc_id in page], include=["documents"]),
        )
        content_by_id = dict(zip(bodies.get("ids") or [], bodies.get("documents") or []))

        return [
            DocumentSummary(
                id=doc_id,
                title=meta.get("title", ""),
                preview=(content_by_id.get(doc_id) or "")[:PREVIEW_CHARS],
                created_at=datetime.fromisoformat(meta["created_at"]),
            )
            for meta, doc_id in page
        ]

    async def count(self) -> int:
        return await self._call("count", self._collection.count)

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self._client.heartbeat)
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        """Run a blocking Chroma call off the event loop."""
        try:
            return await asyncio.to_thread(fn)
        except Exception as exc:
            logger.error("Chroma %s failed on %r: %s", operation, self.collection_name, exc)
            raise ProviderError(
                f"Chroma {operation} failed: {exc}",
                provider="chroma",
                retryable=True,
            ) from exc
