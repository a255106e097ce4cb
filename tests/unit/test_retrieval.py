"""Unit tests for the retrieval layer — stores, retriever and context assembly."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from askdocs.errors import DimensionError, ProviderError, ValidationError
from askdocs.ingestion.dedup import content_hash, document_id
from askdocs.retrieval.chroma_store import ChromaDocumentStore
from askdocs.retrieval.context import NO_CONTEXT, assemble_context
from askdocs.retrieval.memory_store import InMemoryDocumentStore
from askdocs.retrieval.models import Document, SearchResult
from askdocs.retrieval.retriever import SemanticRetriever

DIM = 3


def _doc(title: str, content: str, embedding: list[float], **extra) -> Document:
    digest = content_hash(content)
    return Document(
        id=document_id(title, digest),
        title=title,
        content=content,
        content_hash=digest,
        embedding=embedding,
        **extra,
    )


@pytest.fixture()
def mem_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(DIM)


# ── In-memory store ────────────────────────────────────────────────────


class TestInMemoryDocumentStore:
    async def test_search_on_empty_store(self, mem_store: InMemoryDocumentStore) -> None:
        assert await mem_store.search([1.0, 0.0, 0.0], top_k=5) == []

    async def test_insert_returns_document_id(self, mem_store: InMemoryDocumentStore) -> None:
        doc = _doc("a", "alpha", [1.0, 0.0, 0.0])
        assert await mem_store.insert(doc) == doc.id
        assert await mem_store.count() == 1

    async def test_results_ordered_by_similarity(self, mem_store: InMemoryDocumentStore) -> None:
        await mem_store.insert(_doc("far", "far", [0.0, 1.0, 0.0]))
        await mem_store.insert(_doc("near", "near", [1.0, 0.1, 0.0]))
        await mem_store.insert(_doc("mid", "mid", [1.0, 1.0, 0.0]))

        results = await mem_store.search([1.0, 0.0, 0.0], top_k=5)
        assert [r.title for r in results] == ["near", "mid", "far"]
        sims = [r.similarity for r in results]
        assert sims == sorted(sims, reverse=True)
        assert sims[0] == pytest.approx(0.995, abs=1e-3)

    async def test_top_k_bounds_results(self, mem_store: InMemoryDocumentStore) -> None:
        for i in range(8):
            await mem_store.insert(_doc(f"d{i}", f"content {i}", [1.0, float(i), 0.0]))
        results = await mem_store.search([1.0, 0.0, 0.0], top_k=5)
        assert len(results) == 5
        sims = [r.similarity for r in results]
        assert all(a >= b for a, b in zip(sims, sims[1:]))

    async def test_ties_keep_insertion_order(self, mem_store: InMemoryDocumentStore) -> None:
        for title in ("first", "second", "third"):
            await mem_store.insert(_doc(title, title, [0.0, 0.0, 1.0]))
        results = await mem_store.search([0.0, 0.0, 1.0], top_k=3)
        assert [r.title for r in results] == ["first", "second", "third"]

    async def test_non_positive_top_k(self, mem_store: InMemoryDocumentStore) -> None:
        await mem_store.insert(_doc("a", "alpha", [1.0, 0.0, 0.0]))
        assert await mem_store.search([1.0, 0.0, 0.0], top_k=0) == []

    async def test_insert_rejects_empty_content(self, mem_store: InMemoryDocumentStore) -> None:
        with pytest.raises(ValidationError):
            await mem_store.insert(_doc("a", "", [1.0, 0.0, 0.0]))

    async def test_insert_rejects_empty_embedding(self, mem_store: InMemoryDocumentStore) -> None:
        with pytest.raises(ValidationError):
            await mem_store.insert(_doc("a", "alpha", []))

    async def test_insert_rejects_wrong_width(self, mem_store: InMemoryDocumentStore) -> None:
        with pytest.raises(DimensionError):
            await mem_store.insert(_doc("a", "alpha", [1.0, 0.0]))
        assert await mem_store.count() == 0

    async def test_search_rejects_wrong_width(self, mem_store: InMemoryDocumentStore) -> None:
        with pytest.raises(DimensionError):
            await mem_store.search([1.0] * 4, top_k=1)

    async def test_reinsert_keeps_original_row(self, mem_store: InMemoryDocumentStore) -> None:
        doc = _doc("a", "alpha", [1.0, 0.0, 0.0])
        await mem_store.insert(doc)
        await mem_store.insert(doc.model_copy(update={"created_at": datetime.now(timezone.utc) + timedelta(days=1)}))
        assert await mem_store.count() == 1
        (summary,) = await mem_store.list_documents()
        assert summary.created_at == doc.created_at

    async def test_delete_is_idempotent(self, mem_store: InMemoryDocumentStore) -> None:
        doc = _doc("a", "alpha", [1.0, 0.0, 0.0])
        await mem_store.insert(doc)
        await mem_store.delete(doc.id)
        await mem_store.delete(doc.id)
        await mem_store.delete("never-existed")
        assert await mem_store.count() == 0

    async def test_find_by_key(self, mem_store: InMemoryDocumentStore) -> None:
        doc = _doc("a", "alpha", [1.0, 0.0, 0.0])
        await mem_store.insert(doc)
        assert await mem_store.find_by_key("a", doc.content_hash) == doc.id
        assert await mem_store.find_by_key("b", doc.content_hash) is None

    async def test_list_documents_newest_first(self, mem_store: InMemoryDocumentStore) -> None:
        await mem_store.insert(_doc("old", "x" * 200, [1.0, 0.0, 0.0]))
        await mem_store.insert(_doc("new", "y", [0.0, 1.0, 0.0]))
        listing = await mem_store.list_documents(limit=10)
        assert [d.title for d in listing] == ["new", "old"]
        assert len(listing[1].preview) == 80
        assert len(await mem_store.list_documents(limit=1)) == 1


# ── Chroma store (mocked client) ──────────────────────────────────────


def _chroma_store(collection: MagicMock) -> ChromaDocumentStore:
    client = MagicMock()
    client.get_or_create_collection.return_value = collection
    return ChromaDocumentStore(DIM, "docs", client=client)


class TestChromaDocumentStore:
    def test_collection_uses_cosine_space(self) -> None:
        client = MagicMock()
        ChromaDocumentStore(DIM, "docs", client=client)
        client.get_or_create_collection.assert_called_once_with(name="docs", metadata={"hnsw:space": "cosine"})

    async def test_empty_collection_skips_query(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 0
        store = _chroma_store(collection)
        assert await store.search([1.0, 0.0, 0.0], top_k=5) == []
        collection.query.assert_not_called()

    async def test_search_converts_distances_and_orders(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 3
        collection.query.return_value = {
            "ids": [["id-b", "id-a", "id-c"]],
            "documents": [["beta", "alpha", "gamma"]],
            "metadatas": [
                [
                    {"title": "b", "created_ts": 2.0},
                    {"title": "a", "created_ts": 1.0},
                    {"title": "c", "created_ts": 3.0},
                ]
            ],
            "distances": [[0.2, 0.2, 0.5]],
        }
        store = _chroma_store(collection)

        results = await store.search([1.0, 0.0, 0.0], top_k=10)

        assert collection.query.call_args.kwargs["n_results"] == 3
        assert [r.title for r in results] == ["a", "b", "c"]
        assert results[0].similarity == pytest.approx(0.8)
        assert results[2].similarity == pytest.approx(0.5)

    async def test_insert_adds_row_with_metadata(self) -> None:
        collection = MagicMock()
        store = _chroma_store(collection)
        doc = _doc("a", "alpha", [1.0, 0.0, 0.0])

        assert await store.insert(doc) == doc.id

        kwargs = collection.add.call_args.kwargs
        assert kwargs["ids"] == [doc.id]
        assert kwargs["documents"] == ["alpha"]
        assert kwargs["metadatas"][0]["title"] == "a"
        assert kwargs["metadatas"][0]["content_hash"] == doc.content_hash

    async def test_find_by_key_uses_where_clause(self) -> None:
        collection = MagicMock()
        collection.get.return_value = {"ids": ["id-1"]}
        store = _chroma_store(collection)

        assert await store.find_by_key("a", "hash") == "id-1"
        where = collection.get.call_args.kwargs["where"]
        assert where == {"$and": [{"title": {"$eq": "a"}}, {"content_hash": {"$eq": "hash"}}]}

    async def test_find_by_key_miss(self) -> None:
        collection = MagicMock()
        collection.get.return_value = {"ids": []}
        assert await _chroma_store(collection).find_by_key("a", "hash") is None

    @staticmethod
    def _listing_collection() -> MagicMock:
        metadatas = {
            "id-old": {"title": "old", "created_at": "2026-01-01T00:00:00+00:00", "created_ts": 1.0},
            "id-mid": {"title": "mid", "created_at": "2026-01-15T00:00:00+00:00", "created_ts": 1.5},
            "id-new": {"title": "new", "created_at": "2026-02-01T00:00:00+00:00", "created_ts": 2.0},
        }
        bodies = {"id-old": "old content", "id-mid": "mid content", "id-new": "new content"}

        def get(ids=None, include=None, **kwargs):
            if include == ["metadatas"]:
                return {"ids": list(metadatas), "metadatas": list(metadatas.values())}
            # Chroma does not promise the requested order.
            chosen = list(reversed(ids))
            return {"ids": chosen, "documents": [bodies[i] for i in chosen]}

        collection = MagicMock()
        collection.get.side_effect = get
        return collection

    async def test_list_documents_newest_first(self) -> None:
        listing = await _chroma_store(self._listing_collection()).list_documents()
        assert [d.title for d in listing] == ["new", "mid", "old"]
        assert [d.preview for d in listing] == ["new content", "mid content", "old content"]

    async def test_list_documents_fetches_bodies_for_page_only(self) -> None:
        collection = self._listing_collection()
        listing = await _chroma_store(collection).list_documents(limit=2)

        assert [d.title for d in listing] == ["new", "mid"]
        first, second = collection.get.call_args_list
        assert first.kwargs == {"include": ["metadatas"]}
        assert second.kwargs == {"ids": ["id-new", "id-mid"], "include": ["documents"]}

    async def test_list_documents_on_empty_collection(self) -> None:
        collection = MagicMock()
        collection.get.return_value = {"ids": [], "metadatas": []}
        assert await _chroma_store(collection).list_documents() == []
        assert collection.get.call_count == 1

    def test_unreachable_server_is_provider_error(self) -> None:
        with patch("askdocs.retrieval.chroma_store.chromadb") as chromadb:
            chromadb.HttpClient.side_effect = ValueError("Could not connect to a Chroma server")
            with pytest.raises(ProviderError) as info:
                ChromaDocumentStore(DIM, "docs", host="chroma", port=1)
        assert info.value.retryable is True
        assert info.value.details["provider"] == "chroma"
        assert info.value.details["port"] == 1

    def test_collection_failure_is_provider_error(self) -> None:
        client = MagicMock()
        client.get_or_create_collection.side_effect = ConnectionError("connection refused")
        with pytest.raises(ProviderError):
            ChromaDocumentStore(DIM, "docs", client=client)

    async def test_client_failure_is_provider_error(self) -> None:
        collection = MagicMock()
        collection.count.side_effect = ConnectionError("connection refused")
        with pytest.raises(ProviderError) as info:
            await _chroma_store(collection).search([1.0, 0.0, 0.0], top_k=1)
        assert info.value.retryable is True
        assert info.value.details["provider"] == "chroma"

    async def test_health_check(self) -> None:
        client = MagicMock()
        store = ChromaDocumentStore(DIM, "docs", client=client)
        assert await store.health_check() is True
        client.heartbeat.side_effect = ConnectionError("down")
        assert await store.health_check() is False


# ── Retriever ──────────────────────────────────────────────────────────


class TestSemanticRetriever:
    @pytest.fixture()
    async def filled(self, embedder, store):
        for title, content in [
            ("sky", "The sky is blue."),
            ("grass", "Grass is green."),
            ("sun", "The sun is yellow and bright."),
        ]:
            digest = content_hash(content)
            await store.insert(
                Document(
                    id=document_id(title, digest),
                    title=title,
                    content=content,
                    content_hash=digest,
                    embedding=await embedder.embed(content),
                )
            )
        return store

    async def test_search_ranks_matching_document_first(self, embedder, filled) -> None:
        retriever = SemanticRetriever(embedder, filled)
        results = await retriever.search("What color is the sky?")
        assert results[0].title == "sky"

    async def test_default_k(self, embedder, filled) -> None:
        retriever = SemanticRetriever(embedder, filled, default_k=2)
        assert len(await retriever.search("anything")) == 2

    async def test_explicit_k_overrides_default(self, embedder, filled) -> None:
        retriever = SemanticRetriever(embedder, filled, default_k=2)
        assert len(await retriever.search("anything", k=1)) == 1

    async def test_score_threshold_filters(self, embedder, filled) -> None:
        retriever = SemanticRetriever(embedder, filled, score_threshold=0.99)
        assert await retriever.search("completely unrelated words") == []

    async def test_empty_store_returns_empty(self, embedder, store) -> None:
        assert await SemanticRetriever(embedder, store).search("anything") == []


# ── Context assembly ───────────────────────────────────────────────────


def _hit(title: str, content: str, similarity: float = 0.5) -> SearchResult:
    return SearchResult(title=title, content=content, similarity=similarity)


class TestAssembleContext:
    def test_empty_results_yield_sentinel(self) -> None:
        assert assemble_context([], max_chars=1000) == NO_CONTEXT

    def test_documents_rendered_in_rank_order(self) -> None:
        context = assemble_context([_hit("t1", "first"), _hit("t2", "second")], max_chars=1000)
        assert context == "# Doc 1: t1\nfirst\n\n# Doc 2: t2\nsecond"

    def test_truncates_whole_string(self) -> None:
        hits = [_hit("t1", "a" * 20), _hit("t2", "b" * 100)]
        first = "# Doc 1: t1\n" + "a" * 20
        context = assemble_context(hits, max_chars=len(first) + 30)
        assert len(context) == len(first) + 30
        assert context.startswith(first + "\n\n# Doc 2: t2\n")
        assert context.endswith("b")

    def test_fitting_context_is_untouched(self) -> None:
        hits = [_hit("t1", "short")]
        assert assemble_context(hits, max_chars=10_000) == "# Doc 1: t1\nshort"

    def test_rejects_non_positive_budget(self) -> None:
        with pytest.raises(ValueError):
            assemble_context([_hit("t1", "x")], max_chars=0)


class TestSearchResult:
    def test_str_includes_title_and_content(self) -> None:
        text = str(_hit("guide.md", "Some long content about ML workflows.", 0.9))
        assert "guide.md" in text
        assert "ML workflows" in text
