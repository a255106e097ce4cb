"""
Retrieval — document storage, vector search and context assembly.

This module wraps the vector store behind a clean interface so that
the service layer never needs to know which DB is backing retrieval.

Public surface
--------------
- :class:`DocumentStore` — abstract backend (subclass for pgvector, Qdrant, …).
- :class:`ChromaDocumentStore` — default Chroma backend.
- :class:`InMemoryDocumentStore` — exact-search backend for development and tests.
- :class:`SemanticRetriever` — embeds a question and runs the search.
- :func:`assemble_context` — bounded prompt context from ranked hits.
- :class:`Document`, :class:`DocumentSummary`, :class:`SearchResult` — data models.
"""

from askdocs.retrieval.base import DocumentStore
from askdocs.retrieval.context import NO_CONTEXT, assemble_context
from askdocs.retrieval.memory_store import InMemoryDocumentStore
from askdocs.retrieval.models import Document, DocumentSummary, SearchResult
from askdocs.retrieval.retriever import SemanticRetriever

__all__ = [
    "ChromaDocumentStore",
    "Document",
    "DocumentStore",
    "DocumentSummary",
    "InMemoryDocumentStore",
    "NO_CONTEXT",
    "SearchResult",
    "SemanticRetriever",
    "assemble_context",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaDocumentStore to avoid pulling in chromadb at import time."""
    if name == "ChromaDocumentStore":
        from askdocs.retrieval.chroma_store import ChromaDocumentStore

        return ChromaDocumentStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
