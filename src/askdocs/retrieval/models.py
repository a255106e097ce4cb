"""Domain models for stored documents and retrieval results."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

PREVIEW_CHARS = 80


class Document(BaseModel):
    """A stored row: raw content, its dedup hash and its embedding.

    Attributes
    ----------
    id:
        Stable identifier derived from the dedup key, see
        :func:`askdocs.ingestion.dedup.document_id`.
    title:
        Human-readable title; part of the dedup key.
    content:
        Raw text that was embedded.
    content_hash:
        MD5 hex digest of ``content``.
    embedding:
        L2-normalised vector whose width equals the store's dimension.
    created_at:
        UTC timestamp of ingestion.
    """

    id: str
    title: str
    content: str
    content_hash: str
    embedding: list[float]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> DocumentSummary:
        return DocumentSummary(
            id=self.id,
            title=self.title,
            preview=self.content[:PREVIEW_CHARS],
            created_at=self.created_at,
        )


class DocumentSummary(BaseModel):
    """Listing row — everything but the content body and the vector."""

    id: str
    title: str
    preview: str
    created_at: datetime


class SearchResult(BaseModel):
    """A single nearest-neighbour hit."""

    id: str | None = None
    title: str
    content: str
    similarity: float

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.title} {self.similarity:.3f}] {self.content[:120]}…"
