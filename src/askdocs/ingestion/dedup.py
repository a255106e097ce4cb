"""Content hashing and duplicate detection.

The dedup key is ``(title, content_hash)``: identical content under the
same title is ingested once, while the same content under another title
is a separate document.  Content is hashed raw, so whitespace variants
are distinct.
"""

from __future__ import annotations

import hashlib
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from askdocs.retrieval.base import DocumentStore

# Namespace for ids derived from dedup keys.
DOCUMENT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "askdocs/documents")


def content_hash(content: str) -> str:
    """MD5 hex digest of the raw UTF-8 content."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def document_id(title: str, digest: str) -> str:
    """Stable id for a dedup key, so that the same key always maps to one row."""
    return str(uuid.uuid5(DOCUMENT_NAMESPACE, f"{title}\x00{digest}"))


class Deduplicator:
    """Read-only duplicate check against a :class:`DocumentStore`."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def find_existing(self, title: str, content: str) -> str | None:
        """Return the id already stored for ``(title, content)``, if any."""
        return await self._store.find_by_key(title, content_hash(content))

    async def is_duplicate(self, title: str, content: str) -> bool:
        return await self.find_existing(title, content) is not None
