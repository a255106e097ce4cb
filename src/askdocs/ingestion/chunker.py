"""Fixed-size character chunking with overlap."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel


class Chunk(BaseModel):
    """A window of the source text.

    ``tokens`` is the character count, used as a cheap length/cost proxy.
    ``start`` is the window's offset in the source text.
    """

    content: str
    tokens: int
    start: int = 0


def chunk_text(text: str, size: int = 800, overlap: int = 100) -> list[Chunk]:
    """Split *text* into windows of at most *size* characters.

    Parameters
    ----------
    text:
        Raw text to split.
    size:
        Maximum number of characters per chunk.
    overlap:
        Number of trailing characters of a chunk repeated at the start of
        the next one.  When ``overlap >= size`` the window advances by a
        single character.

    Returns
    -------
    list[Chunk]
        Chunks in source order; ``[]`` for empty input.  Only the last
        chunk may be shorter than *size*.
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")

    step = max(1, size - overlap)
    chunks: list[Chunk] = []
    start = 0
    while start < len(text):
        end = min(len(text), start + size)
        content = text[start:end]
        chunks.append(Chunk(content=content, tokens=len(content), start=start))
        if end == len(text):
            break
        start += step
    return chunks


def join_chunks(chunks: Sequence[Chunk]) -> str:
    """Rebuild the source text from *chunks*, dropping the overlapping parts."""
    parts: list[str] = []
    covered = 0
    for chunk in chunks:
        parts.append(chunk.content[covered - chunk.start :])
        covered = chunk.start + len(chunk.content)
    return "".join(parts)
