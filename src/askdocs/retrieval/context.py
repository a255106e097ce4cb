"""Context assembly — turn ranked search hits into a bounded prompt block."""

from __future__ import annotations

from collections.abc import Sequence

from askdocs.retrieval.models import SearchResult

NO_CONTEXT = "No matching documents were found."


def format_result(index: int, result: SearchResult) -> str:
    return f"# Doc {index}: {result.title}\n{result.content}"


def assemble_context(results: Sequence[SearchResult], max_chars: int) -> str:
    """Concatenate *results* in rank order, truncated to *max_chars*.

    Truncation applies to the assembled string as a whole: leading
    documents that fit are kept intact and only the tail of the first
    overflowing document is cut.  An empty result set yields
    :data:`NO_CONTEXT`, never an empty string.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if not results:
        return NO_CONTEXT
    context = "\n\n".join(format_result(i, r) for i, r in enumerate(results, 1))
    return context[:max_chars]
