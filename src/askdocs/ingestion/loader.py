"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import DirectoryLoader, TextLoader

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ("**/*.md", "**/*.txt")


def load_directory(
    path: str | Path,
    patterns: tuple[str, ...] = DEFAULT_PATTERNS,
) -> list[tuple[str, str]]:
    """Recursively load text documents from *path*.

    Parameters
    ----------
    path:
        Root directory containing source documents.
    patterns:
        File-matching globs forwarded to ``DirectoryLoader``.

    Returns
    -------
    list[tuple[str, str]]
        ``(title, content)`` pairs, where the title is the file name and
        the content is stripped.  Empty files are skipped.
    """
    found: list[tuple[str, str, str]] = []
    for pattern in patterns:
        loader = DirectoryLoader(
            str(path),
            glob=pattern,
            loader_cls=TextLoader,  # type: ignore[arg-type]
            loader_kwargs={"encoding": "utf-8"},
        )
        for doc in loader.load():
            content = doc.page_content.strip()
            source = doc.metadata.get("source", "")
            if not content:
                logger.info("Skipping empty file %s", source)
                continue
            found.append((source, Path(source).name, content))
    found.sort()
    return [(title, content) for _, title, content in found]
