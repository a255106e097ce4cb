"""Batch ingestion of a directory of ``.md`` / ``.txt`` files.

Run
---
    python -m askdocs.ingestion.batch docs
    python -m askdocs.ingestion.batch docs --chunked

Each file becomes one document titled after its file name (or, with
``--chunked``, one document per chunk).  Re-running over unchanged files
is a no-op thanks to deduplication.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import BaseModel

from askdocs.config import Settings, settings
from askdocs.errors import AskDocsError
from askdocs.ingestion.loader import load_directory
from askdocs.service import RAGService

logger = logging.getLogger(__name__)


class BatchSummary(BaseModel):
    files: int = 0
    inserted: int = 0
    deduped: int = 0
    failed: int = 0

    def __str__(self) -> str:  # noqa: D105
        return (
            f"Processed {self.files} file(s): {self.inserted} inserted, "
            f"{self.deduped} deduped, {self.failed} failed"
        )


async def ingest_directory(service: RAGService, path: str | Path, *, chunked: bool = False) -> BatchSummary:
    """Ingest every text file under *path* through *service*.

    A failing file is logged and counted; the remaining files are still
    processed.  Configuration and dimension errors abort the run.
    """
    summary = BatchSummary()
    files = load_directory(path)
    if not files:
        logger.info("No .md or .txt files found under %s", path)
        return summary

    logger.info("Found %d file(s) under %s", len(files), path)
    for title, content in files:
        summary.files += 1
        try:
            if chunked:
                results = await service.ingest_chunked(title, content)
            else:
                results = [await service.ingest(title, content)]
        except AskDocsError as exc:
            if exc.category in ("config", "dimension"):
                raise
            logger.error("Insert failed for %s: %s", title, exc.message)
            summary.failed += 1
            continue

        new = sum(1 for r in results if not r.deduped)
        summary.inserted += new
        summary.deduped += len(results) - new
        logger.info("%s: %d inserted, %d deduped", title, new, len(results) - new)

    logger.info("%s", summary)
    return summary


def main(argv: list[str] | None = None, *, config: Settings = settings) -> int:
    parser = argparse.ArgumentParser(description="Ingest a directory of text documents")
    parser.add_argument("directory", nargs="?", default="docs", help="Folder containing .md / .txt files")
    parser.add_argument("--chunked", action="store_true", help="Store one document per chunk")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.log_level)

    if not Path(args.directory).is_dir():
        logger.error("Docs folder not found: %s", args.directory)
        return 1

    try:
        service = RAGService.from_settings(config, with_llm=False)
        summary = asyncio.run(ingest_directory(service, args.directory, chunked=args.chunked))
    except AskDocsError as exc:
        logger.error("Ingestion aborted: %s", exc.message)
        return 1
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
