"""KFP v2 component — Ingest a directory of documents into the document store.

Wraps :func:`askdocs.ingestion.batch.ingest_directory` so the same
dedup-aware ingestion runs as a pipeline step.

Local testing
-------------
    from pipelines.components.ingest import ingest_documents
    ingest_documents.python_func(
        source_path="/tmp/docs",
        chroma_host="localhost",
        chroma_port=8000,
        collection_name="documents",
        metrics=_FakeArtifact("/tmp/metrics"),
    )
"""

from kfp import dsl


@dsl.component(
    base_image="python:3.11-slim",
    packages_to_install=["askdocs"],
)
def ingest_documents(
    source_path: str,
    chroma_host: str,
    chroma_port: int,
    collection_name: str,
    metrics: dsl.Output[dsl.Metrics],
    embedding_provider: str = "local",
    embedding_model: str = "",
    embedding_dimension: int = 0,
    chunked: bool = False,
    chunk_size: int = 800,
    chunk_overlap: int = 100,
) -> str:
    """Load, embed, deduplicate and store every ``.md`` / ``.txt`` file.

    Parameters
    ----------
    source_path:
        Directory of source documents.
    chroma_host / chroma_port:
        Chroma connection details.
    collection_name:
        Target Chroma collection.
    metrics:
        Output Metrics artifact with ingestion counts.
    embedding_provider:
        ``"local"`` | ``"remote"`` (remote reads ``OPENAI_API_KEY`` from the env).
    embedding_model / embedding_dimension:
        Overrides for the provider defaults; empty / 0 keeps the default.
    chunked:
        Store one document per chunk instead of one per file.
    chunk_size / chunk_overlap:
        Chunking parameters (``chunked`` mode only).

    Returns
    -------
    str
        Summary, e.g. ``"Processed 12 file(s): 10 inserted, 2 deduped, 0 failed"``.
    """
    import asyncio
    import logging

    from askdocs.config import Settings
    from askdocs.ingestion.batch import ingest_directory
    from askdocs.service import RAGService

    logging.basicConfig(level=logging.INFO)
    log = logging.getLogger("ingest_documents")

    config = Settings(
        vector_store="chroma",
        chroma_host=chroma_host,
        chroma_port=chroma_port,
        chroma_collection=collection_name,
        embedding_provider=embedding_provider,
        embedding_model=embedding_model or None,
        embedding_dimension=embedding_dimension or None,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )
    service = RAGService.from_settings(config, with_llm=False)
    summary = asyncio.run(ingest_directory(service, source_path, chunked=chunked))

    metrics.log_metric("files_processed", summary.files)
    metrics.log_metric("documents_inserted", summary.inserted)
    metrics.log_metric("documents_deduped", summary.deduped)
    metrics.log_metric("files_failed", summary.failed)

    msg = str(summary)
    log.info(msg)
    return msg
