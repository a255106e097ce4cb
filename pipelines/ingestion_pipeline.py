"""KFP v2 pipeline — document ingestion into the askdocs document store.

Compile
-------
    python -m pipelines.ingestion_pipeline --compile

then submit the YAML to a KFP-compatible backend.
"""

from kfp import compiler, dsl

from pipelines.components.ingest import ingest_documents


@dsl.pipeline(
    name="askdocs-ingestion-pipeline",
    description=(
        "Load a directory of documents, embed them and store them in Chroma. "
        "Already-ingested (title, content) pairs are skipped."
    ),
)
def ingestion_pipeline(
    # ── Source ──────────────────────────────────────────────────────
    source_path: str = "/data/documents",
    # ── Embedding ──────────────────────────────────────────────────
    embedding_provider: str = "local",
    embedding_model: str = "",
    embedding_dimension: int = 0,
    # ── Chunking ───────────────────────────────────────────────────
    chunked: bool = False,
    chunk_size: int = 800,
    chunk_overlap: int = 100,
    # ── Vector DB ──────────────────────────────────────────────────
    chroma_host: str = "chroma.kubeflow.svc.cluster.local",
    chroma_port: int = 8000,
    collection_name: str = "documents",
) -> None:
    """Single-step ingestion; see ``ingest_documents`` for the parameters."""
    ingest_documents(
        source_path=source_path,
        chroma_host=chroma_host,
        chroma_port=chroma_port,
        collection_name=collection_name,
        embedding_provider=embedding_provider,
        embedding_model=embedding_model,
        embedding_dimension=embedding_dimension,
        chunked=chunked,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="askdocs ingestion pipeline")
    parser.add_argument(
        "--compile",
        action="store_true",
        help="Compile pipeline to YAML",
    )
    parser.add_argument(
        "--output",
        default="pipelines/compiled/ingestion_pipeline.yaml",
        help="Output path for compiled YAML",
    )
    args = parser.parse_args()

    if args.compile:
        compiler.Compiler().compile(ingestion_pipeline, args.output)
        print(f"Pipeline compiled → {args.output}")
