"""
askdocs — retrieval-augmented question answering over ingested documents.

Documents are chunked, embedded (local sentence-transformer or remote
embeddings API), deduplicated and stored; questions are embedded, matched
against the store and answered by a chat model grounded in the matches.
"""

__version__ = "0.1.0"
