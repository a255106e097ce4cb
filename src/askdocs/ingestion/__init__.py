"""
Ingestion — chunking, embedding, deduplication and batch loading.

This module is responsible for turning raw text into embedded,
deduplicated documents ready to be stored in the document store.
"""
