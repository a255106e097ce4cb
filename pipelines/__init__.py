"""
Pipelines — Kubeflow Pipelines (KFP v2) definitions for batch ingestion.

The component installs ``askdocs`` in its own container and reuses the
same dedup-aware ingestion as ``python -m askdocs.ingestion.batch``.
"""
