"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

# Default (model, dimension) per embedding provider.
EMBEDDING_DEFAULTS: dict[str, tuple[str, int]] = {
    "local": ("sentence-transformers/all-MiniLM-L6-v2", 384),
    "remote": ("text-embedding-3-small", 1536),
}


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_provider: Literal["local", "remote"] = Field(
        default="local",
        description="'local' runs a sentence-transformer in-process, 'remote' calls an embeddings API",
    )
    embedding_model: str | None = Field(default=None, description="Overrides the provider's default model")
    embedding_dimension: int | None = Field(default=None, description="Overrides the provider's default width")
    model_cache_dir: str = ".transformers-cache"
    embedding_batch_size: int = 64

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or any OpenAI-compatible provider)")
    openai_base_url: str = Field(
        default="",
        description=(
            "Base URL for the OpenAI-compatible API. Leave empty to use OpenAI cloud. "
            "Point it at Groq, vLLM or any other compatible endpoint otherwise."
        ),
    )
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_temperature: float = 0.1
    request_timeout: float = 30.0

    # Vector store
    vector_store: Literal["chroma", "memory"] = "chroma"
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "documents"

    # Pipeline
    chunk_size: int = 800
    chunk_overlap: int = 100
    top_k: int = 5
    score_threshold: float | None = Field(default=None, description="Minimum similarity a retrieved document must reach")
    max_context_chars: int = 8000

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def resolved_embedding_model(self) -> str:
        return self.embedding_model or EMBEDDING_DEFAULTS[self.embedding_provider][0]

    @property
    def resolved_embedding_dimension(self) -> int:
        return self.embedding_dimension or EMBEDDING_DEFAULTS[self.embedding_provider][1]


# Singleton — import `settings` wherever needed.
settings = Settings()
