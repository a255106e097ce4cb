"""Error taxonomy shared by every layer of the pipeline.

Each error carries a stable ``category`` so that callers (HTTP handlers,
the KServe runtime, the batch CLI) can decide how to surface it without
inspecting messages:

* :class:`ConfigError` — missing credentials or model artifacts. Fatal.
* :class:`ValidationError` — missing / malformed request fields. Client error.
* :class:`ProviderError` — embedding, completion or store call failed.
  ``retryable`` tells the caller whether repeating the request may help.
* :class:`DimensionError` — embedder and store disagree on vector width.
"""

from __future__ import annotations

from typing import Any


class AskDocsError(Exception):
    """Base exception for all pipeline errors."""

    category = "internal"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.retryable = retryable
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to the JSON error body."""
        return {
            "error": {
                "message": self.message,
                "category": self.category,
                "status_code": self.status_code,
                "retryable": self.retryable,
                "details": self.details,
            }
        }


class ConfigError(AskDocsError):
    """Required credentials or model artifacts are absent or unusable."""

    category = "config"


class ValidationError(AskDocsError):
    """A request is missing a field or carries an unusable value."""

    category = "validation"
    status_code = 400


class ProviderError(AskDocsError):
    """An upstream provider (embeddings, chat model, vector store) failed."""

    category = "provider"

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if provider:
            details["provider"] = provider
        super().__init__(message, retryable=retryable, details=details)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 503 if self.retryable else 502


class DimensionError(AskDocsError):
    """A vector's width does not match the configured column width."""

    category = "dimension"

    def __init__(self, expected: int, actual: int, *, where: str = "vector") -> None:
        super().__init__(
            f"{where} has dimension {actual}, expected {expected}",
            details={"expected_dimension": expected, "actual_dimension": actual},
        )
        self.expected = expected
        self.actual = actual


def map_openai_error(exc: Exception, *, provider: str) -> AskDocsError:
    """Translate an ``openai`` SDK exception into the pipeline taxonomy.

    Rate limits, timeouts, connection drops and 5xx responses are
    retryable; bad credentials are a configuration problem; anything else
    the provider rejected is a non-retryable provider failure.
    """
    import openai

    message = f"{provider} request failed: {exc}"
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ConfigError(f"{provider} rejected the configured credentials: {exc}")
    if isinstance(
        exc,
        (openai.RateLimitError, openai.APITimeoutError, openai.APIConnectionError, openai.InternalServerError),
    ):
        return ProviderError(message, provider=provider, retryable=True)
    if isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        return ProviderError(message, provider=provider, retryable=True)
    return ProviderError(message, provider=provider)
