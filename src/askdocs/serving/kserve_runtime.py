"""KServe custom model runtime answering questions over the document store."""

from __future__ import annotations

import logging
from typing import Any

import kserve
from kserve.errors import InvalidInput

from askdocs.config import settings
from askdocs.errors import ValidationError
from askdocs.service import RAGService

logger = logging.getLogger(__name__)


class AskDocsModel(kserve.Model):
    """KServe-compatible model wrapping :meth:`RAGService.ask`.

    Deploy it as an ``InferenceService`` to answer questions through the
    KServe v1 ``predict`` protocol.
    """

    def __init__(self, name: str = "askdocs", service: RAGService | None = None) -> None:
        super().__init__(name)
        self.service = service
        self.ready = service is not None

    def load(self) -> bool:
        """Build the pipeline service (called once at startup)."""
        if self.service is None:
            self.service = RAGService.from_settings(settings)
        self.ready = True
        return self.ready

    async def predict(
        self,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        response_headers: dict[str, str] | None = None,
    ) -> dict:
        """Answer every instance in *payload*.

        Parameters
        ----------
        payload:
            ``{"instances": [{"question": "..."}]}``.
        headers:
            Optional HTTP headers.

        Returns
        -------
        dict
            ``{"predictions": [{"answer": "...", "sources": [...]}]}``

        Raises
        ------
        InvalidInput
            When ``instances`` is missing or an instance has no string
            question; KServe answers these with HTTP 400.
        """
        instances = payload.get("instances") if isinstance(payload, dict) else None
        if not isinstance(instances, list):
            raise InvalidInput("Payload must contain an 'instances' list")

        predictions = []
        for i, instance in enumerate(instances):
            question = instance.get("question") if isinstance(instance, dict) else instance
            if not isinstance(question, str):
                raise InvalidInput(f"instances[{i}]: 'question' must be a string")
            try:
                result = await self.service.ask(question)
            except ValidationError as exc:
                raise InvalidInput(f"instances[{i}]: {exc.message}") from exc
            predictions.append(result.model_dump())

        logger.info("Answered %d question(s)", len(predictions))
        return {"predictions": predictions}


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    model = AskDocsModel()
    model.load()
    kserve.ModelServer().start([model])
