"""FastAPI application exposing ingestion and question answering over HTTP."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from askdocs.config import settings
from askdocs.errors import AskDocsError, ConfigError
from askdocs.retrieval.models import DocumentSummary
from askdocs.service import AskResult, RAGService

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Document to ingest; both fields are required (checked by the service)."""

    title: str | None = None
    content: str | None = None


class IngestResponse(BaseModel):
    ok: bool = True
    id: str
    deduped: bool = False


class ChunkedIngestResponse(BaseModel):
    ok: bool = True
    chunks: int
    inserted: int
    deduped: int
    ids: list[str]
    provider: str


class AskRequest(BaseModel):
    """Incoming question; ``q`` is accepted as an alias."""

    question: str | None = Field(default=None, validation_alias=AliasChoices("question", "q"))
    top_k: int | None = Field(default=None, ge=1, le=50)


class OkResponse(BaseModel):
    ok: bool = True


# ── Lifespan & dependencies ───────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared :class:`RAGService` once, unless one was injected."""
    logging.basicConfig(level=settings.log_level)
    if app.state.service is None:
        logger.info("Building pipeline service (store=%s)", settings.vector_store)
        app.state.service = RAGService.from_settings(settings)
    yield
    logger.info("Shutting down")


def get_service(request: Request) -> RAGService:
    service = request.app.state.service
    if service is None:
        raise ConfigError("Server not configured")
    return service


# ── Routes ────────────────────────────────────────────────────────────
router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(service: RAGService = Depends(get_service)) -> JSONResponse:
    """Readiness probe; 503 while the document store is unreachable."""
    if await service.store.health_check():
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready"})
    logger.warning("Readiness check failed: %s unavailable", type(service.store).__name__)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable"},
    )


@router.post("/ingest", response_model=IngestResponse)
async def ingest(body: IngestRequest, service: RAGService = Depends(get_service)) -> IngestResponse:
    """Embed and store one document; duplicates return the existing id."""
    result = await service.ingest(body.title, body.content)
    return IngestResponse(id=result.id, deduped=result.deduped)


@router.post("/ingest/chunked", response_model=ChunkedIngestResponse)
async def ingest_chunked(
    body: IngestRequest, service: RAGService = Depends(get_service)
) -> ChunkedIngestResponse:
    """Split a document into chunks and store each one."""
    results = await service.ingest_chunked(body.title, body.content)
    deduped = sum(1 for r in results if r.deduped)
    return ChunkedIngestResponse(
        chunks=len(results),
        inserted=len(results) - deduped,
        deduped=deduped,
        ids=[r.id for r in results],
        provider=service.embedder.provider,
    )


@router.post("/ask", response_model=AskResult)
async def ask(body: AskRequest, service: RAGService = Depends(get_service)) -> AskResult:
    """Answer a question from the stored documents."""
    return await service.ask(body.question, top_k=body.top_k)


@router.get("/documents", response_model=list[DocumentSummary])
async def list_documents(
    limit: int = Query(default=100, ge=1, le=1000),
    service: RAGService = Depends(get_service),
) -> list[DocumentSummary]:
    """Most recent documents first."""
    return await service.list_documents(limit=limit)


@router.delete("/documents/{doc_id}", response_model=OkResponse)
async def delete_document(doc_id: str, service: RAGService = Depends(get_service)) -> OkResponse:
    """Delete a document; unknown ids succeed too."""
    await service.delete(doc_id)
    return OkResponse()


# ── Error handling ────────────────────────────────────────────────────
async def askdocs_error_handler(request: Request, exc: AskDocsError) -> JSONResponse:
    if exc.status_code < 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.category, exc.message)
    else:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.category, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s -> malformed request", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "message": "Malformed request",
                "category": "validation",
                "status_code": 400,
                "retryable": False,
                "details": {"errors": jsonable_encoder(exc.errors())},
            }
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s -> unhandled error", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": "Internal server error",
                "category": "internal",
                "status_code": 500,
                "retryable": False,
                "details": {},
            }
        },
    )


def create_app(service: RAGService | None = None) -> FastAPI:
    """Create the application; pass *service* to skip building one from settings."""
    application = FastAPI(
        title="askdocs",
        version="0.1.0",
        description="Retrieval-augmented question answering over ingested documents.",
        lifespan=lifespan,
    )
    application.state.service = service
    application.add_exception_handler(AskDocsError, askdocs_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
    application.include_router(router)
    return application


app = create_app()
