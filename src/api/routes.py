"""FastAPI routes for document processing and tenant-scoped search.

Route map (all prefixed with ``/api/v1``):

    /health                                   GET   Health + embedding capability
    /documents/{document_id}/process          POST  Process one document
    /companies/{company_id}/documents/process POST  Process a tenant's backlog
    /companies/{company_id}/search            POST  Search a tenant's chunks

Services are resolved from ``app.state`` (populated at startup by
``src.main._build_all``) through ``Annotated`` ``Depends`` aliases.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request

from src.api.schemas import (
    ErrorResponse,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from src.config.settings import Settings
from src.models.pipeline import DocumentProcessingResult
from src.services.ingestion.document_pipeline import DocumentPipeline
from src.services.rag_service import RAGService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_rag_service(request: Request) -> RAGService:
    """Return the RAG orchestrator from application state."""
    return request.app.state.rag_service


def _get_document_pipeline(request: Request) -> DocumentPipeline:
    """Return the document pipeline driver from application state."""
    return request.app.state.document_pipeline


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


RAGServiceDep = Annotated[RAGService, Depends(_get_rag_service)]
PipelineDep = Annotated[DocumentPipeline, Depends(_get_document_pipeline)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(rag_service: RAGServiceDep) -> HealthResponse:
    """Return liveness and whether vector search is available."""
    return HealthResponse(status="ok", embedding_available=rag_service.embedding_available)


@router.post(
    "/documents/{document_id}/process",
    response_model=DocumentProcessingResult,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Process one uploaded document",
)
async def process_document(document_id: str, pipeline: PipelineDep) -> DocumentProcessingResult:
    """Fetch, extract, chunk and index a document.

    Failures propagate to ``ErrorHandlingMiddleware`` after the document has
    been marked ``failed``.
    """
    return await pipeline.process_document(document_id)


@router.post(
    "/companies/{company_id}/documents/process",
    response_model=list[DocumentProcessingResult],
    summary="Process a company's pending, uploaded and failed documents",
)
async def process_company_documents(
    company_id: str,
    pipeline: PipelineDep,
) -> list[DocumentProcessingResult]:
    return await pipeline.process_company_documents(company_id)


@router.post(
    "/companies/{company_id}/search",
    response_model=SearchResponse,
    summary="Search a company's indexed documents",
)
async def search(
    company_id: str,
    body: SearchRequest,
    rag_service: RAGServiceDep,
    settings: SettingsDep,
) -> SearchResponse:
    """Vector search when an embedding model is available, keyword search otherwise."""
    limit = body.limit or settings.search_default_limit
    results = await rag_service.search(body.query, company_id, limit)

    if results:
        mode = results[0].mode
    else:
        mode = "vector" if rag_service.embedding_available else "keyword"

    _logger.info(
        "search_request",
        company_id=company_id,
        mode=mode,
        limit=limit,
        results=len(results),
    )
    return SearchResponse(
        query=body.query,
        mode=mode,
        results=[SearchResultItem.from_result(r) for r in results],
        context=rag_service.generate_context(results, max_chars=settings.context_max_chars),
    )
