"""Pydantic request/response schemas for the document pipeline API.

Request schemas end with ``Request``, response schemas with ``Response``.
Pipeline results are returned as
:class:`~src.models.pipeline.DocumentProcessingResult` directly.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from src.models.rag import SearchResult


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    embedding_available: bool


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class SearchRequest(BaseModel):
    """Query against one company's indexed documents."""

    query: str = Field(..., min_length=1, max_length=1000)
    limit: int | None = Field(default=None, ge=1, le=50)


class SearchResultItem(BaseModel):
    """A single retrieved chunk."""

    chunk_id: str
    document_id: str
    content: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: SearchResult) -> SearchResultItem:
        return cls(
            chunk_id=result.chunk.id,
            document_id=result.chunk.document_id,
            content=result.chunk.content,
            score=result.score,
            metadata=result.chunk.metadata,
        )


class SearchResponse(BaseModel):
    """Search results plus the formatted prompt context.

    ``mode`` says how ``score`` is to be read: a distance for ``"vector"``
    (lower is closer), an occurrence count for ``"keyword"``.
    """

    query: str
    mode: Literal["vector", "keyword"]
    results: list[SearchResultItem] = Field(default_factory=list)
    context: str = ""
