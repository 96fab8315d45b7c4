"""RAG data models for the tenant-scoped benefits document index.

Defines Pydantic v2 models for source documents, retrievable chunks, vector
index entries, search results and ingestion outcomes.

Lifecycle overview:

    1. INGESTION: a tenant's uploaded document (PDF or plain text) is
       extracted and split into overlapping chunks.
    2. EMBEDDING: each chunk's content is turned into a numeric vector when
       an embedding model is configured.
    3. STORAGE: every chunk is persisted to the chunk store; only chunks
       with a non-empty embedding are upserted into the vector index.
    4. RETRIEVAL: a query is embedded and matched against the index, or,
       with no embedding available, matched by keyword against the
       tenant's chunks.

Chunks and documents are always scoped to one company (tenant).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def chunk_id_for(document_id: str, index: int) -> str:
    """Return the deterministic id of the *index*-th chunk of a document."""
    return f"{document_id}_chunk_{index}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStatus(str, Enum):
    """Lifecycle status of a :class:`Document`."""

    PENDING = "pending"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


# Statuses picked up by the batch driver.
RETRYABLE_STATUSES: tuple[DocumentStatus, ...] = (
    DocumentStatus.PENDING,
    DocumentStatus.UPLOADED,
    DocumentStatus.FAILED,
)


# ---------------------------------------------------------------------------
# Document -- the tenant-owned source artifact.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """A tenant-owned source document.

    Created on upload by the surrounding product; only the pipeline mutates
    ``status``, ``content``, ``chunk_count``, ``rag_processed`` and
    ``error``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document identifier.")
    company_id: str = Field(description="Owning tenant.")
    title: str = Field(default="", description="Human-readable document name.")
    file_url: str | None = Field(default=None, description="Location of the uploaded file.")
    file_type: str = Field(default="application/pdf", description="Declared media type.")
    status: DocumentStatus = Field(default=DocumentStatus.PENDING)
    content: str | None = Field(default=None, description="Cached extracted full text.")
    chunk_count: int = Field(default=0, ge=0)
    rag_processed: bool = Field(default=False)
    error: str | None = Field(default=None, description="Last processing error message.")
    category: str | None = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    created_by: str | None = Field(default=None, description="User id of the uploader.")
    created_at: datetime = Field(default_factory=_utcnow)
    processed_at: datetime | None = Field(default=None)


# ---------------------------------------------------------------------------
# DocumentChunk -- the atomic retrievable unit.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded text segment of a document, the unit of embedding and retrieval.

    ``id`` is deterministic (see :func:`chunk_id_for`) so re-ingesting a
    document overwrites its chunks instead of duplicating them.
    ``embedding`` is empty when no embedding model was available at ingest
    time.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Deterministic id: {document_id}_chunk_{index}.")
    document_id: str = Field(description="Parent document id.")
    company_id: str = Field(description="Owning tenant; equals the parent document's tenant.")
    content: str = Field(description="The chunk's textual content.")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form provenance: title, section, page_number, tags, category, ...",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    embedding: list[float] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Vector index records
# ---------------------------------------------------------------------------
class VectorIndexEntry(BaseModel):
    """A (chunk id, embedding) pair pushed to the vector index."""

    model_config = ConfigDict(frozen=True)

    id: str
    embedding: list[float] = Field(min_length=1)
    company_id: str | None = None


class NearestNeighbor(BaseModel):
    """One neighbour returned by the index, ordered by ascending distance."""

    model_config = ConfigDict(frozen=True)

    id: str
    distance: float


# ---------------------------------------------------------------------------
# SearchResult -- request-scoped retrieval output.
# ---------------------------------------------------------------------------
class SearchResult(BaseModel):
    """A chunk paired with its retrieval score.

    The score scale depends on ``mode``: for ``"vector"`` it is the raw
    index distance (lower is closer); for ``"keyword"`` it is the number of
    case-insensitive occurrences of the query (higher is better).  Scores
    from different modes are not comparable.
    """

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk
    score: float
    mode: Literal["vector", "keyword"] = "vector"


# ---------------------------------------------------------------------------
# IngestionResult -- outcome of indexing one document's chunks.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of one document's chunk persistence and vector upsert."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    chunks_processed: int = Field(default=0, ge=0)
    vectors_stored: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0)
