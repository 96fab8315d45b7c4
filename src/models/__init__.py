"""Domain models -- re-exports all public model classes.

    - rag.py         -- documents, chunks, index entries, search results
    - extraction.py  -- transient parsed pages / page-aware chunks
    - pipeline.py    -- per-document batch outcomes
"""

from __future__ import annotations

from src.models.extraction import ExtractedImage, PageChunk, ParsedDocument, ParsedPage
from src.models.pipeline import DocumentProcessingResult
from src.models.rag import (
    RETRYABLE_STATUSES,
    Document,
    DocumentChunk,
    DocumentStatus,
    IngestionResult,
    NearestNeighbor,
    SearchResult,
    VectorIndexEntry,
    chunk_id_for,
)

__all__ = [
    "RETRYABLE_STATUSES",
    "Document",
    "DocumentChunk",
    "DocumentProcessingResult",
    "DocumentStatus",
    "ExtractedImage",
    "IngestionResult",
    "NearestNeighbor",
    "PageChunk",
    "ParsedDocument",
    "ParsedPage",
    "SearchResult",
    "VectorIndexEntry",
    "chunk_id_for",
]
