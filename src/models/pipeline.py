"""Batch pipeline outcome models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DocumentProcessingResult(BaseModel):
    """Outcome of running one document through the pipeline driver.

    A failed document carries ``success=False`` and the error message; the
    batch driver never aborts on an individual failure.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    success: bool
    chunks_processed: int = Field(default=0, ge=0)
    vectors_stored: int = Field(default=0, ge=0)
    error: str | None = None
