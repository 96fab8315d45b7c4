"""Transient extraction and chunking models.

These exist only while a document is being ingested; they are never
persisted as named entities.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExtractedImage(BaseModel):
    """An embedded raster image re-encoded as a PNG data URI."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    data_uri: str = Field(description="data:image/png;base64,<payload>")


class ParsedPage(BaseModel):
    """One page of extracted text plus the images it paints."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    text: str = ""
    images: list[str] = Field(default_factory=list, description="PNG data URIs.")


class ParsedDocument(BaseModel):
    """Page-structured extraction output for a whole document."""

    model_config = ConfigDict(frozen=True)

    full_text: str = ""
    pages: list[ParsedPage] = Field(default_factory=list)
    images: list[ExtractedImage] = Field(default_factory=list)
    page_count: int = Field(default=0, ge=0)


class PageChunk(BaseModel):
    """A chunk produced by page-aware chunking, with its page provenance."""

    model_config = ConfigDict(frozen=True)

    text: str
    page_number: int = Field(ge=1)
    images: list[str] = Field(default_factory=list)
