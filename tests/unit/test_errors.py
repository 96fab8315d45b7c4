"""Unit tests for the error hierarchy and its HTTP status mapping."""

from __future__ import annotations

import pytest

from src.api.middleware import status_code_for
from src.utils.errors import (
    BenefitsRAGError,
    BlobFetchError,
    ConfigurationError,
    DocumentNotFoundError,
    ExtractionError,
    IndexWriteError,
    RAGError,
    StoreWriteError,
    UnsupportedTypeError,
)


class TestErrorHierarchy:
    def test_str_includes_provider(self) -> None:
        err = IndexWriteError(message="upsert failed", provider_name="chromadb")
        assert str(err) == "[chromadb] upsert failed"
        assert err.message == "upsert failed"

    def test_str_without_provider(self) -> None:
        assert str(DocumentNotFoundError("Document not found: d1")) == "Document not found: d1"

    def test_default_messages(self) -> None:
        assert BlobFetchError().message == "Failed to download file"
        assert UnsupportedTypeError().message == "Unsupported file type"

    @pytest.mark.parametrize(
        ("error_cls", "parent"),
        [
            (UnsupportedTypeError, ExtractionError),
            (IndexWriteError, RAGError),
            (StoreWriteError, BenefitsRAGError),
            (ConfigurationError, BenefitsRAGError),
        ],
    )
    def test_subclassing(self, error_cls: type, parent: type) -> None:
        assert issubclass(error_cls, parent)


class TestStatusCodeMapping:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (DocumentNotFoundError(), 404),
            (ExtractionError(), 422),
            (UnsupportedTypeError(), 422),
            (BlobFetchError(), 500),
            (IndexWriteError(), 500),
        ],
    )
    def test_mapping(self, error: BenefitsRAGError, status: int) -> None:
        assert status_code_for(error) == status
