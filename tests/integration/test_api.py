"""Integration tests for FastAPI API endpoints using TestClient.

The app is created with pre-built components (in-memory stores, a fake
vector index and a deterministic embedding provider), so the full request
path runs through routes, middleware and services without external I/O.
"""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.config.settings import Settings
from src.main import create_app
from src.models.rag import DocumentStatus
from src.services.ingestion.document_pipeline import DocumentPipeline
from src.services.rag_service import RAGService

_PLAN_TEXT = (
    "Dental coverage includes two cleanings per year. "
    "Vision benefits reimburse one pair of glasses annually."
)


def _test_settings() -> Settings:
    return Settings(openai_api_key="", app_env="test", search_default_limit=5)


def _client(components: dict[str, Any]) -> TestClient:
    return TestClient(create_app(app_settings=_test_settings(), components=components))


@pytest.fixture
def vector_components(rag_service, document_pipeline, document_store, blob_fetcher, notifier):
    return {
        "rag_service": rag_service,
        "document_pipeline": document_pipeline,
        "document_store": document_store,
        "blob_fetcher": blob_fetcher,
        "notifier": notifier,
    }


@pytest.fixture
def keyword_components(keyword_rag_service, document_store, blob_fetcher, notifier):
    pipeline = DocumentPipeline(
        document_store=document_store,
        blob_fetcher=blob_fetcher,
        rag_service=keyword_rag_service,
        notifier=notifier,
    )
    return {
        "rag_service": keyword_rag_service,
        "document_pipeline": pipeline,
        "document_store": document_store,
    }


def _seed_text_document(document_store, blob_fetcher, document_factory, document_id="doc1", company_id="comp1"):  # noqa: ANN001, ANN202
    doc = document_factory(
        document_id,
        company_id,
        file_type="text/plain",
        file_url=f"https://files.example.com/{document_id}.txt",
    )
    document_store.documents[doc.id] = doc
    blob_fetcher.blobs[doc.file_url] = _PLAN_TEXT.encode()
    return doc


# ======================================================================
# Health
# ======================================================================


class TestHealth:
    def test_vector_mode(self, vector_components) -> None:
        with _client(vector_components) as client:
            response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "embedding_available": True}

    def test_keyword_mode(self, keyword_components) -> None:
        with _client(keyword_components) as client:
            response = client.get("/api/v1/health")
        assert response.json()["embedding_available"] is False


# ======================================================================
# Document processing
# ======================================================================


class TestProcessDocument:
    def test_success(self, vector_components, document_store, blob_fetcher, document_factory) -> None:
        _seed_text_document(document_store, blob_fetcher, document_factory)

        with _client(vector_components) as client:
            response = client.post("/api/v1/documents/doc1/process")

        assert response.status_code == 200
        body = response.json()
        assert body["document_id"] == "doc1"
        assert body["success"] is True
        assert body["chunks_processed"] >= 1
        assert body["vectors_stored"] == body["chunks_processed"]
        assert document_store.documents["doc1"].status == DocumentStatus.PROCESSED

    def test_unknown_document_404(self, vector_components) -> None:
        with _client(vector_components) as client:
            response = client.post("/api/v1/documents/ghost/process")

        assert response.status_code == 404
        assert response.json() == {
            "error": "DocumentNotFoundError",
            "detail": "Document not found: ghost",
        }

    def test_unsupported_type_422(
        self, vector_components, document_store, blob_fetcher, document_factory, notifier
    ) -> None:
        doc = document_factory(file_type="application/msword")
        document_store.documents[doc.id] = doc
        blob_fetcher.blobs[doc.file_url] = b"\xd0\xcf\x11\xe0"

        with _client(vector_components) as client:
            response = client.post("/api/v1/documents/doc1/process")

        assert response.status_code == 422
        assert response.json()["error"] == "UnsupportedTypeError"
        assert document_store.documents["doc1"].status == DocumentStatus.FAILED
        assert notifier.sent[-1]["status"] == "failed"

    def test_download_failure_500(self, vector_components, document_store, document_factory) -> None:
        doc = document_factory()
        document_store.documents[doc.id] = doc

        with _client(vector_components) as client:
            response = client.post("/api/v1/documents/doc1/process")

        assert response.status_code == 500
        assert response.json()["error"] == "BlobFetchError"
        assert document_store.documents["doc1"].error == "Failed to download file: HTTP 404 Not Found"


class TestProcessCompanyDocuments:
    def test_mixed_outcomes(
        self, vector_components, document_store, blob_fetcher, document_factory
    ) -> None:
        _seed_text_document(document_store, blob_fetcher, document_factory, "good")
        broken = document_factory("broken")
        document_store.documents[broken.id] = broken
        done = document_factory("done", status=DocumentStatus.PROCESSED)
        document_store.documents[done.id] = done

        with _client(vector_components) as client:
            response = client.post("/api/v1/companies/comp1/documents/process")

        assert response.status_code == 200
        outcomes = {r["document_id"]: r for r in response.json()}
        assert set(outcomes) == {"good", "broken"}
        assert outcomes["good"]["success"] is True
        assert outcomes["broken"]["success"] is False
        assert "404" in outcomes["broken"]["error"]


# ======================================================================
# Search
# ======================================================================


class TestSearch:
    def test_vector_search(self, vector_components, document_store, blob_fetcher, document_factory) -> None:
        _seed_text_document(document_store, blob_fetcher, document_factory)

        with _client(vector_components) as client:
            client.post("/api/v1/documents/doc1/process")
            response = client.post("/api/v1/companies/comp1/search", json={"query": "dental"})

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "vector"
        assert body["results"]
        assert body["results"][0]["document_id"] == "doc1"
        assert body["context"].startswith("[2026 Benefits Guide - Page 1]")

    def test_keyword_search(
        self, keyword_components, document_store, blob_fetcher, document_factory
    ) -> None:
        _seed_text_document(document_store, blob_fetcher, document_factory)

        with _client(keyword_components) as client:
            client.post("/api/v1/documents/doc1/process")
            response = client.post(
                "/api/v1/companies/comp1/search", json={"query": "glasses", "limit": 3}
            )

        body = response.json()
        assert body["mode"] == "keyword"
        assert len(body["results"]) == 1
        assert body["results"][0]["score"] == 1.0
        assert "glasses" in body["results"][0]["content"]

    def test_other_tenant_sees_nothing(
        self, vector_components, document_store, blob_fetcher, document_factory
    ) -> None:
        _seed_text_document(document_store, blob_fetcher, document_factory)

        with _client(vector_components) as client:
            client.post("/api/v1/documents/doc1/process")
            response = client.post("/api/v1/companies/comp2/search", json={"query": "dental"})

        body = response.json()
        assert body["results"] == []
        assert body["mode"] == "vector"
        assert body["context"] == ""

    @pytest.mark.parametrize(
        "payload",
        [{"query": ""}, {"query": "dental", "limit": 0}, {"query": "dental", "limit": 51}, {}],
    )
    def test_invalid_request_422(self, keyword_components, payload: dict) -> None:
        with _client(keyword_components) as client:
            response = client.post("/api/v1/companies/comp1/search", json=payload)
        assert response.status_code == 422


# ======================================================================
# Middleware
# ======================================================================


class TestRequestId:
    def test_generated_when_absent(self, keyword_components) -> None:
        with _client(keyword_components) as client:
            response = client.get("/api/v1/health")
        assert len(response.headers["X-Request-ID"]) == 32

    def test_caller_id_echoed(self, keyword_components) -> None:
        with _client(keyword_components) as client:
            response = client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"
