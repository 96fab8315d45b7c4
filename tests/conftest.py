"""Shared pytest fixtures for the benefits document pipeline test suite.

Every external collaborator has an in-memory fake here so services can be
exercised without SQLite, ChromaDB, HTTP or an embedding API.
"""

from __future__ import annotations

import hashlib
import io
import math
import struct
from typing import Any

import fitz
import pytest
from PIL import Image

from src.interfaces.blob_fetcher import IBlobFetcher
from src.interfaces.chunk_store_provider import IChunkStoreProvider
from src.interfaces.document_store_provider import IDocumentStoreProvider
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.notification_provider import INotificationProvider
from src.interfaces.vector_index_provider import IVectorIndexProvider
from src.models.rag import (
    Document,
    DocumentChunk,
    DocumentStatus,
    NearestNeighbor,
    VectorIndexEntry,
)
from src.services.embedding_generator import EmbeddingGenerator
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_pipeline import DocumentPipeline
from src.services.rag_service import RAGService
from src.utils.errors import BlobFetchError, DocumentNotFoundError

_EMBEDDING_DIM = 16


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic unit-length vector by hashing *text*."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    raw = digest
    while len(raw) < dim * 4:
        raw += hashlib.sha256(raw).digest()
    raw = raw[: dim * 4]
    values = [v if math.isfinite(v) else 0.0 for v in struct.unpack(f"<{dim}f", raw)]
    # Keep magnitudes sane; raw float bit patterns can be huge.
    values = [math.tanh(v) for v in values]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embedding provider; texts in ``fail_on`` raise."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise RuntimeError("embedding backend down")
        return _hash_to_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class InMemoryChunkStore(IChunkStoreProvider):
    def __init__(self) -> None:
        self.chunks: dict[str, DocumentChunk] = {}
        self.save_calls = 0

    async def save_chunk(self, chunk: DocumentChunk) -> None:
        self.save_calls += 1
        self.chunks[chunk.id] = chunk

    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[DocumentChunk]:
        return [self.chunks[cid] for cid in chunk_ids if cid in self.chunks]

    async def list_chunks_for_company(self, company_id: str) -> list[DocumentChunk]:
        return [c for c in self.chunks.values() if c.company_id == company_id]

    async def delete_chunks_for_document(self, document_id: str, keep: int = 0) -> list[str]:
        stale = [
            cid
            for cid, chunk in self.chunks.items()
            if chunk.document_id == document_id and int(cid.rsplit("_chunk_", 1)[1]) >= keep
        ]
        for cid in stale:
            del self.chunks[cid]
        return stale

    def get_provider_name(self) -> str:
        return "memory"


class FakeVectorIndex(IVectorIndexProvider):
    """Records upserts; answers queries from ``neighbors`` when set.

    Without canned ``neighbors`` it ranks stored entries by cosine distance,
    optionally ignoring the tenant filter (``honor_company_filter=False``)
    to simulate a shared index that leaks other tenants' ids.
    """

    def __init__(self) -> None:
        self.entries: dict[str, VectorIndexEntry] = {}
        self.upserts: list[list[VectorIndexEntry]] = []
        self.deletes: list[list[str]] = []
        self.queries: list[dict[str, Any]] = []
        self.neighbors: list[NearestNeighbor] | None = None
        self.honor_company_filter = True

    async def upsert(self, entries: list[VectorIndexEntry]) -> int:
        self.upserts.append(list(entries))
        for entry in entries:
            self.entries[entry.id] = entry
        return len(entries)

    async def find_nearest_neighbors(
        self,
        query_embedding: list[float],
        k: int,
        company_id: str | None = None,
    ) -> list[NearestNeighbor]:
        self.queries.append({"embedding": query_embedding, "k": k, "company_id": company_id})
        if self.neighbors is not None:
            return self.neighbors[:k]

        scored = []
        for entry in self.entries.values():
            if self.honor_company_filter and company_id and entry.company_id != company_id:
                continue
            dot = sum(a * b for a, b in zip(query_embedding, entry.embedding))
            scored.append(NearestNeighbor(id=entry.id, distance=1.0 - dot))
        scored.sort(key=lambda n: n.distance)
        return scored[:k]

    async def delete(self, ids: list[str]) -> None:
        self.deletes.append(list(ids))
        for chunk_id in ids:
            self.entries.pop(chunk_id, None)

    def get_provider_name(self) -> str:
        return "fake-index"


class InMemoryDocumentStore(IDocumentStoreProvider):
    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.fail_updates_with: Exception | None = None

    async def add_document(self, document: Document) -> None:
        self.documents[document.id] = document

    async def get(self, document_id: str) -> Document | None:
        return self.documents.get(document_id)

    async def update(self, document_id: str, fields: dict[str, Any]) -> None:
        self.updates.append((document_id, dict(fields)))
        if self.fail_updates_with is not None:
            raise self.fail_updates_with
        if document_id not in self.documents:
            raise DocumentNotFoundError(message=f"Document not found: {document_id}")
        self.documents[document_id] = self.documents[document_id].model_copy(update=fields)

    async def query(self, company_id: str, statuses: list[DocumentStatus]) -> list[Document]:
        return [
            d
            for d in self.documents.values()
            if d.company_id == company_id and d.status in statuses
        ]


class FakeBlobFetcher(IBlobFetcher):
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    async def fetch(self, url: str) -> bytes:
        if url not in self.blobs:
            raise BlobFetchError(message="Failed to download file: HTTP 404 Not Found")
        return self.blobs[url]


class RecordingNotifier(INotificationProvider):
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def notify(
        self,
        user_id: str,
        document_name: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        self.sent.append(
            {
                "user_id": user_id,
                "document_name": document_name,
                "status": status,
                "error_message": error_message,
            }
        )

    def get_provider_name(self) -> str:
        return "recording"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def chunk_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def vector_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def blob_fetcher() -> FakeBlobFetcher:
    return FakeBlobFetcher()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def rag_service(
    chunk_store: InMemoryChunkStore,
    vector_index: FakeVectorIndex,
    document_store: InMemoryDocumentStore,
    embedding_provider: MockEmbeddingProvider,
) -> RAGService:
    """RAG service with a working embedding model (vector mode)."""
    return RAGService(
        chunk_store=chunk_store,
        vector_index=vector_index,
        embedding=EmbeddingGenerator.from_provider(embedding_provider),
        document_store=document_store,
        chunker=TextChunker(),
    )


@pytest.fixture
def keyword_rag_service(
    chunk_store: InMemoryChunkStore,
    vector_index: FakeVectorIndex,
    document_store: InMemoryDocumentStore,
) -> RAGService:
    """RAG service with no embedding model (keyword mode)."""
    return RAGService(
        chunk_store=chunk_store,
        vector_index=vector_index,
        embedding=EmbeddingGenerator.from_provider(None),
        document_store=document_store,
        chunker=TextChunker(),
    )


@pytest.fixture
def document_pipeline(
    document_store: InMemoryDocumentStore,
    blob_fetcher: FakeBlobFetcher,
    rag_service: RAGService,
    notifier: RecordingNotifier,
) -> DocumentPipeline:
    return DocumentPipeline(
        document_store=document_store,
        blob_fetcher=blob_fetcher,
        rag_service=rag_service,
        notifier=notifier,
    )


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


def make_png(size: tuple[int, int] = (4, 4), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    """Return PNG bytes of a solid RGB image."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_pdf(pages: list[str], image_on_pages: set[int] | None = None) -> bytes:
    """Build a PDF with one text line per page and a PNG on selected (1-based) pages."""
    image_on_pages = image_on_pages or set()
    doc = fitz.open()
    try:
        for number, text in enumerate(pages, start=1):
            page = doc.new_page()
            page.insert_text((72, 72), text)
            if number in image_on_pages:
                page.insert_image(fitz.Rect(72, 100, 172, 200), stream=make_png())
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """One page reading "Hello PDF" with one embedded PNG."""
    return make_pdf(["Hello PDF"], image_on_pages={1})


@pytest.fixture
def sample_benefits_text() -> str:
    return (
        "Our medical plan covers preventive care at no cost. "
        "Dental coverage includes two cleanings per year. "
        "Vision benefits reimburse one pair of glasses annually.\n\n"
        "The health savings account is funded by the employer each January. "
        "Employees may contribute additional pre-tax dollars to the health savings account. "
        "Unused health savings roll over to the next plan year."
    )


def make_document(
    document_id: str = "doc1",
    company_id: str = "comp1",
    **overrides: Any,
) -> Document:
    fields: dict[str, Any] = {
        "id": document_id,
        "company_id": company_id,
        "title": "2026 Benefits Guide",
        "file_url": f"https://files.example.com/{document_id}.pdf",
        "file_type": "application/pdf",
        "status": DocumentStatus.UPLOADED,
        "created_by": "user-1",
    }
    fields.update(overrides)
    return Document(**fields)


@pytest.fixture
def pdf_factory():
    """Return :func:`make_pdf` for tests that need custom PDFs."""
    return make_pdf


@pytest.fixture
def document_factory():
    """Return :func:`make_document` for building document records."""
    return make_document
