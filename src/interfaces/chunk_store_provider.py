"""Abstract base class for durable chunk metadata stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import DocumentChunk


# Concrete implementation: SQLiteChunkStore (src/providers/chunk_store/)
class IChunkStoreProvider(ABC):
    """Contract for per-chunk persistence keyed by the deterministic chunk id.

    Supports exactly the access patterns the pipeline needs: one write per
    chunk, a batch lookup by ids (vector-search hydration), a full tenant
    scan (keyword fallback) and removal of a document's leftover chunks
    after it is re-ingested into fewer pieces.
    """

    @abstractmethod
    async def save_chunk(self, chunk: DocumentChunk) -> None:
        """Persist *chunk*, replacing any existing record with the same id.

        Raises
        ------
        src.utils.errors.StoreWriteError
            If the write fails.
        """

    @abstractmethod
    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[DocumentChunk]:
        """Return the stored chunks whose ids are in *chunk_ids*.

        Ids with no record are silently absent from the result; order is
        not guaranteed.
        """

    @abstractmethod
    async def list_chunks_for_company(self, company_id: str) -> list[DocumentChunk]:
        """Return every chunk owned by *company_id*."""

    @abstractmethod
    async def delete_chunks_for_document(self, document_id: str, keep: int = 0) -> list[str]:
        """Delete chunks of *document_id* whose index is *keep* or higher.

        Returns the ids that were deleted.

        Raises
        ------
        src.utils.errors.StoreWriteError
            If the delete fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
