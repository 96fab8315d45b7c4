"""Abstract base class for nearest-neighbour vector index providers.

The index holds only ``(chunk id, embedding)`` pairs (plus the owning
tenant for scoping).  Chunk bodies live in the chunk store; the
orchestrator hydrates neighbour ids from there.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import NearestNeighbor, VectorIndexEntry


# Concrete implementation: ChromaDBVectorIndex (src/providers/vector_index/)
class IVectorIndexProvider(ABC):
    """Contract for the vector index consumed by the RAG orchestrator.

    No read-after-write guarantee is assumed: an upserted entry may become
    searchable later.  Callers must tolerate results that are shorter than
    ``k``, empty, or reference chunks that no longer exist.
    """

    @abstractmethod
    async def upsert(self, entries: list[VectorIndexEntry]) -> int:
        """Insert or replace index entries keyed by chunk id.

        Returns
        -------
        int
            The number of entries written.

        Raises
        ------
        src.utils.errors.IndexWriteError
            If the write fails.
        """

    @abstractmethod
    async def find_nearest_neighbors(
        self,
        query_embedding: list[float],
        k: int,
        company_id: str | None = None,
    ) -> list[NearestNeighbor]:
        """Return up to *k* neighbours of *query_embedding*, closest first.

        Parameters
        ----------
        query_embedding:
            The query vector.
        k:
            Maximum number of neighbours.
        company_id:
            Optional tenant scope applied inside the index.

        Raises
        ------
        src.utils.errors.RAGError
            If the query fails.
        """

    @abstractmethod
    async def delete(self, ids: list[str]) -> None:
        """Remove the entries with the given chunk ids; unknown ids are ignored.

        Raises
        ------
        src.utils.errors.IndexWriteError
            If the delete fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this index provider."""
