"""ChromaDB vector index adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IVectorIndexProvider`.  Only ``(chunk id, embedding)`` pairs are
stored, with the owning ``company_id`` as entry metadata so queries can be
scoped to one tenant.  Chunk bodies stay in the chunk store.
"""

from __future__ import annotations

import os
from typing import Any

# ChromaDB reads this before its telemetry client starts.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from src.interfaces.vector_index_provider import IVectorIndexProvider
from src.models.rag import NearestNeighbor, VectorIndexEntry
from src.utils.errors import IndexWriteError, RAGError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that keeps ChromaDB from loading its default model.

    Every entry is upserted with a pre-computed embedding and every query
    passes a query vector, so ChromaDB's own embedding is never needed.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Embeddings are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBVectorIndex(IVectorIndexProvider):
    """Nearest-neighbour index backed by a persistent ChromaDB collection.

    Parameters
    ----------
    persist_directory:
        On-disk location of the ChromaDB database.
    collection_name:
        Collection holding the chunk vectors.
    expected_dimension:
        When given, the dimension of vectors already in the collection is
        checked against it at startup.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "benefit_document_chunks",
        expected_dimension: int | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # A collection created without the no-op function refuses a
        # different one on reopen; fall back to the persisted function.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

        if expected_dimension is not None:
            self._validate_embedding_dimensions(expected_dimension)

    # ------------------------------------------------------------------
    # Startup validation
    # ------------------------------------------------------------------

    def _validate_embedding_dimensions(self, expected_dim: int) -> None:
        """Fail fast when stored vectors do not match the embedding model."""
        try:
            collection_count = self._collection.count()
            if collection_count == 0:
                return

            sample = self._collection.peek(limit=1)
            embeddings = sample.get("embeddings") if sample else None
            if embeddings is None or len(embeddings) == 0:
                return

            stored_dim = len(embeddings[0])
            if stored_dim != expected_dim:
                logger.error(
                    "embedding_dimension_mismatch",
                    stored_dim=stored_dim,
                    expected_dim=expected_dim,
                    collection=self._collection_name,
                )
                raise RAGError(
                    message=(
                        f"Embedding dimension mismatch: index has {stored_dim}-dim vectors "
                        f"but the embedding model produces {expected_dim}-dim vectors."
                    ),
                    provider_name=self.get_provider_name(),
                )

            logger.info(
                "embedding_dimension_validated",
                dimension=stored_dim,
                indexed_vectors=collection_count,
            )
        except RAGError:
            raise
        except Exception as exc:
            logger.warning("embedding_dimension_check_skipped", error=str(exc))

    # ------------------------------------------------------------------
    # IVectorIndexProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, entries: list[VectorIndexEntry], batch_size: int = 500) -> int:
        """Insert or replace *entries* in batches of *batch_size*."""
        if not entries:
            return 0

        try:
            total = 0
            for start in range(0, len(entries), batch_size):
                batch = entries[start : start + batch_size]
                self._collection.upsert(
                    ids=[e.id for e in batch],
                    embeddings=[e.embedding for e in batch],
                    metadatas=[{"company_id": e.company_id or ""} for e in batch],
                )
                total += len(batch)

            logger.info(
                "chromadb_upsert",
                count=total,
                batches=(len(entries) + batch_size - 1) // batch_size,
            )
            return total
        except Exception as exc:
            raise IndexWriteError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def find_nearest_neighbors(
        self,
        query_embedding: list[float],
        k: int,
        company_id: str | None = None,
    ) -> list[NearestNeighbor]:
        """Return up to *k* neighbours, closest first (cosine distance)."""
        if k <= 0:
            return []

        try:
            collection_count = self._collection.count()
            if collection_count == 0:
                return []

            kwargs: dict[str, Any] = {
                "query_embeddings": [query_embedding],
                "n_results": min(k, collection_count),
                "include": ["distances"],
            }
            if company_id is not None:
                kwargs["where"] = {"company_id": company_id}

            results = self._collection.query(**kwargs)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        distances = results["distances"][0] if results.get("distances") else [0.0] * len(ids)

        neighbors = [
            NearestNeighbor(id=chunk_id, distance=float(distance))
            for chunk_id, distance in zip(ids, distances, strict=True)
        ]
        neighbors.sort(key=lambda n: n.distance)

        logger.debug(
            "chromadb_query",
            company_id=company_id,
            requested=k,
            returned=len(neighbors),
        )
        return neighbors

    async def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        try:
            self._collection.delete(ids=ids)
        except Exception as exc:
            raise IndexWriteError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_delete", count=len(ids))

    def get_provider_name(self) -> str:
        return "chromadb"

    def count(self) -> int:
        """Return the number of vectors in the collection."""
        return self._collection.count()
