"""Tenant-scoped retrieval-augmented generation orchestrator.

:class:`RAGService` owns the two halves of the document index:

* **Ingestion** -- chunk a document, embed each chunk, persist every chunk
  to the chunk store and upsert the non-empty embeddings into the vector
  index in one batch.
* **Retrieval** -- embed the query and look up nearest neighbours, or, when
  no embedding is available, fall back to a keyword count over the
  tenant's chunks.

All collaborators are injected; nothing here is a module-level singleton.
Chunk ids are deterministic (``{document_id}_chunk_{i}``), so re-running
ingestion for a document overwrites its previous chunks and vectors.
Ingestion is at-least-once: chunk writes that succeeded before a failure
are not rolled back.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

import structlog

from src.interfaces.chunk_store_provider import IChunkStoreProvider
from src.interfaces.document_store_provider import IDocumentStoreProvider
from src.interfaces.vector_index_provider import IVectorIndexProvider
from src.models.extraction import PageChunk
from src.models.rag import (
    Document,
    DocumentChunk,
    IngestionResult,
    SearchResult,
    VectorIndexEntry,
    chunk_id_for,
)
from src.services.embedding_generator import EmbeddingGenerator
from src.services.ingestion.chunker import TextChunker

logger = structlog.get_logger(logger_name=__name__)

_CONTEXT_SEPARATOR = "\n\n---\n\n"


class RAGService:
    """Chunks, embeds, stores and searches one company's documents.

    Parameters
    ----------
    chunk_store:
        Durable per-chunk persistence.
    vector_index:
        Nearest-neighbour index over chunk embeddings.
    embedding:
        Embedding generator; its capability decides the search mode.
    document_store:
        Document records, updated after :meth:`process_document`.
    chunker:
        Text chunker; a default ``TextChunker()`` is used when omitted.
    """

    def __init__(
        self,
        chunk_store: IChunkStoreProvider,
        vector_index: IVectorIndexProvider,
        embedding: EmbeddingGenerator,
        document_store: IDocumentStoreProvider,
        chunker: TextChunker | None = None,
    ) -> None:
        self._chunk_store = chunk_store
        self._vector_index = vector_index
        self._embedding = embedding
        self._document_store = document_store
        self._chunker = chunker or TextChunker()

    @property
    def embedding_available(self) -> bool:
        return self._embedding.available

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def process_document(
        self,
        document_id: str,
        company_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Chunk, embed and index *content*, then mark the document processed.

        Each chunk's metadata is *metadata* plus ``section = "Part {i+1}"``.
        Any failure is logged and re-raised.
        """
        start = time.monotonic()
        base_metadata = dict(metadata or {})
        try:
            pieces = self._chunker.chunk_text(content)
            chunk_metadata = [
                {**base_metadata, "section": f"Part {i + 1}"} for i in range(len(pieces))
            ]
            vectors_stored = await self._store_chunks(
                document_id, company_id, pieces, chunk_metadata
            )

            await self._document_store.update(
                document_id,
                {
                    "rag_processed": True,
                    "chunk_count": len(pieces),
                    "processed_at": datetime.now(timezone.utc),
                },
            )
        except Exception as exc:
            logger.error(
                "rag_process_document_failed",
                document_id=document_id,
                company_id=company_id,
                error=str(exc),
            )
            raise

        elapsed = time.monotonic() - start
        logger.info(
            "rag_document_processed",
            document_id=document_id,
            company_id=company_id,
            chunks=len(pieces),
            vectors=vectors_stored,
            elapsed_s=round(elapsed, 3),
        )
        return IngestionResult(
            document_id=document_id,
            chunks_processed=len(pieces),
            vectors_stored=vectors_stored,
            ingestion_time=round(elapsed, 3),
        )

    async def index_chunks(
        self,
        document: Document,
        page_chunks: list[PageChunk],
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Persist and index pre-chunked, page-aware input for *document*.

        Does not update the document record; the caller owns its lifecycle.
        """
        start = time.monotonic()
        base_metadata: dict[str, Any] = {
            "title": document.title,
            "document_id": document.id,
            "category": document.category,
            "tags": list(document.tags),
            **(metadata or {}),
        }
        chunk_metadata = [
            {
                **base_metadata,
                "section": f"Page {chunk.page_number}",
                "page_number": chunk.page_number,
                "chunk_index": i,
                "image_count": len(chunk.images),
            }
            for i, chunk in enumerate(page_chunks)
        ]
        vectors_stored = await self._store_chunks(
            document.id,
            document.company_id,
            [chunk.text for chunk in page_chunks],
            chunk_metadata,
        )

        elapsed = time.monotonic() - start
        logger.info(
            "rag_chunks_indexed",
            document_id=document.id,
            company_id=document.company_id,
            chunks=len(page_chunks),
            vectors=vectors_stored,
        )
        return IngestionResult(
            document_id=document.id,
            chunks_processed=len(page_chunks),
            vectors_stored=vectors_stored,
            ingestion_time=round(elapsed, 3),
        )

    async def _store_chunks(
        self,
        document_id: str,
        company_id: str,
        pieces: list[str],
        chunk_metadata: list[dict[str, Any]],
    ) -> int:
        """Embed and persist each piece in order, upsert non-empty vectors once,
        then drop chunks left over from an earlier, longer ingest.
        """
        entries: list[VectorIndexEntry] = []

        for i, (piece, meta) in enumerate(zip(pieces, chunk_metadata, strict=True)):
            chunk_id = chunk_id_for(document_id, i)
            embedding = await self._embedding.embed(piece)

            await self._chunk_store.save_chunk(
                DocumentChunk(
                    id=chunk_id,
                    document_id=document_id,
                    company_id=company_id,
                    content=piece,
                    metadata=meta,
                    embedding=embedding,
                )
            )

            if embedding:
                entries.append(
                    VectorIndexEntry(id=chunk_id, embedding=embedding, company_id=company_id)
                )

        vectors_stored = await self._vector_index.upsert(entries) if entries else 0

        # A re-ingest into fewer pieces leaves higher-index chunks behind.
        stale_ids = await self._chunk_store.delete_chunks_for_document(document_id, keep=len(pieces))
        if stale_ids:
            await self._vector_index.delete(stale_ids)
        return vectors_stored

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def search(self, query: str, company_id: str, limit: int = 5) -> list[SearchResult]:
        """Return up to *limit* of the tenant's chunks relevant to *query*.

        Vector mode when an embedding is available, keyword mode otherwise.
        Never raises; failures yield ``[]``.
        """
        try:
            if self._embedding.available:
                query_embedding = await self._embedding.embed(query)
                if query_embedding:
                    return await self._vector_search(query_embedding, company_id, limit)
            return await self._keyword_search(query, company_id, limit)
        except Exception as exc:
            logger.error(
                "search_failed",
                company_id=company_id,
                query=query[:100],
                error=str(exc),
            )
            return []

    async def _vector_search(
        self,
        query_embedding: list[float],
        company_id: str,
        limit: int,
    ) -> list[SearchResult]:
        neighbors = await self._vector_index.find_nearest_neighbors(
            query_embedding, limit, company_id
        )
        if not neighbors:
            return []

        chunks = await self._chunk_store.get_chunks_by_ids([n.id for n in neighbors])
        chunks_by_id = {chunk.id: chunk for chunk in chunks}

        results: list[SearchResult] = []
        for neighbor in neighbors:
            chunk = chunks_by_id.get(neighbor.id)
            # Stale index entries and other tenants' chunks are dropped.
            if chunk is None or chunk.company_id != company_id:
                continue
            results.append(SearchResult(chunk=chunk, score=neighbor.distance, mode="vector"))

        logger.debug(
            "vector_search",
            company_id=company_id,
            neighbors=len(neighbors),
            results=len(results),
        )
        return results

    async def _keyword_search(self, query: str, company_id: str, limit: int) -> list[SearchResult]:
        if not query.strip() or limit <= 0:
            return []
        needle = query.lower()

        scored: list[SearchResult] = []
        for chunk in await self._chunk_store.list_chunks_for_company(company_id):
            score = chunk.content.lower().count(needle)
            if score > 0:
                scored.append(SearchResult(chunk=chunk, score=float(score), mode="keyword"))

        scored.sort(key=lambda r: r.score, reverse=True)
        logger.debug(
            "keyword_search",
            company_id=company_id,
            matches=len(scored),
        )
        return scored[:limit]

    # ------------------------------------------------------------------
    # Context formatting
    # ------------------------------------------------------------------

    @staticmethod
    def generate_context(results: list[SearchResult], max_chars: int | None = None) -> str:
        """Format *results* as titled blocks for a prompt.

        Blocks are ``[{title} - {section}]`` followed by the chunk content,
        separated by a horizontal rule.  With *max_chars*, blocks are added
        until the next one would exceed it.
        """
        blocks: list[str] = []
        total = 0
        for result in results:
            meta = result.chunk.metadata
            title = meta.get("title") or result.chunk.document_id
            section = meta.get("section") or ""
            block = f"[{title} - {section}]\n{result.chunk.content}"

            added = len(block) + (len(_CONTEXT_SEPARATOR) if blocks else 0)
            if max_chars is not None and total + added > max_chars:
                break
            blocks.append(block)
            total += added

        return _CONTEXT_SEPARATOR.join(blocks)
