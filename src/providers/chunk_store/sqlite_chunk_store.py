"""SQLite-backed chunk store.

Persists every :class:`~src.models.rag.DocumentChunk` to the
``document_chunks`` table with ``aiosqlite``.  Chunk metadata and the
embedding vector are stored as JSON text.  Writes are upserts keyed by the
deterministic chunk id, so re-ingesting a document overwrites its rows.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.chunk_store_provider import IChunkStoreProvider
from src.models.rag import DocumentChunk
from src.utils.errors import StoreWriteError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/benefits_rag.db")

# Stay well below SQLite's bound-parameter limit for IN (...) lookups.
_LOOKUP_BATCH_SIZE = 500

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL,
    company_id   TEXT    NOT NULL,
    chunk_index  INTEGER NOT NULL DEFAULT 0,
    content      TEXT    NOT NULL,
    metadata     TEXT    NOT NULL DEFAULT '{}',
    embedding    TEXT    NOT NULL DEFAULT '[]',
    created_at   TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_company ON document_chunks(company_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
]

_UPSERT_SQL = """\
INSERT INTO document_chunks
    (id, document_id, company_id, chunk_index, content, metadata, embedding, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id)
DO UPDATE SET document_id = excluded.document_id,
              company_id  = excluded.company_id,
              chunk_index = excluded.chunk_index,
              content     = excluded.content,
              metadata    = excluded.metadata,
              embedding   = excluded.embedding,
              created_at  = excluded.created_at;
"""

_SELECT_COLUMNS = "id, document_id, company_id, content, metadata, embedding, created_at"


def _chunk_index(chunk_id: str) -> int:
    """Parse the ordinal suffix of ``{document_id}_chunk_{i}``; 0 if absent."""
    _, sep, suffix = chunk_id.rpartition("_chunk_")
    if sep and suffix.isdigit():
        return int(suffix)
    return 0


def _row_to_chunk(row: aiosqlite.Row) -> DocumentChunk:
    return DocumentChunk(
        id=row["id"],
        document_id=row["document_id"],
        company_id=row["company_id"],
        content=row["content"],
        metadata=json.loads(row["metadata"] or "{}"),
        embedding=json.loads(row["embedding"] or "[]"),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteChunkStore(IChunkStoreProvider):
    """Durable chunk persistence in a local SQLite database."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the chunks table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("chunk_store_initialized", path=str(self._db_path))

    async def save_chunk(self, chunk: DocumentChunk) -> None:
        """Insert or replace *chunk* by id."""
        params = (
            chunk.id,
            chunk.document_id,
            chunk.company_id,
            _chunk_index(chunk.id),
            chunk.content,
            json.dumps(chunk.metadata, default=str),
            json.dumps(chunk.embedding),
            chunk.created_at.isoformat(),
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_UPSERT_SQL, params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreWriteError(
                message=f"Failed to save chunk {chunk.id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug(
            "chunk_saved",
            chunk_id=chunk.id,
            document_id=chunk.document_id,
            company_id=chunk.company_id,
        )

    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> list[DocumentChunk]:
        """Batch lookup; ids with no row are absent from the result."""
        if not chunk_ids:
            return []

        chunks: list[DocumentChunk] = []
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            for start in range(0, len(chunk_ids), _LOOKUP_BATCH_SIZE):
                batch = chunk_ids[start : start + _LOOKUP_BATCH_SIZE]
                placeholders = ", ".join("?" for _ in batch)
                cursor = await db.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM document_chunks "
                    f"WHERE id IN ({placeholders})",
                    batch,
                )
                rows = await cursor.fetchall()
                chunks.extend(_row_to_chunk(r) for r in rows)
        return chunks

    async def list_chunks_for_company(self, company_id: str) -> list[DocumentChunk]:
        """Return all of a tenant's chunks ordered by document and chunk index."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM document_chunks "
                "WHERE company_id = ? ORDER BY document_id, chunk_index",
                (company_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    async def delete_chunks_for_document(self, document_id: str, keep: int = 0) -> list[str]:
        """Delete the document's chunks at index *keep* and above; return their ids."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT id FROM document_chunks WHERE document_id = ? AND chunk_index >= ?",
                    (document_id, keep),
                )
                stale_ids = [row[0] for row in await cursor.fetchall()]
                if stale_ids:
                    await db.execute(
                        "DELETE FROM document_chunks WHERE document_id = ? AND chunk_index >= ?",
                        (document_id, keep),
                    )
                    await db.commit()
        except aiosqlite.Error as exc:
            raise StoreWriteError(
                message=f"Failed to delete chunks of {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if stale_ids:
            logger.info("stale_chunks_deleted", document_id=document_id, count=len(stale_ids))
        return stale_ids

    def get_provider_name(self) -> str:
        return "sqlite"
