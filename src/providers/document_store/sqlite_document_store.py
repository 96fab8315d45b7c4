"""SQLite-backed document metadata store.

Holds one row per tenant-owned :class:`~src.models.rag.Document`.  The
upload flow registers documents with :meth:`SQLiteDocumentStore.add_document`;
the pipeline only reads them and updates lifecycle fields through
:meth:`SQLiteDocumentStore.update`.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.document_store_provider import IDocumentStoreProvider
from src.models.rag import Document, DocumentStatus
from src.utils.errors import DocumentNotFoundError, StoreWriteError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/benefits_rag.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id             TEXT    PRIMARY KEY,
    company_id     TEXT    NOT NULL,
    title          TEXT    NOT NULL DEFAULT '',
    file_url       TEXT,
    file_type      TEXT    NOT NULL DEFAULT 'application/pdf',
    status         TEXT    NOT NULL DEFAULT 'pending',
    content        TEXT,
    chunk_count    INTEGER NOT NULL DEFAULT 0,
    rag_processed  INTEGER NOT NULL DEFAULT 0,
    error          TEXT,
    category       TEXT,
    tags           TEXT    NOT NULL DEFAULT '[]',
    created_by     TEXT,
    created_at     TEXT    NOT NULL,
    processed_at   TEXT
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_company ON documents(company_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_company_status ON documents(company_id, status);",
]

_INSERT_SQL = """\
INSERT OR REPLACE INTO documents
    (id, company_id, title, file_url, file_type, status, content, chunk_count,
     rag_processed, error, category, tags, created_by, created_at, processed_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_COLUMNS = (
    "id, company_id, title, file_url, file_type, status, content, chunk_count, "
    "rag_processed, error, category, tags, created_by, created_at, processed_at"
)

# Fields the pipeline may change; ``id`` and ``company_id`` are immutable.
_UPDATABLE_FIELDS = frozenset({
    "title",
    "file_url",
    "file_type",
    "status",
    "content",
    "chunk_count",
    "rag_processed",
    "error",
    "category",
    "tags",
    "processed_at",
})


def _to_column(value: Any) -> Any:
    """Convert a model value to its SQLite column representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return json.dumps(value)
    return value


def _row_to_document(row: aiosqlite.Row) -> Document:
    r = dict(row)
    return Document(
        id=r["id"],
        company_id=r["company_id"],
        title=r["title"],
        file_url=r["file_url"],
        file_type=r["file_type"],
        status=DocumentStatus(r["status"]),
        content=r["content"],
        chunk_count=r["chunk_count"],
        rag_processed=bool(r["rag_processed"]),
        error=r["error"],
        category=r["category"],
        tags=json.loads(r["tags"] or "[]"),
        created_by=r["created_by"],
        created_at=datetime.fromisoformat(r["created_at"]),
        processed_at=datetime.fromisoformat(r["processed_at"]) if r["processed_at"] else None,
    )


class SQLiteDocumentStore(IDocumentStoreProvider):
    """Tenant-scoped document records in a local SQLite database."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_store_initialized", path=str(self._db_path))

    async def add_document(self, document: Document) -> None:
        """Register *document*, replacing any record with the same id."""
        params = (
            document.id,
            document.company_id,
            document.title,
            document.file_url,
            document.file_type,
            _to_column(document.status),
            document.content,
            document.chunk_count,
            _to_column(document.rag_processed),
            document.error,
            document.category,
            _to_column(document.tags),
            document.created_by,
            _to_column(document.created_at),
            _to_column(document.processed_at),
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_SQL, params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreWriteError(
                message=f"Failed to add document {document.id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "document_added",
            document_id=document.id,
            company_id=document.company_id,
        )

    async def get(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM documents WHERE id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def update(self, document_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update; unknown field names raise ``ValueError``."""
        if not fields:
            return
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Cannot update document fields: {sorted(unknown)}"
            raise ValueError(msg)

        columns = sorted(fields)
        assignments = ", ".join(f"{col} = ?" for col in columns)
        params = [_to_column(fields[col]) for col in columns]
        params.append(document_id)

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    f"UPDATE documents SET {assignments} WHERE id = ?",
                    params,
                )
                await db.commit()
                updated = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StoreWriteError(
                message=f"Failed to update document {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if updated == 0:
            raise DocumentNotFoundError(
                message=f"Document not found: {document_id}",
                provider_name=self.get_provider_name(),
            )
        logger.debug("document_updated", document_id=document_id, fields=columns)

    async def query(
        self,
        company_id: str,
        statuses: list[DocumentStatus],
    ) -> list[Document]:
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM documents "
                f"WHERE company_id = ? AND status IN ({placeholders}) "
                "ORDER BY created_at, id",
                [company_id, *(_to_column(s) for s in statuses)],
            )
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite"
