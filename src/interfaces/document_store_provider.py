"""Abstract base class for the tenant-scoped document metadata store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.rag import Document, DocumentStatus


# Concrete implementation: SQLiteDocumentStore (src/providers/document_store/)
class IDocumentStoreProvider(ABC):
    """Contract for reading and updating :class:`Document` records.

    Documents are created by the upload flow of the surrounding product;
    the pipeline only reads them and updates lifecycle fields.
    """

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None`` if absent."""

    @abstractmethod
    async def update(self, document_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to a document record.

        Parameters
        ----------
        document_id:
            The document to update.
        fields:
            Mapping of :class:`Document` field names to new values.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If no such document exists.
        src.utils.errors.StoreWriteError
            If the write fails.
        """

    @abstractmethod
    async def query(
        self,
        company_id: str,
        statuses: list[DocumentStatus],
    ) -> list[Document]:
        """Return the tenant's documents whose status is in *statuses*."""
