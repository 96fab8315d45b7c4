"""Batch driver that takes uploaded documents from ``pending`` to ``processed``.

For one document the driver:

1. loads the record and requires a file URL,
2. downloads the file and extracts its text (PDF parsing runs in a worker
   thread),
3. caches the extracted text on the record and marks it ``processing``,
4. chunks page by page and hands the chunks to
   :meth:`RAGService.index_chunks <src.services.rag_service.RAGService.index_chunks>`,
5. marks the record ``processed`` and notifies the uploader.

Any failure marks the record ``failed`` with the error message, notifies
the uploader and is re-raised.  :meth:`DocumentPipeline.process_company_documents`
runs every retryable document of a tenant and records failures as results
instead of aborting the batch.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from src.interfaces.blob_fetcher import IBlobFetcher
from src.interfaces.document_store_provider import IDocumentStoreProvider
from src.interfaces.notification_provider import INotificationProvider
from src.models.pipeline import DocumentProcessingResult
from src.models.rag import RETRYABLE_STATUSES, Document, DocumentStatus
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.extractor import DocumentExtractor
from src.utils.errors import DocumentNotFoundError, ExtractionError

if TYPE_CHECKING:
    from src.services.rag_service import RAGService

logger = structlog.get_logger(logger_name=__name__)


class DocumentPipeline:
    """Drives documents through fetch, extract, chunk and index."""

    def __init__(
        self,
        document_store: IDocumentStoreProvider,
        blob_fetcher: IBlobFetcher,
        rag_service: RAGService,
        notifier: INotificationProvider,
        extractor: DocumentExtractor | None = None,
        chunker: TextChunker | None = None,
    ) -> None:
        self._document_store = document_store
        self._blob_fetcher = blob_fetcher
        self._rag_service = rag_service
        self._notifier = notifier
        self._extractor = extractor or DocumentExtractor()
        self._chunker = chunker or TextChunker()

    async def process_document(self, document_id: str) -> DocumentProcessingResult:
        """Process one document end to end.

        Raises
        ------
        DocumentNotFoundError
            If no record exists for *document_id*.
        ExtractionError
            If the record has no file URL or no text could be extracted.
        """
        document = await self._document_store.get(document_id)
        if document is None:
            raise DocumentNotFoundError(message=f"Document not found: {document_id}")

        logger.info(
            "document_processing_started",
            document_id=document_id,
            company_id=document.company_id,
            file_type=document.file_type,
        )

        try:
            result = await self._run(document)
        except Exception as exc:
            logger.error(
                "document_processing_failed",
                document_id=document_id,
                company_id=document.company_id,
                error=str(exc),
            )
            await self._mark_failed(document_id, str(exc))
            if document.created_by:
                await self._notify(document, DocumentStatus.FAILED, str(exc))
            raise

        if document.created_by:
            await self._notify(document, DocumentStatus.PROCESSED)

        logger.info(
            "document_processing_complete",
            document_id=document_id,
            company_id=document.company_id,
            chunks=result.chunks_processed,
            vectors=result.vectors_stored,
        )
        return result

    async def _run(self, document: Document) -> DocumentProcessingResult:
        if not document.file_url:
            raise ExtractionError(message="Document has no file URL")

        data = await self._blob_fetcher.fetch(document.file_url)
        parsed = await asyncio.to_thread(self._extractor.extract, data, document.file_type)

        if not parsed.full_text.strip():
            raise ExtractionError(message="No text content extracted from document")

        await self._document_store.update(
            document.id,
            {"content": parsed.full_text, "status": DocumentStatus.PROCESSING},
        )

        page_chunks = self._chunker.chunk_pdf(parsed)
        ingestion = await self._rag_service.index_chunks(document, page_chunks)

        await self._document_store.update(
            document.id,
            {
                "status": DocumentStatus.PROCESSED,
                "chunk_count": len(page_chunks),
                "rag_processed": True,
                "processed_at": datetime.now(timezone.utc),
                "error": None,
            },
        )

        return DocumentProcessingResult(
            document_id=document.id,
            success=True,
            chunks_processed=ingestion.chunks_processed,
            vectors_stored=ingestion.vectors_stored,
        )

    async def _mark_failed(self, document_id: str, message: str) -> None:
        try:
            await self._document_store.update(
                document_id,
                {
                    "status": DocumentStatus.FAILED,
                    "error": message,
                    "processed_at": datetime.now(timezone.utc),
                },
            )
        except Exception as exc:
            logger.error(
                "document_status_update_failed",
                document_id=document_id,
                error=str(exc),
            )

    async def _notify(
        self,
        document: Document,
        status: DocumentStatus,
        error_message: str | None = None,
    ) -> None:
        try:
            await self._notifier.notify(
                user_id=document.created_by or "",
                document_name=document.title,
                status=status.value,
                error_message=error_message,
            )
        except Exception as exc:
            logger.error(
                "document_notification_error",
                document_id=document.id,
                status=status.value,
                error=str(exc),
            )

    async def process_company_documents(self, company_id: str) -> list[DocumentProcessingResult]:
        """Process every pending, uploaded or failed document of *company_id* in turn."""
        documents = await self._document_store.query(company_id, list(RETRYABLE_STATUSES))
        logger.info(
            "company_batch_started",
            company_id=company_id,
            documents=len(documents),
        )

        results: list[DocumentProcessingResult] = []
        for document in documents:
            try:
                results.append(await self.process_document(document.id))
            except Exception as exc:
                results.append(
                    DocumentProcessingResult(
                        document_id=document.id,
                        success=False,
                        error=str(exc),
                    )
                )

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "company_batch_complete",
            company_id=company_id,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )
        return results
