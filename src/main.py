"""Benefits document pipeline FastAPI application entry point.

Wires together providers and services via dependency injection.  Settings
come from the environment / ``.env`` (see :class:`src.config.settings.Settings`).

The component builders here are also used by the ingestion CLI
(``python -m src.cli.ingest``) so both entry points assemble identical
stores, index and embedding configuration.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.providers.blob.http_blob_fetcher import HTTPBlobFetcher
from src.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from src.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from src.providers.notification.webhook_notification_provider import (
    WebhookNotificationProvider,
)
from src.services.embedding_generator import EmbeddingGenerator
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_pipeline import DocumentPipeline
from src.services.ingestion.extractor import DocumentExtractor
from src.services.rag_service import RAGService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider | None:
    """Return the OpenAI(-compatible) embedding provider, or ``None`` without a key."""
    if not app_settings.embedding_configured():
        return None

    from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

    return OpenAIEmbeddingProvider(settings=app_settings)


def _build_vector_index(app_settings: Settings, embedding: EmbeddingGenerator):  # noqa: ANN202
    """Open the ChromaDB collection, checking dimensions when vectors will be written."""
    from src.providers.vector_index.chromadb_provider import ChromaDBVectorIndex

    expected_dimension = None
    if embedding.available:
        expected_dimension = embedding.capability.provider.get_dimension()

    return ChromaDBVectorIndex(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
        expected_dimension=expected_dimension,
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components to be stored on ``app.state``.
    Stores still need :func:`_initialize_stores` before first use.
    """
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.blob_fetch_timeout),
        follow_redirects=True,
    )

    embedding = EmbeddingGenerator.from_provider(_build_embedding_provider(app_settings))
    vector_index = _build_vector_index(app_settings, embedding)
    chunk_store = SQLiteChunkStore(db_path=app_settings.database_path)
    document_store = SQLiteDocumentStore(db_path=app_settings.database_path)

    chunker = TextChunker(
        max_chunk_size=app_settings.chunk_max_size,
        overlap_size=app_settings.chunk_overlap_size,
    )
    rag_service = RAGService(
        chunk_store=chunk_store,
        vector_index=vector_index,
        embedding=embedding,
        document_store=document_store,
        chunker=chunker,
    )

    blob_fetcher = HTTPBlobFetcher(http_client=http_client)
    notifier = WebhookNotificationProvider(
        webhook_url=app_settings.notification_webhook_url,
        http_client=http_client,
    )
    document_pipeline = DocumentPipeline(
        document_store=document_store,
        blob_fetcher=blob_fetcher,
        rag_service=rag_service,
        notifier=notifier,
        extractor=DocumentExtractor(),
        chunker=chunker,
    )

    _logger.info(
        "components_built",
        embedding_provider=embedding.provider_name,
        search_mode="vector" if embedding.available else "keyword",
        vector_index=vector_index.get_provider_name(),
        database=app_settings.database_path,
        notifications=notifier.get_provider_name(),
    )

    return {
        "settings": app_settings,
        "http_client": http_client,
        "embedding": embedding,
        "vector_index": vector_index,
        "chunk_store": chunk_store,
        "document_store": document_store,
        "rag_service": rag_service,
        "blob_fetcher": blob_fetcher,
        "notifier": notifier,
        "document_pipeline": document_pipeline,
    }


async def _initialize_stores(components: dict[str, Any]) -> None:
    """Create SQLite schemas for every store that needs one."""
    for key in ("chunk_store", "document_store"):
        store = components.get(key)
        if store is not None and hasattr(store, "initialize"):
            await store.initialize()


async def _close_components(components: dict[str, Any]) -> None:
    http_client: httpx.AsyncClient | None = components.get("http_client")
    if http_client is not None:
        await http_client.aclose()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to build components from; the module-level settings by
        default.
    components:
        Pre-built components (tests inject fakes here).  When given,
        nothing is built, initialised or closed by the lifespan.
    """
    resolved_settings = app_settings or settings

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        owned = components is None
        built = _build_all(resolved_settings) if owned else dict(components)
        built.setdefault("settings", resolved_settings)

        for key, value in built.items():
            setattr(application.state, key, value)

        if owned:
            await _initialize_stores(built)

        _logger.info(
            "app_startup",
            version="0.1.0",
            environment=resolved_settings.app_env,
            embedding_available=built["rag_service"].embedding_available,
        )

        yield

        if owned:
            await _close_components(built)
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Benefits Document RAG API",
        version="0.1.0",
        description=(
            "Ingest tenant-owned benefits documents (PDF and plain text), index "
            "their chunks for retrieval, and search a company's documents by "
            "vector similarity or keyword."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=resolved_settings.cors_origins())

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
