"""Public interface definitions for all external collaborators.

Every external service the pipeline touches is accessed through the abstract
base classes in this package.  Concrete adapters live in ``src/providers/``
and are injected at runtime by the factories in ``src/main.py``, so tests can
substitute in-memory fakes without patching modules.

CONCRETE PROVIDER MAP:
    Interface                →  Concrete implementation (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IEmbeddingProvider       →  OpenAIEmbeddingProvider
    IVectorIndexProvider     →  ChromaDBVectorIndex
    IChunkStoreProvider      →  SQLiteChunkStore
    IDocumentStoreProvider   →  SQLiteDocumentStore
    IBlobFetcher             →  HTTPBlobFetcher
    INotificationProvider    →  WebhookNotificationProvider
"""

from src.interfaces.blob_fetcher import IBlobFetcher
from src.interfaces.chunk_store_provider import IChunkStoreProvider
from src.interfaces.document_store_provider import IDocumentStoreProvider
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.notification_provider import INotificationProvider
from src.interfaces.vector_index_provider import IVectorIndexProvider

__all__ = [
    "IBlobFetcher",
    "IChunkStoreProvider",
    "IDocumentStoreProvider",
    "IEmbeddingProvider",
    "INotificationProvider",
    "IVectorIndexProvider",
]
