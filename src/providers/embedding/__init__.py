"""Embedding provider implementations.

Embeddings turn chunk text into vectors for the ChromaDB index.

OpenAIEmbeddingProvider talks to the OpenAI embeddings API or any
OpenAI-compatible endpoint (``OPENAI_BASE_URL``).  With no API key
configured, no provider is built and search falls back to keywords.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
