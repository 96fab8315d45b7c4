"""Vector index adapters."""

from src.providers.vector_index.chromadb_provider import ChromaDBVectorIndex

__all__ = ["ChromaDBVectorIndex"]
