"""Blob (uploaded file) fetcher adapters."""

from src.providers.blob.http_blob_fetcher import HTTPBlobFetcher

__all__ = ["HTTPBlobFetcher"]
