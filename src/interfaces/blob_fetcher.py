"""Abstract base class for downloading uploaded document files."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: HTTPBlobFetcher (src/providers/blob/)
class IBlobFetcher(ABC):
    """Contract for fetching a stored file's raw bytes by URL."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download *url* and return its body.

        Raises
        ------
        src.utils.errors.BlobFetchError
            On network failure or a non-success HTTP status.
        """
