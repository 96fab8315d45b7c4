"""HTTP blob fetcher.

Downloads uploaded document files by URL with a shared
``httpx.AsyncClient``.  Network failures, timeouts and non-2xx responses
are all surfaced as :class:`~src.utils.errors.BlobFetchError`.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.blob_fetcher import IBlobFetcher
from src.utils.errors import BlobFetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0


class HTTPBlobFetcher(IBlobFetcher):
    """Fetches file bytes over HTTP(S).

    Parameters
    ----------
    http_client:
        Optional shared client.  When omitted the fetcher creates and owns
        one, closed by :meth:`aclose`.
    timeout:
        Request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> bytes:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise BlobFetchError(
                message=f"Timeout downloading {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise BlobFetchError(
                message=(
                    f"Failed to download file: HTTP {exc.response.status_code} "
                    f"{exc.response.reason_phrase}"
                ),
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise BlobFetchError(
                message=f"HTTP error downloading {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        data = response.content
        logger.info("blob_fetched", url=url, size=len(data))
        return data

    def get_provider_name(self) -> str:
        return "http"

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
