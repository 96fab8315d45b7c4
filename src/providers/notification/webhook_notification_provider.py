"""Webhook notification provider.

Posts a small JSON payload to a configured webhook URL when a document
finishes processing or fails.  With no URL configured the notification is
only logged.  Delivery problems are logged and never raised.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.notification_provider import INotificationProvider

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 10.0


class WebhookNotificationProvider(INotificationProvider):
    """Document-processing notifications delivered to a webhook."""

    def __init__(
        self,
        webhook_url: str = "",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    async def notify(
        self,
        user_id: str,
        document_name: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        payload = {
            "user_id": user_id,
            "document_name": document_name,
            "status": status,
            "error_message": error_message,
        }

        if not self._webhook_url:
            logger.info("document_notification", **payload)
            return

        try:
            response = await self._client.post(self._webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "document_notification_failed",
                user_id=user_id,
                document_name=document_name,
                status=status,
                error=str(exc),
            )
            return

        logger.info(
            "document_notification_sent",
            user_id=user_id,
            document_name=document_name,
            status=status,
        )

    def get_provider_name(self) -> str:
        return "webhook" if self._webhook_url else "log"

    async def aclose(self) -> None:
        """Close the underlying client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()
