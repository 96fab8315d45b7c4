"""Abstract base class for document-processing notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: WebhookNotificationProvider (src/providers/notification/)
class INotificationProvider(ABC):
    """Contract for telling a document's uploader how processing went.

    Implementations must log delivery failures instead of raising them:
    a notification problem never changes a document's outcome.
    """

    @abstractmethod
    async def notify(
        self,
        user_id: str,
        document_name: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        """Send a ``processed`` / ``failed`` notification to *user_id*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
