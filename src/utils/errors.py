"""Custom exception hierarchy for the benefits document pipeline.

All application exceptions inherit from :class:`BenefitsRAGError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "sqlite") caused the failure.

The hierarchy is organized by pipeline stage:

    BenefitsRAGError  (base -- catch-all for any pipeline error)
    +-- ExtractionError          (document bytes could not be turned into text)
    |   +-- UnsupportedTypeError (media type the extractor does not handle)
    +-- DocumentNotFoundError    (document record missing from the store)
    +-- BlobFetchError           (file download failed)
    +-- StoreWriteError          (chunk / document metadata write failed)
    +-- RAGError                 (embedding or vector-index failure)
    |   +-- IndexWriteError      (vector upsert failed)
    +-- ConfigurationError       (startup / missing config)

Embedding unavailability is deliberately *not* an exception: it is a
capability state (see :mod:`src.services.embedding_generator`) that reroutes
search to the keyword fallback.
"""


class BenefitsRAGError(Exception):
    """Base exception for all pipeline errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[chromadb] upsert failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(BenefitsRAGError):
    """Raised when a document buffer is corrupt, unparsable, or yields no text."""

    def __init__(
        self,
        message: str = "Document extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedTypeError(ExtractionError):
    """Raised for media types the extractor does not attempt to parse."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(BenefitsRAGError):
    """Raised when a document id has no record in the document store."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class BlobFetchError(BenefitsRAGError):
    """Raised when a document file cannot be downloaded (network or HTTP status)."""

    def __init__(
        self,
        message: str = "Failed to download file",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class StoreWriteError(BenefitsRAGError):
    """Raised when a chunk or document metadata write fails."""

    def __init__(
        self,
        message: str = "Store write failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(BenefitsRAGError):
    """Raised when an embedding call or vector-index query fails."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexWriteError(RAGError):
    """Raised when upserting vectors into the index fails.

    Chunks already persisted to the chunk store are not rolled back;
    re-running the document overwrites them by id.
    """

    def __init__(
        self,
        message: str = "Vector index upsert failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(BenefitsRAGError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
