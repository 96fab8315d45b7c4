"""Utility modules for the benefits document pipeline.

- **errors** -- exception hierarchy rooted at BenefitsRAGError; each
  pipeline stage raises its own subclass.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **image_encoding** (not re-exported here) -- PNG normalisation and base64
  encoding for images pulled out of PDFs.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    BenefitsRAGError,
    BlobFetchError,
    ConfigurationError,
    DocumentNotFoundError,
    ExtractionError,
    IndexWriteError,
    RAGError,
    StoreWriteError,
    UnsupportedTypeError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "BenefitsRAGError",
    "BlobFetchError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "ExtractionError",
    "IndexWriteError",
    "RAGError",
    "StoreWriteError",
    "UnsupportedTypeError",
    "configure_logging",
    "get_logger",
]
