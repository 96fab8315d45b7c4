"""Embedding generation with an explicit availability capability.

Whether an embedding model can be used is decided **once**, when the
capability is resolved, and is represented by one of two variants:

* :class:`EmbeddingCapable` -- wraps a working
  :class:`~src.interfaces.embedding_provider.IEmbeddingProvider`.
* :class:`EmbeddingUnavailable` -- no model is configured or reachable.

:class:`EmbeddingGenerator` holds the resolved variant for its whole
lifetime.  Its :meth:`~EmbeddingGenerator.embed` never raises: when the
capability is unavailable, or a provider call fails, it returns an empty
list.  An empty list means "no embedding", which is distinct from a real
all-zero vector, and must never be upserted into the vector index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import structlog

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class EmbeddingCapable:
    """An embedding model is configured and was reachable at resolution time."""

    provider: IEmbeddingProvider


@dataclass(frozen=True)
class EmbeddingUnavailable:
    """No embedding model can be used; search runs in keyword mode."""

    reason: str = "no embedding provider configured"


EmbeddingCapability = Union[EmbeddingCapable, EmbeddingUnavailable]


def resolve_embedding_capability(provider: IEmbeddingProvider | None) -> EmbeddingCapability:
    """Pick the capability variant for *provider*.

    A ``None`` provider, a provider reporting ``is_available() == False``,
    or one whose availability check raises all resolve to
    :class:`EmbeddingUnavailable`.
    """
    if provider is None:
        return EmbeddingUnavailable()
    try:
        available = provider.is_available()
    except Exception as exc:
        logger.warning(
            "embedding_availability_check_failed",
            provider=provider.get_provider_name(),
            error=str(exc),
        )
        return EmbeddingUnavailable(reason=f"availability check failed: {exc}")
    if not available:
        return EmbeddingUnavailable(
            reason=f"provider {provider.get_provider_name()} is not available"
        )
    return EmbeddingCapable(provider=provider)


class EmbeddingGenerator:
    """Turns text into embedding vectors, degrading to ``[]`` instead of failing.

    Parameters
    ----------
    capability:
        The resolved capability.  It is fixed for the lifetime of the
        generator; availability is never re-checked per call.
    """

    def __init__(self, capability: EmbeddingCapability) -> None:
        self._capability = capability
        if isinstance(capability, EmbeddingUnavailable):
            logger.info("embedding_unavailable", reason=capability.reason)
        else:
            logger.info(
                "embedding_available",
                provider=capability.provider.get_provider_name(),
            )

    @classmethod
    def from_provider(cls, provider: IEmbeddingProvider | None) -> EmbeddingGenerator:
        """Resolve *provider*'s capability and wrap it."""
        return cls(resolve_embedding_capability(provider))

    @property
    def capability(self) -> EmbeddingCapability:
        return self._capability

    @property
    def available(self) -> bool:
        """``True`` when an embedding model is usable."""
        return isinstance(self._capability, EmbeddingCapable)

    @property
    def provider_name(self) -> str | None:
        if isinstance(self._capability, EmbeddingCapable):
            return self._capability.provider.get_provider_name()
        return None

    async def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*, or ``[]`` when none can be produced."""
        if not isinstance(self._capability, EmbeddingCapable):
            return []

        provider = self._capability.provider
        try:
            vector = await provider.embed_single(text)
        except Exception as exc:
            logger.warning(
                "embedding_failed",
                provider=provider.get_provider_name(),
                text_length=len(text),
                error=str(exc),
            )
            return []
        return list(vector) if vector else []
