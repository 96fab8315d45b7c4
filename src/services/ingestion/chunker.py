"""Sentence-aware text chunking with overlapping windows.

Splits extracted document text into bounded chunks for embedding and
retrieval.  Two entry points share one algorithm:

1. :meth:`TextChunker.chunk_text` -- generic text.  Whitespace is
   normalised, the text is split into sentences, and sentences are packed
   greedily into chunks of at most ``max_chunk_size`` characters.  When a
   chunk closes, the next one is seeded with the last few words of the
   closed chunk so a passage spanning the boundary is retrievable from
   either side.

2. :meth:`TextChunker.chunk_pdf` -- page-aware.  Each page of a
   :class:`~src.models.extraction.ParsedDocument` is chunked on its own
   (chunks never span pages) and every chunk carries its page number and
   that page's images.

The overlap is measured in words, not characters: ``overlap_size // 10``
trailing words.  A sentence longer than the budget is emitted whole rather
than cut mid-sentence.
"""

from __future__ import annotations

import re

import structlog

from src.models.extraction import PageChunk, ParsedDocument

logger = structlog.get_logger(logger_name=__name__)

_BLANK_LINES_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")
# Break after terminal punctuation followed by whitespace; the punctuation
# stays with the preceding sentence.
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")

# Characters of overlap budget per carried word.
_CHARS_PER_OVERLAP_WORD = 10


class TextChunker:
    """Splits text into overlapping, size-bounded, sentence-aligned chunks.

    Parameters
    ----------
    max_chunk_size:
        Maximum characters per chunk (default 1000).
    overlap_size:
        Overlap budget; ``overlap_size // 10`` trailing words of a closed
        chunk seed the next one (default 200, i.e. 20 words).
    """

    def __init__(self, max_chunk_size: int = 1000, overlap_size: int = 200) -> None:
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        if overlap_size < 0:
            raise ValueError(f"overlap_size must be non-negative, got {overlap_size}")
        self._max_chunk_size = max_chunk_size
        self._overlap_size = overlap_size

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def overlap_size(self) -> int:
        return self._overlap_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk_text(
        self,
        text: str,
        max_chunk_size: int | None = None,
        overlap_size: int | None = None,
    ) -> list[str]:
        """Split *text* into ordered, non-empty, trimmed chunk strings.

        Parameters
        ----------
        text:
            The text to chunk.
        max_chunk_size, overlap_size:
            Per-call overrides of the constructor values.

        Returns
        -------
        list[str]
            Chunks in document order.  Empty or whitespace-only input
            returns an empty list.
        """
        budget = self._max_chunk_size if max_chunk_size is None else max_chunk_size
        overlap = self._overlap_size if overlap_size is None else overlap_size

        sentences = self.split_sentences(self.normalize(text))
        if not sentences:
            return []

        chunks = self._accumulate(sentences, budget, overlap // _CHARS_PER_OVERLAP_WORD)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            num_sentences=len(sentences),
            max_chunk_size=budget,
        )
        return chunks

    def chunk_pdf(
        self,
        parsed: ParsedDocument,
        max_chunk_size: int | None = None,
        overlap_size: int | None = None,
    ) -> list[PageChunk]:
        """Chunk every page of *parsed* independently, keeping page provenance.

        Each page's full image list is attached to every chunk from that
        page; images are neither split nor deduplicated.
        """
        page_chunks: list[PageChunk] = []
        for page in parsed.pages:
            for piece in self.chunk_text(page.text, max_chunk_size, overlap_size):
                page_chunks.append(
                    PageChunk(
                        text=piece,
                        page_number=page.page_number,
                        images=list(page.images),
                    )
                )
        return page_chunks

    # ------------------------------------------------------------------
    # Normalisation / sentence splitting
    # ------------------------------------------------------------------

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse blank-line runs, then every whitespace run, to single spaces."""
        if not text:
            return ""
        collapsed = _BLANK_LINES_RE.sub("\n\n", text)
        return _WHITESPACE_RE.sub(" ", collapsed).strip()

    @staticmethod
    def split_sentences(text: str) -> list[str]:
        """Split normalised *text* after ``.``, ``!`` or ``?`` + whitespace."""
        if not text:
            return []
        return [s for s in _SENTENCE_BOUNDARY_RE.split(text) if s]

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    @staticmethod
    def _accumulate(sentences: list[str], budget: int, overlap_words: int) -> list[str]:
        """Greedily pack *sentences* into chunks of at most *budget* characters."""
        chunks: list[str] = []
        current = ""

        for sentence in sentences:
            candidate = f"{current} {sentence}" if current else sentence
            if len(candidate) <= budget or not current:
                current = candidate
                continue

            chunks.append(current)
            current = TextChunker._seed_with_overlap(current, sentence, budget, overlap_words)

        if current:
            chunks.append(current)
        return chunks

    @staticmethod
    def _seed_with_overlap(closed: str, sentence: str, budget: int, overlap_words: int) -> str:
        """Start a new chunk with the tail words of *closed* followed by *sentence*.

        Leading overlap words are dropped until the seeded chunk fits the
        budget; an over-long sentence ends up alone.
        """
        if overlap_words <= 0:
            return sentence

        tail = closed.split(" ")[-overlap_words:]
        while tail:
            seeded = " ".join([*tail, sentence])
            if len(seeded) <= budget:
                return seeded
            tail = tail[1:]
        return sentence
