"""Unit tests for TextChunker -- sentence-aligned, size-bounded, overlapping chunks."""

from __future__ import annotations

import pytest

from src.models.extraction import ParsedDocument, ParsedPage
from src.services.ingestion.chunker import TextChunker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _numbered_sentences(count: int) -> list[str]:
    return [f"Sentence number {i} ends here." for i in range(count)]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestEmptyInput:
    def test_empty_string(self) -> None:
        assert TextChunker().chunk_text("") == []

    def test_whitespace_only(self) -> None:
        assert TextChunker().chunk_text("   \n\n\t  ") == []


class TestNormalisation:
    def test_whitespace_runs_collapse(self) -> None:
        text = "First   line.\n\n\n\nSecond\tline."
        assert TextChunker.normalize(text) == "First line. Second line."

    def test_sentence_split_keeps_punctuation(self) -> None:
        sentences = TextChunker.split_sentences("Is it covered? Yes! It is. Done")
        assert sentences == ["Is it covered?", "Yes!", "It is.", "Done"]

    def test_short_text_is_one_chunk(self) -> None:
        assert TextChunker().chunk_text("Hello world") == ["Hello world"]


class TestSizeBound:
    def test_every_chunk_within_budget(self) -> None:
        text = " ".join(_numbered_sentences(40))
        chunks = TextChunker(max_chunk_size=100, overlap_size=50).chunk_text(text)

        assert len(chunks) > 1
        assert all(len(c) <= 100 for c in chunks)

    def test_repeated_short_sentences(self) -> None:
        text = " ".join(["Sentence."] * 20)
        chunks = TextChunker(max_chunk_size=20, overlap_size=5).chunk_text(text)

        assert len(chunks) > 1
        assert len(chunks[0]) <= 20
        assert all(len(c) <= 20 for c in chunks)

    def test_overlong_sentence_emitted_whole(self) -> None:
        long_sentence = "This sentence is far longer than the configured budget allows."
        text = f"Short one. {long_sentence} Tail."
        chunks = TextChunker(max_chunk_size=20, overlap_size=0).chunk_text(text)

        assert long_sentence in chunks
        assert chunks == ["Short one.", long_sentence, "Tail."]

    def test_per_call_override(self) -> None:
        text = " ".join(_numbered_sentences(10))
        chunker = TextChunker(max_chunk_size=1000, overlap_size=0)

        assert len(chunker.chunk_text(text)) == 1
        assert len(chunker.chunk_text(text, max_chunk_size=60)) > 1


class TestCoverage:
    def test_sentences_kept_in_order_without_overlap(self) -> None:
        sentences = _numbered_sentences(25)
        text = " ".join(sentences)
        chunks = TextChunker(max_chunk_size=90, overlap_size=0).chunk_text(text)

        assert " ".join(chunks) == text

    def test_text_recovered_after_removing_carried_words(self) -> None:
        text = " ".join(_numbered_sentences(12))
        chunks = TextChunker(max_chunk_size=80, overlap_size=30).chunk_text(text)
        assert len(chunks) > 2

        pieces = [chunks[0]]
        for prev, nxt in zip(chunks, chunks[1:]):
            prev_words, nxt_words = prev.split(" "), nxt.split(" ")
            carried = max(
                k for k in range(0, 4) if k == 0 or prev_words[-k:] == nxt_words[:k]
            )
            pieces.append(" ".join(nxt_words[carried:]))

        assert " ".join(pieces) == text

    def test_overlap_below_one_word_carries_nothing(self) -> None:
        text = " ".join(_numbered_sentences(10))
        chunks = TextChunker(max_chunk_size=60, overlap_size=9).chunk_text(text)

        assert " ".join(chunks) == text


class TestOverlap:
    def test_later_chunks_start_with_previous_tail(self) -> None:
        text = " ".join(_numbered_sentences(12))
        chunks = TextChunker(max_chunk_size=80, overlap_size=30).chunk_text(text)

        assert len(chunks) > 2
        for prev, nxt in zip(chunks, chunks[1:]):
            prev_words = prev.split(" ")
            nxt_words = nxt.split(" ")
            assert nxt_words[:3] == prev_words[-3:]

    def test_overlap_dropped_when_it_would_break_budget(self) -> None:
        # Each sentence nearly fills the budget, so no carried word fits.
        sentences = ["Aaaa bbbb cccc dddd eeee.", "Ffff gggg hhhh iiii jjjj."]
        chunks = TextChunker(max_chunk_size=26, overlap_size=200).chunk_text(" ".join(sentences))

        assert chunks == sentences


class TestPageAwareChunking:
    def test_chunks_never_span_pages(self) -> None:
        parsed = ParsedDocument(
            full_text="Page one text.\nPage two text.",
            pages=[
                ParsedPage(page_number=1, text="Page one text."),
                ParsedPage(page_number=2, text="Page two text.", images=["data:image/png;base64,AA=="]),
            ],
            page_count=2,
        )
        chunks = TextChunker().chunk_pdf(parsed)

        assert [(c.page_number, c.text) for c in chunks] == [
            (1, "Page one text."),
            (2, "Page two text."),
        ]
        assert chunks[0].images == []
        assert chunks[1].images == ["data:image/png;base64,AA=="]

    def test_blank_page_produces_no_chunks(self) -> None:
        parsed = ParsedDocument(
            full_text="\nText.",
            pages=[ParsedPage(page_number=1, text=""), ParsedPage(page_number=2, text="Text.")],
            page_count=2,
        )
        chunks = TextChunker().chunk_pdf(parsed)

        assert [c.page_number for c in chunks] == [2]


class TestConfiguration:
    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.max_chunk_size == 1000
        assert chunker.overlap_size == 200

    @pytest.mark.parametrize("max_size, overlap", [(0, 10), (-5, 10), (100, -1)])
    def test_invalid_configuration_rejected(self, max_size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_chunk_size=max_size, overlap_size=overlap)
