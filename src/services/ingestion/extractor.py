"""Binary document extraction for PDF and plain-text uploads.

Reads an in-memory document buffer and returns a
:class:`~src.models.extraction.ParsedDocument`: page-structured text plus
every raster image the pages paint, re-encoded as PNG data URIs.

PDFs are parsed with PyMuPDF (fitz).  For each page the ``"dict"`` text
extraction is walked in the order the renderer reports it: the raw text of
every span is joined with single spaces to form the page text (the chunker
normalises whitespace later), and image blocks (both
XObject and inline images) are decoded with Pillow, expanded to RGBA and
re-encoded as PNG.

Unsupported media types raise :class:`~src.utils.errors.UnsupportedTypeError`
before any parsing is attempted; corrupt or non-PDF bytes raise
:class:`~src.utils.errors.ExtractionError` instead of yielding an empty
result.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.models.extraction import ExtractedImage, ParsedDocument, ParsedPage
from src.utils.errors import ExtractionError, UnsupportedTypeError
from src.utils.image_encoding import decode_image, encode_png_data_uri, to_rgba

logger = structlog.get_logger(logger_name=__name__)

PDF_MEDIA_TYPE = "application/pdf"
TEXT_MEDIA_TYPE = "text/plain"

SUPPORTED_MEDIA_TYPES = frozenset({PDF_MEDIA_TYPE, TEXT_MEDIA_TYPE})

# Block types in PyMuPDF's "dict" output.
_TEXT_BLOCK = 0
_IMAGE_BLOCK = 1


def _base_media_type(media_type: str) -> str:
    """Strip parameters (``; charset=utf-8``) and normalise case."""
    return media_type.split(";", 1)[0].strip().lower()


class DocumentExtractor:
    """Turns raw document bytes into page-structured text and images."""

    def extract(self, data: bytes, media_type: str) -> ParsedDocument:
        """Extract *data* according to its declared *media_type*.

        Raises
        ------
        UnsupportedTypeError
            For media types other than PDF and plain text.
        ExtractionError
            If the buffer cannot be parsed.
        """
        base_type = _base_media_type(media_type)
        if base_type == PDF_MEDIA_TYPE:
            return self.extract_pdf(data)
        if base_type == TEXT_MEDIA_TYPE:
            return self.extract_text(data)
        raise UnsupportedTypeError(message=f"Unsupported file type: {media_type}")

    # ------------------------------------------------------------------
    # Plain text
    # ------------------------------------------------------------------

    @staticmethod
    def extract_text(data: bytes) -> ParsedDocument:
        """Decode *data* as UTF-8; the whole content is page 1."""
        text = data.decode("utf-8", errors="replace")
        page = ParsedPage(page_number=1, text=text)
        return ParsedDocument(full_text=text, pages=[page], images=[], page_count=1)

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def extract_pdf(self, data: bytes) -> ParsedDocument:
        """Parse a PDF buffer page by page."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.warning("pdf_open_failed", error=str(exc), size=len(data))
            raise ExtractionError(
                message=f"Unable to parse PDF: {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[ParsedPage] = []
        images: list[ExtractedImage] = []
        try:
            if doc.page_count == 0:
                raise ExtractionError(message="PDF contains no pages", provider_name="pymupdf")

            for index in range(doc.page_count):
                page_number = index + 1
                try:
                    page_dict = doc[index].get_text("dict")
                except Exception as exc:
                    raise ExtractionError(
                        message=f"Unable to read page {page_number}: {exc}",
                        provider_name="pymupdf",
                    ) from exc

                text, page_images = self._read_page(page_dict, page_number)
                pages.append(ParsedPage(page_number=page_number, text=text, images=page_images))
                images.extend(
                    ExtractedImage(page_number=page_number, data_uri=uri) for uri in page_images
                )
        finally:
            doc.close()

        full_text = "\n".join(page.text for page in pages)
        logger.info(
            "pdf_extracted",
            pages=len(pages),
            images=len(images),
            chars=len(full_text),
        )
        return ParsedDocument(
            full_text=full_text,
            pages=pages,
            images=images,
            page_count=len(pages),
        )

    def _read_page(self, page_dict: dict, page_number: int) -> tuple[str, list[str]]:
        """Collect span text and PNG data URIs from one page's block dict."""
        fragments: list[str] = []
        page_images: list[str] = []

        for block in page_dict.get("blocks", []):
            block_type = block.get("type")
            if block_type == _TEXT_BLOCK:
                for line in block.get("lines", []):
                    fragments.extend(span.get("text", "") for span in line.get("spans", []))
            elif block_type == _IMAGE_BLOCK:
                data_uri = self._encode_image_block(block, page_number)
                if data_uri is not None:
                    page_images.append(data_uri)

        return " ".join(fragments), page_images

    @staticmethod
    def _encode_image_block(block: dict, page_number: int) -> str | None:
        """Decode an image block to RGBA and re-encode it as a PNG data URI.

        An image Pillow cannot decode is skipped; the rest of the page is
        still extracted.
        """
        raw = block.get("image")
        if not raw:
            return None
        try:
            image = to_rgba(decode_image(raw))
            return encode_png_data_uri(image)
        except Exception as exc:
            logger.warning(
                "pdf_image_skipped",
                page=page_number,
                ext=block.get("ext"),
                error=str(exc),
            )
            return None
