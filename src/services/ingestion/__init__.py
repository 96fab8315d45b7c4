"""Document ingestion: extraction, chunking and the batch pipeline driver.

Pipeline stages overview:

1. **Extract** (extractor.py / DocumentExtractor) -- PDF and plain-text
   buffers become page-structured text plus PNG-encoded images.

2. **Chunk** (chunker.py / TextChunker) -- each page's text is split into
   overlapping, size-bounded, sentence-aligned chunks.

3. **Index** (via RAGService) -- chunks are embedded, persisted to the chunk
   store and upserted into the vector index.

DocumentPipeline (document_pipeline.py) drives a stored document through
all three stages and keeps its status record current.
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_pipeline import DocumentPipeline
from src.services.ingestion.extractor import DocumentExtractor

__all__ = [
    "DocumentExtractor",
    "DocumentPipeline",
    "TextChunker",
]
