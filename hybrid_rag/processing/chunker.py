"""Token-window chunking of PDF text."""

import math
import re
from pathlib import Path
from typing import Any

from hybrid_rag.errors import DocumentExtractionError
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.chunk import ChunkMetadata, DocumentChunk, PageText
from hybrid_rag.parsers.pdf_text_source import PAGE_BREAK, PyPdfTextSource, RawDocumentText
from hybrid_rag.processing.tokenizer import TiktokenTokenizer, Tokenizer

logger = get_logger(__name__)

HEADING_KEYWORDS = re.compile(r"section|chapter|article|part", re.IGNORECASE)
HEADING_SCAN_LINES = 5


class PDFChunker:
    """Splits PDF text into overlapping, token-bounded chunks.

    Text is attributed to pages first, then each page is walked with a
    sliding token window of ``chunk_size`` tokens that advances by
    ``chunk_size - chunk_overlap`` tokens. Chunk sizes are measured with the
    tokenizer of the target model, not in characters.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        tokenizer: Tokenizer | None = None,
        text_source: PyPdfTextSource | None = None,
    ):
        """Initialize the chunker.

        Args:
            chunk_size: Maximum tokens per chunk
            chunk_overlap: Tokens shared by consecutive chunks of a page
            tokenizer: Tokenizer (defaults to tiktoken ``cl100k_base``)
            text_source: PDF text source (defaults to pypdf)

        Raises:
            ValueError: If chunk_overlap >= chunk_size or if values are negative
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap must be non-negative")
        if chunk_overlap >= chunk_size:
            # The window would never advance
            raise ValueError("chunk_overlap must be less than chunk_size")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.tokenizer = tokenizer or TiktokenTokenizer()
        self.text_source = text_source or PyPdfTextSource()

    def extract_pages(self, raw_text: str, page_count: int) -> list[PageText]:
        """Distribute raw document text across pages.

        If the text carries page-break characters it is split on them;
        otherwise it is cut into ``page_count`` slices of equal character
        length. Pages that are empty after trimming are dropped without
        renumbering the remaining pages.

        Args:
            raw_text: Full extracted text
            page_count: Page count reported by the extractor

        Returns:
            Pages in order, each with trimmed text and a section heading
        """
        page_count = max(page_count, 1)

        if PAGE_BREAK in raw_text:
            segments = raw_text.split(PAGE_BREAK)
            if len(segments) > page_count:
                # Extra breaks belong to the last real page
                overflow = "\n".join(segments[page_count - 1 :])
                segments = segments[: page_count - 1] + [overflow]
        else:
            chars_per_page = math.ceil(len(raw_text) / page_count)
            segments = [
                raw_text[i * chars_per_page : (i + 1) * chars_per_page] for i in range(page_count)
            ]

        pages: list[PageText] = []
        for i, segment in enumerate(segments):
            page_text = segment.strip()
            if not page_text:
                continue
            pages.append(
                PageText(
                    page_number=i + 1,
                    text=page_text,
                    section_heading=self.extract_section_heading(page_text),
                )
            )

        return pages

    def extract_section_heading(self, text: str) -> str:
        """Find a section heading among the first non-empty lines of a page.

        A line counts as a heading if upper-casing leaves it unchanged (so a
        bare page number like "12" qualifies) or if it mentions a
        legal-structure keyword (section, chapter, article, part).

        Args:
            text: Page text

        Returns:
            The first matching line, or an empty string
        """
        lines = [line.strip() for line in text.splitlines() if line.strip()]

        for line in lines[:HEADING_SCAN_LINES]:
            if line == line.upper() or HEADING_KEYWORDS.search(line):
                return line

        return ""

    def split_tokens(self, tokens: list[int]) -> list[list[int]]:
        """Cut a token sequence into overlapping windows.

        Args:
            tokens: Token IDs of one page

        Returns:
            Windows ``tokens[start:start + chunk_size]`` for
            ``start = 0, step, 2 * step, ...`` while ``start < len(tokens)``
        """
        step = self.chunk_size - self.chunk_overlap
        return [tokens[start : start + self.chunk_size] for start in range(0, len(tokens), step)]

    def chunk_text(self, text: str, base_metadata: dict[str, Any]) -> list[DocumentChunk]:
        """Split page text into token-bounded chunks.

        Args:
            text: Text of a single page
            base_metadata: ``document_name``, ``page_number`` and
                ``section_heading`` shared by every chunk of the page

        Returns:
            Chunks with ``chunk_index`` counting up from 0
        """
        tokens = self.tokenizer.encode(text)

        return [
            DocumentChunk(
                text=self.tokenizer.decode(window),
                metadata=ChunkMetadata(**base_metadata, chunk_index=chunk_index),
            )
            for chunk_index, window in enumerate(self.split_tokens(tokens))
        ]

    def process_text(self, raw: RawDocumentText, document_name: str) -> list[DocumentChunk]:
        """Chunk already extracted document text.

        Args:
            raw: Extracted text and page count
            document_name: Name recorded in every chunk's metadata

        Returns:
            All chunks in page order
        """
        pages = self.extract_pages(raw.text, raw.page_count)
        if not pages:
            logger.warning(f"No text content found in '{document_name}'")
            return []

        all_chunks: list[DocumentChunk] = []
        for page in pages:
            all_chunks.extend(
                self.chunk_text(
                    page.text,
                    {
                        "document_name": document_name,
                        "page_number": page.page_number,
                        "section_heading": page.section_heading,
                    },
                )
            )

        # Never cite a page beyond the last one that produced text
        max_page_number = max(page.page_number for page in pages)
        for chunk in all_chunks:
            chunk.metadata.page_number = min(chunk.metadata.page_number, max_page_number)

        logger.info(
            f"Chunked '{document_name}' into {len(all_chunks)} chunks "
            f"across {len(pages)} pages (chunk_size={self.chunk_size}, "
            f"chunk_overlap={self.chunk_overlap})"
        )

        return all_chunks

    def process_pdf(self, path: str | Path, document_name: str) -> list[DocumentChunk]:
        """Extract and chunk a PDF.

        Args:
            path: Path to the PDF file
            document_name: Name recorded in every chunk's metadata

        Returns:
            All chunks in page order

        Raises:
            DocumentExtractionError: If the file cannot be read or parsed
        """
        raw = self.text_source.extract_raw_text(path)
        try:
            return self.process_text(raw, document_name)
        except DocumentExtractionError:
            raise
        except Exception as e:
            logger.error(f"Failed to chunk '{document_name}': {e}", exc_info=True)
            raise DocumentExtractionError(f"Failed to process '{document_name}': {e}") from e
