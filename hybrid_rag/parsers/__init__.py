"""PDF text sources."""

from hybrid_rag.parsers.pdf_text_source import PAGE_BREAK, PyPdfTextSource, RawDocumentText

__all__ = ["PAGE_BREAK", "PyPdfTextSource", "RawDocumentText"]
