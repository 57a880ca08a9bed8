"""Raw text extraction from PDF files using pypdf."""

from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from hybrid_rag.errors import DocumentExtractionError
from hybrid_rag.logging_config import get_logger

logger = get_logger(__name__)

# Separator written between page texts; the chunker splits on it when present
PAGE_BREAK = "\f"


@dataclass
class RawDocumentText:
    """Full document text with its page count."""

    text: str
    page_count: int


class PyPdfTextSource:
    """Extracts the text of a PDF as one string plus a page count."""

    def extract_raw_text(self, path: str | Path) -> RawDocumentText:
        """Read a PDF and return its text.

        Page texts are joined with a form feed so page boundaries survive
        where the extractor reports them.

        Args:
            path: Path to the PDF file

        Returns:
            RawDocumentText; ``page_count`` is at least 1

        Raises:
            DocumentExtractionError: If the file cannot be read or parsed
        """
        file_path = Path(path)
        if not file_path.exists():
            raise DocumentExtractionError(f"File not found: {file_path}")

        try:
            reader = PdfReader(file_path)
            page_texts = [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, OSError, ValueError) as e:
            logger.error(f"Failed to extract text from '{file_path.name}': {e}", exc_info=True)
            raise DocumentExtractionError(f"Failed to parse PDF '{file_path.name}': {e}") from e

        page_count = len(page_texts) or 1
        logger.info(f"Extracted text from '{file_path.name}' ({page_count} pages)")

        return RawDocumentText(text=PAGE_BREAK.join(page_texts), page_count=page_count)
