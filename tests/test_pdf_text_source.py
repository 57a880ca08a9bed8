"""Tests for PDF text extraction."""

import pytest
from pypdf import PdfWriter

from hybrid_rag.errors import DocumentExtractionError
from hybrid_rag.parsers.pdf_text_source import PAGE_BREAK, PyPdfTextSource


@pytest.fixture
def source():
    return PyPdfTextSource()


def test_missing_file(source, tmp_path):
    with pytest.raises(DocumentExtractionError, match="File not found"):
        source.extract_raw_text(tmp_path / "missing.pdf")


def test_corrupt_file(source, tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    with pytest.raises(DocumentExtractionError, match="broken.pdf"):
        source.extract_raw_text(path)


def test_blank_pages_keep_page_count(source, tmp_path):
    path = tmp_path / "blank.pdf"
    writer = PdfWriter()
    for _ in range(3):
        writer.add_blank_page(width=612, height=792)
    with open(path, "wb") as f:
        writer.write(f)

    raw = source.extract_raw_text(path)

    assert raw.page_count == 3
    assert raw.text.count(PAGE_BREAK) == 2
    assert raw.text.strip(PAGE_BREAK).strip() == ""
