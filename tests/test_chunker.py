"""Tests for the PDFChunker."""

from unittest.mock import MagicMock

import pytest

from hybrid_rag.errors import DocumentExtractionError
from hybrid_rag.parsers.pdf_text_source import RawDocumentText
from hybrid_rag.processing.chunker import PDFChunker


@pytest.fixture
def chunker(tokenizer):
    return PDFChunker(chunk_size=4, chunk_overlap=1, tokenizer=tokenizer)


class TestPDFChunker:
    """Test the PDFChunker class."""

    def test_chunker_initialization(self, tokenizer):
        chunker = PDFChunker(chunk_size=512, chunk_overlap=50, tokenizer=tokenizer)
        assert chunker.chunk_size == 512
        assert chunker.chunk_overlap == 50

    def test_chunker_rejects_invalid_parameters(self, tokenizer):
        with pytest.raises(ValueError, match="chunk_size must be positive"):
            PDFChunker(chunk_size=0, chunk_overlap=0, tokenizer=tokenizer)

        with pytest.raises(ValueError, match="chunk_overlap must be non-negative"):
            PDFChunker(chunk_size=512, chunk_overlap=-1, tokenizer=tokenizer)

        with pytest.raises(ValueError, match="chunk_overlap must be less than chunk_size"):
            PDFChunker(chunk_size=100, chunk_overlap=100, tokenizer=tokenizer)

    def test_split_tokens_window_and_step(self, chunker):
        windows = chunker.split_tokens(list(range(10)))

        assert windows == [[0, 1, 2, 3], [3, 4, 5, 6], [6, 7, 8, 9], [9]]

    def test_split_tokens_empty(self, chunker):
        assert chunker.split_tokens([]) == []

    def test_chunk_text_metadata(self, chunker):
        base = {"document_name": "act.pdf", "page_number": 3, "section_heading": "PART I"}
        chunks = chunker.chunk_text("one two three four five six seven", base)

        assert [c.text for c in chunks] == ["one two three four", "four five six seven", "seven"]
        assert [c.metadata.chunk_index for c in chunks] == [0, 1, 2]
        assert all(c.metadata.page_number == 3 for c in chunks)
        assert all(c.metadata.section_heading == "PART I" for c in chunks)
        assert chunks[1].vector_id == "act.pdf:3:1"


class TestExtractPages:
    """Test page attribution of raw text."""

    def test_splits_on_page_breaks(self, chunker):
        pages = chunker.extract_pages("first page\fsecond page\fthird page", 3)

        assert [p.page_number for p in pages] == [1, 2, 3]
        assert [p.text for p in pages] == ["first page", "second page", "third page"]

    def test_blank_pages_dropped_without_renumbering(self, chunker):
        pages = chunker.extract_pages("first\f   \n \fthird", 3)

        assert [p.page_number for p in pages] == [1, 3]

    def test_extra_page_breaks_fold_into_last_page(self, chunker):
        pages = chunker.extract_pages("a\fb\fc", 2)

        assert [p.page_number for p in pages] == [1, 2]
        assert pages[1].text == "b\nc"

    def test_even_division_without_page_breaks(self, chunker):
        pages = chunker.extract_pages("aaaabbbbcc", 3)

        assert [p.text for p in pages] == ["aaaa", "bbbb", "cc"]

    def test_zero_page_count_treated_as_one(self, chunker):
        pages = chunker.extract_pages("only page", 0)

        assert len(pages) == 1
        assert pages[0].page_number == 1


class TestSectionHeading:
    """Test section heading detection."""

    def test_upper_case_line(self, chunker):
        assert chunker.extract_section_heading("\n\nGENERAL PROVISIONS\nbody text") == (
            "GENERAL PROVISIONS"
        )

    def test_keyword_line_case_insensitive(self, chunker):
        assert chunker.extract_section_heading("Article 5 - Liability\nbody") == (
            "Article 5 - Liability"
        )
        assert chunker.extract_section_heading("intro\nchapter two\nbody") == "chapter two"

    def test_only_first_five_lines_scanned(self, chunker):
        text = "a\nb\nc\nd\ne\nSECTION 9"
        assert chunker.extract_section_heading(text) == ""

    @pytest.mark.parametrize("line", ["12", "- 3 -", "§ 4.1"])
    def test_line_without_letters_counts_as_heading(self, chunker, line):
        assert chunker.extract_section_heading(f"{line}\nThe court held that") == line

    def test_no_heading_is_empty_string(self, chunker):
        assert chunker.extract_section_heading("plain text\nmore plain text") == ""


class TestProcessPDF:
    """Test end-to-end chunking of a document."""

    def test_chunk_index_restarts_per_page(self, chunker):
        raw = RawDocumentText(text="a b c d e f\fg h i", page_count=2)
        chunks = chunker.process_text(raw, "doc.pdf")

        by_page = {}
        for chunk in chunks:
            by_page.setdefault(chunk.metadata.page_number, []).append(chunk.metadata.chunk_index)

        assert by_page == {1: [0, 1], 2: [0]}

    def test_empty_document_returns_no_chunks(self, chunker):
        assert chunker.process_text(RawDocumentText(text=" \f \n", page_count=2), "doc.pdf") == []

    def test_process_pdf_uses_text_source(self, tokenizer):
        source = MagicMock()
        source.extract_raw_text.return_value = RawDocumentText(text="alpha beta", page_count=1)
        chunker = PDFChunker(chunk_size=4, chunk_overlap=1, tokenizer=tokenizer, text_source=source)

        chunks = chunker.process_pdf("/tmp/doc.pdf", "doc.pdf")

        source.extract_raw_text.assert_called_once_with("/tmp/doc.pdf")
        assert [c.text for c in chunks] == ["alpha beta"]

    def test_missing_file_raises_extraction_error(self, chunker, tmp_path):
        with pytest.raises(DocumentExtractionError):
            chunker.process_pdf(tmp_path / "missing.pdf", "missing.pdf")

    def test_unparseable_file_raises_extraction_error(self, chunker, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")

        with pytest.raises(DocumentExtractionError):
            chunker.process_pdf(path, "broken.pdf")

    def test_tokenizer_failure_wrapped(self, tokenizer):
        source = MagicMock()
        source.extract_raw_text.return_value = RawDocumentText(text="alpha", page_count=1)
        broken = MagicMock()
        broken.encode.side_effect = RuntimeError("boom")
        chunker = PDFChunker(chunk_size=4, chunk_overlap=1, tokenizer=broken, text_source=source)

        with pytest.raises(DocumentExtractionError):
            chunker.process_pdf("doc.pdf", "doc.pdf")
