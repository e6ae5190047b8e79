import pytest

from recruitflow.pdf.exceptions import PdfExtractionError
from recruitflow.pdf.pdfplumber_adapter import PdfPlumberAdapter
from recruitflow.pdf.pymupdf_adapter import PyMuPdfAdapter


class TestPdfPlumberAdapter:
    def test_extract_returns_text(self, sample_pdf_bytes: bytes) -> None:
        adapter = PdfPlumberAdapter()
        result = adapter.extract(sample_pdf_bytes)
        assert "Hello PDF World" in result

    def test_extract_multi_page(self, multi_page_pdf_bytes: bytes) -> None:
        adapter = PdfPlumberAdapter()
        result = adapter.extract(multi_page_pdf_bytes)
        assert "Page one content" in result
        assert "Page two content" in result
        assert result.index("Page one") < result.index("Page two")

    def test_extract_pdf_without_text_raises(self, empty_pdf_bytes: bytes) -> None:
        adapter = PdfPlumberAdapter()
        with pytest.raises(PdfExtractionError, match="no extractable text"):
            adapter.extract(empty_pdf_bytes)

    def test_extract_raises_on_invalid_bytes(self) -> None:
        adapter = PdfPlumberAdapter()
        with pytest.raises(PdfExtractionError, match="pdfplumber"):
            adapter.extract(b"not a pdf")

    def test_extract_result_is_stripped(self, sample_pdf_bytes: bytes) -> None:
        adapter = PdfPlumberAdapter()
        result = adapter.extract(sample_pdf_bytes)
        assert result == result.strip()


class TestPyMuPdfAdapter:
    def test_extract_returns_text(self, sample_pdf_bytes: bytes) -> None:
        adapter = PyMuPdfAdapter()
        assert "Hello PDF World" in adapter.extract(sample_pdf_bytes)

    def test_extract_multi_page(self, multi_page_pdf_bytes: bytes) -> None:
        adapter = PyMuPdfAdapter()
        result = adapter.extract(multi_page_pdf_bytes)
        assert "Page one content" in result
        assert "Page two content" in result

    def test_extract_pdf_without_text_raises(self, empty_pdf_bytes: bytes) -> None:
        adapter = PyMuPdfAdapter()
        with pytest.raises(PdfExtractionError):
            adapter.extract(empty_pdf_bytes)

    def test_extract_raises_on_invalid_bytes(self) -> None:
        adapter = PyMuPdfAdapter()
        with pytest.raises(PdfExtractionError, match="pymupdf"):
            adapter.extract(b"not a pdf")
