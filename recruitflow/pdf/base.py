from abc import ABC, abstractmethod

from recruitflow.pdf.exceptions import PdfExtractionError


class BasePdfExtractor(ABC):
    """Contract for local PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract plain text from PDF bytes.

        Raises:
            PdfExtractionError: if extraction fails or the PDF has no text layer.
        """


def join_pages(pages: list[str]) -> str:
    """Join per-page text; a PDF without any text (e.g. a scan) is an error."""
    text = "\n\n".join(page.strip() for page in pages if page and page.strip())
    if not text:
        raise PdfExtractionError("PDF has no extractable text layer")
    return text
