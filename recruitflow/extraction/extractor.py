"""Turns stored files into prompt text, one strategy per media kind."""

from recruitflow.extraction.exceptions import ExtractionLimitError
from recruitflow.extraction.media import MediaKind, classify_media
from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.exceptions import InferenceLimitError
from recruitflow.inference.models import DocumentBlock, ImageBlock, TextBlock
from recruitflow.inference.prompt_loader import load_prompt_template
from recruitflow.logging.logger import Log
from recruitflow.pdf.base import BasePdfExtractor
from recruitflow.pdf.exceptions import PdfExtractionError
from recruitflow.storage.base import BaseStorage
from recruitflow.storage.exceptions import StorageError


def unreadable_placeholder(file_name: str) -> str:
    return f"[Unable to load file content: {file_name}]"


def unsupported_placeholder(media_type: str | None, file_name: str) -> str:
    return (
        f"[{media_type or 'unknown'} file '{file_name}' is not supported "
        "for content extraction]"
    )


class ContentExtractor:
    """Extracts text from text, PDF and image files.

    Text is fetched and decoded; PDFs and images go to the inference client as
    document and image blocks. Failures degrade to a bracketed placeholder so
    a single bad file never aborts a larger aggregation. The one exception is
    a PDF that exceeds the model's size limit, which raises
    ExtractionLimitError naming the file.
    """

    def __init__(
        self,
        *,
        storage: BaseStorage,
        inference_client: BaseInferenceClient,
        max_tokens: int,
        pdf_extractor: BasePdfExtractor | None = None,
    ) -> None:
        self._storage = storage
        self._inference_client = inference_client
        self._max_tokens = max_tokens
        self._pdf_extractor = pdf_extractor
        self._pdf_instruction = load_prompt_template("pdf_extraction.txt")
        self._image_instruction = load_prompt_template("image_description.txt")

    def extract(self, blob_url: str, media_type: str | None, file_name: str) -> str:
        kind = classify_media(media_type, file_name)
        if kind is MediaKind.TEXT:
            return self.read_text(blob_url, file_name)
        if kind is MediaKind.PDF:
            return self._extract_pdf(blob_url, file_name)
        if kind is MediaKind.IMAGE:
            return self._describe_image(blob_url, media_type or "", file_name)
        return unsupported_placeholder(media_type, file_name)

    def load_text(self, blob_url: str) -> str:
        """Fetch and decode a text file.

        Raises:
            StorageError: if the file cannot be fetched.
        """
        return self._storage.get(blob_url).decode("utf-8", errors="replace")

    def read_text(self, blob_url: str, file_name: str) -> str:
        """Fetch and decode a text file, or return a placeholder on failure."""
        try:
            return self.load_text(blob_url)
        except StorageError as exc:
            Log.warning(f"Failed to load text file {file_name}: {exc}")
            return unreadable_placeholder(file_name)

    def _extract_pdf(self, blob_url: str, file_name: str) -> str:
        try:
            raw = self._storage.get(blob_url)
            if self._pdf_extractor is not None:
                local_text = self._extract_pdf_locally(self._pdf_extractor, raw, file_name)
                if local_text is not None:
                    return local_text
            response = self._inference_client.complete(
                [
                    DocumentBlock.from_bytes(raw, file_name),
                    TextBlock(self._pdf_instruction),
                ],
                max_tokens=self._max_tokens,
            )
        except InferenceLimitError as exc:
            raise ExtractionLimitError(file_name, str(exc)) from exc
        except Exception as exc:
            Log.warning(f"PDF extraction failed for {file_name}: {exc}")
            return f"[Failed to extract PDF {file_name}: {exc}]"
        Log.info(f"Extracted {len(response.text)} chars from PDF {file_name}")
        return response.text or f"[No text extracted from PDF {file_name}]"

    @staticmethod
    def _extract_pdf_locally(
        pdf_extractor: BasePdfExtractor, raw: bytes, file_name: str
    ) -> str | None:
        try:
            return pdf_extractor.extract(raw)
        except PdfExtractionError as exc:
            Log.warning(f"Local PDF extraction failed for {file_name}, using model: {exc}")
            return None

    def _describe_image(self, blob_url: str, media_type: str, file_name: str) -> str:
        try:
            raw = self._storage.get(blob_url)
            response = self._inference_client.complete(
                [
                    ImageBlock.from_bytes(raw, media_type),
                    TextBlock(self._image_instruction),
                ],
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            Log.warning(f"Image description failed for {file_name}: {exc}")
            return f"[Failed to describe image {file_name}: {exc}]"
        return response.text or f"[No description returned for image {file_name}]"
