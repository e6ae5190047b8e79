from recruitflow.config.settings import Settings
from recruitflow.pdf.base import BasePdfExtractor
from recruitflow.pdf.pdfplumber_adapter import PdfPlumberAdapter
from recruitflow.pdf.pymupdf_adapter import PyMuPdfAdapter

INFERENCE_ENGINE = "inference"


class PdfExtractorFactory:
    """Creates the local PDF extractor selected in settings.

    The "inference" engine sends PDFs to the model as document blocks, so no
    local extractor is built for it.
    """

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor | None:
        engine = settings.pdf_engine.lower()
        if engine == INFERENCE_ENGINE:
            return None
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. "
                f"Choose from: {[INFERENCE_ENGINE, *cls.ADAPTERS]}"
            )
        return adapter_cls()
