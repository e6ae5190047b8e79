class PdfExtractionError(Exception):
    """Raised when a local PDF engine cannot extract text."""
