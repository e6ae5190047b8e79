class ExtractionError(Exception):
    """Base exception for content extraction errors."""


class ExtractionLimitError(ExtractionError):
    """Raised when a file is too large for the inference provider to read.

    This is the only extraction failure that aborts the caller.
    """

    def __init__(self, file_name: str, detail: str = "") -> None:
        self.file_name = file_name
        message = f"File '{file_name}' exceeds the model's size limit"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
