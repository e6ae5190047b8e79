from enum import StrEnum

from recruitflow.inference.models import IMAGE_MEDIA_TYPES, PDF_MEDIA_TYPE

TEXT_FILE_SUFFIXES = (".md", ".txt", ".json", ".csv")
MARKDOWN_MEDIA_TYPE = "text/markdown"


class MediaKind(StrEnum):
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"
    UNSUPPORTED = "unsupported"


def is_text_like(media_type: str | None, file_name: str) -> bool:
    if media_type and (media_type.startswith("text/") or media_type == "application/json"):
        return True
    return file_name.lower().endswith(TEXT_FILE_SUFFIXES)


def classify_media(media_type: str | None, file_name: str) -> MediaKind:
    """Classify a file for extraction. Text-like detection takes priority."""
    if is_text_like(media_type, file_name):
        return MediaKind.TEXT
    if media_type == PDF_MEDIA_TYPE:
        return MediaKind.PDF
    if media_type in IMAGE_MEDIA_TYPES:
        return MediaKind.IMAGE
    return MediaKind.UNSUPPORTED
