import base64
from dataclasses import dataclass

IMAGE_MEDIA_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class DocumentBlock:
    """A base64-encoded PDF sent for the model to read."""

    data: str
    file_name: str = "document.pdf"
    media_type: str = PDF_MEDIA_TYPE

    @classmethod
    def from_bytes(cls, raw: bytes, file_name: str) -> "DocumentBlock":
        return cls(data=base64.b64encode(raw).decode("ascii"), file_name=file_name)


@dataclass(frozen=True)
class ImageBlock:
    """A base64-encoded image sent for the model to describe."""

    data: str
    media_type: str

    @classmethod
    def from_bytes(cls, raw: bytes, media_type: str) -> "ImageBlock":
        if media_type not in IMAGE_MEDIA_TYPES:
            raise ValueError(f"Unsupported image media type: {media_type}")
        return cls(data=base64.b64encode(raw).decode("ascii"), media_type=media_type)


ContentBlock = TextBlock | DocumentBlock | ImageBlock


@dataclass(frozen=True)
class InferenceResponse:
    """Text of the first choice plus the metadata recorded with job output."""

    text: str
    model: str
    truncated: bool = False
