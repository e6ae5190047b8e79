from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.factory import InferenceClientFactory
from recruitflow.inference.models import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    InferenceResponse,
    TextBlock,
)

__all__ = [
    "BaseInferenceClient",
    "ContentBlock",
    "DocumentBlock",
    "ImageBlock",
    "InferenceClientFactory",
    "InferenceResponse",
    "TextBlock",
]
