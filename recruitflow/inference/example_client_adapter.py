"""Example inference client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseInferenceClient and register the provider in InferenceClientFactory.
"""

from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.models import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    InferenceResponse,
    TextBlock,
)


class ExampleClientAdapter(BaseInferenceClient):
    """Offline adapter that summarizes the request instead of calling a model.

    No network calls. Useful for local development, tests, and as a template
    for building real provider adapters.
    """

    MODEL = "example"

    def complete(
        self,
        blocks: list[ContentBlock],
        *,
        max_tokens: int,
        system_prompt: str | None = None,
    ) -> InferenceResponse:
        _ = max_tokens, system_prompt
        text_chars = sum(len(b.text) for b in blocks if isinstance(b, TextBlock))
        documents = sum(1 for b in blocks if isinstance(b, DocumentBlock))
        images = sum(1 for b in blocks if isinstance(b, ImageBlock))
        return InferenceResponse(
            text=(
                "# Example analysis\n\n"
                f"Received {text_chars} characters of text, "
                f"{documents} document(s) and {images} image(s)."
            ),
            model=self.MODEL,
        )
