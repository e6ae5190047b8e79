from abc import ABC, abstractmethod

from recruitflow.inference.models import ContentBlock, InferenceResponse


class BaseInferenceClient(ABC):
    """Contract for provider-specific multimodal inference clients."""

    @abstractmethod
    def complete(
        self,
        blocks: list[ContentBlock],
        *,
        max_tokens: int,
        system_prompt: str | None = None,
    ) -> InferenceResponse:
        """Send one user message made of ordered content blocks.

        Raises:
            InferenceLimitError: if the request exceeds a size or token limit.
            InferenceError: on any other provider failure.
        """
