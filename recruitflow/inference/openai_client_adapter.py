from typing import Any

import httpx
import openai

from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.exceptions import (
    InferenceError,
    InferenceLimitError,
    InferenceNetworkError,
)
from recruitflow.inference.models import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    InferenceResponse,
    TextBlock,
)
from recruitflow.logging.logger import Log

LIMIT_ERROR_CODES = frozenset(
    {"context_length_exceeded", "string_above_max_length", "request_too_large"}
)


class OpenAIClientAdapter(BaseInferenceClient):
    """Inference client adapter built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def complete(
        self,
        blocks: list[ContentBlock],
        *,
        max_tokens: int,
        system_prompt: str | None = None,
    ) -> InferenceResponse:
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append(
            {"role": "user", "content": [_to_content_part(block) for block in blocks]}
        )
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                max_completion_tokens=max_tokens,
                messages=messages,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise InferenceNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIStatusError as exc:
            if _is_limit_error(exc):
                raise InferenceLimitError(f"AI provider limit exceeded: {exc}") from exc
            raise InferenceError(f"AI provider API error: {exc}") from exc
        except openai.APIError as exc:
            raise InferenceError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise InferenceError("AI returned no choices")
        choice = response.choices[0]
        truncated = choice.finish_reason == "length"
        if truncated:
            Log.warning(f"AI output truncated at max_tokens={max_tokens}")
        return InferenceResponse(
            text=choice.message.content or "",
            model=response.model or self._model,
            truncated=truncated,
        )


def _is_limit_error(exc: openai.APIStatusError) -> bool:
    if exc.status_code == 413:
        return True
    return getattr(exc, "code", None) in LIMIT_ERROR_CODES


def _to_content_part(block: ContentBlock) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, DocumentBlock):
        return {
            "type": "file",
            "file": {
                "filename": block.file_name,
                "file_data": f"data:{block.media_type};base64,{block.data}",
            },
        }
    if isinstance(block, ImageBlock):
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{block.media_type};base64,{block.data}"},
        }
    raise TypeError(f"Unsupported content block: {type(block).__name__}")
