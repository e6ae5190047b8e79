from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from recruitflow.inference.exceptions import (
    InferenceError,
    InferenceLimitError,
    InferenceNetworkError,
)
from recruitflow.inference.models import DocumentBlock, ImageBlock, TextBlock
from recruitflow.inference.openai_client_adapter import OpenAIClientAdapter


def _make_mock_response(
    content: str | None, finish_reason: str = "stop", model: str = "gpt-test"
) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    choice.finish_reason = finish_reason
    response = MagicMock()
    response.choices = [choice]
    response.model = model
    return response


def _status_error(status_code: int, code: str | None = None) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    body = {"code": code, "message": "rejected"} if code else None
    return openai.APIStatusError("rejected", response=response, body=body)


def _make_adapter(mock_client: MagicMock) -> OpenAIClientAdapter:
    with patch(
        "recruitflow.inference.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIClientAdapter(api_key="k", model="gpt-test", timeout_seconds=30)


class TestComplete:
    def test_returns_text_and_model(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("# Report")
        adapter = _make_adapter(mock_client)

        response = adapter.complete([TextBlock("hi")], max_tokens=100)

        assert response.text == "# Report"
        assert response.model == "gpt-test"
        assert response.truncated is False

    def test_passes_system_prompt_and_token_limit(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("ok")
        adapter = _make_adapter(mock_client)

        adapter.complete([TextBlock("hi")], max_tokens=123, system_prompt="be brief")

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 123
        assert kwargs["messages"][0] == {"role": "system", "content": "be brief"}
        assert kwargs["messages"][1]["role"] == "user"

    def test_converts_blocks_to_content_parts(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("ok")
        adapter = _make_adapter(mock_client)

        adapter.complete(
            [
                DocumentBlock.from_bytes(b"%PDF", "cv.pdf"),
                ImageBlock.from_bytes(b"img", "image/png"),
                TextBlock("describe"),
            ],
            max_tokens=10,
        )

        parts = mock_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert parts[0]["type"] == "file"
        assert parts[0]["file"]["filename"] == "cv.pdf"
        assert parts[0]["file"]["file_data"].startswith("data:application/pdf;base64,")
        assert parts[1]["type"] == "image_url"
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert parts[2] == {"type": "text", "text": "describe"}

    def test_marks_truncated_output(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(
            "partial", finish_reason="length"
        )
        adapter = _make_adapter(mock_client)

        assert adapter.complete([TextBlock("hi")], max_tokens=5).truncated is True

    def test_none_content_becomes_empty_text(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        adapter = _make_adapter(mock_client)

        assert adapter.complete([TextBlock("hi")], max_tokens=5).text == ""

    def test_raises_error_for_no_choices(self) -> None:
        mock_client = MagicMock()
        response = _make_mock_response("x")
        response.choices = []
        mock_client.chat.completions.create.return_value = response
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceError, match="no choices"):
            adapter.complete([TextBlock("hi")], max_tokens=5)


class TestErrorMapping:
    def test_raises_network_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceNetworkError, match="network error"):
            adapter.complete([TextBlock("hi")], max_tokens=5)

    def test_raises_network_error_on_timeout(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.TimeoutException("timeout")
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceNetworkError, match="network error"):
            adapter.complete([TextBlock("hi")], max_tokens=5)

    def test_payload_too_large_is_a_limit_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = _status_error(413)
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceLimitError, match="limit exceeded"):
            adapter.complete([TextBlock("hi")], max_tokens=5)

    def test_context_length_code_is_a_limit_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = _status_error(
            400, code="context_length_exceeded"
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceLimitError):
            adapter.complete([TextBlock("hi")], max_tokens=5)

    def test_other_status_errors_are_generic(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = _status_error(500)
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceError, match="API error") as exc_info:
            adapter.complete([TextBlock("hi")], max_tokens=5)
        assert not isinstance(exc_info.value, InferenceLimitError)

    def test_raises_error_on_api_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="server error",
            request=MagicMock(),
            body=None,
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(InferenceError, match="API error"):
            adapter.complete([TextBlock("hi")], max_tokens=5)
