from unittest.mock import MagicMock, patch

import pytest

from recruitflow.inference.example_client_adapter import ExampleClientAdapter
from recruitflow.inference.factory import InferenceClientFactory


def _make_settings(provider: str, base_url: str = "") -> MagicMock:
    return MagicMock(
        inference_provider=provider,
        openai_api_key="k",
        openai_base_url=base_url,
        openai_model_name="gpt-test",
        openai_timeout_seconds=30,
    )


class TestInferenceClientFactory:
    def test_creates_example_adapter(self) -> None:
        client = InferenceClientFactory.create(_make_settings("example"))
        assert isinstance(client, ExampleClientAdapter)

    @patch("recruitflow.inference.factory.OpenAIClientAdapter")
    def test_creates_openai_adapter_with_default_base_url(self, mock_adapter: MagicMock) -> None:
        InferenceClientFactory.create(_make_settings("openai"))
        mock_adapter.assert_called_once_with(
            api_key="k", model="gpt-test", timeout_seconds=30, base_url=None
        )

    @patch("recruitflow.inference.factory.OpenAIClientAdapter")
    def test_openai_compatible_uses_base_url(self, mock_adapter: MagicMock) -> None:
        InferenceClientFactory.create(
            _make_settings("openai_compatible", base_url=" http://llm.local/v1 ")
        )
        assert mock_adapter.call_args.kwargs["base_url"] == "http://llm.local/v1"

    def test_openai_compatible_requires_base_url(self) -> None:
        with pytest.raises(ValueError, match="openai_base_url is required"):
            InferenceClientFactory.create(_make_settings("openai_compatible"))

    def test_raises_for_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown inference provider"):
            InferenceClientFactory.create(_make_settings("nope"))
