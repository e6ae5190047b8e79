from typing import ClassVar

from recruitflow.config.settings import Settings
from recruitflow.inference.client_base import BaseInferenceClient
from recruitflow.inference.example_client_adapter import ExampleClientAdapter
from recruitflow.inference.openai_client_adapter import OpenAIClientAdapter


class InferenceClientFactory:
    """Creates the configured inference client adapter."""

    PROVIDERS: ClassVar[tuple[str, ...]] = ("example", "openai", "openai_compatible")

    @classmethod
    def create(cls, settings: Settings) -> BaseInferenceClient:
        """Create a configured inference client from application settings."""
        provider = settings.inference_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        if provider not in cls.PROVIDERS:
            raise ValueError(
                f"Unknown inference provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
            )
        return OpenAIClientAdapter(
            api_key=settings.openai_api_key,
            model=settings.openai_model_name,
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        url = settings.openai_base_url.strip()
        if provider == "openai":
            return url or None
        if not url:
            raise ValueError(
                "openai_base_url is required for inference_provider=openai_compatible"
            )
        return url
