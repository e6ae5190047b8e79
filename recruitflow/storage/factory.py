from pathlib import Path

from recruitflow.config.settings import Settings
from recruitflow.storage.base import BaseStorage
from recruitflow.storage.blob_adapter import BlobStorage
from recruitflow.storage.local_adapter import LocalStorage


class StorageFactory:
    """Creates the object storage adapter selected in settings."""

    BACKENDS = ("local", "blob")

    @classmethod
    def create(cls, settings: Settings) -> BaseStorage:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalStorage(
                public_base_url=settings.storage_public_base_url,
                files_root=Path(settings.storage_root),
                timeout_seconds=settings.storage_timeout_seconds,
            )
        if backend == "blob":
            return BlobStorage(
                api_url=settings.blob_api_url,
                token=settings.blob_token,
                timeout_seconds=settings.storage_timeout_seconds,
            )
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
