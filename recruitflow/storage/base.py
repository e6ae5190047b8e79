from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """Contract for object storage adapters addressed by hierarchical path."""

    @abstractmethod
    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        add_random_suffix: bool = False,
    ) -> str:
        """Store bytes under path and return a durable, publicly fetchable URL.

        Raises:
            StorageError: if the object could not be stored.
        """

    @abstractmethod
    def get(self, url: str) -> bytes:
        """Fetch the bytes behind a URL returned by put().

        Raises:
            StorageError: if the object could not be fetched.
        """

    @abstractmethod
    def delete(self, url: str) -> None:
        """Delete the object behind a URL.

        Raises:
            StorageError: if the store rejected the delete.
        """


def attachment_path(candidate_id: str, stage: str | None, file_name: str) -> str:
    """Build the object path for a candidate file: candidates/{candidate}/{stage}/{file}"""
    return f"candidates/{candidate_id}/{stage or 'unclassified'}/{file_name}"
