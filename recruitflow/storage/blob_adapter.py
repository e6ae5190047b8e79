from typing import Any
from urllib.parse import quote

import httpx

from recruitflow.storage.base import BaseStorage
from recruitflow.storage.exceptions import StorageError


class BlobStorage(BaseStorage):
    """Object storage adapter for an HTTP blob API (Vercel Blob compatible)."""

    API_VERSION = "7"

    def __init__(
        self,
        *,
        api_url: str,
        token: str,
        timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        if not token:
            raise ValueError("blob_token is required for storage_backend=blob")
        self._api_url = api_url.rstrip("/")
        self._client = client if client is not None else httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
        )
        self._auth_headers = {
            "authorization": f"Bearer {token}",
            "x-api-version": self.API_VERSION,
        }

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        add_random_suffix: bool = False,
    ) -> str:
        headers = {
            **self._auth_headers,
            "x-content-type": content_type,
            "x-add-random-suffix": "1" if add_random_suffix else "0",
        }
        payload = self._request(
            "PUT",
            f"{self._api_url}/{quote(path)}",
            headers=headers,
            content=data,
        )
        url = payload.get("url")
        if not isinstance(url, str) or not url:
            raise StorageError(f"Blob API returned no URL for {path}")
        return url

    def get(self, url: str) -> bytes:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"Failed to fetch {url}: {exc}") from exc
        return response.content

    def delete(self, url: str) -> None:
        self._request(
            "POST",
            f"{self._api_url}/delete",
            headers=self._auth_headers,
            json={"urls": [url]},
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Blob API {method} failed with {exc.response.status_code}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Blob API {method} failed: {exc}") from exc
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(f"Blob API returned invalid JSON: {exc}") from exc
        return payload if isinstance(payload, dict) else {}
