import secrets
from pathlib import Path

import httpx

from recruitflow.storage.base import BaseStorage
from recruitflow.storage.exceptions import StorageError, UnsupportedStorageUrlError


class LocalStorage(BaseStorage):
    """Stores objects on the local filesystem and serves them under a base URL.

    URLs outside the base URL are fetched over HTTP, so records that point at
    another public store can still be read.
    """

    FILES_ROOT = Path("/app/files")

    def __init__(
        self,
        public_base_url: str,
        files_root: Path | None = None,
        timeout_seconds: int = 30,
    ) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._public_base_url = public_base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        *,
        add_random_suffix: bool = False,
    ) -> str:
        if add_random_suffix:
            path = _with_random_suffix(path)
        target = self._resolve_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        return f"{self._public_base_url}/{path}"

    def get(self, url: str) -> bytes:
        if not self._is_local(url):
            return _http_get(url, self._timeout_seconds)
        path = self._path_for_url(url)
        if not path.exists():
            raise StorageError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

    def delete(self, url: str) -> None:
        if not self._is_local(url):
            raise UnsupportedStorageUrlError(f"URL '{url}' is not served by local storage")
        try:
            self._path_for_url(url).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {url}: {exc}") from exc

    def _is_local(self, url: str) -> bool:
        return url.startswith(f"{self._public_base_url}/")

    def _path_for_url(self, url: str) -> Path:
        return self._resolve_path(url[len(self._public_base_url) + 1 :])

    def _resolve_path(self, path: str) -> Path:
        root = self._files_root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise StorageError(f"Path escapes storage root: {path}")
        return target


def _with_random_suffix(path: str) -> str:
    stem, dot, ext = path.rpartition(".")
    suffix = secrets.token_hex(4)
    if not dot or "/" in ext:
        return f"{path}-{suffix}"
    return f"{stem}-{suffix}.{ext}"


def _http_get(url: str, timeout_seconds: int) -> bytes:
    try:
        response = httpx.get(url, timeout=timeout_seconds, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise StorageError(f"Failed to fetch {url}: {exc}") from exc
    return response.content
