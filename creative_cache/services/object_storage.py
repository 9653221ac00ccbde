"""Object storage clients for the managed campaign asset bucket."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

import httpx

from creative_cache.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ObjectStorageError(Exception):
    """An object could not be stored or deleted."""


class ObjectStorage(ABC):
    """Bucket-scoped object storage."""

    def __init__(self, bucket: str):
        self.bucket = bucket

    def owns(self, url: str | None) -> bool:
        """Check whether a URL points into this bucket's namespace."""
        if not url:
            return False
        return f"/{self.bucket}/" in urlparse(url).path

    def object_path(self, url: str) -> str:
        """
        Extract the object path from an asset URL.

        Assets live one folder deep (``<folder>/<file>``), so the path is the
        last two URL path segments, percent-decoded to match what
        ``public_url`` quoted.
        """
        segments = [unquote(s) for s in urlparse(url).path.split("/") if s]
        return "/".join(segments[-2:])

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str = "image/png") -> str:
        """Store an object and return its public URL."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """
        Delete one object.

        Raises:
            ObjectStorageError: If the object is missing or could not be removed
        """

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL of an object."""

    def close(self) -> None:
        pass


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed bucket, laid out as ``<root>/<bucket>/<path>``."""

    def __init__(self, root: Path, bucket: str, base_url: str = "http://localhost:8000/storage"):
        super().__init__(bucket)
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        (self.root / bucket).mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        bucket_dir = (self.root / self.bucket).resolve()
        target = (bucket_dir / path).resolve()
        if bucket_dir not in target.parents:
            raise ObjectStorageError(f"Path escapes bucket: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: str = "image/png") -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return self.public_url(path)

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError as e:
            raise ObjectStorageError(f"Object not found: {path}") from e
        except OSError as e:
            raise ObjectStorageError(f"Failed to delete {path}: {e}") from e
        logger.debug(f"Deleted local object {self.bucket}/{path}")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{self.bucket}/{quote(path)}"


class HttpObjectStorage(ObjectStorage):
    """Client for a storage REST API (``/object/<bucket>`` endpoints)."""

    def __init__(
        self,
        base_url: str,
        bucket: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize HTTP client for the storage API.

        Args:
            base_url: Storage API root, e.g. https://<project>.supabase.co/storage/v1
            bucket: Bucket name
            api_key: Service key sent as bearer token
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        super().__init__(bucket)
        self.base_url = base_url.rstrip("/")
        headers = {}
        if api_key:
            headers = {"Authorization": f"Bearer {api_key}", "apikey": api_key}

        self.client = httpx.Client(timeout=timeout, headers=headers, transport=transport)

    def close(self) -> None:
        self.client.close()

    def upload(self, path: str, data: bytes, content_type: str = "image/png") -> str:
        try:
            response = self.client.post(
                f"{self.base_url}/object/{self.bucket}/{quote(path)}",
                content=data,
                headers={"Content-Type": content_type},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ObjectStorageError(f"Upload of {path} failed: {e}") from e
        return self.public_url(path)

    def delete(self, path: str) -> None:
        try:
            response = self.client.request(
                "DELETE",
                f"{self.base_url}/object/{self.bucket}",
                json={"prefixes": [path]},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ObjectStorageError(f"Timed out deleting {path}") from e
        except httpx.HTTPError as e:
            raise ObjectStorageError(f"Failed to delete {path}: {e}") from e

        # The API answers with the list of objects it removed
        removed = response.json()
        if isinstance(removed, list) and not removed:
            raise ObjectStorageError(f"Object not found: {path}")
        logger.debug(f"Deleted remote object {self.bucket}/{path}")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{quote(path)}"


def create_object_storage(config: Settings | None = None) -> ObjectStorage:
    """Build the object storage client selected in settings."""
    config = config or default_settings

    if config.storage_backend == "http":
        return HttpObjectStorage(
            base_url=config.storage_url,
            bucket=config.asset_bucket,
            api_key=config.storage_key,
            timeout=config.storage_timeout,
        )

    return LocalObjectStorage(
        root=config.storage_root,
        bucket=config.asset_bucket,
        base_url=f"{config.public_base_url.rstrip('/')}/storage",
    )
