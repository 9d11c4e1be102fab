"""Asset Store Client — wraps the blob-store HTTP API with retry, backoff, and error mapping.

Invariants:
    - upload() returns the public URL of the stored object or raises StorageError
    - delete() is idempotent: a 404 from the store counts as success
    - Transient errors (connect/read errors, 5xx, 429): bounded retries with exponential backoff
    - Client errors (other 4xx): immediate failure, no retry
    - All failures mapped to StorageError (core/errors.py)

Design Decisions:
    - Wrapper over a raw httpx.AsyncClient: isolates retry logic from the coordinator
    - ±25% jitter on backoff: prevents thundering herd when many requests clean up at once
    - Object pathnames get a random suffix so concurrent uploads never overwrite each other
"""

import asyncio
import logging
import mimetypes
import random
import re
import uuid
from urllib.parse import urlparse

import httpx

from app.core.domain_types import AssetFile
from app.core.errors import StorageError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


class AssetStoreClient:
    """Upload/delete contract over the blob store's HTTP API."""

    API_VERSION = "7"

    def __init__(
        self,
        base_url: str,
        token: str,
        public_host: str,
        max_retries: int = 2,
        base_delay_ms: int = 250,
        max_delay_ms: int = 5_000,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.public_host = public_host.lower()
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = {
            "authorization": f"Bearer {token}",
            "x-api-version": self.API_VERSION,
        }

    async def upload(self, file: AssetFile, folder: str = "avatars") -> str:
        """Store file and return its public URL."""
        pathname = self._pathname(file, folder)
        response = await self._request(
            "PUT", f"{self.base_url}/{pathname}", "upload",
            content=file.content,
            headers={**self._headers, "x-content-type": file.mime_type},
        )
        try:
            url = response.json()["url"]
        except (ValueError, KeyError) as e:
            raise StorageError("response carried no url", "upload") from e
        logger.info("Asset uploaded", extra={"asset_url": url})
        return url

    async def delete(self, url: str) -> None:
        """Delete the object behind url. Missing objects are not an error."""
        await self._request(
            "POST", f"{self.base_url}/delete", "delete",
            json={"urls": [url]}, headers=self._headers, allow_missing=True,
        )
        logger.info("Asset deleted", extra={"asset_url": url})

    def is_hosted(self, url: str) -> bool:
        """True when url points at an object this store can delete."""
        host = (urlparse(url).hostname or "").lower()
        return bool(host) and (
            host == self.public_host or host.endswith("." + self.public_host)
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self, method: str, url: str, operation: str,
        allow_missing: bool = False, **kwargs,
    ) -> httpx.Response:
        """Issue request with automatic retry on transient failures."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, operation)
                continue

            if allow_missing and response.status_code == 404:
                return response
            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_transient_error(
                    httpx.HTTPStatusError(
                        f"status {response.status_code}",
                        request=response.request, response=response,
                    ),
                    attempt, operation,
                )
                continue
            if response.is_error:
                raise StorageError(
                    f"status {response.status_code}: {response.text[:200]}",
                    operation,
                )
            return response
        raise StorageError("retries exhausted", operation)

    async def _handle_transient_error(
        self, e: Exception, attempt: int, operation: str,
    ) -> None:
        """Sleep before the next attempt, or raise once retries are used up."""
        if attempt >= self.max_retries:
            raise StorageError(
                f"transient failure after {self.max_retries} retries: {e}",
                operation,
            ) from e
        delay = self._backoff(attempt)
        logger.warning(
            f"Asset store {operation} transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _pathname(self, file: AssetFile, folder: str) -> str:
        extension = mimetypes.guess_extension(file.mime_type) or ""
        stem = _UNSAFE_CHARS.sub("-", file.filename.rsplit(".", 1)[0]).strip("-") or "asset"
        return f"{folder}/{stem}-{uuid.uuid4().hex[:12]}{extension}"


# Singleton (initialized on startup)
asset_store: AssetStoreClient | None = None


def init_asset_store(
    base_url: str, token: str, public_host: str, **kwargs,
) -> AssetStoreClient:
    global asset_store
    asset_store = AssetStoreClient(base_url, token, public_host, **kwargs)
    return asset_store


async def close_asset_store() -> None:
    global asset_store
    if asset_store is not None:
        await asset_store.aclose()
        asset_store = None
