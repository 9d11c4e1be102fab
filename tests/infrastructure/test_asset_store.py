"""Asset Store Client — verifies the upload/delete contract, retry, and error mapping.

Tests:
    - upload PUTs the bytes with auth + content-type headers and returns the JSON url
    - delete POSTs {"urls": [...]} and treats 404 as success
    - 5xx and transport errors are retried up to max_retries, then StorageError
    - Other 4xx fail immediately without retry
    - is_hosted matches the public host and its subdomains only
"""

import json

import httpx
import pytest

from app.core.domain_types import AssetFile
from app.core.errors import StorageError
from app.infrastructure.asset_store import AssetStoreClient

BASE = "https://blob.test"
HOST = "public.blob.test"


def _client(handler, max_retries: int = 2) -> AssetStoreClient:
    return AssetStoreClient(
        BASE, "secret-token", HOST,
        max_retries=max_retries, base_delay_ms=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_upload_returns_public_url():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"url": f"https://x.{HOST}/avatars/me.png"})

    client = _client(handler)
    url = await client.upload(AssetFile(b"\x89PNG", "image/png", "My Photo!.png"))

    assert url == f"https://x.{HOST}/avatars/me.png"
    request = seen[0]
    assert request.method == "PUT"
    assert request.url.path.startswith("/avatars/My-Photo-")
    assert request.url.path.endswith(".png")
    assert request.headers["authorization"] == "Bearer secret-token"
    assert request.headers["x-content-type"] == "image/png"
    assert request.content == b"\x89PNG"


async def test_upload_without_url_is_storage_error():
    client = _client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(StorageError):
        await client.upload(AssetFile(b"x", "image/png"))


async def test_delete_posts_urls():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    await _client(handler).delete(f"https://x.{HOST}/avatars/a.png")

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/delete"
    assert json.loads(seen[0].content) == {"urls": [f"https://x.{HOST}/avatars/a.png"]}


async def test_delete_missing_object_is_success():
    await _client(lambda request: httpx.Response(404)).delete(f"https://{HOST}/gone.png")


async def test_server_errors_retried_then_storage_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    with pytest.raises(StorageError):
        await _client(handler, max_retries=2).upload(AssetFile(b"x", "image/png"))
    assert len(calls) == 3


async def test_transport_error_then_success():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"url": f"https://{HOST}/a.png"})

    url = await _client(handler).upload(AssetFile(b"x", "image/png"))
    assert url == f"https://{HOST}/a.png"
    assert len(calls) == 2


async def test_client_error_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403, text="forbidden")

    with pytest.raises(StorageError) as exc_info:
        await _client(handler).delete(f"https://{HOST}/a.png")
    assert len(calls) == 1
    assert exc_info.value.operation == "delete"


@pytest.mark.parametrize("url, hosted", [
    (f"https://{HOST}/a.png", True),
    (f"https://store-1.{HOST}/a.png", True),
    ("https://evil-public.blob.test.example.org/a.png", False),
    ("https://gravatar.example.org/a.png", False),
    ("not a url", False),
])
def test_is_hosted(url, hosted):
    client = AssetStoreClient(BASE, "t", HOST, http_client=httpx.AsyncClient())
    assert client.is_hosted(url) is hosted
