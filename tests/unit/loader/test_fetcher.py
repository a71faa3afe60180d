"""
Unit tests for AssetFetcher.

HTTP references go through httpx.MockTransport; local references use tmp_path.
"""

import asyncio

import httpx
import pytest

from tryon_assets.exceptions import (
    AssetNotFoundError,
    AssetValidationError,
    AuthorizationError,
    TransportError,
    TransportTimeoutError,
)
from tryon_assets.loader import fetcher as fetcher_module
from tryon_assets.loader.fetcher import AssetFetcher

URL = "https://cdn.example.com/models/body.glb"


def make_fetcher(handler, **kwargs) -> AssetFetcher:
    return AssetFetcher(timeout=5.0, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_http_download(glb_bytes):
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=glb_bytes))

    assert await fetcher.fetch(URL) == glb_bytes
    await fetcher.close()


@pytest.mark.asyncio
async def test_bearer_token_sent():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, content=b"data")

    fetcher = make_fetcher(handler, api_token="tok")
    await fetcher.fetch(URL)
    await fetcher.close()

    assert seen["auth"] == "Bearer tok"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,error_type",
    [(404, AssetNotFoundError), (403, AuthorizationError), (502, TransportError)],
)
async def test_http_status_mapping(status_code, error_type):
    fetcher = make_fetcher(lambda request: httpx.Response(status_code, content=b"nope"))

    with pytest.raises(error_type):
        await fetcher.fetch(URL)
    await fetcher.close()


@pytest.mark.asyncio
async def test_connection_reset_is_transport_error():
    def handler(request):
        raise httpx.ReadError("connection reset", request=request)

    fetcher = make_fetcher(handler)
    with pytest.raises(TransportError):
        await fetcher.fetch(URL)
    await fetcher.close()


@pytest.mark.asyncio
async def test_timeout_is_transport_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    fetcher = make_fetcher(handler)
    with pytest.raises(TransportTimeoutError):
        await fetcher.fetch(URL)
    await fetcher.close()


@pytest.mark.asyncio
async def test_oversize_payload_rejected():
    fetcher = make_fetcher(lambda request: httpx.Response(200, content=b"x" * 64), max_bytes=16)

    with pytest.raises(AssetValidationError):
        await fetcher.fetch(URL)
    await fetcher.close()


@pytest.mark.asyncio
async def test_local_path(tmp_path, glb_bytes):
    path = tmp_path / "avatar.glb"
    path.write_bytes(glb_bytes)
    fetcher = AssetFetcher()

    assert await fetcher.fetch(str(path)) == glb_bytes
    assert await fetcher.fetch(path.as_uri()) == glb_bytes


@pytest.mark.asyncio
async def test_missing_local_file(tmp_path):
    fetcher = AssetFetcher()

    with pytest.raises(AssetNotFoundError):
        await fetcher.fetch(str(tmp_path / "missing.glb"))


@pytest.mark.asyncio
async def test_oversize_local_file(tmp_path):
    path = tmp_path / "big.glb"
    path.write_bytes(b"x" * 32)
    fetcher = AssetFetcher(max_bytes=8)

    with pytest.raises(AssetValidationError):
        await fetcher.fetch(str(path))


@pytest.mark.asyncio
async def test_local_read_runs_off_the_event_loop(tmp_path, monkeypatch):
    """Test existence, size and read checks all happen inside the worker thread."""
    calls = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(func, *args, **kwargs):
        calls.append(func)
        return await real_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(fetcher_module.asyncio, "to_thread", recording_to_thread)
    fetcher = AssetFetcher(max_bytes=8)
    path = tmp_path / "big.glb"
    path.write_bytes(b"x" * 32)

    with pytest.raises(AssetNotFoundError):
        await fetcher.fetch(str(tmp_path / "missing.glb"))
    with pytest.raises(AssetValidationError):
        await fetcher.fetch(str(path))

    assert calls == [fetcher._read_file, fetcher._read_file]


@pytest.mark.asyncio
async def test_unsupported_scheme():
    fetcher = AssetFetcher()

    with pytest.raises(AssetNotFoundError, match="Unsupported"):
        await fetcher.fetch("ftp://example.com/model.glb")
