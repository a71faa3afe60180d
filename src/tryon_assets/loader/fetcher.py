"""
Asset payload fetcher.

Downloads a 3D asset by reference. Supported references:
- http:// and https:// URLs (httpx AsyncClient)
- file:// URLs and plain filesystem paths (read in a worker thread)

One fetch performs one request; retries belong to the RetryPolicy wrapping
the loader's call.
"""

import asyncio
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx
import structlog

from tryon_assets.exceptions import (
    AssetNotFoundError,
    AssetValidationError,
    TransportError,
    TransportTimeoutError,
    error_from_status,
)

logger = structlog.get_logger(__name__)


class AssetFetcher:
    """
    Fetches raw asset bytes.

    Attributes:
        timeout: Per-request timeout in seconds
        max_bytes: Payloads larger than this are rejected as invalid
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_bytes: int = 100 * 1024 * 1024,
        api_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.api_token = api_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_token:
                headers["Authorization"] = f"Bearer {self.api_token}"
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )
            logger.debug("Created asset download client")
        return self._client

    async def fetch(self, reference: str) -> bytes:
        """
        Fetch the payload behind `reference`.

        Raises:
            TransportError: Network failure, timeout, 5xx (retryable)
            AuthorizationError: 401/403
            AssetNotFoundError: 404 or missing local file
            AssetValidationError: Payload exceeds max_bytes
        """
        scheme = urlparse(reference).scheme.lower()
        if scheme in ("http", "https"):
            return await self._fetch_http(reference)
        if scheme == "file":
            return await self._fetch_file(Path(unquote(urlparse(reference).path)))
        if scheme and len(scheme) > 1:
            raise AssetNotFoundError(
                f"Unsupported asset reference scheme: {scheme}",
                details={"reference": reference},
            )
        return await self._fetch_file(Path(reference))

    async def _fetch_http(self, url: str) -> bytes:
        client = await self._get_client()
        try:
            async with client.stream("GET", url) as response:
                if response.is_error:
                    await response.aread()
                    raise error_from_status(
                        response.status_code,
                        f"Asset download failed with HTTP {response.status_code}",
                        {"reference": url},
                    )

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise self._too_large(url, int(declared))

                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise self._too_large(url, received)
                    chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"Asset download timeout after {self.timeout}s",
                details={"reference": url},
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"Network error downloading asset: {e}",
                details={"reference": url, "error_type": type(e).__name__},
            ) from e

        payload = b"".join(chunks)
        logger.debug("Downloaded asset", reference=url, bytes=len(payload))
        return payload

    async def _fetch_file(self, path: Path) -> bytes:
        payload = await asyncio.to_thread(self._read_file, path)
        logger.debug("Read local asset", reference=str(path), bytes=len(payload))
        return payload

    def _read_file(self, path: Path) -> bytes:
        """Blocking local read, run in a worker thread."""
        if not path.is_file():
            raise AssetNotFoundError(f"Asset file not found: {path}", details={"reference": str(path)})

        try:
            size = path.stat().st_size
            if size > self.max_bytes:
                raise self._too_large(str(path), size)
            return path.read_bytes()
        except OSError as e:
            raise AssetNotFoundError(
                f"Could not read asset file: {e}",
                details={"reference": str(path)},
            ) from e

    def _too_large(self, reference: str, size: int) -> AssetValidationError:
        return AssetValidationError(
            f"Asset exceeds {self.max_bytes} bytes",
            details={"reference": reference, "bytes": size},
        )

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed asset download client")
