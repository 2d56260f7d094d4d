"""
HTTP fetcher for externally hosted assets.

Streams the origin's response body through to the caller. A non-success
status or a transport failure surfaces as UpstreamUnavailable on the first
occurrence; the only retries are connection-level ones, and only when
``http_retry`` is configured.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .. import __version__
from ..asset_types import ObjectStream
from ..errors import UpstreamUnavailable
from ..settings import Settings
from .base import CHUNK_SIZE, UrlFetcher

__all__ = ["HttpUrlFetcher"]

logger = logging.getLogger(__name__)


class HttpUrlFetcher(UrlFetcher):
    """UrlFetcher backed by a shared httpx.Client."""

    def __init__(self, *, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        """
        Initialize the fetcher.

        Args:
            settings: Timeout and retry configuration
            client: Preconfigured client (tests pass one with a MockTransport)
        """
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s, connect=5.0),
            follow_redirects=True,
            headers={"User-Agent": f"asset-cdn/{__version__}"},
        )
        self._retrying = Retrying(
            stop=stop_after_attempt(settings.http_retry + 1),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
            reraise=True,
        )

    def _open(self, url: str) -> httpx.Response:
        request = self._client.build_request("GET", url)
        return self._client.send(request, stream=True)

    def fetch(self, url: str) -> ObjectStream:
        """
        Open a streaming GET of ``url``.

        Content-Length is reported only for identity-encoded responses, since
        the streamed body is decoded.

        Raises:
            UpstreamUnavailable: On non-2xx status or transport failure
        """
        try:
            response = self._retrying.copy()(self._open, url)
        except httpx.HTTPError as e:
            logger.warning(f"Fetch of {url} failed: {e}")
            raise UpstreamUnavailable(f"Failed to fetch asset from storage: {e}", url=url) from e

        if not response.is_success:
            response.close()
            logger.warning(f"Fetch of {url} returned {response.status_code}")
            raise UpstreamUnavailable(
                f"Failed to fetch asset from storage: origin returned {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        size = None
        length = response.headers.get("Content-Length")
        if length and length.isdigit() and not response.headers.get("Content-Encoding"):
            size = int(length)

        return ObjectStream(
            body=response.iter_bytes(CHUNK_SIZE),
            content_type=response.headers.get("Content-Type"),
            size=size,
            on_close=response.close,
        )

    def close(self) -> None:
        """Close HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
