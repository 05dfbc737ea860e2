"""Async HTTP binding for document and datasource services.

This module provides async HTTP methods using httpx.AsyncClient. It is the
transport shared by the HTTP document store and datasource gateway.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any

import httpx

from tablesmith.core.utils.core_utils import (
    DEFAULT_HEADERS,
    DEFAULT_SESSION_CONFIG,
    NotModified,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CACHE_ENTRIES = 256


class AsyncHTTPError(Exception):
    """HTTP error from async requests."""

    def __init__(self, status_code: int, message: str, response: httpx.Response | None = None):
        self.status_code = status_code
        self.response = response
        super().__init__(f"{status_code}: {message}")


def _raise_for_status_async(response: httpx.Response) -> httpx.Response:
    """Raise AsyncHTTPError if response indicates an error."""
    if 400 <= response.status_code < 600:
        try:
            details = response.text[:500]
        except Exception:
            details = ""
        raise AsyncHTTPError(
            response.status_code,
            f"{'Client' if response.status_code < 500 else 'Server'} Error for url: [{response.url}] {details}",
            response,
        )
    return response


class AsyncBinding:
    """Async HTTP binding for a single service host.

    Attributes:
        scheme: HTTP scheme ("http" or "https")
        server: Server hostname
        credentials: Authentication credentials dict
    """

    def __init__(
        self,
        scheme: str,
        server: str,
        credentials: dict | None = None,
        caching: bool = True,
        session_config: dict | None = None,
        max_cache_entries: int = DEFAULT_MAX_CACHE_ENTRIES,
    ):
        """Initialize async binding.

        Args:
            scheme: HTTP scheme ("http" or "https")
            server: Server hostname
            credentials: Authentication credentials dict
            caching: Enable response caching (default: True)
            session_config: Session configuration overrides
            max_cache_entries: Most responses kept for ETag revalidation;
                the least recently used entry is evicted first
        """
        self.scheme = scheme
        self.server = server
        self.credentials = credentials or {}
        self._caching = caching
        self._max_cache_entries = max_cache_entries
        self._cache: OrderedDict[str, httpx.Response] = OrderedDict()

        self._session_config = {**DEFAULT_SESSION_CONFIG}
        if session_config:
            self._session_config.update(session_config)

        self._base_url = f"{scheme}://{server}"

        # Async HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None

        timeout = self._session_config.get("timeout", (6, 63))
        if isinstance(timeout, (tuple, list)):
            self._timeout = httpx.Timeout(connect=timeout[0], read=timeout[1], write=timeout[1], pool=timeout[0])
        else:
            self._timeout = httpx.Timeout(timeout)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None:
            headers = {}
            if "bearer-token" in self.credentials:
                headers["Authorization"] = f"Bearer {self.credentials['bearer-token']}"

            cookies = {}
            if "cookie" in self.credentials:
                cname, cval = self.credentials["cookie"].split("=", 1)
                cookies[cname] = cval

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                cookies=cookies,
                timeout=self._timeout,
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=self._session_config.get("max_connections", 100),
                    max_keepalive_connections=self._session_config.get("max_keepalive_connections", 20),
                    keepalive_expiry=self._session_config.get("keepalive_expiry", 30.0),
                ),
            )
        return self._client

    def _cache_response(self, cache_key: str, response: httpx.Response) -> None:
        self._cache[cache_key] = response
        self._cache.move_to_end(cache_key)
        while len(self._cache) > self._max_cache_entries:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug(f"Evicted cached response for {evicted}")

    def _build_headers(self, headers: dict | None = None) -> dict:
        return dict(DEFAULT_HEADERS) if headers is None else dict(headers)

    async def get_async(
        self,
        path: str,
        headers: dict | None = None,
        raise_not_modified: bool = False,
    ) -> httpx.Response:
        """Perform async GET request.

        Args:
            path: Request path
            headers: Optional headers dict
            raise_not_modified: Raise error on 304 response

        Returns:
            httpx.Response object
        """
        client = await self._get_client()
        request_headers = self._build_headers(headers)

        # Check cache for etag
        cache_key = f"{self._base_url}{path}"
        if self._caching and cache_key in self._cache:
            prev = self._cache[cache_key]
            self._cache.move_to_end(cache_key)
            if "etag" in prev.headers and "if-none-match" not in request_headers:
                request_headers["if-none-match"] = prev.headers["etag"]

        logger.debug(f"GET {path}")
        response = await client.get(path, headers=request_headers)

        if response.status_code == 304:
            if raise_not_modified:
                raise NotModified(response)
            if self._caching and cache_key in self._cache:
                return self._cache[cache_key]

        _raise_for_status_async(response)

        if self._caching and response.status_code == 200:
            self._cache_response(cache_key, response)

        return response

    async def post_async(
        self,
        path: str,
        data: bytes | str | None = None,
        json_data: Any | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Perform async POST request.

        Args:
            path: Request path
            data: Raw data to send
            json_data: JSON-serializable data
            headers: Optional headers dict

        Returns:
            httpx.Response object
        """
        client = await self._get_client()
        request_headers = self._build_headers(headers)

        logger.debug(f"POST {path}")
        if json_data is not None:
            response = await client.post(path, json=json_data, headers=request_headers)
        else:
            response = await client.post(path, content=data, headers=request_headers)

        _raise_for_status_async(response)
        return response

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncBinding":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
