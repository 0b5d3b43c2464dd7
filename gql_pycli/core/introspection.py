"""Introspection fetching with an on-disk, ETag-revalidated cache.

One JSON file per (URL, header set) under the cache directory:
``{"data": <introspection>, "etag": "..." | null, "timestamp": <epoch ms>}``.
Fresh entries are served without touching the network; stale ones are
revalidated with ``If-None-Match``.
"""

import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable

import httpx
from graphql import GraphQLSchema, build_client_schema, get_introspection_query
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_INTROSPECTION_TTL, default_cache_dir
from .errors import NetworkError

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """A persisted introspection result."""
    data: dict[str, Any]
    etag: str | None = None
    timestamp: int  # epoch milliseconds

    def age_seconds(self, now_ms: int) -> float:
        return (now_ms - self.timestamp) / 1000.0


def cache_key(url: str, headers: dict[str, str] | None = None) -> str:
    """Stable hash over the URL and the lowercased, sorted header set."""
    normalized = sorted((name.lower(), value or "") for name, value in (headers or {}).items())
    digest = hashlib.sha1()
    digest.update(url.encode("utf-8"))
    for name, value in normalized:
        digest.update(b"\x00")
        digest.update(name.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(value.encode("utf-8"))
    return digest.hexdigest()


class IntrospectionCache:
    """Fetches and caches introspection results for GraphQL endpoints.

    Create one per process invocation and pass it to whatever needs a
    schema; it owns an ``httpx.AsyncClient`` unless one is supplied.

    Examples:
        cache = IntrospectionCache(Path("/tmp/gql-cache"))
        schema = await cache.load_schema(url, {"Authorization": "Bearer ..."})
        await cache.close()
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Directory for cache files (default ~/.gql/cache/introspection)
            client: HTTP client to use instead of an owned one
            timeout: Request timeout in seconds for the owned client
            clock: Returns the current time in seconds
        """
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()
        self.timeout = timeout
        self._clock = clock
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client if this cache created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def path_for(self, url: str, headers: dict[str, str] | None = None) -> Path:
        return self.cache_dir / f"{cache_key(url, headers)}.json"

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        ttl: float = DEFAULT_INTROSPECTION_TTL,
    ) -> dict[str, Any]:
        """Return the introspection result for ``url``.

        Args:
            url: GraphQL endpoint URL
            headers: Headers sent with the introspection request
            ttl: Freshness window in seconds

        Returns:
            The ``data`` portion of the introspection response

        Raises:
            NetworkError: On transport failure, unexpected status, or a
                response without ``data``
        """
        path = self.path_for(url, headers)
        entry = self._read(path)

        if entry is not None and entry.age_seconds(self._now_ms()) <= ttl:
            logger.debug("Introspection cache hit for %s", url)
            return entry.data

        if entry is not None and entry.etag:
            logger.debug("Revalidating stale introspection for %s", url)
            response = await self._post(url, headers, etag=entry.etag)
            if response.status_code == 304:
                entry.timestamp = self._now_ms()
                self._write(path, entry)
                return entry.data
        else:
            response = await self._post(url, headers)

        data = self._parse(response)
        self._write(path, CacheEntry(data=data, etag=response.headers.get("etag"), timestamp=self._now_ms()))
        return data

    async def load_schema(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        ttl: float = DEFAULT_INTROSPECTION_TTL,
    ) -> GraphQLSchema:
        """Fetch (or reuse) introspection and build a client schema from it."""
        return build_client_schema(await self.get(url, headers, ttl))

    async def _post(
        self,
        url: str,
        headers: dict[str, str] | None,
        etag: str | None = None,
    ) -> httpx.Response:
        request_headers = {"content-type": "application/json", **(headers or {})}
        if etag:
            request_headers["if-none-match"] = etag

        try:
            client = await self._get_client()
            response = await client.post(
                url,
                headers=request_headers,
                json={"query": get_introspection_query()},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Introspection request to {url} failed: {e}") from e

        if response.status_code == 304 and etag:
            return response
        if not response.is_success:
            raise NetworkError(
                f"Introspection request failed ({response.status_code}).",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError("Introspection response is not valid JSON.") from e
        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            raise NetworkError("Introspection response missing data.")
        return data

    def _read(self, path: Path) -> CacheEntry | None:
        """Load a cache entry; anything unreadable counts as a miss."""
        try:
            return CacheEntry.model_validate_json(path.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, ValidationError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", path, e)
            return None

    def _write(self, path: Path, entry: CacheEntry):
        """Persist an entry atomically; concurrent writers race last-writer-wins."""
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry.model_dump(), f)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.warning("Could not write introspection cache %s: %s", path, e)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return
        logger.debug("Wrote introspection cache %s", path)
