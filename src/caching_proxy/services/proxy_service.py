"""Proxy service for core dispatch logic.

This service decides, per request, whether to bypass the cache, serve a hit
or fetch from the origin, and populates the store after a miss.
"""

import asyncio

import structlog

from caching_proxy.entities import CacheDisposition, CachedResponse, OriginRequest, ProxyResult
from caching_proxy.exceptions import CacheWriteError, OriginFetchError
from caching_proxy.keys import derive_key
from caching_proxy.protocols import CacheStore, OriginClient

logger = structlog.get_logger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def is_safe_method(method: str) -> bool:
    """Check whether ``method`` may be answered from the cache."""
    return method.upper() in SAFE_METHODS


class ProxyService:
    """Core cache-or-forward orchestration.

    This service depends on PROTOCOLS, not concrete implementations:
    - CacheStore: the on-disk repository, or any fake in tests
    - OriginClient: the httpx forwarder, or any fake in tests

    Concurrent misses on the same key are collapsed: the first request
    fetches from the origin and writes the entry, later ones await the same
    fetch. The in-flight marker lives until the entry is written, so no
    second population for that key can start meanwhile.

    Example:
        ```python
        service = ProxyService.create(
            repository=FileCacheRepository.create(),
            origin_client=HttpxOriginClient.create(),
        )
        result = await service.dispatch(OriginRequest(method="GET", path="/"))
        print(result.disposition, result.response.status)
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        origin_client: OriginClient,
        unique_by_user: bool = False,
    ) -> None:
        """Initialize the proxy service.

        Args:
            repository: Cache storage backend (required).
            origin_client: Origin forwarder (required).
            unique_by_user: Keep separate entries per User-Agent and Cookie.
        """
        self._repository = repository
        self._origin = origin_client
        self._unique_by_user = unique_by_user
        self._in_flight: dict[tuple[str, str], asyncio.Future[CachedResponse]] = {}
        self._pending_writes: set[asyncio.Task[None]] = set()

    @classmethod
    def create(
        cls,
        repository: CacheStore,
        origin_client: OriginClient,
        unique_by_user: bool = False,
    ) -> "ProxyService":
        """Factory method to create ProxyService.

        Args:
            repository: Cache storage backend (required).
            origin_client: Origin forwarder (required).
            unique_by_user: Keep separate entries per user.

        Returns:
            Configured ProxyService instance
        """
        return cls(
            repository=repository,
            origin_client=origin_client,
            unique_by_user=unique_by_user,
        )

    def cache_key(self, request: OriginRequest) -> str:
        """Derive the cache key for ``request``."""
        return derive_key(
            request.target,
            unique_by_user=self._unique_by_user,
            user_agent=request.header("User-Agent"),
            cookie=request.header("Cookie"),
        )

    async def dispatch(self, request: OriginRequest) -> ProxyResult:
        """Resolve one request.

        Business logic:
        1. Unsafe methods are forwarded untouched (BYPASS)
        2. Safe methods are looked up by key (HIT)
        3. On a miss, fetch from the origin and populate in the background (MISS)

        Args:
            request: The captured incoming request

        Returns:
            ProxyResult with the response and its disposition

        Raises:
            OriginFetchError: If the origin could not be reached
        """
        if not is_safe_method(request.method):
            response = await self._origin.forward(request)
            return ProxyResult(response=response, disposition=CacheDisposition.BYPASS)

        key = self.cache_key(request)

        cached = await asyncio.to_thread(self._repository.get_entry, key)
        if cached is not None:
            return ProxyResult(response=cached, disposition=CacheDisposition.HIT, key=key)

        response = await self._fetch_once(key, request)
        return ProxyResult(response=response, disposition=CacheDisposition.MISS, key=key)

    async def _fetch_once(self, key: str, request: OriginRequest) -> CachedResponse:
        """Fetch ``request`` from the origin unless the same fetch is already running.

        Fetches are shared per method and key: a HEAD answer has no body, so
        a concurrent GET for the same key must not join it.
        """
        flight = (request.method.upper(), key)
        pending = self._in_flight.get(flight)
        if pending is not None:
            logger.debug("origin_fetch_joined", key=key)
            return await asyncio.shield(pending)

        future: asyncio.Future[CachedResponse] = asyncio.get_running_loop().create_future()
        self._in_flight[flight] = future

        try:
            response = await self._origin.forward(request)
        except OriginFetchError as e:
            self._in_flight.pop(flight, None)
            future.set_exception(e)
            # Mark retrieved so a fetch nobody joined does not warn on GC.
            future.exception()
            raise
        except BaseException:
            self._in_flight.pop(flight, None)
            future.cancel()
            raise

        future.set_result(response)
        self._schedule_write(flight, response)
        return response

    def _schedule_write(self, flight: tuple[str, str], response: CachedResponse) -> None:
        task = asyncio.create_task(self._populate(flight, response))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _populate(self, flight: tuple[str, str], response: CachedResponse) -> None:
        """Write ``response`` under the flight's key, then release the in-flight marker."""
        _method, key = flight
        try:
            await asyncio.to_thread(self._repository.set_entry, key, response)
            logger.debug("cache_entry_stored", key=key, status=response.status, size=len(response.body))
        except CacheWriteError as e:
            logger.error("cache_write_failed", key=key, error=str(e))
        except Exception:
            logger.exception("cache_write_failed", key=key)
        finally:
            self._in_flight.pop(flight, None)

    async def drain(self) -> None:
        """Wait until every scheduled cache write has finished."""
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    def clear(self) -> int:
        """Clear all cache entries.

        Best-effort: writes already in flight may land after the clear.

        Returns:
            Number of items removed
        """
        return self._repository.clear_all()

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        stats = self._repository.get_stats()
        stats["origin"] = self._origin.origin
        stats["unique_by_user"] = self._unique_by_user
        stats["in_flight"] = len(self._in_flight)
        return stats

    async def is_healthy(self) -> bool:
        """Check if the cache directory is usable.

        The origin is not part of the verdict: an unreachable origin still
        leaves cached responses servable.
        """
        return await asyncio.to_thread(self._repository.health_check)

    @property
    def unique_by_user(self) -> bool:
        """Whether keys include User-Agent and Cookie."""
        return self._unique_by_user

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def origin_client(self) -> OriginClient:
        """Get the underlying origin client (for testing)."""
        return self._origin
