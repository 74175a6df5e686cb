"""HTTP handlers for the admin endpoints (health, stats, clear)."""

import asyncio

import structlog
from fastapi import HTTPException, status

from caching_proxy.dto import (
    CacheStatsResponse,
    ClearCacheResponse,
    HealthCheckResponse,
    PerformanceStats,
)
from caching_proxy.exceptions import CacheDirectoryError
from caching_proxy.models import PerformanceMetrics
from caching_proxy.protocols import OriginClient
from caching_proxy.services import ProxyService

logger = structlog.get_logger(__name__)


class AdminHandler:
    """HTTP handlers for cache administration.

    Example:
        ```python
        handler = AdminHandler(proxy_service=service, origin_client=origin, metrics=metrics)

        @app.get("/__cache__/stats", response_model=CacheStatsResponse)
        async def stats():
            return await handler.get_stats()
        ```
    """

    def __init__(
        self,
        proxy_service: ProxyService,
        origin_client: OriginClient,
        metrics: PerformanceMetrics,
    ) -> None:
        """Initialize the admin handler.

        Args:
            proxy_service: The proxy service (required).
            origin_client: Origin client, probed by the health check.
            metrics: Counters recorded by the proxy handler.
        """
        self._proxy = proxy_service
        self._origin = origin_client
        self._metrics = metrics

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET {prefix}/health requests.

        Raises:
            HTTPException: 503 if the cache directory is not writable
        """
        cache_healthy = await self._proxy.is_healthy()
        origin_reachable = await self._origin.is_available()

        if not cache_healthy:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Cache directory is not writable",
            )

        return HealthCheckResponse(
            status="healthy",
            cache_healthy=cache_healthy,
            origin_reachable=origin_reachable,
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET {prefix}/stats requests."""
        stats = await asyncio.to_thread(self._proxy.get_stats)

        return CacheStatsResponse(
            total_entries=stats.get("total_entries", 0),
            cache_dir=stats.get("cache_dir", ""),
            origin=stats.get("origin", ""),
            ttl_seconds=stats.get("ttl", 0.0),
            unique_by_user=stats.get("unique_by_user", False),
            in_flight=stats.get("in_flight", 0),
            performance=PerformanceStats(**self._metrics.to_dict()),
        )

    async def clear_cache(self) -> ClearCacheResponse:
        """Handle DELETE {prefix} requests.

        Raises:
            HTTPException: 500 if the cache directory cannot be listed
        """
        try:
            count = await asyncio.to_thread(self._proxy.clear)
        except CacheDirectoryError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        logger.info("cache_cleared", deleted=count)
        return ClearCacheResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully",
        )
