"""Response DTOs for admin endpoints."""

from pydantic import BaseModel, Field


class PerformanceStats(BaseModel):
    """Request counters since startup or the last clear."""

    total_requests: int = Field(..., description="Requests answered", ge=0)
    cache_hits: int = Field(..., description="Requests served from the cache", ge=0)
    cache_misses: int = Field(..., description="Cacheable requests fetched from the origin", ge=0)
    bypassed: int = Field(..., description="Unsafe-method requests forwarded without caching", ge=0)
    origin_errors: int = Field(..., description="Requests that failed to reach the origin", ge=0)
    hit_rate: float = Field(..., description="Hits over cacheable requests", ge=0.0, le=1.0)
    avg_lookup_time_ms: float = Field(..., description="Average time to answer a request", ge=0.0)


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_entries: int = Field(..., description="Number of cached responses on disk", ge=0)
    cache_dir: str = Field(..., description="Cache directory")
    origin: str = Field(..., description="Origin the proxy forwards to")
    ttl_seconds: float = Field(..., description="Entry lifetime in seconds (0 = never expire)", ge=0.0)
    unique_by_user: bool = Field(..., description="Whether entries are kept per User-Agent and Cookie")
    in_flight: int = Field(..., description="Cache populations currently running", ge=0)
    performance: PerformanceStats


class ClearCacheResponse(BaseModel):
    """Response DTO for the clear operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of items removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache directory is writable")
    origin_reachable: bool | None = Field(
        None,
        description="Whether the origin answered a probe request",
    )
