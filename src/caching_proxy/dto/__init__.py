"""Data Transfer Objects for the admin API contract.

These Pydantic models define the responses of the admin endpoints.
Proxied traffic never goes through them.

Internal domain logic should use entities from the entities package.
"""

from .responses import (
    CacheStatsResponse,
    ClearCacheResponse,
    HealthCheckResponse,
    PerformanceStats,
)

__all__ = [
    "CacheStatsResponse",
    "ClearCacheResponse",
    "HealthCheckResponse",
    "PerformanceStats",
]
