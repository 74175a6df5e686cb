from dataclasses import dataclass

from caching_proxy.entities import CacheDisposition


@dataclass
class PerformanceMetrics:
    """Track request outcomes and timing for the stats endpoint."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    bypassed: int = 0
    origin_errors: int = 0
    total_lookup_time_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate over cacheable requests."""
        cacheable = self.cache_hits + self.cache_misses
        if cacheable == 0:
            return 0.0
        return self.cache_hits / cacheable

    @property
    def avg_lookup_time_ms(self) -> float:
        """Calculate average time to answer a request."""
        if self.total_requests == 0:
            return 0.0
        return self.total_lookup_time_ms / self.total_requests

    def record(self, disposition: CacheDisposition, lookup_time_ms: float) -> None:
        """Record a resolved request."""
        self.total_requests += 1
        self.total_lookup_time_ms += lookup_time_ms
        if disposition is CacheDisposition.HIT:
            self.cache_hits += 1
        elif disposition is CacheDisposition.MISS:
            self.cache_misses += 1
        else:
            self.bypassed += 1

    def record_origin_error(self, lookup_time_ms: float) -> None:
        """Record a request that failed because the origin was unreachable."""
        self.total_requests += 1
        self.origin_errors += 1
        self.total_lookup_time_ms += lookup_time_ms

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "bypassed": self.bypassed,
            "origin_errors": self.origin_errors,
            "hit_rate": self.hit_rate,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
        }
