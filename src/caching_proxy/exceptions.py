"""Exception hierarchy for the caching proxy.

Hierarchy::

    CachingProxyError
    +-- ConfigError              invalid configuration (CLI exits 2)
    +-- CacheError
    |   +-- CacheDirectoryError  cache root cannot be created or listed
    |   +-- CacheWriteError      a cached value could not be written
    +-- OriginFetchError         origin unreachable or response unreadable

Cache *reads* never raise: a value that cannot be read is treated as a miss.
"""


class CachingProxyError(Exception):
    """Base exception for all caching proxy errors."""


class ConfigError(CachingProxyError, ValueError):
    """Raised for invalid configuration values (port, origin, durations)."""


class CacheError(CachingProxyError):
    """Base class for cache store failures."""


class CacheDirectoryError(CacheError):
    """Raised when the cache directory cannot be created or enumerated.

    This is the one error the process is allowed to die on.
    """


class CacheWriteError(CacheError):
    """Raised when a value cannot be persisted to the cache directory."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Failed to write cache value {key!r}: {reason}")
        self.key = key


class OriginFetchError(CachingProxyError):
    """Raised when a request cannot be relayed to the origin.

    Covers unreachable origins, timeouts, requests that cannot be built and
    responses that cannot be read. The HTTP layer maps it to 502.
    """

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url} from origin: {reason}")
        self.url = url
