"""Cache storage protocol.

Defines the interface for any backend that persists cached responses.

A cached response is stored as three sub-values sharing a key prefix:
``key`` (body), ``key-status`` (status code) and ``key-headers`` (headers).
The typed readers and writers operate on single sub-values; the ``*_entry``
methods operate on the whole logical record.
"""

from typing import Protocol, runtime_checkable

from caching_proxy.entities import CachedResponse, HeaderList


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.
    """

    def has(self, key: str) -> bool:
        """Check whether a live sub-value exists for ``key``.

        Expired values are deleted first (lazy expiration).
        """
        ...

    def get_bytes(self, key: str) -> bytes | None:
        """Read a raw sub-value, or None on a miss."""
        ...

    def get_int(self, key: str) -> int | None:
        """Read an integer sub-value, or None if missing or malformed."""
        ...

    def get_headers(self, key: str) -> HeaderList | None:
        """Read a header sub-value, or None if missing or malformed."""
        ...

    def set_bytes(self, key: str, value: bytes) -> None:
        """Create or replace a raw sub-value.

        Raises:
            CacheWriteError: If the value could not be written
        """
        ...

    def set_int(self, key: str, value: int) -> None:
        """Create or replace an integer sub-value."""
        ...

    def set_headers(self, key: str, headers: HeaderList) -> None:
        """Create or replace a header sub-value."""
        ...

    def has_entry(self, key: str) -> bool:
        """Check whether body, status and headers all exist for ``key``."""
        ...

    def get_entry(self, key: str) -> CachedResponse | None:
        """Read a whole cached response, or None on a miss."""
        ...

    def set_entry(self, key: str, response: CachedResponse) -> None:
        """Store a whole cached response.

        Raises:
            CacheWriteError: If any part could not be written
        """
        ...

    def sweep_expired(self) -> int:
        """Delete every expired value.

        Returns:
            Number of files removed
        """
        ...

    def clear_all(self) -> int:
        """Remove every entry from the store.

        Returns:
            Number of items removed

        Raises:
            CacheDirectoryError: If the store cannot be enumerated
        """
        ...

    def count_entries(self) -> int:
        """Count complete cached responses."""
        ...

    def health_check(self) -> bool:
        """Check if the store is writable."""
        ...

    def get_stats(self) -> dict:
        """Get store statistics (implementation-specific)."""
        ...
