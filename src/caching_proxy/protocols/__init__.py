"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (local disk → object storage, httpx → another client)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from caching_proxy.protocols import CacheStore, OriginClient

    # Type hints work with any implementation
    repo: CacheStore = FileCacheRepository("./cache")
    origin: OriginClient = HttpxOriginClient("https://example.com")
    ```
"""

from .cache_store import CacheStore
from .origin_client import OriginClient

__all__ = [
    "CacheStore",
    "OriginClient",
]
