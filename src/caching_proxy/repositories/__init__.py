"""Repository layer for data access.

This layer abstracts external dependencies (the cache directory, the origin
server) behind protocol-based interfaces. This enables:
- Easy swapping of implementations
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from caching_proxy.protocols import CacheStore, OriginClient

from .file_repository import FileCacheRepository
from .origin_client import HttpxOriginClient

__all__ = [
    "CacheStore",
    "OriginClient",
    "FileCacheRepository",
    "HttpxOriginClient",
]
