"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services,
repositories and handlers. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cached_response import CachedResponse, HeaderList
from .origin_request import OriginRequest
from .proxy_result import CacheDisposition, ProxyResult

__all__ = [
    "CacheDisposition",
    "CachedResponse",
    "HeaderList",
    "OriginRequest",
    "ProxyResult",
]
