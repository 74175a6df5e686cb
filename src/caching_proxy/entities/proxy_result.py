"""Proxy result domain entity."""

from dataclasses import dataclass
from enum import Enum

from .cached_response import CachedResponse


class CacheDisposition(str, Enum):
    """How a request was resolved."""

    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"

    @property
    def header_value(self) -> str:
        """Value for the ``X-Cache`` response header.

        Bypassed requests are reported as ``MISS``.
        """
        return "HIT" if self is CacheDisposition.HIT else "MISS"


@dataclass(frozen=True)
class ProxyResult:
    """Outcome of dispatching one request.

    Attributes:
        response: The response to send to the client
        disposition: Whether it came from the cache, the origin, or bypassed the cache
        key: Cache key for safe methods, None for bypassed requests
    """

    response: CachedResponse
    disposition: CacheDisposition
    key: str | None = None
