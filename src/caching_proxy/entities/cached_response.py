"""Cached response domain entity."""

from dataclasses import dataclass, field

# Ordered multi-map: a header name may appear several times (e.g. Set-Cookie).
HeaderList = list[tuple[str, str]]


@dataclass(frozen=True)
class CachedResponse:
    """A fully buffered HTTP response, as stored in and served from the cache.

    Attributes:
        status: HTTP status code
        headers: Response headers in origin order, repeated names allowed
        body: Raw response payload
    """

    status: int
    headers: HeaderList = field(default_factory=list)
    body: bytes = b""

    def header_values(self, name: str) -> list[str]:
        """Return every value of header ``name`` (case-insensitive)."""
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]
