"""Origin request domain entity."""

from dataclasses import dataclass, field

from caching_proxy.keys import request_target

from .cached_response import HeaderList


@dataclass(frozen=True)
class OriginRequest:
    """An incoming request, captured so it can be replayed against the origin.

    Attributes:
        method: HTTP method as received
        path: Raw (still percent-encoded) request path
        query: Raw query string without the leading ``?``
        headers: Incoming request headers, repeated names allowed
        body: Fully buffered request body
    """

    method: str
    path: str
    query: str = ""
    headers: HeaderList = field(default_factory=list)
    body: bytes = b""

    @property
    def target(self) -> str:
        """Path plus query, as the client sent it."""
        return request_target(self.path, self.query)

    def header(self, name: str) -> str | None:
        """Return the first value of header ``name`` (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None
