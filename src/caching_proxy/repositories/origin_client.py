"""httpx-based origin forwarder.

Replays an incoming request against the configured origin and buffers the
whole response. The raw (still encoded) body is kept so a cached
``Content-Encoding`` header stays truthful.

Hop-by-hop headers (RFC 9110 section 7.6.1) are removed in both directions;
they describe a single connection and must not be replayed or cached.
"""

import httpx
import structlog

from caching_proxy.config import get_settings
from caching_proxy.entities import CachedResponse, HeaderList, OriginRequest
from caching_proxy.exceptions import OriginFetchError

logger = structlog.get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Recomputed by httpx from the origin URL and the buffered body.
_REQUEST_ONLY_SKIPPED = frozenset({"host", "content-length"})


def filter_headers(headers: HeaderList, extra_skipped: frozenset[str] = frozenset()) -> HeaderList:
    """Drop hop-by-hop headers, headers named in ``Connection`` and ``extra_skipped``.

    Args:
        headers: Header pairs in their original order
        extra_skipped: Additional lowercase header names to drop

    Returns:
        The remaining header pairs, order preserved
    """
    skipped = set(HOP_BY_HOP_HEADERS) | extra_skipped
    for name, value in headers:
        if name.lower() == "connection":
            skipped.update(token.strip().lower() for token in value.split(",") if token.strip())

    return [(name, value) for name, value in headers if name.lower() not in skipped]


def decode_raw_headers(raw: list[tuple[bytes, bytes]]) -> HeaderList:
    """Decode raw header pairs as latin-1, keeping the origin's casing and bytes."""
    return [(name.decode("latin-1"), value.decode("latin-1")) for name, value in raw]


def encode_headers(headers: HeaderList) -> list[tuple[bytes, bytes]]:
    """Encode header pairs as latin-1 bytes, the inverse of decode_raw_headers."""
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]


class HttpxOriginClient:
    """httpx implementation of the OriginClient protocol.

    This class satisfies the OriginClient protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        client = HttpxOriginClient.create(origin="https://example.com")
        response = await client.forward(
            OriginRequest(method="GET", path="/products", query="page=2")
        )
        print(response.status, len(response.body))
        ```
    """

    def __init__(
        self,
        origin: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the origin client.

        Args:
            origin: Origin base URL, scheme and host only.
            timeout: Request timeout in seconds. None keeps httpx's default.
            transport: Custom transport (tests use httpx.MockTransport).
        """
        self._origin = origin.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        origin: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpxOriginClient":
        """Factory method to create HttpxOriginClient with defaults.

        Args:
            origin: Origin URL. If None, uses settings.
            timeout: Request timeout. If None, uses settings.
            transport: Optional custom transport.

        Returns:
            Configured HttpxOriginClient
        """
        settings = get_settings()
        return cls(
            origin=origin or settings.origin,
            timeout=timeout if timeout is not None else settings.origin_timeout,
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            options: dict = {}
            if self._timeout is not None:
                options["timeout"] = self._timeout
            self._client = httpx.AsyncClient(
                follow_redirects=False,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                **options,
            )
            # Only headers the client actually sent are relayed.
            self._client.headers.clear()
        return self._client

    @property
    def origin(self) -> str:
        """Get the origin base URL."""
        return self._origin

    def build_url(self, request: OriginRequest) -> str:
        """Join the origin with the incoming path and query."""
        return f"{self._origin}{request.target}"

    async def forward(self, request: OriginRequest) -> CachedResponse:
        """Relay ``request`` to the origin and read the whole response.

        Args:
            request: The captured incoming request

        Returns:
            The buffered origin response, hop-by-hop headers removed

        Raises:
            OriginFetchError: If the request cannot be built or sent, or the
                response body cannot be read
        """
        url = self.build_url(request)

        try:
            outbound = self.client.build_request(
                method=request.method,
                url=url,
                headers=encode_headers(filter_headers(request.headers, _REQUEST_ONLY_SKIPPED)),
                content=request.body or None,
            )
            response = await self.client.send(outbound, stream=True)
            try:
                body = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, ValueError) as e:
            logger.warning("origin_fetch_failed", method=request.method, url=url, error=str(e))
            raise OriginFetchError(url, str(e)) from e

        return CachedResponse(
            status=response.status_code,
            headers=filter_headers(decode_raw_headers(response.headers.raw)),
            body=body,
        )

    async def is_available(self) -> bool:
        """Check if the origin answers a HEAD request for ``/``.

        Any HTTP status counts as available; only transport errors do not.
        """
        try:
            response = await self.client.head(f"{self._origin}/")
            await response.aclose()
            return True
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
