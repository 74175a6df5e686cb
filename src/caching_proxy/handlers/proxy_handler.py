"""HTTP handler for proxied traffic.

Converts Starlette requests into OriginRequest entities, delegates to
ProxyService, and turns the result back into a response tagged with
``X-Cache: HIT`` or ``X-Cache: MISS``.
"""

import time

import structlog
from fastapi import Request, Response, status
from fastapi.responses import PlainTextResponse

from caching_proxy.entities import OriginRequest, ProxyResult
from caching_proxy.exceptions import OriginFetchError
from caching_proxy.models import PerformanceMetrics
from caching_proxy.services import ProxyService

logger = structlog.get_logger(__name__)

CACHE_HEADER = "X-Cache"
ORIGIN_ERROR_MESSAGE = "Failed to fetch data from origin\n"


async def capture_request(request: Request) -> OriginRequest:
    """Buffer an incoming request into an OriginRequest.

    The raw path is used when the server provides it, so percent-encoding
    reaches the origin unchanged.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")

    return OriginRequest(
        method=request.method,
        path=path,
        query=query,
        headers=request.headers.items(),
        body=await request.body(),
    )


def build_response(result: ProxyResult, method: str = "GET") -> Response:
    """Convert a ProxyResult into a response, repeated headers preserved.

    Content-Length is computed from the body being sent, except for HEAD
    where the body is empty and the origin's length is replayed.
    """
    response = Response(content=result.response.body, status_code=result.response.status)
    for name, value in result.response.headers:
        if name.lower() != "content-length":
            response.headers.append(name, value)

    lengths = result.response.header_values("Content-Length")
    if method.upper() == "HEAD" and lengths:
        response.headers["content-length"] = lengths[0]
    response.headers[CACHE_HEADER] = result.disposition.header_value
    return response


class ProxyHandler:
    """HTTP handler for every proxied request.

    This handler delegates cache decisions to ProxyService and handles
    HTTP-specific concerns:
    - Capturing the incoming request
    - Copying the cached or fetched status, headers and body
    - Mapping origin failures to 502 Bad Gateway
    - Logging and counting each outcome
    """

    def __init__(self, proxy_service: ProxyService, metrics: PerformanceMetrics | None = None) -> None:
        """Initialize the proxy handler.

        Args:
            proxy_service: The proxy service for dispatch logic (required).
            metrics: Counters shared with the stats endpoint.
        """
        self._proxy = proxy_service
        self.metrics = metrics or PerformanceMetrics()

    async def handle(self, request: Request) -> Response:
        """Handle any request that is not an admin endpoint.

        Args:
            request: The incoming request

        Returns:
            The origin or cached response, or 502 if the origin is unreachable
        """
        start_time = time.time()
        origin_request = await capture_request(request)

        try:
            result = await self._proxy.dispatch(origin_request)
        except OriginFetchError:
            elapsed_ms = (time.time() - start_time) * 1000
            self.metrics.record_origin_error(elapsed_ms)
            logger.warning(
                "request_failed",
                disposition="MISS",
                method=origin_request.method,
                url=origin_request.target,
                status=status.HTTP_502_BAD_GATEWAY,
                elapsed_ms=round(elapsed_ms, 2),
            )
            return PlainTextResponse(
                ORIGIN_ERROR_MESSAGE,
                status_code=status.HTTP_502_BAD_GATEWAY,
                headers={CACHE_HEADER: "MISS"},
            )

        elapsed_ms = (time.time() - start_time) * 1000
        self.metrics.record(result.disposition, elapsed_ms)
        logger.info(
            "request_proxied",
            disposition=result.disposition.value,
            method=origin_request.method,
            url=origin_request.target,
            status=result.response.status,
            elapsed_ms=round(elapsed_ms, 2),
        )

        return build_response(result, origin_request.method)
