"""FastAPI application for the caching proxy.

Every path and method is proxied, except the optional admin endpoints under
``settings.admin_prefix``. FastAPI's own docs and OpenAPI routes are
disabled so they do not shadow origin paths.
"""

import httpx
from fastapi import FastAPI, Request, Response

from caching_proxy.api.dependencies import AdminHandlerDep, get_proxy_handler, lifespan
from caching_proxy.config import Settings, get_settings
from caching_proxy.dto import CacheStatsResponse, ClearCacheResponse, HealthCheckResponse


async def proxy(request: Request) -> Response:
    """Catch-all endpoint: serve from cache or forward to the origin."""
    handler = get_proxy_handler(request)
    return await handler.handle(request)


def _add_admin_routes(app: FastAPI, prefix: str) -> None:
    @app.get(f"{prefix}/health", response_model=HealthCheckResponse)
    async def health(handler: AdminHandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.get(f"{prefix}/stats", response_model=CacheStatsResponse)
    async def stats(handler: AdminHandlerDep) -> CacheStatsResponse:
        """Cache and request statistics."""
        return await handler.get_stats()

    @app.delete(prefix, response_model=ClearCacheResponse)
    async def clear_cache(handler: AdminHandlerDep) -> ClearCacheResponse:
        """Clear all entries from the cache."""
        return await handler.clear_cache()


def create_app(
    settings: Settings | None = None,
    origin_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Create the proxy application.

    Args:
        settings: Proxy settings. Defaults to the environment settings.
        origin_transport: Custom httpx transport for reaching the origin
            (tests pass an httpx.MockTransport).

    Returns:
        The configured FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Caching Proxy",
        description="Transparent HTTP caching proxy for a single origin",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.origin_transport = origin_transport

    # Admin routes first: routes match in registration order.
    if settings.admin_prefix:
        _add_admin_routes(app, settings.admin_prefix)

    app.add_route("/{path:path}", proxy, include_in_schema=False)

    return app
