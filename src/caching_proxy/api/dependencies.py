"""Dependency injection configuration for the FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Settings (and an optional origin transport) stored in app.state by create_app
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
"""

from contextlib import asynccontextmanager
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Request

from caching_proxy.config import Settings
from caching_proxy.handlers import AdminHandler, ProxyHandler
from caching_proxy.models import PerformanceMetrics
from caching_proxy.repositories import FileCacheRepository, HttpxOriginClient
from caching_proxy.services import ExpirationSweeper, ProxyService

logger = structlog.get_logger(__name__)


def get_proxy_handler(request: Request) -> ProxyHandler:
    """Dependency injection for ProxyHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "proxy_handler", None)
    if handler is None:
        raise RuntimeError("ProxyHandler not initialized. Check lifespan setup.")
    return handler


def get_admin_handler(request: Request) -> AdminHandler:
    """Dependency injection for AdminHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "admin_handler", None)
    if handler is None:
        raise RuntimeError("AdminHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Repositories (cache directory, origin client) - created explicitly
    2. Service (dispatch logic) - app.state.proxy_service
    3. Handlers (HTTP) - app.state.proxy_handler, app.state.admin_handler
    4. Sweeper (active expiration) - started here, stopped on shutdown

    Cleanup:
        Stops the sweeper, waits for pending cache writes, closes the
        origin client and removes everything from app.state
    """
    settings: Settings = app.state.settings

    repository = FileCacheRepository(cache_dir=settings.cache_dir, ttl=settings.cache_ttl)
    origin_client = HttpxOriginClient(
        origin=settings.origin,
        timeout=settings.origin_timeout,
        transport=getattr(app.state, "origin_transport", None),
    )

    proxy_service = ProxyService.create(
        repository=repository,
        origin_client=origin_client,
        unique_by_user=settings.unique_by_user,
    )
    metrics = PerformanceMetrics()
    proxy_handler = ProxyHandler(proxy_service=proxy_service, metrics=metrics)
    admin_handler = AdminHandler(
        proxy_service=proxy_service,
        origin_client=origin_client,
        metrics=metrics,
    )
    sweeper = ExpirationSweeper(repository, ttl=settings.cache_ttl, interval=settings.sweep_interval)

    app.state.repository = repository
    app.state.origin_client = origin_client
    app.state.proxy_service = proxy_service
    app.state.proxy_handler = proxy_handler
    app.state.admin_handler = admin_handler
    app.state.sweeper = sweeper

    sweeper.start()
    logger.info(
        "proxy_started",
        origin=settings.origin,
        cache_dir=settings.cache_dir,
        ttl=settings.cache_ttl,
        unique_by_user=settings.unique_by_user,
        admin_prefix=settings.admin_prefix or None,
    )

    yield

    await sweeper.stop()
    await proxy_service.drain()
    await origin_client.close()

    del app.state.sweeper
    del app.state.admin_handler
    del app.state.proxy_handler
    del app.state.proxy_service
    del app.state.origin_client
    del app.state.repository
    logger.info("proxy_stopped")


# Type aliases for cleaner dependency injection
AdminHandlerDep = Annotated[AdminHandler, Depends(get_admin_handler)]
