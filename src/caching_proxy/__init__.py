"""Caching Proxy - transparent HTTP caching in front of a single origin.

This package provides a layered architecture for the proxy:

Layers:
    - protocols: Interface contracts (CacheStore, OriginClient)
    - repositories: Cache directory and origin access implementations
    - services: Dispatch logic and background expiration
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (admin API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from caching_proxy.api import create_app
    from caching_proxy.config import Settings

    app = create_app(Settings(origin="https://example.com", port=3000))
    ```

Command line:
    ```
    caching-proxy --port 3000 --origin https://example.com --cache-timeout 10m
    caching-proxy --clear-cache
    ```
"""

__version__ = "0.1.0"

from caching_proxy.config import Settings, get_settings
from caching_proxy.entities import CacheDisposition, CachedResponse, OriginRequest, ProxyResult
from caching_proxy.keys import derive_key

# Layered architecture exports
from caching_proxy.protocols import CacheStore, OriginClient
from caching_proxy.repositories import FileCacheRepository, HttpxOriginClient
from caching_proxy.services import ExpirationSweeper, ProxyService

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Protocols (interfaces)
    "CacheStore",
    "OriginClient",
    # Services (business logic)
    "ProxyService",
    "ExpirationSweeper",
    # Repositories (data access)
    "FileCacheRepository",
    "HttpxOriginClient",
    # Entities (domain models)
    "CacheDisposition",
    "CachedResponse",
    "OriginRequest",
    "ProxyResult",
    # Key derivation
    "derive_key",
]
