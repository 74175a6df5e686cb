"""Service layer for business logic.

This layer contains the core dispatch logic and background maintenance.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from caching_proxy.services import ProxyService

    service = ProxyService.create(repository=repo, origin_client=origin)
    ```
"""

from .proxy_service import SAFE_METHODS, ProxyService, is_safe_method
from .sweeper import ExpirationSweeper

__all__ = [
    "ExpirationSweeper",
    "ProxyService",
    "SAFE_METHODS",
    "is_safe_method",
]
