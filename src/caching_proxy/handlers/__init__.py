"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .admin_handler import AdminHandler
from .proxy_handler import ProxyHandler

__all__ = [
    "AdminHandler",
    "ProxyHandler",
]
