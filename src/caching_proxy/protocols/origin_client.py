"""Origin client protocol.

Defines the interface for relaying a request to the upstream origin.
"""

from typing import Protocol, runtime_checkable

from caching_proxy.entities import CachedResponse, OriginRequest


@runtime_checkable
class OriginClient(Protocol):
    """Protocol for origin forwarders."""

    @property
    def origin(self) -> str:
        """Return the origin base URL (scheme and host)."""
        ...

    async def forward(self, request: OriginRequest) -> CachedResponse:
        """Relay ``request`` to the origin and buffer the whole response.

        Raises:
            OriginFetchError: If the origin cannot be reached or the
                response cannot be read
        """
        ...

    async def is_available(self) -> bool:
        """Check if the origin answers at all."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
