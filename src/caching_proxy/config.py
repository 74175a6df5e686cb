import os
import re
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlsplit

from dotenv import load_dotenv

from caching_proxy.exceptions import ConfigError

load_dotenv()

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: str) -> float:
    """Parse a duration string such as ``"10s"``, ``"1h30m"`` or ``"200ms"``.

    Bare numbers are read as seconds, so ``"0"`` and ``"90"`` are accepted.

    Args:
        value: The duration text.

    Returns:
        The duration in seconds.

    Raises:
        ConfigError: If the text is not a valid non-negative duration.
    """
    text = value.strip()
    if not text:
        raise ConfigError("Duration must not be empty")

    if _PLAIN_NUMBER.fullmatch(text):
        return float(text)

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        position = match.end()

    if position != len(text):
        raise ConfigError(f"Invalid duration {value!r} (expected e.g. 10s, 5m, 1h30m, 200ms)")
    return total


def validate_origin(origin: str) -> str:
    """Check that ``origin`` is a bare http(s) URL: scheme and host only.

    A single trailing slash is tolerated and stripped.

    Returns:
        The normalised origin, e.g. ``"https://example.com:8443"``.

    Raises:
        ConfigError: If the URL has another scheme, no host, or carries a
            path, query or fragment.
    """
    error = (
        f"Invalid origin URL {origin!r}. Only protocol (http, https) and domain are allowed, "
        "no path, query, or fragment."
    )
    try:
        parts = urlsplit(origin)
    except ValueError as e:
        raise ConfigError(error) from e

    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigError(error)
    if parts.path not in ("", "/") or parts.query or parts.fragment or "?" in origin or "#" in origin:
        raise ConfigError(error)
    return f"{parts.scheme}://{parts.netloc}"


def _optional_duration(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    return parse_duration(value)


@dataclass(frozen=True)
class Settings:
    """Proxy settings loaded from environment variables.

    The command line overrides any of these; see :mod:`caching_proxy.cli`.
    """

    # Server
    host: str = os.getenv("PROXY_HOST", "0.0.0.0")
    port: int = int(os.getenv("PROXY_PORT", "0"))  # 0 = not configured
    origin: str = os.getenv("PROXY_ORIGIN", "")
    unique_by_user: bool = os.getenv("PROXY_UNIQUE_BY_USER", "false").lower() == "true"
    admin_prefix: str = os.getenv("PROXY_ADMIN_PREFIX", "/__cache__")

    # Cache
    cache_dir: str = os.getenv("CACHE_FOLDER", "./cache")
    cache_ttl: float = parse_duration(os.getenv("CACHE_TIMEOUT", "0"))  # seconds, 0 = never expire
    cache_sweep_interval: float | None = _optional_duration(os.getenv("CACHE_SWEEP_INTERVAL"))

    # Origin
    origin_timeout: float | None = _optional_duration(os.getenv("ORIGIN_TIMEOUT"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "info")
    log_format: str = os.getenv("LOG_FORMAT", "console")

    @property
    def sweep_interval(self) -> float:
        """Seconds between two sweeps; defaults to the TTL."""
        if self.cache_sweep_interval is not None:
            return self.cache_sweep_interval
        return self.cache_ttl

    @property
    def expiration_enabled(self) -> bool:
        """Check whether cached entries expire at all."""
        return self.cache_ttl > 0

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Invalid port number {self.port}. Port must be between 1 and 65535.")

        if self.origin:
            object.__setattr__(self, "origin", validate_origin(self.origin))

        if self.cache_ttl < 0:
            raise ConfigError("CACHE_TIMEOUT must not be negative")

        if self.cache_sweep_interval is not None and self.cache_sweep_interval <= 0:
            raise ConfigError("CACHE_SWEEP_INTERVAL must be positive")

        if self.admin_prefix and not self.admin_prefix.startswith("/"):
            raise ConfigError(f"PROXY_ADMIN_PREFIX must start with '/', got {self.admin_prefix!r}")
        object.__setattr__(self, "admin_prefix", self.admin_prefix.rstrip("/"))

        if self.log_format not in ("console", "json"):
            raise ConfigError(f"LOG_FORMAT must be 'console' or 'json', got {self.log_format!r}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
