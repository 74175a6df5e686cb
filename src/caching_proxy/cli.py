"""Command-line entry point for the caching proxy.

Parses options (falling back to environment settings), then either clears
the cache directory and exits, or starts the proxy server with uvicorn.

Exit codes: 0 success, 1 cache directory failure, 2 invalid usage.
"""

from dataclasses import replace
from typing import Optional

import structlog
import typer
import uvicorn

from caching_proxy import __version__
from caching_proxy.api import create_app
from caching_proxy.config import Settings, get_settings, parse_duration
from caching_proxy.exceptions import CacheDirectoryError, ConfigError
from caching_proxy.log import configure_logging
from caching_proxy.repositories import FileCacheRepository

logger = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_CACHE_FAILURE = 1
EXIT_INVALID_USAGE = 2

app = typer.Typer(
    name="caching-proxy",
    help="Caching proxy server: forwards requests to an origin and caches the responses.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"caching-proxy {__version__}")
        raise typer.Exit()


def _fail(message: str, code: int) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


def build_settings(
    base: Settings,
    port: Optional[int] = None,
    origin: Optional[str] = None,
    host: Optional[str] = None,
    unique: bool = False,
    cache_timeout: Optional[str] = None,
    cache_folder: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Settings:
    """Overlay command-line options on top of environment settings.

    Raises:
        ConfigError: If any resulting value is invalid
    """
    overrides: dict = {}
    if port is not None:
        overrides["port"] = port
    if origin is not None:
        overrides["origin"] = origin
    if host is not None:
        overrides["host"] = host
    if unique:
        overrides["unique_by_user"] = True
    if cache_timeout is not None:
        overrides["cache_ttl"] = parse_duration(cache_timeout)
    if cache_folder is not None:
        overrides["cache_dir"] = cache_folder
    if log_level is not None:
        overrides["log_level"] = log_level
    return replace(base, **overrides)


@app.command()
def run(
    port: Optional[int] = typer.Option(None, "--port", help="Port on which the caching proxy server will run."),
    origin: Optional[str] = typer.Option(
        None, "--origin", help="URL of the server to which the requests will be forwarded."
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Host on which the caching proxy server will run. [default: 0.0.0.0]"
    ),
    unique: bool = typer.Option(
        False, "--unique", help="Generate unique cache per user (based on User-Agent and cookies)."
    ),
    cache_timeout: Optional[str] = typer.Option(
        None,
        "--cache-timeout",
        help="Duration to keep cached responses before expiration (e.g. 10s, 5m, 1h). [default: none]",
    ),
    cache_folder: Optional[str] = typer.Option(
        None, "--cache-folder", help="Directory to store cached responses in. [default: ./cache]"
    ),
    clear_cache: bool = typer.Option(False, "--clear-cache", help="Clear the cache of the proxy server and exit."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (debug, info, warning, error)."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """Start the caching proxy, or clear its cache with --clear-cache."""
    try:
        settings = build_settings(
            get_settings(),
            port=port,
            origin=origin,
            host=host,
            unique=unique,
            cache_timeout=cache_timeout,
            cache_folder=cache_folder,
            log_level=log_level,
        )
    except ConfigError as e:
        raise _fail(str(e), EXIT_INVALID_USAGE) from e

    configure_logging(settings.log_level, settings.log_format)

    if clear_cache:
        try:
            removed = FileCacheRepository(settings.cache_dir, ttl=settings.cache_ttl).clear_all()
        except CacheDirectoryError as e:
            raise _fail(str(e), EXIT_CACHE_FAILURE) from e
        logger.info("cache_cleared", cache_dir=settings.cache_dir, deleted=removed)
        typer.echo(f"Cache cleared: {removed} item(s) removed from {settings.cache_dir}")
        raise typer.Exit(EXIT_SUCCESS)

    if not settings.port or not settings.origin:
        raise _fail("Missing required arguments: --port and --origin.", EXIT_INVALID_USAGE)

    # Fail before uvicorn starts if the cache directory is unusable.
    try:
        FileCacheRepository(settings.cache_dir, ttl=settings.cache_ttl)
    except CacheDirectoryError as e:
        raise _fail(str(e), EXIT_CACHE_FAILURE) from e

    logger.info(
        "starting_server",
        host=settings.host,
        port=settings.port,
        origin=settings.origin,
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
        # Server and Date come from the origin response.
        server_header=False,
        date_header=False,
    )


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
