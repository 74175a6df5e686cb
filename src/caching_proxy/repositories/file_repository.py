"""Filesystem implementation of CacheStore.

Every cached response is kept as three files in the cache directory:

- ``<key>``          raw response body
- ``<key>-status``   status code as ASCII decimal
- ``<key>-headers``  one ``Name: Value`` pair per line

Writes go to a temporary file first and are renamed into place, so a single
value is never visible half-written. A striped set of locks keyed by the
logical key makes the three-file record atomic for readers in this process.
"""

import contextlib
import os
import re
import shutil
import tempfile
import threading
import time
from pathlib import Path

import structlog

from caching_proxy.config import get_settings
from caching_proxy.entities import CachedResponse, HeaderList
from caching_proxy.exceptions import CacheDirectoryError, CacheWriteError

logger = structlog.get_logger(__name__)

STATUS_SUFFIX = "-status"
HEADERS_SUFFIX = "-headers"
TEMP_PREFIX = ".tmp-"
HEADER_SEPARATOR = ": "

_LOCK_STRIPES = 64
_INTEGER = re.compile(rb"[+-]?\d+")


def base_key(key: str) -> str:
    """Strip the ``-status`` / ``-headers`` suffix from a sub-value key."""
    for suffix in (STATUS_SUFFIX, HEADERS_SUFFIX):
        if key.endswith(suffix):
            return key[: -len(suffix)]
    return key


def entry_keys(key: str) -> tuple[str, str, str]:
    """Return the body, status and headers keys of a logical entry."""
    return key, key + STATUS_SUFFIX, key + HEADERS_SUFFIX


def serialize_headers(headers: HeaderList) -> bytes:
    """Encode headers as ``Name: Value`` lines."""
    return "".join(f"{name}{HEADER_SEPARATOR}{value}\n" for name, value in headers).encode("latin-1")


def parse_headers(data: bytes) -> HeaderList | None:
    """Decode ``Name: Value`` lines; blank lines are skipped.

    Returns:
        The header list, or None if any line lacks the separator
    """
    headers: HeaderList = []
    for line in data.decode("latin-1").split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        name, separator, value = line.partition(HEADER_SEPARATOR)
        if not separator:
            return None
        headers.append((name, value))
    return headers


def parse_int(data: bytes) -> int | None:
    """Decode an ASCII decimal integer, or None if malformed."""
    if not _INTEGER.fullmatch(data):
        return None
    return int(data)


class FileCacheRepository:
    """Local disk implementation of the cache store.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Expiration is based on file modification time:
    - lazily, every read first deletes an expired entry
    - actively, sweep_expired() walks the whole directory
    A TTL of 0 disables both.
    """

    def __init__(self, cache_dir: str | Path, ttl: float = 0.0) -> None:
        """Initialize the repository and create the cache directory.

        Args:
            cache_dir: Root directory for cached files.
            ttl: Entry lifetime in seconds, 0 for no expiration.

        Raises:
            CacheDirectoryError: If the directory cannot be created
        """
        self._root = Path(cache_dir)
        self._ttl = ttl
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

        self._create_cache_dir()

    @classmethod
    def create(
        cls,
        cache_dir: str | Path | None = None,
        ttl: float | None = None,
    ) -> "FileCacheRepository":
        """Factory method to create FileCacheRepository with defaults.

        Args:
            cache_dir: Cache directory. If None, uses settings.
            ttl: Entry TTL in seconds. If None, uses settings.

        Returns:
            Configured FileCacheRepository
        """
        if cache_dir is None or ttl is None:
            settings = get_settings()
            cache_dir = cache_dir if cache_dir is not None else settings.cache_dir
            ttl = ttl if ttl is not None else settings.cache_ttl
        return cls(cache_dir=cache_dir, ttl=ttl)

    def _create_cache_dir(self) -> None:
        try:
            self._root.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheDirectoryError(f"failed to create cache directory {self._root}: {e}") from e

    def _lock(self, key: str) -> threading.Lock:
        return self._locks[hash(base_key(key)) % _LOCK_STRIPES]

    def _path(self, key: str) -> Path:
        if not key or key in (".", "..") or "/" in key or os.sep in key or key.startswith(TEMP_PREFIX):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self._root / key

    def _is_expired(self, mtime: float) -> bool:
        return self._ttl > 0 and time.time() - mtime > self._ttl

    def _expire(self, key: str) -> None:
        """Delete the whole entry if ``key`` is past its TTL. Caller holds the lock."""
        if self._ttl <= 0:
            return

        try:
            mtime = self._path(key).stat().st_mtime
        except OSError:
            return

        if self._is_expired(mtime):
            for sibling in entry_keys(base_key(key)):
                with contextlib.suppress(OSError):
                    self._path(sibling).unlink()
            logger.debug("cache_entry_expired", key=base_key(key))

    def _read(self, key: str) -> bytes | None:
        """Raw read primitive. Caller holds the lock."""
        self._expire(key)
        try:
            return self._path(key).read_bytes()
        except OSError:
            return None

    def _write(self, key: str, value: bytes) -> None:
        """Raw write primitive: temp file then atomic rename."""
        path = self._path(key)
        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self._root, prefix=TEMP_PREFIX)
            with os.fdopen(fd, "wb") as file:
                file.write(value)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise CacheWriteError(key, str(e)) from e

    def has(self, key: str) -> bool:
        """Check whether a live value exists for ``key``.

        Args:
            key: Sub-value key (body, ``-status`` or ``-headers``)

        Returns:
            True if the file exists and is not expired
        """
        with self._lock(key):
            self._expire(key)
            return self._path(key).is_file()

    def get_bytes(self, key: str) -> bytes | None:
        """Read a raw value.

        Returns:
            The stored bytes, or None if missing, expired or unreadable
        """
        with self._lock(key):
            return self._read(key)

    def get_int(self, key: str) -> int | None:
        """Read an integer value.

        Returns:
            The stored integer, or None if missing or not a decimal number
        """
        data = self.get_bytes(key)
        if data is None:
            return None
        return parse_int(data)

    def get_headers(self, key: str) -> HeaderList | None:
        """Read a header list.

        Returns:
            The stored headers, or None if missing or any line is malformed
        """
        data = self.get_bytes(key)
        if data is None:
            return None
        return parse_headers(data)

    def set_bytes(self, key: str, value: bytes) -> None:
        """Create or replace a raw value.

        Raises:
            CacheWriteError: If the value could not be written
        """
        with self._lock(key):
            self._write(key, value)

    def set_int(self, key: str, value: int) -> None:
        """Create or replace an integer value."""
        self.set_bytes(key, str(value).encode("ascii"))

    def set_headers(self, key: str, headers: HeaderList) -> None:
        """Create or replace a header list."""
        self.set_bytes(key, serialize_headers(headers))

    def has_entry(self, key: str) -> bool:
        """Check whether body, status and headers are all present and live.

        A partially written entry is reported as absent.
        """
        with self._lock(key):
            present = True
            for sub_key in entry_keys(key):
                self._expire(sub_key)
                present = present and self._path(sub_key).is_file()
            return present

    def get_entry(self, key: str) -> CachedResponse | None:
        """Read a whole cached response.

        Returns:
            The cached response, or None if any part is missing or malformed
        """
        body_key, status_key, headers_key = entry_keys(key)
        with self._lock(key):
            body = self._read(body_key)
            status = self._read(status_key)
            headers = self._read(headers_key)

        if body is None or status is None or headers is None:
            return None

        status_code = parse_int(status)
        header_list = parse_headers(headers)
        if status_code is None or header_list is None:
            return None

        return CachedResponse(status=status_code, headers=header_list, body=body)

    def set_entry(self, key: str, response: CachedResponse) -> None:
        """Store a whole cached response under ``key``.

        Raises:
            CacheWriteError: If any part could not be written
        """
        body_key, status_key, headers_key = entry_keys(key)
        with self._lock(key):
            self._write(body_key, response.body)
            self._write(status_key, str(response.status).encode("ascii"))
            self._write(headers_key, serialize_headers(response.headers))

    def sweep_expired(self) -> int:
        """Delete every file under the cache directory older than the TTL.

        Directory walk errors and individual delete failures are logged and
        do not abort the sweep.

        Returns:
            Number of files removed
        """
        if self._ttl <= 0:
            return 0

        def on_walk_error(error: OSError) -> None:
            logger.error("cache_sweep_walk_failed", path=error.filename, error=str(error))

        removed = 0
        for dirpath, _dirnames, filenames in os.walk(self._root, onerror=on_walk_error):
            for name in filenames:
                path = Path(dirpath) / name
                with self._lock(name):
                    try:
                        mtime = path.lstat().st_mtime
                    except OSError:
                        continue
                    if not self._is_expired(mtime):
                        continue
                    try:
                        path.unlink()
                    except OSError as e:
                        logger.error("cache_file_remove_failed", path=str(path), error=str(e))
                        continue
                removed += 1
                logger.info("cache_file_removed", path=str(path))

        return removed

    def clear_all(self) -> int:
        """Remove everything inside the cache directory.

        Returns:
            Number of top-level items removed

        Raises:
            CacheDirectoryError: If the directory cannot be listed
        """
        try:
            items = list(os.scandir(self._root))
        except OSError as e:
            raise CacheDirectoryError(f"failed to read cache directory {self._root}: {e}") from e

        removed = 0
        for item in items:
            try:
                if item.is_dir(follow_symlinks=False):
                    shutil.rmtree(item.path)
                else:
                    os.unlink(item.path)
                removed += 1
            except OSError as e:
                logger.error("cache_file_remove_failed", path=item.path, error=str(e))
        return removed

    def count_entries(self) -> int:
        """Count cached responses (body files) in the directory.

        Returns:
            Number of entries, 0 if the directory cannot be listed
        """
        try:
            names = os.listdir(self._root)
        except OSError:
            return 0
        return sum(
            1
            for name in names
            if not name.startswith(".") and base_key(name) == name
        )

    def health_check(self) -> bool:
        """Check if the cache directory exists and is writable."""
        return self._root.is_dir() and os.access(self._root, os.W_OK)

    def get_stats(self) -> dict:
        """Get repository statistics."""
        return {
            "cache_dir": str(self._root),
            "total_entries": self.count_entries(),
            "ttl": self._ttl,
        }

    @property
    def root(self) -> Path:
        """Get the cache directory."""
        return self._root

    @property
    def ttl(self) -> float:
        """Get the entry lifetime in seconds."""
        return self._ttl
