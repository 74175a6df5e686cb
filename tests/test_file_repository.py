"""Tests for the filesystem cache store."""

import os
import time

import pytest

from caching_proxy.entities import CachedResponse
from caching_proxy.exceptions import CacheDirectoryError
from caching_proxy.repositories import FileCacheRepository
from caching_proxy.repositories.file_repository import parse_headers, serialize_headers

KEY = "0" * 64


@pytest.fixture
def response() -> CachedResponse:
    return CachedResponse(
        status=201,
        headers=[
            ("Content-Type", "application/json"),
            ("Set-Cookie", "a=1"),
            ("Set-Cookie", "b=2; Path=/"),
            ("X-Note", "value: with separator"),
        ],
        body=b'{"id": 1}\n\x00\xff',
    )


class TestDirectory:
    def test_creates_directory(self, cache_dir):
        assert not cache_dir.exists()
        FileCacheRepository(cache_dir)
        assert cache_dir.is_dir()

    def test_creation_is_idempotent(self, cache_dir):
        FileCacheRepository(cache_dir)
        FileCacheRepository(cache_dir)
        assert cache_dir.is_dir()

    def test_creation_failure_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(CacheDirectoryError):
            FileCacheRepository(blocker / "cache")


class TestRawValues:
    def test_bytes_round_trip(self, repository):
        payload = bytes(range(256)) * 3
        repository.set_bytes(KEY, payload)
        assert repository.get_bytes(KEY) == payload
        assert repository.has(KEY)

    def test_missing_values(self, repository):
        assert repository.get_bytes(KEY) is None
        assert repository.get_int(KEY + "-status") is None
        assert repository.get_headers(KEY + "-headers") is None
        assert not repository.has(KEY)

    def test_int_round_trip(self, repository):
        for value in (200, 404, 0, -1):
            repository.set_int(KEY + "-status", value)
            assert repository.get_int(KEY + "-status") == value

    def test_int_stored_as_ascii_decimal(self, repository, cache_dir):
        repository.set_int(KEY + "-status", 503)
        assert (cache_dir / f"{KEY}-status").read_bytes() == b"503"

    def test_malformed_int_is_a_miss(self, repository):
        repository.set_bytes(KEY + "-status", b"OK")
        assert repository.get_int(KEY + "-status") is None

    def test_headers_round_trip(self, repository, response):
        repository.set_headers(KEY + "-headers", response.headers)
        assert repository.get_headers(KEY + "-headers") == response.headers

    def test_headers_file_format(self, repository, cache_dir):
        repository.set_headers(KEY + "-headers", [("A", "1"), ("A", "2"), ("B", "x")])
        assert (cache_dir / f"{KEY}-headers").read_bytes() == b"A: 1\nA: 2\nB: x\n"

    def test_blank_header_lines_are_ignored(self):
        assert parse_headers(b"A: 1\n\n\nB: 2\n") == [("A", "1"), ("B", "2")]

    def test_malformed_header_line_is_a_miss(self, repository):
        repository.set_bytes(KEY + "-headers", b"Good: yes\nbroken line\n")
        assert repository.get_headers(KEY + "-headers") is None

    def test_empty_headers(self, repository):
        repository.set_headers(KEY + "-headers", [])
        assert repository.get_headers(KEY + "-headers") == []
        assert serialize_headers([]) == b""

    def test_overwrite_replaces_whole_value(self, repository):
        repository.set_bytes(KEY, b"a much longer first value")
        repository.set_bytes(KEY, b"short")
        assert repository.get_bytes(KEY) == b"short"

    def test_no_temporary_files_left_behind(self, repository, cache_dir):
        repository.set_bytes(KEY, b"data")
        assert os.listdir(cache_dir) == [KEY]

    def test_rejects_path_like_keys(self, repository):
        with pytest.raises(ValueError):
            repository.set_bytes("../escape", b"x")


class TestEntries:
    def test_entry_round_trip(self, repository, response):
        repository.set_entry(KEY, response)
        assert repository.has_entry(KEY)
        assert repository.get_entry(KEY) == response

    def test_entry_layout(self, repository, response, cache_dir):
        repository.set_entry(KEY, response)
        assert sorted(os.listdir(cache_dir)) == sorted([KEY, f"{KEY}-headers", f"{KEY}-status"])
        assert (cache_dir / KEY).read_bytes() == response.body

    def test_body_only_is_not_an_entry(self, repository):
        repository.set_bytes(KEY, b"body")
        assert not repository.has_entry(KEY)
        assert repository.get_entry(KEY) is None

    def test_missing_headers_is_not_an_entry(self, repository):
        repository.set_bytes(KEY, b"body")
        repository.set_int(KEY + "-status", 200)
        assert not repository.has_entry(KEY)
        assert repository.get_entry(KEY) is None

    def test_malformed_status_is_not_an_entry(self, repository, response):
        repository.set_entry(KEY, response)
        repository.set_bytes(KEY + "-status", b"two hundred")
        assert repository.get_entry(KEY) is None

    def test_count_entries(self, repository, response):
        repository.set_entry("a" * 64, response)
        repository.set_entry("b" * 64, response)
        assert repository.count_entries() == 2
        assert repository.get_stats()["total_entries"] == 2


class TestExpiration:
    def test_no_ttl_never_expires(self, cache_dir, response):
        repository = FileCacheRepository(cache_dir, ttl=0)
        repository.set_entry(KEY, response)
        old = time.time() - 10 * 365 * 24 * 3600
        for name in os.listdir(cache_dir):
            os.utime(cache_dir / name, (old, old))
        assert repository.has_entry(KEY)
        assert repository.sweep_expired() == 0

    def test_lazy_expiration(self, cache_dir, response):
        repository = FileCacheRepository(cache_dir, ttl=0.2)
        repository.set_entry(KEY, response)

        time.sleep(0.05)
        assert repository.has_entry(KEY)
        assert repository.get_entry(KEY) == response

        time.sleep(0.2)
        assert not repository.has_entry(KEY)
        assert repository.get_entry(KEY) is None
        assert os.listdir(cache_dir) == []

    def test_expired_sub_value_removes_siblings(self, cache_dir, response):
        repository = FileCacheRepository(cache_dir, ttl=60)
        repository.set_entry(KEY, response)
        old = time.time() - 120
        os.utime(cache_dir / f"{KEY}-status", (old, old))

        assert not repository.has(KEY + "-status")
        assert os.listdir(cache_dir) == []

    def test_get_bytes_applies_lazy_expiration(self, cache_dir):
        repository = FileCacheRepository(cache_dir, ttl=60)
        repository.set_bytes(KEY, b"stale")
        old = time.time() - 120
        os.utime(cache_dir / KEY, (old, old))
        assert repository.get_bytes(KEY) is None

    def test_sweep_removes_only_expired_files(self, cache_dir, response):
        repository = FileCacheRepository(cache_dir, ttl=60)
        repository.set_entry("a" * 64, response)
        repository.set_entry("b" * 64, response)
        old = time.time() - 120
        for name in ("a" * 64, "a" * 64 + "-status", "a" * 64 + "-headers"):
            os.utime(cache_dir / name, (old, old))

        assert repository.sweep_expired() == 3
        assert not repository.has_entry("a" * 64)
        assert repository.has_entry("b" * 64)

    def test_sweep_walks_subdirectories(self, cache_dir):
        repository = FileCacheRepository(cache_dir, ttl=60)
        nested = cache_dir / "nested"
        nested.mkdir()
        stale = nested / "leftover"
        stale.write_bytes(b"x")
        old = time.time() - 120
        os.utime(stale, (old, old))

        assert repository.sweep_expired() == 1
        assert not stale.exists()
        assert nested.is_dir()

    def test_sweep_after_ttl(self, cache_dir, response):
        repository = FileCacheRepository(cache_dir, ttl=0.2)
        repository.set_entry(KEY, response)
        time.sleep(0.25)
        assert repository.sweep_expired() == 3
        assert os.listdir(cache_dir) == []


class TestClearAll:
    def test_clear_all(self, repository, response, cache_dir):
        for key in ("a" * 64, "b" * 64, "c" * 64):
            repository.set_entry(key, response)
        (cache_dir / "nested").mkdir()
        (cache_dir / "nested" / "file").write_bytes(b"x")

        assert repository.clear_all() == 10
        assert os.listdir(cache_dir) == []
        assert not repository.has_entry("a" * 64)
        assert cache_dir.is_dir()

    def test_clear_empty_store(self, repository):
        assert repository.clear_all() == 0

    def test_clear_missing_directory_raises(self, repository, cache_dir):
        cache_dir.rmdir()
        with pytest.raises(CacheDirectoryError):
            repository.clear_all()


def test_health_check(repository, cache_dir):
    assert repository.health_check()
    cache_dir.rmdir()
    assert not repository.health_check()
