"""
Tests for settings parsing and validation.
"""

from dataclasses import replace

import pytest

from caching_proxy.config import Settings, parse_duration, validate_origin
from caching_proxy.exceptions import ConfigError


@pytest.mark.parametrize(
    ("text", "seconds"),
    [
        ("10s", 10.0),
        ("5m", 300.0),
        ("1h", 3600.0),
        ("1h30m", 5400.0),
        ("200ms", 0.2),
        ("1.5s", 1.5),
        ("90", 90.0),
        ("0", 0.0),
        (" 2m ", 120.0),
    ],
)
def test_parse_duration(text, seconds):
    """Test accepted duration formats."""
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "abc", "10x", "-5s", "10 s", "s", "1h 30m"])
def test_parse_duration_invalid(text):
    """Test rejected duration formats."""
    with pytest.raises(ConfigError):
        parse_duration(text)


@pytest.mark.parametrize(
    ("origin", "expected"),
    [
        ("http://example.com", "http://example.com"),
        ("https://example.com:8443", "https://example.com:8443"),
        ("http://localhost:8080/", "http://localhost:8080"),
    ],
)
def test_validate_origin(origin, expected):
    """Test accepted origin URLs."""
    assert validate_origin(origin) == expected


@pytest.mark.parametrize(
    "origin",
    [
        "ftp://example.com",
        "example.com",
        "http://",
        "http://example.com/api",
        "http://example.com?x=1",
        "http://example.com/?",
        "http://example.com#top",
    ],
)
def test_validate_origin_invalid(origin):
    """Test rejected origin URLs."""
    with pytest.raises(ConfigError, match="Invalid origin URL"):
        validate_origin(origin)


def test_settings_normalizes(settings):
    """Test origin and admin prefix normalization."""
    updated = replace(settings, origin="https://example.com/", admin_prefix="/admin/")
    assert updated.origin == "https://example.com"
    assert updated.admin_prefix == "/admin"


def test_settings_sweep_interval(settings):
    """Test the sweep interval fallback to the TTL."""
    assert replace(settings, cache_ttl=60.0).sweep_interval == 60.0
    assert replace(settings, cache_ttl=60.0, cache_sweep_interval=5.0).sweep_interval == 5.0
    assert not settings.expiration_enabled
    assert replace(settings, cache_ttl=1.0).expiration_enabled


@pytest.mark.parametrize(
    "overrides",
    [
        {"port": -1},
        {"port": 70000},
        {"origin": "ftp://example.com"},
        {"cache_ttl": -1.0},
        {"cache_sweep_interval": 0.0},
        {"admin_prefix": "admin"},
        {"log_format": "xml"},
    ],
)
def test_settings_invalid(settings, overrides):
    """Test settings validation."""
    with pytest.raises(ConfigError):
        replace(settings, **overrides)


def test_config_error_is_value_error():
    """Test that configuration errors can be caught as ValueError."""
    with pytest.raises(ValueError):
        Settings(port=99999)


def test_empty_admin_prefix_disables_admin(settings):
    """Test that an empty prefix is allowed."""
    assert replace(settings, admin_prefix="").admin_prefix == ""
