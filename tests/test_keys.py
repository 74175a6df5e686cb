"""Tests for cache key derivation."""

import re

from caching_proxy.keys import derive_key, request_target


def test_request_target_appends_query():
    assert request_target("/products", "page=2") == "/products?page=2"
    assert request_target("/products") == "/products"
    assert request_target("/products", "") == "/products"


def test_key_is_hex_sha256():
    key = derive_key("/products?page=2")
    assert re.fullmatch(r"[0-9a-f]{64}", key)


def test_key_is_deterministic():
    assert derive_key("/a?x=1", True, "agent", "c=1") == derive_key("/a?x=1", True, "agent", "c=1")
    assert derive_key("/a") == derive_key("/a")


def test_url_changes_key():
    assert derive_key("/a") != derive_key("/b")
    assert derive_key("/a?x=1") != derive_key("/a?x=2")
    assert derive_key("/a") != derive_key("/a?x=1")


def test_user_components_change_key_when_unique():
    base = derive_key("/a", True, "agent-1", "c=1")
    assert derive_key("/a", True, "agent-2", "c=1") != base
    assert derive_key("/a", True, "agent-1", "c=2") != base


def test_user_components_ignored_without_uniqueness():
    base = derive_key("/a")
    assert derive_key("/a", False, "agent-1", "c=1") == base
    assert derive_key("/a", False, "agent-2", "c=2") == base


def test_absent_components_do_not_perturb_key():
    base = derive_key("/a")
    assert derive_key("/a", True) == base
    assert derive_key("/a", True, None, None) == base
    assert derive_key("/a", True, "", "") == base
