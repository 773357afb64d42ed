"""Tests for TTLCache: pure logic, no mocks needed."""

import time

from siteapi.services.cache import TTLCache


def test_set_and_get_returns_value():
    cache = TTLCache(ttl=60)
    cache.set("k", "v")
    assert cache.get("k") == "v"


def test_missing_key():
    cache = TTLCache()
    assert cache.get("missing") is None
    assert cache.get_stale("missing") is None


def test_expired_key_returns_none_but_stays_stale():
    cache = TTLCache(ttl=0.01)
    cache.set("k", "v")
    time.sleep(0.02)
    assert cache.get("k") is None
    assert cache.get_stale("k") == "v"


def test_set_refreshes_expiry():
    cache = TTLCache(ttl=0.05)
    cache.set("k", "old")
    time.sleep(0.06)
    cache.set("k", "new")
    assert cache.get("k") == "new"


def test_clear():
    cache = TTLCache()
    cache.set("a", 1)
    cache.clear()
    assert cache.get_stale("a") is None
