"""Tests for the TTL result cache."""
from repointel.infrastructure.result_cache import DEFAULT_TTL_SECONDS, ResultCache
from conftest import FakeClock


def test_default_ttl_is_fifteen_minutes():
    """Test the default time-to-live."""
    assert ResultCache().ttl == DEFAULT_TTL_SECONDS == 900


def test_hit_before_expiry():
    """Test that a fresh entry is returned."""
    clock = FakeClock()
    cache = ResultCache(ttl_seconds=60, clock=clock)
    cache.set("k", "v")
    clock.now += 59.9

    assert cache.get("k") == "v"


def test_entry_expires_exactly_at_ttl():
    """Test that an entry aged exactly the TTL is a miss and is removed."""
    clock = FakeClock()
    cache = ResultCache(ttl_seconds=60, clock=clock)
    cache.set("k", "v")
    clock.now += 60

    assert cache.get("k") is None
    assert len(cache) == 0


def test_missing_key():
    """Test that an unknown key is a miss."""
    assert ResultCache().get("nope") is None


def test_set_overwrites_and_refreshes():
    """Test that re-setting a key restarts its lifetime."""
    clock = FakeClock()
    cache = ResultCache(ttl_seconds=60, clock=clock)
    cache.set("k", "old")
    clock.now += 50
    cache.set("k", "new")
    clock.now += 50

    assert cache.get("k") == "new"


def test_clear():
    """Test clearing all entries."""
    cache = ResultCache()
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()

    assert len(cache) == 0
    assert cache.get("a") is None


def test_capped_cache_evicts_least_recently_used():
    """Test that a finite size cap evicts the oldest unused entry."""
    cache = ResultCache(ttl_seconds=60, clock=FakeClock(), max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("b") is None
    assert cache.get("a") == 1
