# tests/test_cache.py
import pytest

from cep_label.cache import CacheConfig, LookupCache, code_key, street_key
from cep_label.constants import MISS


def test_get_within_ttl_returns_stored_object(cache):
    value = {"city": "São Paulo"}
    cache.set("k", value, ttl=10)
    assert cache.get("k") is value


def test_expired_entry_is_a_miss_and_is_evicted(cache, clock):
    cache.set("k", "v", ttl=10)
    clock.advance(10)
    assert cache.get("k") is MISS
    assert "k" not in cache
    assert len(cache) == 0


def test_default_ttl_applies(cache, clock):
    cache.set("k", "v")
    clock.advance(299)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is MISS


def test_set_overwrites_and_restarts_ttl(cache, clock):
    cache.set("k", "old", ttl=10)
    clock.advance(8)
    cache.set("k", "new", ttl=10)
    clock.advance(8)
    assert cache.get("k") == "new"


def test_delete_is_unconditional(cache):
    cache.set("k", "v")
    cache.delete("k")
    cache.delete("never-set")
    assert cache.get("k") is MISS


def test_cleanup_evicts_only_expired(cache, clock):
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=50)
    clock.advance(6)
    assert "short" in cache
    assert cache.cleanup() == 1
    assert "short" not in cache
    assert cache.get("long") == 2


def test_miss_for_unknown_key(cache):
    assert cache.get("nope") is MISS


def test_from_config(clock):
    c = LookupCache.from_config(CacheConfig(ttl_seconds=5), clock=clock)
    c.set("k", "v")
    clock.advance(5)
    assert c.get("k") is MISS


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        LookupCache(default_ttl=0)


def test_keys_are_verbatim():
    assert code_key("01310100") == "code:01310100"
    assert street_key("SP", "São Paulo", "Paulista") == "street:SP:São Paulo:Paulista"
    assert street_key("sp", "são paulo", "paulista ") != street_key("SP", "São Paulo", "Paulista")
