import json
import math
from datetime import timedelta

import pytest

from trip_footprint.elements import DistanceResult, TransportMode
from trip_footprint.g1_distance_calculation.distance_cache import (
    InMemoryDistanceCache,
    JsonFileDistanceCache,
    build_cache_key,
)

SEVEN_DAYS = timedelta(days=7).total_seconds()


@pytest.fixture
def result() -> DistanceResult:
    return DistanceResult(
        distance_km=405.2,
        geodesic_distance_km=343.4,
        adjustment_factor=1.18,
        mode=TransportMode.TRAIN,
        route_description="Rail route: 100-500 km bracket x1.25 (factor 1.25)",
        origin_place="London, UK",
        destination_place="Paris, France",
        computed_at=1_700_000_000.0,
    )


@pytest.fixture(params=["memory", "json"])
def cache(request, tmp_path, fake_clock):
    if request.param == "memory":
        return InMemoryDistanceCache(clock=fake_clock)
    return JsonFileDistanceCache(tmp_path / "cache" / "distances.json", clock=fake_clock)


def test_key_is_lowercase_and_whitespace_collapsed():
    assert build_cache_key("  New   York ", "PARIS", TransportMode.FLIGHT) == '["new york", "paris", "flight"]'
    assert build_cache_key("New York", "Paris", "flight") == build_cache_key("new york", " paris", TransportMode.FLIGHT)


def test_separator_in_place_names_does_not_collide(cache, result):
    assert build_cache_key("a|b", "c", "train") != build_cache_key("a", "b|c", "train")

    cache.put("a|b", "c", TransportMode.TRAIN, result)

    assert cache.get("a", "b|c", TransportMode.TRAIN) is None


def test_get_returns_what_was_put(cache, result):
    cache.put("London", "Paris", TransportMode.TRAIN, result)

    assert cache.get("London", "Paris", TransportMode.TRAIN) == result


def test_lookup_normalizes_the_query(cache, result):
    cache.put("London", "Paris", TransportMode.TRAIN, result)

    assert cache.get(" LONDON ", "paris", "train") == result


def test_modes_are_cached_separately(cache, result):
    cache.put("London", "Paris", TransportMode.TRAIN, result)

    assert cache.get("London", "Paris", TransportMode.FLIGHT) is None


def test_entry_is_served_until_ttl(cache, result, fake_clock):
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    fake_clock.advance(SEVEN_DAYS)

    assert cache.get("London", "Paris", TransportMode.TRAIN) == result


def test_expired_entry_is_a_miss_and_evicted(cache, result, fake_clock):
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    fake_clock.advance(SEVEN_DAYS + 1)

    assert cache.get("London", "Paris", TransportMode.TRAIN) is None
    assert cache.keys() == []


@pytest.mark.parametrize(
    "entry",
    [
        "not a dict",
        {"result": {}},
        {"stored_at": "yesterday", "result": {}},
        {"stored_at": 1_700_000_000.0, "result": {"distance_km": 1.0}},
        {"stored_at": 1_700_000_000.0, "result": {"mode": "teleport"}},
    ],
)
def test_corrupt_entry_is_a_miss_and_evicted(cache, entry):
    key = build_cache_key("London", "Paris", TransportMode.TRAIN)
    cache._write_entry(key, entry)

    assert cache.get("London", "Paris", TransportMode.TRAIN) is None
    assert key not in cache.keys()


@pytest.mark.parametrize("offset", [math.nan, math.inf, 3600.0])
def test_entry_with_invalid_storage_time_is_a_miss_and_evicted(cache, result, fake_clock, offset):
    key = build_cache_key("London", "Paris", TransportMode.TRAIN)
    cache._write_entry(key, {"stored_at": fake_clock.now + offset, "result": result.to_dict()})

    assert cache.get("London", "Paris", TransportMode.TRAIN) is None
    assert key not in cache.keys()


def test_purge_expired_removes_entries_with_invalid_storage_time(cache, result, fake_clock):
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    key = build_cache_key("London", "Paris", TransportMode.FLIGHT)
    cache._write_entry(key, {"stored_at": math.nan, "result": result.to_dict()})

    assert cache.purge_expired() == 1
    assert cache.keys() == [build_cache_key("London", "Paris", TransportMode.TRAIN)]


def test_purge_expired_keeps_fresh_entries(cache, result, fake_clock):
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    fake_clock.advance(SEVEN_DAYS + 1)
    cache.put("London", "Paris", TransportMode.FLIGHT, result)

    assert cache.purge_expired() == 1
    assert cache.keys() == [build_cache_key("London", "Paris", TransportMode.FLIGHT)]


def test_purge_removes_everything(cache, result):
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    cache.purge()

    assert cache.keys() == []


def test_custom_ttl(tmp_path, fake_clock, result):
    cache = InMemoryDistanceCache(ttl=timedelta(hours=1), clock=fake_clock)
    cache.put("London", "Paris", TransportMode.TRAIN, result)
    fake_clock.advance(3601)

    assert cache.get("London", "Paris", TransportMode.TRAIN) is None


def test_json_cache_persists_across_instances(tmp_path, fake_clock, result):
    path = tmp_path / "distances.json"
    JsonFileDistanceCache(path, clock=fake_clock).put("London", "Paris", TransportMode.TRAIN, result)

    assert JsonFileDistanceCache(path, clock=fake_clock).get("London", "Paris", TransportMode.TRAIN) == result
    stored = json.loads(path.read_text())
    assert stored[build_cache_key("London", "Paris", TransportMode.TRAIN)]["stored_at"] == fake_clock.now


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_unreadable_json_file_is_treated_as_empty(tmp_path, fake_clock, result, content):
    path = tmp_path / "distances.json"
    path.write_text(content)
    cache = JsonFileDistanceCache(path, clock=fake_clock)

    assert cache.get("London", "Paris", TransportMode.TRAIN) is None

    cache.put("London", "Paris", TransportMode.TRAIN, result)
    assert cache.get("London", "Paris", TransportMode.TRAIN) == result
