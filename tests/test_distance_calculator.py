import pytest
from conftest import FakeMapsClient
from googlemaps import exceptions as gmaps_exceptions

from trip_footprint.elements import TransportMode
from trip_footprint.g1_distance_calculation.distance_cache import InMemoryDistanceCache, JsonFileDistanceCache
from trip_footprint.g1_distance_calculation.distance_calculator import (
    DistanceCalculator,
    estimate_duration_hours,
    format_duration,
)
from trip_footprint.g1_distance_calculation.geocoder import GeocodeError, Geocoder


@pytest.fixture
def calculator(maps_client, recording_sleep, fake_clock):
    return DistanceCalculator(
        Geocoder(maps_client, sleep=recording_sleep),
        cache=InMemoryDistanceCache(clock=fake_clock),
        clock=fake_clock,
    )


def test_distance_is_geodesic_times_factor(calculator):
    result = calculator.calculate("London", "Paris", TransportMode.TRAIN)

    assert result.mode is TransportMode.TRAIN
    assert result.adjustment_factor == 1.25
    assert result.distance_km == pytest.approx(result.geodesic_distance_km * result.adjustment_factor, abs=0.01)
    assert result.origin_place == "London, UK"
    assert result.destination_place == "Paris, France"
    assert result.route_description.startswith("Rail route")
    assert not result.used_spherical_fallback


def test_result_carries_computation_time(calculator, fake_clock):
    assert calculator.calculate("London", "Paris", "flight").computed_at == fake_clock.now


def test_cache_hit_makes_no_geocoding_call(calculator, maps_client, fake_clock):
    first = calculator.calculate("London", "Paris", TransportMode.CAR)
    fake_clock.advance(3600)
    second = calculator.calculate(" london ", "PARIS", TransportMode.CAR)

    assert second == first
    assert maps_client.calls == ["London", "Paris"]


def test_expired_cache_entry_is_recomputed(calculator, maps_client, fake_clock):
    calculator.calculate("London", "Paris", TransportMode.CAR)
    fake_clock.advance(8 * 24 * 3600)
    result = calculator.calculate("London", "Paris", TransportMode.CAR)

    assert result.computed_at == fake_clock.now
    assert len(maps_client.calls) == 4


def test_all_modes_geocode_each_place_once(calculator, maps_client):
    results = calculator.calculate_all_modes("Amsterdam", "Berlin")

    assert set(results) == set(TransportMode)
    assert maps_client.calls == ["Amsterdam", "Berlin"]
    assert len({result.geodesic_distance_km for result in results.values()}) == 1
    assert results[TransportMode.FLIGHT].distance_km < results[TransportMode.CAR].distance_km


def test_only_missing_modes_are_computed(calculator, maps_client):
    calculator.calculate("Amsterdam", "Berlin", TransportMode.TRAIN)
    results = calculator.calculate_modes("Amsterdam", "Berlin", [TransportMode.TRAIN, TransportMode.BUS])

    assert set(results) == {TransportMode.TRAIN, TransportMode.BUS}
    assert len(maps_client.calls) == 4


def test_results_are_persisted_in_json_cache(maps_client, recording_sleep, fake_clock, tmp_path):
    path = tmp_path / "distances.json"
    geocoder = Geocoder(maps_client, sleep=recording_sleep)
    DistanceCalculator(geocoder, cache=JsonFileDistanceCache(path, clock=fake_clock), clock=fake_clock).calculate(
        "London", "Paris", TransportMode.BUS
    )

    cached = JsonFileDistanceCache(path, clock=fake_clock).get("London", "Paris", TransportMode.BUS)

    assert cached is not None
    assert cached.mode is TransportMode.BUS


def test_geocode_errors_propagate_and_nothing_is_cached(recording_sleep, fake_clock, city_results):
    client = FakeMapsClient({"London": city_results["London"], "Nowhere": []})
    cache = InMemoryDistanceCache(clock=fake_clock)
    calculator = DistanceCalculator(Geocoder(client, sleep=recording_sleep), cache=cache, clock=fake_clock)

    with pytest.raises(GeocodeError):
        calculator.calculate("London", "Nowhere", TransportMode.TRAIN)

    assert cache.keys() == []


def test_network_failure_propagates(recording_sleep, fake_clock):
    client = FakeMapsClient({"London": gmaps_exceptions.Timeout()})
    calculator = DistanceCalculator(Geocoder(client, sleep=recording_sleep), clock=fake_clock)

    with pytest.raises(GeocodeError):
        calculator.calculate("London", "Paris", TransportMode.TRAIN)


def test_duration_includes_flight_overhead():
    assert estimate_duration_hours(800.0, TransportMode.FLIGHT) == pytest.approx(3.0)
    assert estimate_duration_hours(160.0, TransportMode.TRAIN) == pytest.approx(2.0)
    assert estimate_duration_hours(0.0, TransportMode.FLIGHT) == 0.0


@pytest.mark.parametrize("hours, expected", [(0.5, "30 mins"), (2.4, "2.4 hours"), (26.0, "1d 2h"), (0.0, "0 mins")])
def test_format_duration(hours, expected):
    assert format_duration(hours) == expected
