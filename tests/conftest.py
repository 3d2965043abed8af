"""Shared fixtures for the test suite."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from trip_footprint.g0_utils.utils import CreditConfig, EmissionsConfig, load_credit_config, load_emissions_config

CONFIG_PATH = Path(__file__).parent.parent / "config.yml"


class FakeClock:
    """Clock returning a manually advanced time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMapsClient:
    """Stand-in for googlemaps.Client answering geocode queries from a table.

    A query mapped to an exception instance raises it; a list of responses is consumed one call at a time.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def geocode(self, query: str) -> list[dict[str, Any]]:
        self.calls.append(query)
        response = self.responses[query]
        if isinstance(response, tuple):
            response, *remaining = response
            self.responses[query] = tuple(remaining) if remaining else response
        if isinstance(response, Exception):
            raise response
        return response


def make_geocode_result(
    lat: float, lng: float, address: str, types: list[str] | None = None, country: str | None = None
) -> dict[str, Any]:
    """Build one geocoding result in the Google Maps response shape."""
    components = (
        [{"long_name": country, "short_name": country[:2].upper(), "types": ["country", "political"]}]
        if country
        else []
    )
    return {
        "formatted_address": address,
        "geometry": {"location": {"lat": lat, "lng": lng}},
        "types": types if types is not None else ["locality", "political"],
        "address_components": components,
    }


@pytest.fixture(scope="session")
def config_path() -> Path:
    return CONFIG_PATH


@pytest.fixture(scope="session")
def emissions_config() -> EmissionsConfig:
    return load_emissions_config(CONFIG_PATH)


@pytest.fixture(scope="session")
def credit_config() -> CreditConfig:
    return load_credit_config(CONFIG_PATH)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleeps() -> list[float]:
    return []


@pytest.fixture
def recording_sleep(recorded_sleeps: list[float]) -> Callable[[float], None]:
    return recorded_sleeps.append


@pytest.fixture
def city_results() -> dict[str, Any]:
    """Geocoding responses for a few European cities."""
    return {
        "London": [make_geocode_result(51.5074, -0.1278, "London, UK", country="United Kingdom")],
        "Paris": [make_geocode_result(48.8566, 2.3522, "Paris, France", country="France")],
        "Amsterdam": [make_geocode_result(52.3676, 4.9041, "Amsterdam, Netherlands", country="Netherlands")],
        "Berlin": [make_geocode_result(52.5200, 13.4050, "Berlin, Germany", country="Germany")],
    }


@pytest.fixture
def maps_client(city_results: dict[str, Any]) -> FakeMapsClient:
    return FakeMapsClient(city_results)
