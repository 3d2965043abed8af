import pytest
from conftest import FakeMapsClient, make_geocode_result
from googlemaps import exceptions as gmaps_exceptions

from trip_footprint.g0_utils.utils import API_KEY_ENV_VARIABLE, RetryPolicy, load_geocoder_config
from trip_footprint.g1_distance_calculation import geocoder as geocoder_module
from trip_footprint.g1_distance_calculation.geocoder import GeocodeError, GeocodeFailureReason, Geocoder


def test_geocode_returns_place_details(maps_client, recording_sleep):
    place = Geocoder(maps_client, sleep=recording_sleep).geocode("Paris")

    assert place.coordinates.lat == pytest.approx(48.8566)
    assert place.coordinates.lng == pytest.approx(2.3522)
    assert place.display_name == "Paris, France"
    assert place.country == "France"


def test_query_is_trimmed(maps_client, recording_sleep):
    Geocoder(maps_client, sleep=recording_sleep).geocode("  Paris ")

    assert maps_client.calls == ["Paris"]


@pytest.mark.parametrize("place_name", ["", "   ", None])
def test_empty_place_name_is_rejected(maps_client, place_name):
    with pytest.raises(ValueError):
        Geocoder(maps_client).geocode(place_name)

    assert maps_client.calls == []


def test_prefers_cities_over_points_of_interest(recording_sleep):
    client = FakeMapsClient(
        {
            "Springfield": [
                make_geocode_result(39.80, -89.64, "Springfield Mall", types=["shopping_mall", "point_of_interest"]),
                make_geocode_result(39.78, -89.65, "Springfield, IL, USA", country="United States"),
            ]
        }
    )

    place = Geocoder(client, sleep=recording_sleep).geocode("Springfield")

    assert place.display_name == "Springfield, IL, USA"


def test_falls_back_to_first_result_without_place_types(recording_sleep):
    client = FakeMapsClient(
        {"Eiffel Tower": [make_geocode_result(48.858, 2.294, "Eiffel Tower, Paris", types=["tourist_attraction"])]}
    )

    assert Geocoder(client, sleep=recording_sleep).geocode("Eiffel Tower").display_name == "Eiffel Tower, Paris"


def test_no_results_is_not_found(recording_sleep, recorded_sleeps):
    client = FakeMapsClient({"Atlantis": []})

    with pytest.raises(GeocodeError) as error:
        Geocoder(client, sleep=recording_sleep).geocode("Atlantis")

    assert error.value.reason is GeocodeFailureReason.NOT_FOUND
    assert "City, Country" in error.value.user_message
    assert recorded_sleeps == []


def test_malformed_result_is_not_found(recording_sleep):
    client = FakeMapsClient({"Nowhere": [{"formatted_address": "Nowhere", "types": ["locality"]}]})

    with pytest.raises(GeocodeError) as error:
        Geocoder(client, sleep=recording_sleep).geocode("Nowhere")

    assert error.value.reason is GeocodeFailureReason.NOT_FOUND


def test_transient_failures_are_retried_with_backoff(city_results, recording_sleep, recorded_sleeps):
    client = FakeMapsClient(
        {
            "Paris": (
                gmaps_exceptions.Timeout(),
                gmaps_exceptions.TransportError("connection reset"),
                city_results["Paris"],
            )
        }
    )

    place = Geocoder(client, sleep=recording_sleep).geocode("Paris")

    assert place.display_name == "Paris, France"
    assert len(client.calls) == 3
    assert recorded_sleeps == [1.0, 2.0]


def test_gives_up_after_three_retries(recording_sleep, recorded_sleeps):
    client = FakeMapsClient({"Paris": gmaps_exceptions.Timeout()})

    with pytest.raises(GeocodeError) as error:
        Geocoder(client, sleep=recording_sleep).geocode("Paris")

    assert error.value.reason is GeocodeFailureReason.NETWORK_FAILURE
    assert len(client.calls) == 4
    assert recorded_sleeps == [1.0, 2.0, 4.0]


def test_retry_policy_is_configurable(recording_sleep, recorded_sleeps):
    client = FakeMapsClient({"Paris": gmaps_exceptions.TransportError("down")})
    policy = RetryPolicy(max_retries=1, base_delay_seconds=0.5, backoff_factor=3.0)

    with pytest.raises(GeocodeError):
        Geocoder(client, retry_policy=policy, sleep=recording_sleep).geocode("Paris")

    assert len(client.calls) == 2
    assert recorded_sleeps == [0.5]


def test_api_errors_are_not_retried(recording_sleep, recorded_sleeps):
    client = FakeMapsClient({"Paris": gmaps_exceptions.ApiError("OVER_QUERY_LIMIT")})

    with pytest.raises(GeocodeError) as error:
        Geocoder(client, sleep=recording_sleep).geocode("Paris")

    assert error.value.reason is GeocodeFailureReason.NETWORK_FAILURE
    assert len(client.calls) == 1
    assert recorded_sleeps == []


def test_client_from_config_leaves_retries_to_the_retry_policy(config_path, monkeypatch, tmp_path):
    client_kwargs = {}
    monkeypatch.setattr(geocoder_module.googlemaps, "Client", lambda **kwargs: client_kwargs.update(kwargs))
    monkeypatch.setenv(API_KEY_ENV_VARIABLE, "test-key")
    geocoder_config = load_geocoder_config(config_path)
    geocoder_config.keys_file = tmp_path / "missing.yml"

    geocoder = Geocoder.from_config(geocoder_config)

    assert client_kwargs["key"] == "test-key"
    assert client_kwargs["retry_timeout"] == geocoder_config.timeout_seconds
    assert client_kwargs["retry_over_query_limit"] is False
    assert geocoder.retry_policy == geocoder_config.retry_policy
