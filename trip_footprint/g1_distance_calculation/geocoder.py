"""Geocode place names with the Google Maps client."""

import enum
import logging
import time
from collections.abc import Callable
from typing import Any

import googlemaps  # type: ignore
from googlemaps import exceptions as gmaps_exceptions  # type: ignore

from trip_footprint.elements import Coordinates, GeocodedPlace
from trip_footprint.g0_utils.utils import GeocoderConfig, RetryPolicy, load_api_key

LOGGER = logging.getLogger("Geocoder")

# Result types treated as a city, town or administrative area
PLACE_TYPES = frozenset(
    {
        "locality",
        "postal_town",
        "sublocality",
        "colloquial_area",
        "administrative_area_level_1",
        "administrative_area_level_2",
        "administrative_area_level_3",
        "country",
    }
)

TRANSIENT_ERRORS = (gmaps_exceptions.Timeout, gmaps_exceptions.TransportError)


class GeocodeFailureReason(enum.Enum):
    """Reason a place could not be geocoded."""

    NOT_FOUND = "not_found"
    NETWORK_FAILURE = "network_failure"


class GeocodeError(Exception):
    """Raised when a place name cannot be turned into coordinates."""

    def __init__(self, query: str, reason: GeocodeFailureReason, detail: str = "") -> None:
        """Initiate class."""
        self.query = query
        self.reason = reason
        self.detail = detail
        super().__init__(f"Could not geocode '{query}' ({reason.value}){': ' + detail if detail else ''}")

    @property
    def user_message(self) -> str:
        """Return a message to show to the traveler."""
        if self.reason is GeocodeFailureReason.NOT_FOUND:
            return f"Could not find '{self.query}'. Check the spelling or use the 'City, Country' format."

        return "The location service is unreachable right now. Please try again or enter the distance manually."


class Geocoder:
    """Turn place names into coordinates, retrying transient failures."""

    def __init__(
        self,
        client: Any,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initiate class."""
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

        LOGGER.info("Geocoder initiated")

    @classmethod
    def from_config(cls, geocoder_config: GeocoderConfig) -> "Geocoder":
        """Create a geocoder backed by a Google Maps client.

        The client's own retry loop is bounded by the request timeout, so retries follow the
        configured retry policy.
        """
        client = googlemaps.Client(
            key=load_api_key(geocoder_config.keys_file),
            timeout=geocoder_config.timeout_seconds,
            retry_timeout=geocoder_config.timeout_seconds,
            retry_over_query_limit=False,
        )
        LOGGER.debug("Google Maps Client initiated")

        return cls(client, retry_policy=geocoder_config.retry_policy)

    def geocode(self, place_name: str) -> GeocodedPlace:
        """Return the best match for a place name."""
        query = " ".join(place_name.split()) if isinstance(place_name, str) else ""
        if not query:
            raise ValueError("Place name must be a non-empty string")

        results = self._query_with_retries(query)
        if not results:
            raise GeocodeError(query, GeocodeFailureReason.NOT_FOUND, "no results")

        best_match = self.select_best_match(results)
        try:
            place = self._to_geocoded_place(query, best_match)
        except (KeyError, TypeError, ValueError) as error:
            raise GeocodeError(query, GeocodeFailureReason.NOT_FOUND, f"unusable result: {error!r}") from error

        LOGGER.info(f"Geocoded '{query}' to {place.display_name} ({place.coordinates.lat}, {place.coordinates.lng})")
        return place

    def _query_with_retries(self, query: str) -> list[dict[str, Any]]:
        """Query the service, retrying transient failures with exponential backoff."""
        last_error: Exception | None = None
        max_retries = self.retry_policy.max_retries

        for attempt in range(max_retries + 1):
            try:
                LOGGER.debug(f"Gathering geocoding for {query} (attempt {attempt + 1})")
                return list(self.client.geocode(query) or [])
            except TRANSIENT_ERRORS as error:
                last_error = error
                if attempt == max_retries:
                    break
                delay = self.retry_policy.delay_for(attempt)
                LOGGER.warning(f"Geocoding '{query}' failed with {error!r}, retrying in {delay:.1f} s")
                self.sleep(delay)
            except gmaps_exceptions.ApiError as error:
                raise GeocodeError(query, GeocodeFailureReason.NETWORK_FAILURE, str(error)) from error

        LOGGER.error(f"Geocoding '{query}' failed after {max_retries + 1} attempts")
        raise GeocodeError(query, GeocodeFailureReason.NETWORK_FAILURE, repr(last_error)) from last_error

    @staticmethod
    def select_best_match(results: list[dict[str, Any]]) -> dict[str, Any]:
        """Pick the first city, town or administrative area, else the first result."""
        for result in results:
            if PLACE_TYPES.intersection(result.get("types", [])):
                return result

        return results[0]

    @staticmethod
    def _to_geocoded_place(query: str, result: dict[str, Any]) -> GeocodedPlace:
        """Normalize a service result into a GeocodedPlace."""
        location = result["geometry"]["location"]
        country = next(
            (
                component.get("long_name")
                for component in result.get("address_components", [])
                if "country" in component.get("types", [])
            ),
            None,
        )

        return GeocodedPlace(
            query=query,
            coordinates=Coordinates(lat=float(location["lat"]), lng=float(location["lng"])),
            display_name=result.get("formatted_address", query),
            country=country,
        )
