"""Calculate travel distances between places."""

import logging
import math
import time
from collections.abc import Iterable

from trip_footprint.elements import DistanceResult, GeocodedPlace, TransportMode, parse_enum
from trip_footprint.g1_distance_calculation.distance_cache import Clock, DistanceCache, InMemoryDistanceCache
from trip_footprint.g1_distance_calculation.geocoder import Geocoder
from trip_footprint.g1_distance_calculation.geodesic import geodesic_distance
from trip_footprint.g1_distance_calculation.mode_adjustment import adjust

LOGGER = logging.getLogger("DistanceCalculator")

AVERAGE_SPEED_KMH: dict[TransportMode, float] = {
    TransportMode.FLIGHT: 800.0,
    TransportMode.TRAIN: 80.0,
    TransportMode.BUS: 50.0,
    TransportMode.CAR: 60.0,
    TransportMode.MOTORCYCLE: 70.0,
    TransportMode.BICYCLE: 20.0,
    TransportMode.WALK: 5.0,
}
# Check-in, boarding and taxiing
FLIGHT_OVERHEAD_HOURS = 2.0


def estimate_duration_hours(distance_km: float, mode: TransportMode) -> float:
    """Estimate travel time from the average speed of a mode."""
    if not math.isfinite(distance_km) or distance_km <= 0:
        return 0.0

    hours = distance_km / AVERAGE_SPEED_KMH[mode]
    if mode is TransportMode.FLIGHT:
        hours += FLIGHT_OVERHEAD_HOURS

    return hours


def format_duration(hours: float) -> str:
    """Format a duration as minutes, hours or days."""
    if hours < 1:
        return f"{round(hours * 60)} mins"
    if hours < 24:
        return f"{hours:.1f} hours"

    days = math.floor(hours / 24)
    remaining_hours = round(hours % 24)
    return f"{days}d {remaining_hours}h"


class DistanceCalculator:
    """Calculate travel distances between two place names."""

    def __init__(self, geocoder: Geocoder, cache: DistanceCache | None = None, clock: Clock = time.time) -> None:
        """Initiate class."""
        self.geocoder = geocoder
        self.cache = cache if cache is not None else InMemoryDistanceCache(clock=clock)
        self.clock = clock

        LOGGER.info("DistanceCalculator initiated")

    def calculate(self, origin: str, destination: str, mode: TransportMode | str) -> DistanceResult:
        """Return the travel distance between two places for a mode."""
        return self.calculate_modes(origin, destination, [mode])[parse_enum(TransportMode, mode)]

    def calculate_all_modes(self, origin: str, destination: str) -> dict[TransportMode, DistanceResult]:
        """Return the travel distance between two places for every mode."""
        return self.calculate_modes(origin, destination, list(TransportMode))

    def calculate_modes(
        self, origin: str, destination: str, modes: Iterable[TransportMode | str]
    ) -> dict[TransportMode, DistanceResult]:
        """Return travel distances for several modes, geocoding at most once per place."""
        results: dict[TransportMode, DistanceResult] = {}
        missing: list[TransportMode] = []

        for mode in (parse_enum(TransportMode, raw_mode) for raw_mode in modes):
            cached = self.cache.get(origin, destination, mode)
            if cached is not None:
                LOGGER.info(f"Using cached {mode.value} distance from {origin} to {destination}")
                results[mode] = cached
            else:
                missing.append(mode)

        if not missing:
            return results

        origin_place = self.geocoder.geocode(origin)
        destination_place = self.geocoder.geocode(destination)

        for mode in missing:
            result = self._build_result(origin_place, destination_place, mode)
            self.cache.put(origin, destination, mode, result)
            results[mode] = result

        return results

    def _build_result(
        self, origin_place: GeocodedPlace, destination_place: GeocodedPlace, mode: TransportMode
    ) -> DistanceResult:
        """Combine geodesic distance and mode adjustment into a result."""
        geodesic = geodesic_distance(origin_place.coordinates, destination_place.coordinates)
        adjustment = adjust(
            geodesic.distance_km,
            mode,
            origin_place.coordinates.lat,
            destination_place.coordinates.lat,
        )
        distance_km = round(geodesic.distance_km * adjustment.factor, 2)

        LOGGER.info(
            f"{mode.value} distance from {origin_place.display_name} to {destination_place.display_name}: "
            f"{distance_km} km ({adjustment.description})"
        )

        return DistanceResult(
            distance_km=distance_km,
            geodesic_distance_km=round(geodesic.distance_km, 3),
            adjustment_factor=adjustment.factor,
            mode=mode,
            route_description=adjustment.description,
            origin_place=origin_place.display_name,
            destination_place=destination_place.display_name,
            computed_at=self.clock(),
            used_spherical_fallback=geodesic.used_spherical_fallback,
            estimated_duration_hours=round(estimate_duration_hours(distance_km, mode), 2),
        )
