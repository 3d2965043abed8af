"""Calculate geodesic distances between coordinates."""

import logging
import math
from dataclasses import dataclass

from geopy.distance import great_circle  # type: ignore

from trip_footprint.elements import Coordinates

LOGGER = logging.getLogger("GeodesicDistance")

# WGS84 reference ellipsoid
SEMI_MAJOR_AXIS_M = 6378137.0
FLATTENING = 1 / 298.257223563
SEMI_MINOR_AXIS_M = SEMI_MAJOR_AXIS_M * (1 - FLATTENING)

MEAN_EARTH_RADIUS_KM = 6371.0

CONVERGENCE_THRESHOLD = 1e-12
MAX_ITERATIONS = 100


@dataclass(frozen=True)
class GeodesicDistance:
    """Hold a geodesic distance and how it was obtained."""

    distance_km: float
    used_spherical_fallback: bool
    iterations: int


def great_circle_distance(origin: Coordinates, destination: Coordinates) -> float:
    """Calculate great-circle distance in km on a sphere of mean earth radius."""
    return great_circle(
        (origin.lat, origin.lng), (destination.lat, destination.lng), radius=MEAN_EARTH_RADIUS_KM
    ).km


def vincenty_inverse(
    origin: Coordinates,
    destination: Coordinates,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = CONVERGENCE_THRESHOLD,
) -> tuple[float | None, int]:
    """Solve the inverse geodesic problem on the WGS84 ellipsoid.

    Iterates the longitude on the auxiliary sphere until two successive values differ by less than
    `tolerance` radians. Returns the distance in km together with the number of iterations used, or
    ``None`` as distance when the iteration does not converge (nearly antipodal points).
    """
    a = SEMI_MAJOR_AXIS_M
    b = SEMI_MINOR_AXIS_M
    f = FLATTENING

    lng_difference = math.radians(destination.lng - origin.lng)
    reduced_lat1 = math.atan((1 - f) * math.tan(math.radians(origin.lat)))
    reduced_lat2 = math.atan((1 - f) * math.tan(math.radians(destination.lat)))
    sin_u1, cos_u1 = math.sin(reduced_lat1), math.cos(reduced_lat1)
    sin_u2, cos_u2 = math.sin(reduced_lat2), math.cos(reduced_lat2)

    lam = lng_difference
    for iteration in range(1, max_iterations + 1):
        sin_lam, cos_lam = math.sin(lam), math.cos(lam)
        sin_sigma = math.sqrt((cos_u2 * sin_lam) ** 2 + (cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam) ** 2)
        # Coincident points
        if sin_sigma == 0:
            return 0.0, iteration

        cos_sigma = sin_u1 * sin_u2 + cos_u1 * cos_u2 * cos_lam
        sigma = math.atan2(sin_sigma, cos_sigma)
        sin_alpha = cos_u1 * cos_u2 * sin_lam / sin_sigma
        cos_sq_alpha = 1 - sin_alpha**2
        # Both points on the equator
        cos_2sigma_m = cos_sigma - 2 * sin_u1 * sin_u2 / cos_sq_alpha if cos_sq_alpha != 0 else 0.0

        c = f / 16 * cos_sq_alpha * (4 + f * (4 - 3 * cos_sq_alpha))
        previous_lam = lam
        lam = lng_difference + (1 - c) * f * sin_alpha * (
            sigma + c * sin_sigma * (cos_2sigma_m + c * cos_sigma * (-1 + 2 * cos_2sigma_m**2))
        )

        if abs(lam) > math.pi:
            return None, iteration
        if abs(lam - previous_lam) < tolerance:
            break
    else:
        return None, max_iterations

    u_sq = cos_sq_alpha * (a**2 - b**2) / b**2
    big_a = 1 + u_sq / 16384 * (4096 + u_sq * (-768 + u_sq * (320 - 175 * u_sq)))
    big_b = u_sq / 1024 * (256 + u_sq * (-128 + u_sq * (74 - 47 * u_sq)))
    delta_sigma = (
        big_b
        * sin_sigma
        * (
            cos_2sigma_m
            + big_b
            / 4
            * (
                cos_sigma * (-1 + 2 * cos_2sigma_m**2)
                - big_b / 6 * cos_2sigma_m * (-3 + 4 * sin_sigma**2) * (-3 + 4 * cos_2sigma_m**2)
            )
        )
    )
    distance_m = b * big_a * (sigma - delta_sigma)

    return distance_m / 1000, iteration


def geodesic_distance(
    origin: Coordinates, destination: Coordinates, max_iterations: int = MAX_ITERATIONS
) -> GeodesicDistance:
    """Calculate ellipsoidal distance, falling back to a spherical distance when Vincenty does not converge."""
    if origin == destination:
        return GeodesicDistance(distance_km=0.0, used_spherical_fallback=False, iterations=0)

    distance_km, iterations = vincenty_inverse(origin, destination, max_iterations=max_iterations)
    if distance_km is None:
        fallback_km = great_circle_distance(origin, destination)
        LOGGER.warning(
            f"Vincenty did not converge after {iterations} iterations for {origin} -> {destination}, "
            f"using spherical distance {fallback_km:.3f} km"
        )
        return GeodesicDistance(distance_km=fallback_km, used_spherical_fallback=True, iterations=iterations)

    LOGGER.debug(f"Vincenty converged after {iterations} iterations: {distance_km:.6f} km")
    return GeodesicDistance(distance_km=distance_km, used_spherical_fallback=False, iterations=iterations)


def ellipsoidal_distance(origin: Coordinates, destination: Coordinates) -> float:
    """Return the shortest distance in km between two coordinates on the WGS84 ellipsoid."""
    return geodesic_distance(origin, destination).distance_km
