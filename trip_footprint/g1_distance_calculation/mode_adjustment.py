"""Convert straight-line distances into travel distances per transport mode."""

import math
from dataclasses import dataclass

from trip_footprint.elements import TransportMode


@dataclass(frozen=True)
class DistanceBracket:
    """Hold the correction factor of a distance bracket."""

    upper_bound_km: float
    factor: float
    label: str


@dataclass(frozen=True)
class ModeAdjustment:
    """Hold the applied correction factor and a description of how it was chosen."""

    factor: float
    description: str


# Upper bounds are exclusive, the last bracket of each mode is open ended.
MODE_BRACKETS: dict[TransportMode, tuple[DistanceBracket, ...]] = {
    TransportMode.FLIGHT: (
        DistanceBracket(500.0, 1.09, "< 500 km"),
        DistanceBracket(1500.0, 1.07, "500-1500 km"),
        DistanceBracket(3700.0, 1.05, "1500-3700 km"),
        DistanceBracket(8000.0, 1.03, "3700-8000 km"),
        DistanceBracket(math.inf, 1.02, ">= 8000 km"),
    ),
    TransportMode.TRAIN: (
        DistanceBracket(100.0, 1.35, "< 100 km"),
        DistanceBracket(500.0, 1.25, "100-500 km"),
        DistanceBracket(1500.0, 1.18, "500-1500 km"),
        DistanceBracket(math.inf, 1.12, ">= 1500 km"),
    ),
    TransportMode.BUS: (
        DistanceBracket(50.0, 1.45, "< 50 km"),
        DistanceBracket(200.0, 1.35, "50-200 km"),
        DistanceBracket(500.0, 1.30, "200-500 km"),
        DistanceBracket(1000.0, 1.25, "500-1000 km"),
        DistanceBracket(math.inf, 1.20, ">= 1000 km"),
    ),
    TransportMode.CAR: (
        DistanceBracket(50.0, 1.40, "< 50 km"),
        DistanceBracket(200.0, 1.30, "50-200 km"),
        DistanceBracket(500.0, 1.25, "200-500 km"),
        DistanceBracket(1000.0, 1.20, "500-1000 km"),
        DistanceBracket(math.inf, 1.15, ">= 1000 km"),
    ),
    TransportMode.MOTORCYCLE: (
        DistanceBracket(50.0, 1.40, "< 50 km"),
        DistanceBracket(200.0, 1.30, "50-200 km"),
        DistanceBracket(500.0, 1.25, "200-500 km"),
        DistanceBracket(1000.0, 1.20, "500-1000 km"),
        DistanceBracket(math.inf, 1.15, ">= 1000 km"),
    ),
    TransportMode.BICYCLE: (
        DistanceBracket(10.0, 1.45, "< 10 km"),
        DistanceBracket(50.0, 1.35, "10-50 km"),
        DistanceBracket(math.inf, 1.25, ">= 50 km"),
    ),
    TransportMode.WALK: (
        DistanceBracket(5.0, 1.50, "< 5 km"),
        DistanceBracket(20.0, 1.40, "5-20 km"),
        DistanceBracket(math.inf, 1.30, ">= 20 km"),
    ),
}

ROUTE_NAMES: dict[TransportMode, str] = {
    TransportMode.FLIGHT: "Flight path",
    TransportMode.TRAIN: "Rail route",
    TransportMode.BUS: "Bus route",
    TransportMode.CAR: "Car route",
    TransportMode.MOTORCYCLE: "Motorcycle route",
    TransportMode.BICYCLE: "Cycling route",
    TransportMode.WALK: "Walking route",
}

# Road and rail modes follow the terrain
TERRAIN_SENSITIVE_MODES = frozenset(
    {TransportMode.TRAIN, TransportMode.BUS, TransportMode.CAR, TransportMode.MOTORCYCLE}
)

MOUNTAIN_LATITUDE_SPAN_DEG = 20.0
MOUNTAIN_MAX_DISTANCE_KM = 2000.0
MOUNTAIN_BONUS = 0.10

TRANSCONTINENTAL_MIN_DISTANCE_KM = 5000.0
TRANSCONTINENTAL_BONUS = 0.07


def find_bracket(mode: TransportMode, geodesic_km: float) -> DistanceBracket:
    """Find the bracket of the mode table holding the distance."""
    for bracket in MODE_BRACKETS[mode]:
        if geodesic_km < bracket.upper_bound_km:
            return bracket

    return MODE_BRACKETS[mode][-1]


def adjust(geodesic_km: float, mode: TransportMode, origin_lat: float, destination_lat: float) -> ModeAdjustment:
    """Return the factor converting a geodesic distance into a realistic travel distance."""
    if not math.isfinite(geodesic_km) or geodesic_km < 0:
        geodesic_km = 0.0

    bracket = find_bracket(mode, geodesic_km)
    factor = bracket.factor
    notes = [f"{bracket.label} bracket x{bracket.factor:.2f}"]

    if mode in TERRAIN_SENSITIVE_MODES:
        latitude_span = abs(destination_lat - origin_lat)
        if latitude_span > MOUNTAIN_LATITUDE_SPAN_DEG and geodesic_km < MOUNTAIN_MAX_DISTANCE_KM:
            factor += MOUNTAIN_BONUS
            notes.append(f"mountainous terrain +{MOUNTAIN_BONUS:.2f}")
        if geodesic_km > TRANSCONTINENTAL_MIN_DISTANCE_KM:
            factor += TRANSCONTINENTAL_BONUS
            notes.append(f"transcontinental +{TRANSCONTINENTAL_BONUS:.2f}")

    factor = round(factor, 4)
    description = f"{ROUTE_NAMES[mode]}: {', '.join(notes)} (factor {factor:.2f})"

    return ModeAdjustment(factor=factor, description=description)
