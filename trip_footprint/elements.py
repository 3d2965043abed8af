"""Hold all elements in the model."""

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

EnumType = TypeVar("EnumType", bound=enum.Enum)


class InvalidTripInputs(ValueError):
    """Raised when trip inputs cannot be used for a calculation."""


class TransportMode(enum.Enum):
    """Transport mode of the main journey."""

    FLIGHT = "flight"
    TRAIN = "train"
    BUS = "bus"
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    BICYCLE = "bicycle"
    WALK = "walk"


class CabinClass(enum.Enum):
    """Cabin class of a flight."""

    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"


class AccommodationType(enum.Enum):
    """Accommodation type, from lowest to highest impact."""

    ECOLODGE = "ecolodge"
    ECORESORT = "ecoresort"
    HOMESTAY = "homestay"
    HOSTEL = "hostel"
    AIRBNB = "airbnb"
    HOTEL = "hotel"
    RESORT = "resort"
    LUXURY_HOTEL = "luxury_hotel"


class ActivityType(enum.Enum):
    """Activity performed at the destination."""

    SIGHTSEEING = "sightseeing"
    ADVENTURE = "adventure"
    LOCAL_TRAVEL = "localtravel"
    EVENTS = "events"
    DINING = "dining"


class Category(enum.Enum):
    """Impact category derived from daily emissions."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


def parse_enum(enum_cls: type[EnumType], value: Any) -> EnumType:
    """Convert a raw value to a member of `enum_cls`, rejecting unknown keys."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        for member in enum_cls:
            if member.value == normalized or member.name.lower() == normalized:
                return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise InvalidTripInputs(f"Unknown {enum_cls.__name__} '{value}'. Allowed values: {allowed}")


def _check_quantity(name: str, value: Any) -> float:
    """Check that a quantity is a finite, non-negative number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTripInputs(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidTripInputs(f"{name} must be a finite, non-negative number, got {value!r}")
    return float(value)


def _check_count(name: str, value: Any) -> int:
    """Check that a count is a non-negative whole number."""
    quantity = _check_quantity(name, value)
    if not quantity.is_integer():
        raise InvalidTripInputs(f"{name} must be a whole number, got {value!r}")
    return int(quantity)


@dataclass(frozen=True)
class Coordinates:
    """Determine a place coordinates."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        """Check coordinates are on the globe."""
        if not (math.isfinite(self.lat) and -90.0 <= self.lat <= 90.0):
            raise ValueError(f"Latitude must be between -90 and 90 degrees, got {self.lat}")
        if not (math.isfinite(self.lng) and -180.0 <= self.lng <= 180.0):
            raise ValueError(f"Longitude must be between -180 and 180 degrees, got {self.lng}")


@dataclass(frozen=True)
class GeocodedPlace:
    """Hold the best geocoding match for a query."""

    query: str
    coordinates: Coordinates
    display_name: str
    country: str | None = None


@dataclass(frozen=True)
class DistanceResult:
    """Hold the travel distance between two places for one mode."""

    distance_km: float
    geodesic_distance_km: float
    adjustment_factor: float
    mode: TransportMode
    route_description: str
    origin_place: str
    destination_place: str
    computed_at: float
    used_spherical_fallback: bool = False
    estimated_duration_hours: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON compatible dict."""
        return {
            "distance_km": self.distance_km,
            "geodesic_distance_km": self.geodesic_distance_km,
            "adjustment_factor": self.adjustment_factor,
            "mode": self.mode.value,
            "route_description": self.route_description,
            "origin_place": self.origin_place,
            "destination_place": self.destination_place,
            "computed_at": self.computed_at,
            "used_spherical_fallback": self.used_spherical_fallback,
            "estimated_duration_hours": self.estimated_duration_hours,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DistanceResult":
        """Build a result from its serialized form."""
        return cls(
            distance_km=float(data["distance_km"]),
            geodesic_distance_km=float(data["geodesic_distance_km"]),
            adjustment_factor=float(data["adjustment_factor"]),
            mode=TransportMode(data["mode"]),
            route_description=str(data["route_description"]),
            origin_place=str(data["origin_place"]),
            destination_place=str(data["destination_place"]),
            computed_at=float(data["computed_at"]),
            used_spherical_fallback=bool(data.get("used_spherical_fallback", False)),
            estimated_duration_hours=float(data.get("estimated_duration_hours", 0.0)),
        )


@dataclass(frozen=True)
class TransportInput:
    """Hold the transport part of a trip."""

    mode: TransportMode
    distance_km: float
    cabin_class: CabinClass = CabinClass.ECONOMY

    def __post_init__(self) -> None:
        """Validate transport input."""
        object.__setattr__(self, "mode", parse_enum(TransportMode, self.mode))
        object.__setattr__(self, "cabin_class", parse_enum(CabinClass, self.cabin_class))
        object.__setattr__(self, "distance_km", _check_quantity("distance_km", self.distance_km))


@dataclass(frozen=True)
class AccommodationInput:
    """Hold the accommodation part of a trip."""

    type: AccommodationType
    nights: int

    def __post_init__(self) -> None:
        """Validate accommodation input."""
        object.__setattr__(self, "type", parse_enum(AccommodationType, self.type))
        object.__setattr__(self, "nights", _check_count("nights", self.nights))


@dataclass(frozen=True)
class TripInputs:
    """Gather all inputs of one emissions calculation."""

    transport: TransportInput
    accommodation: AccommodationInput
    activities: Mapping[ActivityType, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalize activity keys and counts."""
        activities: dict[ActivityType, int] = {}
        for key, count in dict(self.activities).items():
            activity = parse_enum(ActivityType, key)
            activities[activity] = _check_count(f"activities.{activity.value}", count)
        object.__setattr__(self, "activities", activities)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TripInputs":
        """Build trip inputs from a raw mapping, e.g. a form payload or config section."""
        try:
            transport = data["transport"]
            accommodation = data["accommodation"]
        except KeyError as error:
            raise InvalidTripInputs(f"Missing trip section {error}") from error

        try:
            transport_input = TransportInput(
                mode=transport["mode"],
                distance_km=transport.get("distance_km", 0.0),
                cabin_class=transport.get("cabin_class", CabinClass.ECONOMY),
            )
            accommodation_input = AccommodationInput(
                type=accommodation["type"],
                nights=accommodation.get("nights", 0),
            )
        except KeyError as error:
            raise InvalidTripInputs(f"Missing trip field {error}") from error

        return cls(
            transport=transport_input,
            accommodation=accommodation_input,
            activities=data.get("activities") or {},
        )

    def with_distance(self, distance_km: float) -> "TripInputs":
        """Return a copy with another transport distance."""
        return replace(self, transport=replace(self.transport, distance_km=distance_km))


@dataclass(frozen=True)
class ActivityEmission:
    """Hold emissions of one activity type."""

    activity: ActivityType
    count: int
    factor: float
    emissions_kg: float


@dataclass(frozen=True)
class PercentageBreakdown:
    """Hold the share of each component in the total."""

    transport: float
    accommodation: float
    activities: float

    @property
    def total(self) -> float:
        """Return the sum of all shares."""
        return self.transport + self.accommodation + self.activities


@dataclass(frozen=True)
class Equivalents:
    """Hold human-relatable equivalents of an emissions total."""

    tree_years: float
    tree_seedlings_10_years: float
    vehicle_miles: float
    vehicle_km: float
    gasoline_gallons: float
    gasoline_liters: float
    diesel_gallons: float
    electricity_kwh: float
    vehicle_years: float
    home_energy_years: float
    forest_acres_year: float
    forest_hectares_year: float
    percent_annual_global: float
    percent_annual_usa: float
    percent_annual_eu: float
    percent_annual_uk: float
    tons_waste_recycled: float

    @property
    def trees_needed(self) -> int:
        """Return the number of trees needed to absorb the emissions in a year."""
        return math.ceil(self.tree_years)


@dataclass(frozen=True)
class EmissionsReport:
    """Hold the emissions of one trip."""

    transport_kg: float
    accommodation_kg: float
    activities_kg: float
    total_kg: float
    per_day_kg: float
    days: int
    per_km_kg: float
    per_night_kg: float
    percentage_breakdown: PercentageBreakdown
    category: Category
    percentile: str
    equivalents: Equivalents
    comparison_percentage: float
    offset_cost_usd: float
    is_sustainable: bool
    is_low_carbon: bool
    eco_score: int
    transport_mode: TransportMode
    accommodation_type: AccommodationType
    transport_factor: float
    transport_methodology: str
    accommodation_factor: float
    accommodation_methodology: str
    activity_breakdown: tuple[ActivityEmission, ...] = ()

    @property
    def is_calculable(self) -> bool:
        """Return False when the report should be shown as 'cannot calculate'."""
        return math.isfinite(self.total_kg) and self.total_kg > 0


@dataclass(frozen=True)
class AlternativeScenario:
    """Hold emissions of the trip with the best available choices."""

    current_transport_kg: float
    current_accommodation_kg: float
    best_transport_kg: float
    best_accommodation_kg: float
    transport_savings_kg: float
    accommodation_savings_kg: float
    savings_kg: float
    savings_percent: float
    trees_saved: int
    best_transport_mode: TransportMode
    best_accommodation_type: AccommodationType
    is_feasible: bool
    methodology: str


@dataclass(frozen=True)
class Recommendation:
    """Hold one recommendation to lower trip emissions."""

    category: str
    priority: str
    title: str
    message: str
    savings_percent: float


@dataclass(frozen=True)
class Level:
    """Hold a credit level."""

    number: int
    name: str
    min_credits: int


@dataclass(frozen=True)
class UserStats:
    """Hold aggregate statistics over past trips."""

    total_trips: int = 0
    total_emissions_kg: float = 0.0
    average_emissions_kg: float = 0.0
    total_credits: int = 0
    total_savings_kg: float = 0.0
    trips_by_mode: Mapping[TransportMode, int] = field(default_factory=dict)
    eco_accommodations: int = 0

    def trips_with(self, mode: TransportMode) -> int:
        """Return the number of trips made with a mode."""
        return self.trips_by_mode.get(mode, 0)


@dataclass(frozen=True)
class UserCreditState:
    """Hold the credit state derived from past trips."""

    total_credits_earned: int
    total_savings_kg: float
    level: Level
    next_level: Level | None
    progress_to_next_level: float
    credits_to_next_level: int
    unlocked_achievement_ids: tuple[str, ...]
    locked_achievement_ids: tuple[str, ...]
    stats: UserStats
    trees_equivalent: float
    car_miles_equivalent: float
