"""Hold utils for package."""

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import yaml

from trip_footprint.elements import (
    AccommodationType,
    ActivityType,
    CabinClass,
    InvalidTripInputs,
    Level,
    TransportMode,
    parse_enum,
)

CONFIG_PATH = Path("config.yml")
API_KEY_ENV_VARIABLE = "GOOGLE_MAPS_API_KEY"
FLIGHT_BRACKETS = ("domestic", "short_haul", "long_haul")

EnumType = TypeVar("EnumType", bound=enum.Enum)


class ConfigurationError(ValueError):
    """Raised when config.yml is missing or inconsistent."""


@dataclass
class ExecutionPipeline:
    """Hold which pipeline steps are run."""

    fetch_distance: bool
    use_cache: bool


@dataclass
class TripDefinition:
    """Hold the trip to calculate in the run script."""

    origin: str
    destination: str
    trip_inputs: dict[str, Any]


@dataclass
class RetryPolicy:
    """Hold a bounded retry policy with exponential backoff."""

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    backoff_factor: float = 2.0

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before retry `retry_number` (0 based)."""
        return self.base_delay_seconds * self.backoff_factor**retry_number


@dataclass
class GeocoderConfig:
    """Hold geocoding and distance cache settings."""

    keys_file: Path
    timeout_seconds: int
    retry_policy: RetryPolicy
    cache_file: Path
    cache_ttl_days: float


@dataclass
class FlightFactors:
    """Hold flight emission factors by distance bracket and cabin class."""

    domestic_max_km: float
    short_haul_max_km: float
    economy_factors: dict[str, float]
    cabin_multipliers: dict[str, dict[CabinClass, float]]
    radiative_forcing_index: float
    include_radiative_forcing: bool


@dataclass
class TransportFactors:
    """Hold transport emission factors in kg per passenger-km."""

    flight: FlightFactors
    train: float
    bus_city: float
    bus_coach: float
    bus_coach_min_km: float
    car_per_vehicle: float
    car_occupancy: float
    motorcycle: float
    bicycle: float
    walk: float


@dataclass
class CategoryThresholds:
    """Hold upper bounds of daily emissions per category."""

    low_max_per_day: float
    medium_max_per_day: float
    high_max_per_day: float


@dataclass
class Benchmarks:
    """Hold reference emission levels."""

    global_daily_average: float
    sustainable_daily: float
    low_carbon_daily: float
    annual_per_capita: dict[str, float]


@dataclass
class EquivalencyConstants:
    """Hold published conversion constants for equivalents."""

    kg_per_tree_year: float
    kg_per_tree_seedling_10_years: float
    kg_per_vehicle_mile: float
    kg_per_gallon_gasoline: float
    kg_per_gallon_diesel: float
    kg_per_kwh: float
    kg_per_vehicle_year: float
    kg_per_home_year: float
    kg_per_acre_forest_year: float
    kg_per_ton_waste_recycled: float
    km_per_mile: float
    liters_per_gallon: float
    acres_per_hectare: float


@dataclass
class AlternativeScenarioDefinition:
    """Hold the fixed best choices of the alternative scenario."""

    transport_mode: TransportMode
    accommodation_type: AccommodationType
    max_feasible_distance_km: float


@dataclass
class EmissionsConfig:
    """Gather all emissions calculator inputs."""

    transport: TransportFactors
    accommodation: dict[AccommodationType, float]
    activities: dict[ActivityType, float]
    category_thresholds: CategoryThresholds
    benchmarks: Benchmarks
    equivalency_constants: EquivalencyConstants
    offset_price_usd_per_ton: float
    alternative_scenario: AlternativeScenarioDefinition


@dataclass
class CreditConfig:
    """Hold carbon credit settings."""

    credits_per_kg_saved: float
    baseline_kg: float
    levels: list[Level]
    kg_per_tree_year: float
    kg_per_car_mile: float


def read_config(config_path: Path = CONFIG_PATH) -> dict[str, Any]:
    """Read config file."""
    with open(config_path) as file:
        config = yaml.full_load(file)

    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_path} does not hold a mapping")

    return config


def _section(config: Mapping[str, Any], name: str) -> Any:
    """Return a required config section."""
    try:
        return config[name]
    except KeyError as error:
        raise ConfigurationError(f"Missing config section '{name}'") from error


def _parse_enum_table(enum_cls: type[EnumType], raw_table: Mapping[str, Any], table_name: str) -> dict[EnumType, float]:
    """Parse a factor table that must cover every member of `enum_cls`."""
    table: dict[EnumType, float] = {}
    for key, value in raw_table.items():
        try:
            member = parse_enum(enum_cls, key)
        except InvalidTripInputs as error:
            raise ConfigurationError(f"{table_name}: {error}") from error
        table[member] = float(value)

    missing = [member.value for member in enum_cls if member not in table]
    if missing:
        raise ConfigurationError(f"{table_name} is missing factors for: {', '.join(missing)}")

    return table


def load_execution_pipeline(config_path: Path = CONFIG_PATH) -> ExecutionPipeline:
    """Load execution pipeline from config file."""
    pipeline_config = _section(read_config(config_path), "execution_pipeline")

    return ExecutionPipeline(
        fetch_distance=bool(pipeline_config["fetch_distance"]),
        use_cache=bool(pipeline_config["use_cache"]),
    )


def load_trip_definition(config_path: Path = CONFIG_PATH) -> TripDefinition:
    """Load trip definition from config file."""
    trip_config = _section(read_config(config_path), "trip_definition")

    return TripDefinition(
        origin=trip_config["origin"],
        destination=trip_config["destination"],
        trip_inputs={
            "transport": trip_config["transport"],
            "accommodation": trip_config["accommodation"],
            "activities": trip_config.get("activities", {}),
        },
    )


def load_geocoder_config(config_path: Path = CONFIG_PATH) -> GeocoderConfig:
    """Load geocoder config from config file."""
    geocoder_config = _section(read_config(config_path), "geocoder")
    retry_config = geocoder_config.get("retry_policy", {})

    return GeocoderConfig(
        keys_file=Path(geocoder_config["keys_file"]),
        timeout_seconds=int(geocoder_config["timeout_seconds"]),
        retry_policy=RetryPolicy(
            max_retries=int(retry_config.get("max_retries", 3)),
            base_delay_seconds=float(retry_config.get("base_delay_seconds", 1.0)),
            backoff_factor=float(retry_config.get("backoff_factor", 2.0)),
        ),
        cache_file=Path(geocoder_config["cache_file"]),
        cache_ttl_days=float(geocoder_config["cache_ttl_days"]),
    )


def load_api_key(keys_file: Path) -> str:
    """Load the Google Maps API key from the keys file or the environment."""
    if keys_file.exists():
        with open(keys_file) as file:
            keys = yaml.full_load(file) or {}
        if keys.get("google_api_key"):
            return str(keys["google_api_key"])

    api_key = os.environ.get(API_KEY_ENV_VARIABLE)
    if not api_key:
        raise ConfigurationError(f"No google_api_key in {keys_file} and {API_KEY_ENV_VARIABLE} is not set")

    return api_key


def _load_flight_factors(flight_config: Mapping[str, Any]) -> FlightFactors:
    """Load flight factors."""
    economy_factors = {bracket: float(flight_config["economy_factors"][bracket]) for bracket in FLIGHT_BRACKETS}
    cabin_multipliers = {
        bracket: _parse_enum_table(
            CabinClass, flight_config["cabin_multipliers"][bracket], f"cabin_multipliers.{bracket}"
        )
        for bracket in FLIGHT_BRACKETS
    }

    domestic_max_km = float(flight_config["domestic_max_km"])
    short_haul_max_km = float(flight_config["short_haul_max_km"])
    if not 0 < domestic_max_km < short_haul_max_km:
        raise ConfigurationError("Flight brackets must satisfy 0 < domestic_max_km < short_haul_max_km")

    return FlightFactors(
        domestic_max_km=domestic_max_km,
        short_haul_max_km=short_haul_max_km,
        economy_factors=economy_factors,
        cabin_multipliers=cabin_multipliers,
        radiative_forcing_index=float(flight_config["radiative_forcing_index"]),
        include_radiative_forcing=bool(flight_config.get("include_radiative_forcing", False)),
    )


def load_emissions_config(config_path: Path = CONFIG_PATH) -> EmissionsConfig:
    """Load emissions config from config file."""
    emissions_config = _section(read_config(config_path), "emissions")

    try:
        transport_config = emissions_config["transport"]
        transport = TransportFactors(
            flight=_load_flight_factors(transport_config["flight"]),
            train=float(transport_config["train"]),
            bus_city=float(transport_config["bus_city"]),
            bus_coach=float(transport_config["bus_coach"]),
            bus_coach_min_km=float(transport_config["bus_coach_min_km"]),
            car_per_vehicle=float(transport_config["car_per_vehicle"]),
            car_occupancy=float(transport_config["car_occupancy"]),
            motorcycle=float(transport_config["motorcycle"]),
            bicycle=float(transport_config["bicycle"]),
            walk=float(transport_config["walk"]),
        )
        if transport.car_occupancy < 1:
            raise ConfigurationError("car_occupancy must be at least 1")

        category_thresholds = CategoryThresholds(
            **{key: float(value) for key, value in emissions_config["category_thresholds"].items()}
        )
        if not (
            0
            < category_thresholds.low_max_per_day
            < category_thresholds.medium_max_per_day
            < category_thresholds.high_max_per_day
        ):
            raise ConfigurationError(
                "Category thresholds must satisfy 0 < low_max_per_day < medium_max_per_day < high_max_per_day"
            )

        benchmarks_config = emissions_config["benchmarks"]
        scenario_config = emissions_config["alternative_scenario"]

        return EmissionsConfig(
            transport=transport,
            accommodation=_parse_enum_table(AccommodationType, emissions_config["accommodation"], "accommodation"),
            activities=_parse_enum_table(ActivityType, emissions_config["activities"], "activities"),
            category_thresholds=category_thresholds,
            benchmarks=Benchmarks(
                global_daily_average=float(benchmarks_config["global_daily_average"]),
                sustainable_daily=float(benchmarks_config["sustainable_daily"]),
                low_carbon_daily=float(benchmarks_config["low_carbon_daily"]),
                annual_per_capita={
                    region: float(value) for region, value in benchmarks_config["annual_per_capita"].items()
                },
            ),
            equivalency_constants=EquivalencyConstants(
                **{key: float(value) for key, value in emissions_config["equivalency_constants"].items()}
            ),
            offset_price_usd_per_ton=float(emissions_config["offset_price_usd_per_ton"]),
            alternative_scenario=AlternativeScenarioDefinition(
                transport_mode=parse_enum(TransportMode, scenario_config["transport_mode"]),
                accommodation_type=parse_enum(AccommodationType, scenario_config["accommodation_type"]),
                max_feasible_distance_km=float(scenario_config["max_feasible_distance_km"]),
            ),
        )
    except (KeyError, TypeError, InvalidTripInputs) as error:
        raise ConfigurationError(f"Invalid emissions config: {error}") from error


def load_credit_config(config_path: Path = CONFIG_PATH) -> CreditConfig:
    """Load carbon credit config from config file."""
    config = read_config(config_path)
    credit_config = _section(config, "credits")
    # equivalents share the table used by the emissions report
    equivalency_constants = _section(_section(config, "emissions"), "equivalency_constants")

    levels = [
        Level(number=int(level["number"]), name=str(level["name"]), min_credits=int(level["min_credits"]))
        for level in credit_config["levels"]
    ]
    if not levels:
        raise ConfigurationError("At least one credit level is required")

    return CreditConfig(
        credits_per_kg_saved=float(credit_config["credits_per_kg_saved"]),
        baseline_kg=float(credit_config["baseline_kg"]),
        levels=sorted(levels, key=lambda level: (level.min_credits, level.number)),
        kg_per_tree_year=float(equivalency_constants["kg_per_tree_year"]),
        kg_per_car_mile=float(equivalency_constants["kg_per_vehicle_mile"]),
    )
