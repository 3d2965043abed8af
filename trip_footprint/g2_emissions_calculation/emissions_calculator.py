"""Calculate trip emissions."""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass

from trip_footprint.elements import (
    AccommodationType,
    ActivityEmission,
    ActivityType,
    CabinClass,
    Category,
    EmissionsReport,
    Equivalents,
    PercentageBreakdown,
    TransportMode,
    TripInputs,
)
from trip_footprint.g0_utils.utils import (
    Benchmarks,
    CategoryThresholds,
    EmissionsConfig,
    EquivalencyConstants,
    FlightFactors,
    TransportFactors,
)

LOGGER = logging.getLogger("EmissionsCalculator")

PERCENTILES: dict[Category, str] = {
    Category.LOW: "Better than 60% of tourists",
    Category.MEDIUM: "Average tourist impact",
    Category.HIGH: "Higher than 70% of tourists",
    Category.VERY_HIGH: "Top 10% highest emitters",
}

# (upper bound of kg per day, score at upper bound, score at lower bound)
ECO_SCORE_BANDS: tuple[tuple[float, float, float], ...] = (
    (5.0, 95.0, 100.0),
    (15.0, 85.0, 95.0),
    (28.5, 70.0, 85.0),
    (45.2, 50.0, 70.0),
    (90.0, 25.0, 50.0),
    (120.0, 0.0, 25.0),
)


@dataclass(frozen=True)
class FactorLookup:
    """Hold an emission factor and where it comes from."""

    factor: float
    methodology: str


def clean_quantity(value: float) -> float:
    """Zero out negative, non-finite and non-numeric quantities."""
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        return 0.0

    if not math.isfinite(quantity) or quantity < 0:
        return 0.0

    return quantity


def flight_emission_factor(distance_km: float, cabin_class: CabinClass, flight: FlightFactors) -> FactorLookup:
    """Return the per passenger-km flight factor for the distance bracket and cabin class."""
    if distance_km < flight.domestic_max_km:
        bracket, label = "domestic", "domestic"
    elif distance_km < flight.short_haul_max_km:
        bracket, label = "short_haul", "short-haul"
    else:
        bracket, label = "long_haul", "long-haul"

    factor = flight.economy_factors[bracket] * flight.cabin_multipliers[bracket][cabin_class]
    methodology = f"DEFRA 2024 {label} flight ({cabin_class.value.replace('_', ' ')})"
    if flight.include_radiative_forcing:
        factor *= flight.radiative_forcing_index
        methodology += f", includes RF {flight.radiative_forcing_index}"

    return FactorLookup(factor=factor, methodology=methodology)


def transport_emission_factor(
    mode: TransportMode,
    distance_km: float,
    transport: TransportFactors,
    cabin_class: CabinClass = CabinClass.ECONOMY,
) -> FactorLookup:
    """Return the per passenger-km factor of a mode, which may depend on the distance."""
    if mode is TransportMode.FLIGHT:
        return flight_emission_factor(distance_km, cabin_class, transport.flight)
    if mode is TransportMode.TRAIN:
        return FactorLookup(transport.train, "DEFRA 2024 National Rail")
    if mode is TransportMode.BUS:
        if distance_km > transport.bus_coach_min_km:
            return FactorLookup(transport.bus_coach, "DEFRA 2024 Intercity Coach")
        return FactorLookup(transport.bus_city, "DEFRA 2024 Local Bus")
    if mode is TransportMode.CAR:
        return FactorLookup(
            transport.car_per_vehicle / transport.car_occupancy,
            f"DEFRA 2024 Medium Petrol Car ({transport.car_occupancy:g} occupancy)",
        )
    if mode is TransportMode.MOTORCYCLE:
        return FactorLookup(transport.motorcycle, "DEFRA 2024 Medium Motorcycle")
    if mode is TransportMode.BICYCLE:
        return FactorLookup(transport.bicycle, "Zero emissions")

    return FactorLookup(transport.walk, "Zero emissions")


def calculate_transport_emissions(
    mode: TransportMode,
    distance_km: float,
    config: EmissionsConfig,
    cabin_class: CabinClass = CabinClass.ECONOMY,
) -> tuple[float, FactorLookup]:
    """Calculate transport emissions in kg."""
    distance_km = clean_quantity(distance_km)
    lookup = transport_emission_factor(mode, distance_km, config.transport, cabin_class)

    return lookup.factor * distance_km, lookup


def calculate_accommodation_emissions(
    accommodation_type: AccommodationType, nights: int, config: EmissionsConfig
) -> tuple[float, FactorLookup]:
    """Calculate accommodation emissions in kg."""
    factor = config.accommodation[accommodation_type]
    lookup = FactorLookup(factor, f"HCMI 2024 {accommodation_type.value.replace('_', ' ')}")

    return factor * clean_quantity(nights), lookup


def calculate_activity_emissions(
    activities: Mapping[ActivityType, int], config: EmissionsConfig
) -> tuple[float, tuple[ActivityEmission, ...]]:
    """Calculate activity emissions in kg, skipping activities with a zero count."""
    total = 0.0
    breakdown = []

    for activity in ActivityType:
        count = int(clean_quantity(activities.get(activity, 0)))
        if count == 0:
            continue

        factor = config.activities[activity]
        emissions = factor * count
        total += emissions
        breakdown.append(ActivityEmission(activity=activity, count=count, factor=factor, emissions_kg=emissions))

    return total, tuple(breakdown)


def classify_category(per_day_kg: float, thresholds: CategoryThresholds) -> Category:
    """Classify daily emissions."""
    if per_day_kg <= thresholds.low_max_per_day:
        return Category.LOW
    if per_day_kg <= thresholds.medium_max_per_day:
        return Category.MEDIUM
    if per_day_kg <= thresholds.high_max_per_day:
        return Category.HIGH

    return Category.VERY_HIGH


def calculate_equivalents(
    total_kg: float, constants: EquivalencyConstants, benchmarks: Benchmarks
) -> Equivalents:
    """Convert total emissions into relatable equivalents."""
    vehicle_miles = total_kg / constants.kg_per_vehicle_mile
    gasoline_gallons = total_kg / constants.kg_per_gallon_gasoline
    forest_acres = total_kg / constants.kg_per_acre_forest_year
    annual = benchmarks.annual_per_capita

    return Equivalents(
        tree_years=total_kg / constants.kg_per_tree_year,
        tree_seedlings_10_years=total_kg / constants.kg_per_tree_seedling_10_years,
        vehicle_miles=vehicle_miles,
        vehicle_km=vehicle_miles * constants.km_per_mile,
        gasoline_gallons=gasoline_gallons,
        gasoline_liters=gasoline_gallons * constants.liters_per_gallon,
        diesel_gallons=total_kg / constants.kg_per_gallon_diesel,
        electricity_kwh=total_kg / constants.kg_per_kwh,
        vehicle_years=total_kg / constants.kg_per_vehicle_year,
        home_energy_years=total_kg / constants.kg_per_home_year,
        forest_acres_year=forest_acres,
        forest_hectares_year=forest_acres / constants.acres_per_hectare,
        percent_annual_global=total_kg / annual["global"] * 100,
        percent_annual_usa=total_kg / annual["usa"] * 100,
        percent_annual_eu=total_kg / annual["eu"] * 100,
        percent_annual_uk=total_kg / annual["uk"] * 100,
        tons_waste_recycled=total_kg / constants.kg_per_ton_waste_recycled,
    )


def calculate_eco_score(per_day_kg: float) -> int:
    """Score daily emissions from 100 (net zero) to 0, linear within each band."""
    lower_bound = 0.0
    for upper_bound, score_at_upper, score_at_lower in ECO_SCORE_BANDS:
        if per_day_kg <= upper_bound:
            position = (per_day_kg - lower_bound) / (upper_bound - lower_bound)
            score = score_at_lower - (score_at_lower - score_at_upper) * position
            return round(max(0.0, min(100.0, score)))
        lower_bound = upper_bound

    return 0


def compute_emissions(trip_inputs: TripInputs, config: EmissionsConfig) -> EmissionsReport:
    """Calculate the emissions report of a trip.

    Numeric edge cases never raise: invalid quantities count as zero and a trip without nights is rated
    as a single day. Callers check `EmissionsReport.is_calculable` before presenting the report.
    """
    transport = trip_inputs.transport
    accommodation = trip_inputs.accommodation

    transport_kg, transport_lookup = calculate_transport_emissions(
        transport.mode, transport.distance_km, config, transport.cabin_class
    )
    accommodation_kg, accommodation_lookup = calculate_accommodation_emissions(
        accommodation.type, accommodation.nights, config
    )
    activities_kg, activity_breakdown = calculate_activity_emissions(trip_inputs.activities, config)
    total_kg = transport_kg + accommodation_kg + activities_kg

    nights = int(clean_quantity(accommodation.nights))
    distance_km = clean_quantity(transport.distance_km)
    days = max(nights, 1)
    per_day_kg = total_kg / days

    if total_kg > 0:
        percentage_breakdown = PercentageBreakdown(
            transport=transport_kg / total_kg * 100,
            accommodation=accommodation_kg / total_kg * 100,
            activities=activities_kg / total_kg * 100,
        )
    else:
        percentage_breakdown = PercentageBreakdown(transport=0.0, accommodation=0.0, activities=0.0)

    benchmarks = config.benchmarks
    category = classify_category(per_day_kg, config.category_thresholds)

    report = EmissionsReport(
        transport_kg=transport_kg,
        accommodation_kg=accommodation_kg,
        activities_kg=activities_kg,
        total_kg=total_kg,
        per_day_kg=per_day_kg,
        days=days,
        per_km_kg=transport_kg / distance_km if distance_km > 0 else 0.0,
        per_night_kg=accommodation_kg / nights if nights > 0 else 0.0,
        percentage_breakdown=percentage_breakdown,
        category=category,
        percentile=PERCENTILES[category],
        equivalents=calculate_equivalents(total_kg, config.equivalency_constants, benchmarks),
        comparison_percentage=(per_day_kg - benchmarks.global_daily_average) / benchmarks.global_daily_average * 100,
        offset_cost_usd=total_kg / 1000 * config.offset_price_usd_per_ton,
        is_sustainable=per_day_kg <= benchmarks.sustainable_daily,
        is_low_carbon=per_day_kg <= benchmarks.low_carbon_daily,
        eco_score=calculate_eco_score(per_day_kg),
        transport_mode=transport.mode,
        accommodation_type=accommodation.type,
        transport_factor=transport_lookup.factor,
        transport_methodology=transport_lookup.methodology,
        accommodation_factor=accommodation_lookup.factor,
        accommodation_methodology=accommodation_lookup.methodology,
        activity_breakdown=activity_breakdown,
    )

    LOGGER.debug(
        f"Trip emissions: transport {transport_kg:.2f} kg, accommodation {accommodation_kg:.2f} kg, "
        f"activities {activities_kg:.2f} kg, total {total_kg:.2f} kg ({category.value})"
    )
    return report
