"""Main run script."""

import logging
from datetime import timedelta

from trip_footprint.elements import TripInputs
from trip_footprint.g0_utils.utils import (
    load_credit_config,
    load_emissions_config,
    load_execution_pipeline,
    load_geocoder_config,
    load_trip_definition,
)
from trip_footprint.g1_distance_calculation.distance_cache import InMemoryDistanceCache, JsonFileDistanceCache
from trip_footprint.g1_distance_calculation.distance_calculator import DistanceCalculator, format_duration
from trip_footprint.g1_distance_calculation.geocoder import GeocodeError, Geocoder
from trip_footprint.g2_emissions_calculation.emissions_calculator import compute_emissions
from trip_footprint.g2_emissions_calculation.mode_comparison import compare_transport_modes
from trip_footprint.g3_scenario_optimization.alternative_optimizer import AlternativeScenarioOptimizer
from trip_footprint.g4_carbon_credits.credit_model import CarbonCreditModel

logging.basicConfig(level=logging.INFO)

LOGGER = logging.getLogger("MainExecution")


if __name__ == "__main__":
    execution_pipeline = load_execution_pipeline()
    trip_definition = load_trip_definition()
    emissions_config = load_emissions_config()

    trip_inputs = TripInputs.from_dict(trip_definition.trip_inputs)

    if execution_pipeline.fetch_distance:
        geocoder_config = load_geocoder_config()
        ttl = timedelta(days=geocoder_config.cache_ttl_days)
        if execution_pipeline.use_cache:
            cache = JsonFileDistanceCache(geocoder_config.cache_file, ttl=ttl)
        else:
            cache = InMemoryDistanceCache(ttl=ttl)

        distance_calculator = DistanceCalculator(Geocoder.from_config(geocoder_config), cache=cache)

        try:
            distance = distance_calculator.calculate(
                trip_definition.origin, trip_definition.destination, trip_inputs.transport.mode
            )
        except GeocodeError as error:
            LOGGER.error(error.user_message)
            LOGGER.info(f"Using configured distance of {trip_inputs.transport.distance_km} km")
        else:
            LOGGER.info(
                f"{distance.route_description}, estimated duration {format_duration(distance.estimated_duration_hours)}"
            )
            trip_inputs = trip_inputs.with_distance(distance.distance_km)

    else:
        LOGGER.info(f"Using configured distance of {trip_inputs.transport.distance_km} km")

    report = compute_emissions(trip_inputs, emissions_config)

    if not report.is_calculable:
        LOGGER.warning("Cannot calculate emissions for this trip, check the trip definition")
    else:
        LOGGER.info(
            f"Total emissions {report.total_kg:.2f} kg CO2e ({report.per_day_kg:.2f} kg per day), "
            f"category {report.category.value}, eco score {report.eco_score}"
        )
        LOGGER.info(
            f"Breakdown: transport {report.percentage_breakdown.transport:.1f}%, "
            f"accommodation {report.percentage_breakdown.accommodation:.1f}%, "
            f"activities {report.percentage_breakdown.activities:.1f}%"
        )
        LOGGER.info(
            f"{report.comparison_percentage:+.1f}% vs global tourist average, "
            f"offset cost ${report.offset_cost_usd:.2f}, {report.equivalents.trees_needed} trees needed"
        )

        LOGGER.info(
            "Transport comparison:\n"
            + compare_transport_modes(
                trip_inputs.transport.distance_km,
                emissions_config,
                selected_mode=trip_inputs.transport.mode,
                cabin_class=trip_inputs.transport.cabin_class,
            ).to_string(index=False)
        )

        optimizer = AlternativeScenarioOptimizer(emissions_config)
        scenario = optimizer.optimize(trip_inputs)
        LOGGER.info(
            f"{scenario.methodology}: save {scenario.savings_kg:.2f} kg ({scenario.savings_percent:.1f}%), "
            f"{scenario.trees_saved} trees{'' if scenario.is_feasible else ' (not feasible for this distance)'}"
        )

        for recommendation in optimizer.get_recommendations(trip_inputs, report):
            LOGGER.info(f"[{recommendation.priority}] {recommendation.title}: {recommendation.message}")

        credit_state = CarbonCreditModel(load_credit_config()).aggregate([report])
        LOGGER.info(
            f"Credits earned {credit_state.total_credits_earned}, level {credit_state.level.name}, "
            f"{credit_state.progress_to_next_level:.1f}% to next level"
        )
