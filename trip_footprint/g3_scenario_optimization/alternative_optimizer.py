"""Hold alternative scenario optimizer."""

import logging
import math

from trip_footprint.elements import (
    ActivityType,
    AlternativeScenario,
    EmissionsReport,
    Recommendation,
    TransportMode,
    TripInputs,
)
from trip_footprint.g0_utils.utils import EmissionsConfig
from trip_footprint.g2_emissions_calculation.emissions_calculator import (
    calculate_accommodation_emissions,
    calculate_transport_emissions,
    clean_quantity,
)

LOGGER = logging.getLogger("AlternativeScenarioOptimizer")

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _reduction_percent(current_factor: float, alternative_factor: float) -> float:
    """Return the relative reduction between two factors, never negative."""
    if current_factor <= 0:
        return 0.0

    return max(0.0, (current_factor - alternative_factor) / current_factor * 100)


class AlternativeScenarioOptimizer:
    """Recompute a trip with the best available transport and accommodation."""

    def __init__(self, config: EmissionsConfig) -> None:
        """Initiate class."""
        self.config = config
        self.scenario = config.alternative_scenario

        LOGGER.info("AlternativeScenarioOptimizer initiated")

    def optimize(self, trip_inputs: TripInputs) -> AlternativeScenario:
        """Return the savings of switching to the best transport and accommodation."""
        transport = trip_inputs.transport
        accommodation = trip_inputs.accommodation
        distance_km = clean_quantity(transport.distance_km)

        current_transport_kg, _ = calculate_transport_emissions(
            transport.mode, distance_km, self.config, transport.cabin_class
        )
        current_accommodation_kg, _ = calculate_accommodation_emissions(
            accommodation.type, accommodation.nights, self.config
        )
        best_transport_kg, _ = calculate_transport_emissions(self.scenario.transport_mode, distance_km, self.config)
        best_accommodation_kg, _ = calculate_accommodation_emissions(
            self.scenario.accommodation_type, accommodation.nights, self.config
        )

        transport_savings_kg = max(0.0, current_transport_kg - best_transport_kg)
        accommodation_savings_kg = max(0.0, current_accommodation_kg - best_accommodation_kg)
        savings_kg = transport_savings_kg + accommodation_savings_kg

        current_kg = current_transport_kg + current_accommodation_kg
        savings_percent = savings_kg / current_kg * 100 if current_kg > 0 else 0.0
        is_feasible = distance_km <= self.scenario.max_feasible_distance_km

        if not is_feasible:
            LOGGER.info(
                f"{self.scenario.transport_mode.value} is unrealistic over {distance_km} km, "
                "alternative marked infeasible"
            )

        return AlternativeScenario(
            current_transport_kg=current_transport_kg,
            current_accommodation_kg=current_accommodation_kg,
            best_transport_kg=best_transport_kg,
            best_accommodation_kg=best_accommodation_kg,
            transport_savings_kg=transport_savings_kg,
            accommodation_savings_kg=accommodation_savings_kg,
            savings_kg=savings_kg,
            savings_percent=savings_percent,
            trees_saved=math.ceil(savings_kg / self.config.equivalency_constants.kg_per_tree_year),
            best_transport_mode=self.scenario.transport_mode,
            best_accommodation_type=self.scenario.accommodation_type,
            is_feasible=is_feasible,
            methodology=(
                f"{self.scenario.transport_mode.value.capitalize()} + "
                f"{self.scenario.accommodation_type.value} (DEFRA 2024)"
            ),
        )

    def get_recommendations(self, trip_inputs: TripInputs, report: EmissionsReport) -> list[Recommendation]:
        """Suggest lower carbon choices for a trip, highest priority first."""
        if not report.is_calculable:
            return []

        recommendations: list[Recommendation] = []
        transport = trip_inputs.transport
        distance_km = clean_quantity(transport.distance_km)
        transport_factors = self.config.transport

        if transport.mode is TransportMode.FLIGHT and distance_km < self.scenario.max_feasible_distance_km:
            reduction = _reduction_percent(report.transport_factor, transport_factors.train)
            recommendations.append(
                Recommendation(
                    category="Transport",
                    priority="high",
                    title="Take the train instead",
                    message=(
                        f"Trains emit {reduction:.0f}% less CO2 than this flight. Factor: train "
                        f"{transport_factors.train} vs flight {report.transport_factor:.3f} kg/pax-km"
                    ),
                    savings_percent=reduction,
                )
            )

        if transport.mode is TransportMode.CAR:
            _, bus_lookup = calculate_transport_emissions(TransportMode.BUS, distance_km, self.config)
            reduction = _reduction_percent(report.transport_factor, bus_lookup.factor)
            if reduction > 0:
                recommendations.append(
                    Recommendation(
                        category="Transport",
                        priority="medium",
                        title="Use the bus",
                        message=(
                            f"A bus emits {reduction:.0f}% less CO2 per passenger than a car "
                            f"over {distance_km:g} km"
                        ),
                        savings_percent=reduction,
                    )
                )

        best_accommodation = self.scenario.accommodation_type
        best_factor = self.config.accommodation[best_accommodation]
        if trip_inputs.accommodation.nights > 0 and report.accommodation_factor > best_factor:
            reduction = _reduction_percent(report.accommodation_factor, best_factor)
            recommendations.append(
                Recommendation(
                    category="Accommodation",
                    priority="high" if reduction >= 50 else "medium",
                    title="Stay at an eco-certified place",
                    message=(
                        f"Choosing a {best_accommodation.value} cuts accommodation emissions by {reduction:.0f}% "
                        f"({report.accommodation_factor} vs {best_factor} kg/night)"
                    ),
                    savings_percent=reduction,
                )
            )

        adventure_kg = sum(
            item.emissions_kg for item in report.activity_breakdown if item.activity is ActivityType.ADVENTURE
        )
        if report.activities_kg > 0 and adventure_kg > report.activities_kg / 2:
            adventure_factor = self.config.activities[ActivityType.ADVENTURE]
            sightseeing_factor = self.config.activities[ActivityType.SIGHTSEEING]
            reduction = _reduction_percent(adventure_factor, sightseeing_factor)
            recommendations.append(
                Recommendation(
                    category="Activities",
                    priority="low",
                    title="Mix in low impact activities",
                    message=(
                        f"Adventure activities make up {adventure_kg / report.activities_kg * 100:.0f}% of activity "
                        f"emissions. Walking tours and sightseeing emit {reduction:.0f}% less"
                    ),
                    savings_percent=reduction,
                )
            )

        recommendations.sort(key=lambda recommendation: PRIORITY_ORDER[recommendation.priority])
        LOGGER.info(f"Found {len(recommendations)} recommendations")
        return recommendations
