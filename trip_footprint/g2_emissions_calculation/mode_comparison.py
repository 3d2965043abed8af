"""Compare transport modes for one journey."""

import logging

import pandas as pd

from trip_footprint.elements import CabinClass, TransportMode
from trip_footprint.g0_utils.utils import EmissionsConfig
from trip_footprint.g2_emissions_calculation.emissions_calculator import calculate_transport_emissions

LOGGER = logging.getLogger("ModeComparison")

COMPARISON_COLUMNS = [
    "mode",
    "factor_kg_per_km",
    "emissions_kg",
    "methodology",
    "savings_vs_selected_kg",
    "savings_percent",
]


def compare_transport_modes(
    distance_km: float,
    config: EmissionsConfig,
    selected_mode: TransportMode | None = None,
    cabin_class: CabinClass = CabinClass.ECONOMY,
) -> pd.DataFrame:
    """Return the emissions of every mode over a distance, lowest first.

    Savings are relative to `selected_mode` and negative for modes emitting more. Without a selected
    mode they are zero.
    """
    rows = []
    for mode in TransportMode:
        emissions_kg, lookup = calculate_transport_emissions(mode, distance_km, config, cabin_class)
        rows.append(
            {
                "mode": mode,
                "factor_kg_per_km": lookup.factor,
                "emissions_kg": emissions_kg,
                "methodology": lookup.methodology,
            }
        )

    comparison = pd.DataFrame(rows, columns=COMPARISON_COLUMNS[:4])

    if selected_mode is None:
        comparison["savings_vs_selected_kg"] = 0.0
        comparison["savings_percent"] = 0.0
    else:
        selected_kg = float(comparison.loc[comparison["mode"] == selected_mode, "emissions_kg"].iloc[0])
        comparison["savings_vs_selected_kg"] = selected_kg - comparison["emissions_kg"]
        if selected_kg > 0:
            comparison["savings_percent"] = comparison["savings_vs_selected_kg"] / selected_kg * 100
        else:
            comparison["savings_percent"] = 0.0

    comparison = comparison.sort_values("emissions_kg", kind="stable").reset_index(drop=True)
    LOGGER.debug(f"Compared {len(comparison)} transport modes over {distance_km} km")

    return comparison[COMPARISON_COLUMNS]
