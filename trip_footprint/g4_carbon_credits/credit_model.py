"""Hold carbon credit model."""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import pandas as pd

from trip_footprint.elements import (
    AccommodationType,
    EmissionsReport,
    Level,
    TransportMode,
    UserCreditState,
    UserStats,
)
from trip_footprint.g0_utils.utils import CreditConfig

LOGGER = logging.getLogger("CarbonCreditModel")

ECO_ACCOMMODATIONS = frozenset({AccommodationType.ECOLODGE, AccommodationType.ECORESORT})


@dataclass(frozen=True)
class Achievement:
    """Define an achievement unlocked by aggregate trip statistics."""

    achievement_id: str
    name: str
    description: str
    criteria: Callable[[UserStats], bool]


@dataclass(frozen=True)
class TripCredits:
    """Hold credits earned by one trip."""

    credits: int
    savings_kg: float
    savings_percent: float


@dataclass(frozen=True)
class LevelProgress:
    """Hold the level reached with a credit total."""

    level: Level
    next_level: Level | None
    progress_to_next_level: float
    credits_to_next_level: int


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first_trip", "First Step", "Calculate your first trip", lambda stats: stats.total_trips >= 1),
    Achievement("eco_warrior", "Eco Warrior", "Complete 10 trips", lambda stats: stats.total_trips >= 10),
    Achievement(
        "train_lover",
        "Train Enthusiast",
        "Take 5 train trips",
        lambda stats: stats.trips_with(TransportMode.TRAIN) >= 5,
    ),
    Achievement(
        "low_carbon",
        "Low Carbon Expert",
        "Average emissions below 200 kg",
        lambda stats: stats.total_trips >= 1 and stats.average_emissions_kg < 200,
    ),
    Achievement("tree_planter", "Tree Planter", "Earn 1000 carbon credits", lambda stats: stats.total_credits >= 1000),
    Achievement("globe_trotter", "Globe Trotter", "Complete 25 trips", lambda stats: stats.total_trips >= 25),
    Achievement(
        "bike_hero",
        "Bicycle Hero",
        "Take 3 bicycle trips",
        lambda stats: stats.trips_with(TransportMode.BICYCLE) >= 3,
    ),
    Achievement(
        "eco_accommodation",
        "Eco Stay Lover",
        "Stay in eco-lodges or eco-resorts 5 times",
        lambda stats: stats.eco_accommodations >= 5,
    ),
)


class CarbonCreditModel:
    """Turn past trip emissions into credits, a level and achievements."""

    def __init__(self, credit_config: CreditConfig, achievements: Sequence[Achievement] = ACHIEVEMENTS) -> None:
        """Initiate class."""
        self.credits_per_kg_saved = credit_config.credits_per_kg_saved
        self.baseline_kg = credit_config.baseline_kg
        self.levels = list(credit_config.levels)
        self.kg_per_tree_year = credit_config.kg_per_tree_year
        self.kg_per_car_mile = credit_config.kg_per_car_mile
        self.achievements = tuple(achievements)

        LOGGER.info("CarbonCreditModel initiated")

    def calculate_trip_credits(self, total_kg: float) -> TripCredits:
        """Return the credits earned by a trip, only savings against the baseline count."""
        # a total of zero or NaN means the trip could not be calculated
        if not math.isfinite(total_kg) or total_kg <= 0:
            return TripCredits(credits=0, savings_kg=0.0, savings_percent=0.0)

        savings_kg = max(0.0, self.baseline_kg - total_kg)
        savings_percent = savings_kg / self.baseline_kg * 100 if self.baseline_kg > 0 else 0.0

        return TripCredits(
            credits=math.floor(savings_kg * self.credits_per_kg_saved),
            savings_kg=savings_kg,
            savings_percent=savings_percent,
        )

    def find_level(self, total_credits: int) -> LevelProgress:
        """Find the highest level reached, ties go to the higher level."""
        for index in range(len(self.levels) - 1, -1, -1):
            level = self.levels[index]
            if total_credits >= level.min_credits:
                break
        else:
            index, level = 0, self.levels[0]

        next_level = self.levels[index + 1] if index + 1 < len(self.levels) else None
        if next_level is None:
            return LevelProgress(level=level, next_level=None, progress_to_next_level=100.0, credits_to_next_level=0)

        span = next_level.min_credits - level.min_credits
        progress = max(0, total_credits - level.min_credits) / span * 100 if span > 0 else 100.0

        return LevelProgress(
            level=level,
            next_level=next_level,
            progress_to_next_level=min(100.0, progress),
            credits_to_next_level=next_level.min_credits - total_credits,
        )

    def compute_user_stats(self, reports: Sequence[EmissionsReport]) -> UserStats:
        """Aggregate statistics over past trips, reports that cannot be calculated are skipped."""
        calculable_reports = [report for report in reports if report.is_calculable]
        if len(calculable_reports) < len(reports):
            LOGGER.warning(f"Skipping {len(reports) - len(calculable_reports)} trips that cannot be calculated")
        if not calculable_reports:
            return UserStats()

        trips = pd.DataFrame(
            {
                "total_kg": [report.total_kg for report in calculable_reports],
                "mode": [report.transport_mode for report in calculable_reports],
                "accommodation": [report.accommodation_type for report in calculable_reports],
            }
        )
        trip_credits = [self.calculate_trip_credits(total_kg) for total_kg in trips["total_kg"]]
        trips["credits"] = [credits.credits for credits in trip_credits]
        trips["savings_kg"] = [credits.savings_kg for credits in trip_credits]

        trips_by_mode = {mode: int(count) for mode, count in trips["mode"].value_counts().items()}

        return UserStats(
            total_trips=len(trips),
            total_emissions_kg=float(trips["total_kg"].sum()),
            average_emissions_kg=float(trips["total_kg"].mean()),
            total_credits=int(trips["credits"].sum()),
            total_savings_kg=float(trips["savings_kg"].sum()),
            trips_by_mode=trips_by_mode,
            eco_accommodations=int(trips["accommodation"].isin(list(ECO_ACCOMMODATIONS)).sum()),
        )

    def aggregate(self, reports: Sequence[EmissionsReport]) -> UserCreditState:
        """Recompute the credit state from all past trips."""
        stats = self.compute_user_stats(reports)
        level_progress = self.find_level(stats.total_credits)

        unlocked = tuple(achievement.achievement_id for achievement in self.achievements if achievement.criteria(stats))
        locked = tuple(
            achievement.achievement_id for achievement in self.achievements if achievement.achievement_id not in unlocked
        )

        LOGGER.info(
            f"{stats.total_trips} trips earned {stats.total_credits} credits, "
            f"level {level_progress.level.number} ({level_progress.level.name})"
        )

        return UserCreditState(
            total_credits_earned=stats.total_credits,
            total_savings_kg=stats.total_savings_kg,
            level=level_progress.level,
            next_level=level_progress.next_level,
            progress_to_next_level=level_progress.progress_to_next_level,
            credits_to_next_level=level_progress.credits_to_next_level,
            unlocked_achievement_ids=unlocked,
            locked_achievement_ids=locked,
            stats=stats,
            trees_equivalent=stats.total_savings_kg / self.kg_per_tree_year,
            car_miles_equivalent=stats.total_savings_kg / self.kg_per_car_mile,
        )
