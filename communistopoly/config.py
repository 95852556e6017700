"""
Game configuration settings.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

BOARD_SIZE = 40

STOY_POSITION = 0
GULAG_POSITION = 10
BREADLINE_POSITION = 20
ENEMY_OF_STATE_POSITION = 30

# Level 0 (uncollectivized) through level 5 (People's Palace)
COLLECTIVIZATION_MULTIPLIERS = (1, 3, 9, 27, 81, 243)
MAX_COLLECTIVIZATION_LEVEL = 5


@dataclass
class GameConfig:
    """Configuration for a Communistopoly game."""

    starting_rubles: int = 1500
    stoy_travel_tax: int = 200
    hammer_stoy_bonus: int = 50

    pilfer_amount: int = 100
    pilfer_threshold: int = 4

    gulag_escape_cost: int = 500
    gulag_timeout_turns: int = 10
    three_doubles_threshold: int = 3
    voucher_expiry_rounds: int = 3

    unmortgage_interest: float = 0.10
    improvement_value: int = 50
    collectivization_cost: int = 100
    peoples_palace_cost: int = 200

    railway_fee_per_station: int = 50
    utility_multiplier_single: int = 4
    utility_multiplier_both: int = 10

    informant_bonus: int = 100
    five_year_plan_bonus: int = 100
    breadline_contribution: int = 50

    tank_requisition_amount: int = 50
    sickle_harvest_threshold: int = 150
    lenin_speech_amount: int = 100

    max_log_entries: int = 50

    seed: Optional[int] = None

    @classmethod
    def from_settings(cls, settings) -> "GameConfig":
        """Build a config from environment-backed engine settings."""
        return cls(
            starting_rubles=settings.starting_rubles,
            stoy_travel_tax=settings.stoy_travel_tax,
            max_log_entries=settings.max_log_entries,
            seed=settings.seed,
        )

    def collectivization_cost_for(self, current_level: int) -> int:
        """Cost of raising a property from ``current_level`` by one."""
        if current_level == MAX_COLLECTIVIZATION_LEVEL - 1:
            return self.peoples_palace_cost
        return self.collectivization_cost


RANK_DISCOUNTS: Tuple[float, ...] = (0.0, 0.10, 0.20, 0.50)
