"""
Reporting counters. Nothing in the engine reads these to make decisions.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class PlayerStatistics:
    """Per-player aggregates for the end-of-game report."""

    turns_played: int = 0
    denouncements_made: int = 0
    denouncements_received: int = 0
    tribunals_won: int = 0
    tribunals_lost: int = 0
    total_gulag_turns: int = 0
    gulag_sentences: int = 0
    gulag_escapes: int = 0
    money_earned: int = 0
    money_spent: int = 0
    properties_owned: int = 0
    max_wealth: int = 0
    tests_passed: int = 0
    tests_failed: int = 0


@dataclass
class GameStatistics:
    """Game-wide counters plus per-player statistics."""

    game_start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    game_end_time: Optional[datetime] = None
    total_turns: int = 0
    total_denouncements: int = 0
    total_tribunals: int = 0
    total_gulag_sentences: int = 0
    state_treasury_peak: int = 0
    player_stats: Dict[int, PlayerStatistics] = field(default_factory=dict)

    def for_player(self, player_id: int) -> Optional[PlayerStatistics]:
        """Statistics for a competing player, or None (Stalin has none)."""
        return self.player_stats.get(player_id)

    def record_treasury(self, balance: int) -> None:
        self.state_treasury_peak = max(self.state_treasury_peak, balance)

    def record_wealth(self, player_id: int, wealth: int) -> None:
        stats = self.for_player(player_id)
        if stats is not None:
            stats.max_wealth = max(stats.max_wealth, wealth)

    def record_earned(self, player_id: int, amount: int) -> None:
        stats = self.for_player(player_id)
        if stats is not None and amount > 0:
            stats.money_earned += amount

    def record_spent(self, player_id: int, amount: int) -> None:
        stats = self.for_player(player_id)
        if stats is not None and amount > 0:
            stats.money_spent += amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_start_time": self.game_start_time.isoformat(),
            "game_end_time": self.game_end_time.isoformat() if self.game_end_time else None,
            "total_turns": self.total_turns,
            "total_denouncements": self.total_denouncements,
            "total_tribunals": self.total_tribunals,
            "total_gulag_sentences": self.total_gulag_sentences,
            "state_treasury_peak": self.state_treasury_peak,
            "player_stats": {pid: asdict(stats) for pid, stats in sorted(self.player_stats.items())},
        }
