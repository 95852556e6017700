"""
JSONL logger for Communistopoly game events.

Writes the engine's event log, plus per-round player snapshots, to a JSONL
file for later analysis.
"""

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from communistopoly.money import EventType

logger = logging.getLogger(__name__)


class GameLogger:
    """Logger that writes game events to a JSONL file."""

    def __init__(self, log_file: Optional[str] = None, log_dir: str = "logs"):
        """
        Initialize game logger.

        Args:
            log_file: Path to log file. If None, generates a timestamped filename in log_dir.
            log_dir: Directory used for generated filenames.
        """
        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            os.makedirs(log_dir, exist_ok=True)
            log_file = os.path.join(log_dir, f"communistopoly_game_{timestamp}.jsonl")

        self.log_file = log_file
        self.event_count = 0
        self._engine_last_idx = 0  # last flushed index from the engine's EventLog

        # Create/clear log file
        with open(self.log_file, "w"):
            pass
        logger.info("Logging game events to %s", self.log_file)

    def log_event(self, event_type: str, **kwargs: Any) -> None:
        """
        Log a game event to the JSONL file.

        Args:
            event_type: Type of event (e.g., "game_start", "dice_roll", "tribunal")
            **kwargs: Additional event data
        """
        event = {
            "event_id": self.event_count,
            "timestamp": datetime.now().isoformat(),
            "event_type": event_type,
            **kwargs,
        }

        with open(self.log_file, "a") as f:
            f.write(json.dumps(event, default=str) + "\n")

        self.event_count += 1

    def flush_engine_events(self, game) -> int:
        """Flush new engine events to JSONL.

        Returns the number of events written.
        """
        events = game.event_log.events
        if self._engine_last_idx >= len(events):
            return 0

        wrote = 0
        for event in events[self._engine_last_idx:]:
            record: Dict[str, Any] = {
                "round_number": event.round_number,
                "message": event.message,
                **event.details,
            }
            if event.player_id is not None:
                record["player_id"] = event.player_id
                player = game.players.get(event.player_id)
                if player is not None:
                    record["player_name"] = player.name

            if event.event_type == EventType.GAME_END:
                record["final_standings"] = self._final_standings(game)

            self.log_event(event.event_type.value, **record)
            wrote += 1

        self._engine_last_idx = len(events)
        return wrote

    def _final_standings(self, game) -> list:
        standings = []
        for pid, player in sorted(game.players.items()):
            if player.is_stalin:
                continue
            standings.append({
                "player_id": pid,
                "player_name": player.name,
                "rank": player.rank.value,
                "wealth": game.calculate_total_wealth(pid),
                "is_eliminated": player.is_eliminated,
                "elimination_reason": player.elimination_reason,
            })
        return standings

    def log_round_snapshot(self, game) -> None:
        """Log the state of every comrade at the start of a round."""
        for player_id, player in sorted(game.players.items()):
            if player.is_stalin:
                continue
            space = game.board.get_space(player.position)

            properties = []
            mortgaged = []
            collectivization = {}
            for space_id in sorted(player.properties):
                prop = game.properties[space_id]
                name = game.board.get_space(space_id).name
                properties.append(name)
                if prop.is_mortgaged:
                    mortgaged.append(name)
                if prop.collectivization_level > 0:
                    collectivization[name] = prop.collectivization_level

            self.log_event(
                "player_state",
                round_number=game.round_number,
                player_id=player_id,
                player_name=player.name,
                rubles=player.rubles,
                rank=player.rank.value,
                position=player.position,
                position_name=space.name,
                in_gulag=player.in_gulag,
                gulag_turns=player.gulag_turns,
                is_eliminated=player.is_eliminated,
                properties=properties,
                mortgaged_properties=mortgaged,
                collectivization=collectivization,
                debt=player.debt.amount if player.debt is not None else 0,
            )
        self.log_event(
            "treasury_state",
            round_number=game.round_number,
            balance=game.treasury.balance,
            peak=game.treasury.peak,
        )
