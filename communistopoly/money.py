"""
State treasury and game event logging.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger("communistopoly.events")


class EventType(Enum):
    """Types of game log entries."""

    GAME_START = "game_start"
    ROUND_START = "round_start"
    TURN_START = "turn_start"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_STOY = "pass_stoy"
    LAND = "land"

    PROPERTY = "property"
    PAYMENT = "payment"
    DEBT = "debt"
    TRADE = "trade"
    BRIBE = "bribe"

    CARD = "card"
    TEST = "test"
    RANK = "rank"

    GULAG = "gulag"
    TRIBUNAL = "tribunal"
    COLLECTIVE = "collective"
    ABILITY = "ability"

    ELIMINATION = "elimination"
    GAME_END = "game_end"
    SYSTEM = "system"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    message: str
    player_id: Optional[int] = None
    round_number: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "message": self.message,
            "player_id": self.player_id,
            "round": self.round_number,
            "details": dict(self.details),
        }

    def __repr__(self) -> str:
        player_str = f"P{self.player_id}" if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.message}"


class EventLog:
    """Append-only game event log, mirrored to the ``communistopoly.events`` logger."""

    def __init__(self):
        self.events: List[GameEvent] = []
        self.round_number = 0

    def log(
        self,
        event_type: EventType,
        message: str,
        player_id: Optional[int] = None,
        **details: Any,
    ) -> GameEvent:
        """Log a game event."""
        event = GameEvent(event_type, message, player_id, self.round_number, details)
        self.events.append(event)
        logger.debug("%r", event)
        return event

    def get_events(self) -> List[GameEvent]:
        """Get all logged events."""
        return self.events.copy()

    def get_recent_events(self, count: int = 10) -> List[GameEvent]:
        """Get the most recent N events."""
        return self.events[-count:]

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]


class StateTreasury:
    """
    Holds the State's rubles.
    Withdrawals are clamped so the balance never goes below zero.
    """

    def __init__(self, initial_balance: int = 0):
        self.balance = initial_balance
        self.peak = initial_balance

    def adjust(self, amount: int) -> int:
        """
        Add (positive) or withdraw (negative) rubles.
        Returns the amount actually applied after clamping.
        """
        new_balance = max(0, self.balance + amount)
        applied = new_balance - self.balance
        self.balance = new_balance
        self.peak = max(self.peak, self.balance)
        return applied

    def __repr__(self) -> str:
        return f"StateTreasury(balance={self.balance}, peak={self.peak})"
