"""
Player state, ranks and pieces.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set


class PartyRank(str, Enum):
    """Party rank, ordered from lowest to highest."""

    PROLETARIAT = "proletariat"
    PARTY_MEMBER = "party_member"
    COMMISSAR = "commissar"
    INNER_CIRCLE = "inner_circle"

    @property
    def level(self) -> int:
        return RANK_ORDER.index(self)

    def promoted(self) -> "PartyRank":
        """Next rank up; inner circle stays where it is."""
        return RANK_ORDER[min(self.level + 1, len(RANK_ORDER) - 1)]

    def demoted(self) -> "PartyRank":
        """Next rank down; proletariat stays where it is."""
        return RANK_ORDER[max(self.level - 1, 0)]


RANK_ORDER = [
    PartyRank.PROLETARIAT,
    PartyRank.PARTY_MEMBER,
    PartyRank.COMMISSAR,
    PartyRank.INNER_CIRCLE,
]


class PieceType(str, Enum):
    """Playing pieces; each carries its own ability."""

    HAMMER = "hammer"
    SICKLE = "sickle"
    RED_STAR = "red_star"
    TANK = "tank"
    BREAD_LOAF = "bread_loaf"
    IRON_CURTAIN = "iron_curtain"
    VODKA_BOTTLE = "vodka_bottle"
    STATUE_OF_LENIN = "statue_of_lenin"


@dataclass
class Debt:
    """An outstanding debt. ``creditor_id`` of None means the State."""

    creditor_id: Optional[int]
    amount: int
    created_at_round: int
    reason: str = ""


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(
        self,
        player_id: int,
        name: str,
        starting_rubles: int,
        piece: Optional[PieceType] = None,
        is_stalin: bool = False,
    ):
        self.player_id = player_id
        self.name = name
        self.piece = piece
        self.is_stalin = is_stalin
        self.rank = PartyRank.PARTY_MEMBER if piece == PieceType.RED_STAR else PartyRank.PROLETARIAT
        self.rubles = 0 if is_stalin else starting_rubles
        self.position = 0
        self.properties: Set[int] = set()

        self.in_gulag = False
        self.gulag_turns = 0

        self.is_eliminated = False
        self.elimination_reason: Optional[str] = None
        self.final_wealth: Optional[int] = None
        self.final_rank: Optional[PartyRank] = None
        self.final_property_count: Optional[int] = None

        self.correct_test_answers = 0
        self.consecutive_failed_tests = 0
        self.under_suspicion = False

        self.vouching_for: Optional[int] = None
        self.vouched_by_round: Optional[int] = None
        self.debt: Optional[Debt] = None

        self.owes_favour_to: List[int] = []
        self.free_from_gulag_cards = 0

        # Per-lap flags, re-armed when passing STOY
        self.laps_completed = 0
        self.tank_requisition_used_this_lap = False
        self.vodka_used_this_lap = False

        # Per-round counters
        self.kgb_test_previews_used_this_round = 0

        # One-shot abilities
        self.has_used_tank_gulag_immunity = False
        self.vodka_use_count = 0
        self.has_used_sickle_harvest = False
        self.has_used_iron_curtain_disappear = False
        self.has_used_lenin_speech = False
        self.has_used_siberian_camps_gulag = False
        self.has_used_ministry_truth_rewrite = False
        self.has_used_pravda_press_revote = False

    @property
    def is_active(self) -> bool:
        """A competing player still in the game."""
        return not self.is_stalin and not self.is_eliminated

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id}, name='{self.name}', rank={self.rank.value}, "
            f"rubles={self.rubles}, position={self.position}, eliminated={self.is_eliminated})"
        )


@dataclass
class PropertyState:
    """Tracks custodianship of a property, railway or utility."""

    space_id: int
    custodian_id: Optional[int] = None
    collectivization_level: int = 0
    is_mortgaged: bool = False

    def is_held(self) -> bool:
        """Check if a player, rather than the State, holds the property."""
        return self.custodian_id is not None

    def return_to_state(self) -> None:
        self.custodian_id = None
        self.collectivization_level = 0
        self.is_mortgaged = False


class Player:
    """
    Convenience wrapper for roster setup.
    This is primarily for the external API.
    """

    def __init__(self, player_id: int, name: str, piece: Optional[PieceType] = None, is_stalin: bool = False):
        self.player_id = player_id
        self.name = name
        self.piece = piece
        self.is_stalin = is_stalin

    def __repr__(self) -> str:
        role = "Stalin" if self.is_stalin else (self.piece.value if self.piece else "no piece")
        return f"Player(id={self.player_id}, name='{self.name}', {role})"
