"""
Snapshot serialization of GameState.

A snapshot is the persisted subset of a game: players, custodianship,
treasury, turn state and the most recent log entries. Pending decisions,
open tribunals and queued offers are transient and are not saved. A game
saved during a side request (trade, confession, ability approval) resumes
in the phase it interrupted; one saved mid-landing resumes at POST_TURN.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, model_validator

from communistopoly.config import BOARD_SIZE, MAX_COLLECTIVIZATION_LEVEL, GameConfig
from communistopoly.exceptions import GameSetupError, SnapshotError
from communistopoly.game import GameState, create_game
from communistopoly.money import EventType, GameEvent
from communistopoly.pending import GamePhase, TurnPhase
from communistopoly.player import Debt, PartyRank, PieceType, Player

# PlayerState attributes copied verbatim in both directions
PLAYER_FIELDS = (
    "rank",
    "rubles",
    "position",
    "in_gulag",
    "gulag_turns",
    "is_eliminated",
    "elimination_reason",
    "final_wealth",
    "final_rank",
    "final_property_count",
    "correct_test_answers",
    "consecutive_failed_tests",
    "under_suspicion",
    "vouching_for",
    "vouched_by_round",
    "owes_favour_to",
    "free_from_gulag_cards",
    "laps_completed",
    "tank_requisition_used_this_lap",
    "vodka_used_this_lap",
    "kgb_test_previews_used_this_round",
    "has_used_tank_gulag_immunity",
    "vodka_use_count",
    "has_used_sickle_harvest",
    "has_used_iron_curtain_disappear",
    "has_used_lenin_speech",
    "has_used_siberian_camps_gulag",
    "has_used_ministry_truth_rewrite",
    "has_used_pravda_press_revote",
)


class DebtModel(BaseModel):
    creditor_id: Optional[int] = None
    amount: int = Field(gt=0)
    created_at_round: int
    reason: str = ""


class PlayerModel(BaseModel):
    player_id: int
    name: str
    piece: Optional[PieceType] = None
    is_stalin: bool = False
    rank: PartyRank = PartyRank.PROLETARIAT
    rubles: int = 0
    position: int = Field(default=0, ge=0, lt=BOARD_SIZE)
    properties: List[int] = Field(default_factory=list)

    in_gulag: bool = False
    gulag_turns: int = Field(default=0, ge=0)

    is_eliminated: bool = False
    elimination_reason: Optional[str] = None
    final_wealth: Optional[int] = None
    final_rank: Optional[PartyRank] = None
    final_property_count: Optional[int] = None

    correct_test_answers: int = 0
    consecutive_failed_tests: int = 0
    under_suspicion: bool = False

    vouching_for: Optional[int] = None
    vouched_by_round: Optional[int] = None
    debt: Optional[DebtModel] = None

    owes_favour_to: List[int] = Field(default_factory=list)
    free_from_gulag_cards: int = Field(default=0, ge=0)

    laps_completed: int = Field(default=0, ge=0)
    tank_requisition_used_this_lap: bool = False
    vodka_used_this_lap: bool = False
    kgb_test_previews_used_this_round: int = 0

    has_used_tank_gulag_immunity: bool = False
    vodka_use_count: int = 0
    has_used_sickle_harvest: bool = False
    has_used_iron_curtain_disappear: bool = False
    has_used_lenin_speech: bool = False
    has_used_siberian_camps_gulag: bool = False
    has_used_ministry_truth_rewrite: bool = False
    has_used_pravda_press_revote: bool = False


class PropertyModel(BaseModel):
    space_id: int
    custodian_id: Optional[int] = None
    collectivization_level: int = Field(default=0, ge=0, le=MAX_COLLECTIVIZATION_LEVEL)
    is_mortgaged: bool = False


class EventModel(BaseModel):
    event_type: EventType
    message: str
    player_id: Optional[int] = None
    round_number: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)


class TreasuryModel(BaseModel):
    balance: int = Field(ge=0)
    peak: int = Field(ge=0)


class GameSnapshot(BaseModel):
    game_phase: GamePhase
    stalin_id: Optional[int] = None
    current_player_index: int = Field(ge=0)
    turn_phase: TurnPhase
    dice: Tuple[int, int] = (1, 1)
    doubles_count: int = Field(default=0, ge=0)
    has_rolled: bool = False
    round_number: int = Field(default=1, ge=1)
    treasury: TreasuryModel
    players: List[PlayerModel]
    properties: List[PropertyModel]
    log: List[EventModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "GameSnapshot":
        player_ids = {p.player_id for p in self.players}
        if self.current_player_index >= len(self.players):
            raise ValueError("current_player_index is outside the roster")
        if self.stalin_id is not None and self.stalin_id not in player_ids:
            raise ValueError(f"unknown stalin_id {self.stalin_id}")
        for prop in self.properties:
            if prop.custodian_id is not None and prop.custodian_id not in player_ids:
                raise ValueError(f"space {prop.space_id} held by unknown player {prop.custodian_id}")
        if any(not 1 <= die <= 6 for die in self.dice):
            raise ValueError(f"invalid dice {self.dice}")
        return self


def _settled_phase(game: GameState) -> TurnPhase:
    """The phase to persist: side requests save the phase they interrupted."""
    pending = game.pending_action
    if (
        game.turn_phase == TurnPhase.RESOLVING
        and pending is not None
        and pending.resume_phase not in (None, TurnPhase.RESOLVING)
    ):
        return pending.resume_phase
    return game.turn_phase


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a JSON-compatible dict."""
    players = []
    for pstate in game.players.values():
        debt = pstate.debt
        players.append(PlayerModel(
            player_id=pstate.player_id,
            name=pstate.name,
            piece=pstate.piece,
            is_stalin=pstate.is_stalin,
            properties=sorted(pstate.properties),
            debt=DebtModel(
                creditor_id=debt.creditor_id,
                amount=debt.amount,
                created_at_round=debt.created_at_round,
                reason=debt.reason,
            ) if debt is not None else None,
            **{name: getattr(pstate, name) for name in PLAYER_FIELDS},
        ))

    properties = [
        PropertyModel(
            space_id=prop.space_id,
            custodian_id=prop.custodian_id,
            collectivization_level=prop.collectivization_level,
            is_mortgaged=prop.is_mortgaged,
        )
        for _, prop in sorted(game.properties.items())
    ]

    log = [
        EventModel(
            event_type=event.event_type,
            message=event.message,
            player_id=event.player_id,
            round_number=event.round_number,
            details=event.details,
        )
        for event in game.event_log.get_recent_events(game.config.max_log_entries)
    ]

    snapshot = GameSnapshot(
        game_phase=game.game_phase,
        stalin_id=game.stalin_id,
        current_player_index=game.current_player_index,
        turn_phase=_settled_phase(game),
        dice=game.dice,
        doubles_count=game.doubles_count,
        has_rolled=game.has_rolled,
        round_number=game.round_number,
        treasury=TreasuryModel(balance=game.treasury.balance, peak=game.treasury.peak),
        players=players,
        properties=properties,
        log=log,
    )
    return snapshot.model_dump(mode="json")


def restore_snapshot(data: Dict[str, Any], config: Optional[GameConfig] = None) -> GameState:
    """
    Rebuild a GameState from ``serialize_snapshot`` output.

    Raises SnapshotError if the data does not validate.
    """
    try:
        snapshot = GameSnapshot.model_validate(data)
    except ValidationError as exc:
        raise SnapshotError(f"Invalid snapshot: {exc}") from exc

    roster = [Player(p.player_id, p.name, p.piece, p.is_stalin) for p in snapshot.players]
    try:
        game = create_game(config or GameConfig(), roster)
    except GameSetupError as exc:
        raise SnapshotError(f"Snapshot roster is not playable: {exc}") from exc

    for model in snapshot.players:
        pstate = game.players[model.player_id]
        for name in PLAYER_FIELDS:
            setattr(pstate, name, getattr(model, name))
        pstate.owes_favour_to = list(model.owes_favour_to)
        pstate.properties = set()
        if model.debt is not None:
            pstate.debt = Debt(model.debt.creditor_id, model.debt.amount, model.debt.created_at_round, model.debt.reason)

    for model in snapshot.properties:
        prop = game.properties.get(model.space_id)
        if prop is None:
            raise SnapshotError(f"Space {model.space_id} cannot be held")
        prop.custodian_id = model.custodian_id
        prop.collectivization_level = model.collectivization_level
        prop.is_mortgaged = model.is_mortgaged
        if model.custodian_id is not None:
            game.players[model.custodian_id].properties.add(model.space_id)

    game.game_phase = snapshot.game_phase
    game.current_player_index = snapshot.current_player_index
    game.turn_phase = TurnPhase.POST_TURN if snapshot.turn_phase == TurnPhase.RESOLVING else snapshot.turn_phase
    game.dice = snapshot.dice
    game.doubles_count = snapshot.doubles_count
    game.has_rolled = snapshot.has_rolled
    game.treasury.balance = snapshot.treasury.balance
    game.treasury.peak = snapshot.treasury.peak
    game.statistics.state_treasury_peak = snapshot.treasury.peak

    game.event_log.events = [
        GameEvent(e.event_type, e.message, e.player_id, e.round_number, dict(e.details)) for e in snapshot.log
    ]
    game.round_number = snapshot.round_number
    return game
