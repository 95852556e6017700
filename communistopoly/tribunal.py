"""
Denunciations and tribunals.

A tribunal moves strictly through accusation, defence, witnesses and
judgement. The witness threshold depends on the accused's rank.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from communistopoly.gulag import GulagReason, extend_sentence, release_from_gulag, send_to_gulag
from communistopoly.ledger import credit_from_state
from communistopoly.money import EventType
from communistopoly.pending import PendingAction, PendingActionType, TurnPhase
from communistopoly.player import PartyRank, PieceType
from communistopoly.standing import demote_player

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)

INFORMER_FAILURE_DAYS = 2


class TribunalPhase(str, Enum):
    ACCUSATION = "accusation"
    DEFENCE = "defence"
    WITNESSES = "witnesses"
    JUDGEMENT = "judgement"


TRIBUNAL_PHASE_ORDER = [
    TribunalPhase.ACCUSATION,
    TribunalPhase.DEFENCE,
    TribunalPhase.WITNESSES,
    TribunalPhase.JUDGEMENT,
]


class Verdict(str, Enum):
    GUILTY = "guilty"
    INNOCENT = "innocent"
    BOTH_GUILTY = "both_guilty"
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"


class WitnessSide(str, Enum):
    FOR = "for"  # supports the accuser
    AGAINST = "against"  # supports the accused


@dataclass
class Denouncement:
    accuser_id: Optional[int]
    accused_id: int
    crime: str
    round_number: int


@dataclass
class Tribunal:
    """
    An open tribunal. ``accuser_id`` of None is an anonymous denunciation
    with Stalin presiding.
    """

    tribunal_id: str
    accuser_id: Optional[int]
    accused_id: int
    crime: str
    phase: TribunalPhase = TribunalPhase.ACCUSATION
    witnesses_for: List[int] = field(default_factory=list)
    witnesses_against: List[int] = field(default_factory=list)
    required_witnesses: int = 0
    unanimous: bool = False
    accuser_informing: bool = False


def required_witnesses(game: "GameState", accused_id: int) -> Optional[int]:
    """
    Witnesses needed to convict. None means every eligible witness
    (unanimous).
    """
    accused = game.players.get(accused_id)
    if accused is None or accused.under_suspicion:
        return 0
    if accused.rank == PartyRank.COMMISSAR:
        return 2
    if accused.rank == PartyRank.INNER_CIRCLE:
        return None
    return 0


def eligible_witnesses(game: "GameState", tribunal: Tribunal) -> List[int]:
    return [
        p.player_id for p in game.players.values()
        if p.is_active and not p.in_gulag and p.player_id not in (tribunal.accuser_id, tribunal.accused_id)
    ]


def denouncements_by(game: "GameState", accuser_id: int) -> int:
    return sum(1 for d in game.denouncements_this_round if d.accuser_id == accuser_id)


def can_denounce(game: "GameState", accuser_id: int, accused_id: int, informing: bool = False) -> bool:
    """Eligibility of a denunciation. Accusing Stalin is handled by the caller."""
    accuser = game.players.get(accuser_id)
    accused = game.players.get(accused_id)
    if accuser is None or accused is None:
        return False
    if accuser_id == accused_id:
        return False
    if accused.is_stalin:
        return False
    if accused.in_gulag or accused.is_eliminated:
        return False
    if game.active_tribunal is not None:
        return False

    if accuser.is_stalin:
        return True
    if accuser.is_eliminated or (accuser.in_gulag and not informing):
        return False

    unlimited = accuser.rank in (PartyRank.COMMISSAR, PartyRank.INNER_CIRCLE)
    if not unlimited and denouncements_by(game, accuser_id) >= 1:
        return False

    if accused.piece == PieceType.STATUE_OF_LENIN and accuser.rank.level < accused.rank.level:
        return False
    return True


def initiate_denouncement(
    game: "GameState", accuser_id: int, accused_id: int, crime: str, informing: bool = False
) -> Optional[Tribunal]:
    """Denounce a player and open a tribunal."""
    accuser = game.players.get(accuser_id)
    accused = game.players.get(accused_id)
    if accuser is None or accused is None:
        return None
    if game.pending_action is not None:
        logger.debug("Denouncement while %r is pending", game.pending_action)
        return None

    if accused.is_stalin and not accuser.is_stalin:
        game.event_log.log(
            EventType.TRIBUNAL,
            f"{accuser.name} foolishly attempted to denounce Stalin",
            accuser_id,
        )
        send_to_gulag(game, accuser_id, GulagReason.STALIN_DECREE)
        return None

    if not can_denounce(game, accuser_id, accused_id, informing):
        game.event_log.log(
            EventType.SYSTEM,
            f"{accuser.name} may not denounce {accused.name} now",
            accuser_id,
            accused_id=accused_id,
        )
        return None

    return _open_tribunal(game, accuser_id, accused_id, crime, informing)


def trigger_anonymous_tribunal(game: "GameState", accused_id: int, crime: str = "Anonymous denunciation") -> Optional[Tribunal]:
    """An anonymous comrade reports the accused; Stalin presides."""
    accused = game.players.get(accused_id)
    if accused is None or not accused.is_active or accused.in_gulag:
        return None
    if game.active_tribunal is not None:
        return None
    return _open_tribunal(game, None, accused_id, crime, False)


def _open_tribunal(
    game: "GameState", accuser_id: Optional[int], accused_id: int, crime: str, informing: bool
) -> Tribunal:
    accused = game.players[accused_id]
    required = required_witnesses(game, accused_id)
    tribunal = Tribunal(
        tribunal_id=game.new_id("tribunal"),
        accuser_id=accuser_id,
        accused_id=accused_id,
        crime=crime,
        required_witnesses=required or 0,
        unanimous=required is None,
        accuser_informing=informing,
    )
    game.denouncements_this_round.append(Denouncement(accuser_id, accused_id, crime, game.round_number))
    game.active_tribunal = tribunal

    game.statistics.total_denouncements += 1
    game.statistics.total_tribunals += 1
    if accuser_id is not None:
        accuser_stats = game.statistics.for_player(accuser_id)
        if accuser_stats is not None:
            accuser_stats.denouncements_made += 1
    accused_stats = game.statistics.for_player(accused_id)
    if accused_stats is not None:
        accused_stats.denouncements_received += 1

    resume = game.turn_phase
    if game.pending_action is not None:
        resume = game.pending_action.resume_phase or TurnPhase.POST_TURN
    game.pending_action = PendingAction(
        PendingActionType.TRIBUNAL,
        accused_id,
        {"tribunal_id": tribunal.tribunal_id},
        resume_phase=resume,
    )
    game.turn_phase = TurnPhase.RESOLVING

    accuser_name = game.players[accuser_id].name if accuser_id is not None else "An anonymous comrade"
    game.event_log.log(
        EventType.TRIBUNAL,
        f'{accuser_name} has denounced {accused.name} for "{crime}". The tribunal is in session',
        accuser_id,
        tribunal_id=tribunal.tribunal_id,
        accused_id=accused_id,
        required_witnesses="unanimous" if tribunal.unanimous else tribunal.required_witnesses,
        informing=informing,
    )
    return tribunal


def advance_tribunal_phase(game: "GameState") -> bool:
    tribunal = game.active_tribunal
    if tribunal is None or tribunal.phase == TribunalPhase.JUDGEMENT:
        return False

    tribunal.phase = TRIBUNAL_PHASE_ORDER[TRIBUNAL_PHASE_ORDER.index(tribunal.phase) + 1]
    game.event_log.log(EventType.TRIBUNAL, f"Tribunal moves to {tribunal.phase.value}", phase=tribunal.phase.value)
    return True


def add_witness(game: "GameState", witness_id: int, side: WitnessSide) -> bool:
    tribunal = game.active_tribunal
    witness = game.players.get(witness_id)
    if tribunal is None or witness is None:
        return False

    if witness_id in (tribunal.accuser_id, tribunal.accused_id):
        game.event_log.log(EventType.TRIBUNAL, "Cannot witness your own trial", witness_id)
        return False
    if witness.is_stalin or witness.is_eliminated:
        return False
    if witness.in_gulag:
        game.event_log.log(EventType.TRIBUNAL, "Cannot witness from the Gulag", witness_id)
        return False

    same, other = (
        (tribunal.witnesses_for, tribunal.witnesses_against)
        if side == WitnessSide.FOR
        else (tribunal.witnesses_against, tribunal.witnesses_for)
    )
    if witness_id in other:
        game.event_log.log(EventType.TRIBUNAL, "Cannot witness for both sides", witness_id)
        return False
    if witness_id in same:
        return False

    same.append(witness_id)
    game.event_log.log(
        EventType.TRIBUNAL,
        f"{witness.name} testifies {'for the accuser' if side == WitnessSide.FOR else 'for the accused'}",
        witness_id,
        side=side.value,
    )
    return True


def remove_witness(game: "GameState", witness_id: int) -> bool:
    tribunal = game.active_tribunal
    if tribunal is None:
        return False
    for witnesses in (tribunal.witnesses_for, tribunal.witnesses_against):
        if witness_id in witnesses:
            witnesses.remove(witness_id)
            return True
    return False


def has_enough_witnesses(game: "GameState") -> bool:
    tribunal = game.active_tribunal
    if tribunal is None:
        return False

    accused = game.players[tribunal.accused_id]
    if accused.under_suspicion:
        return True
    if tribunal.unanimous:
        eligible = eligible_witnesses(game, tribunal)
        return all(pid in tribunal.witnesses_for for pid in eligible)
    return len(tribunal.witnesses_for) >= tribunal.required_witnesses


def render_verdict(game: "GameState", verdict: Verdict) -> bool:
    """Judge the open tribunal and close it."""
    tribunal = game.active_tribunal
    if tribunal is None:
        return False
    if tribunal.phase != TribunalPhase.JUDGEMENT:
        logger.debug("Verdict requested in phase %s", tribunal.phase)
        return False

    game.active_tribunal = None
    pending = game.pending_action
    if pending is not None and pending.is_type(PendingActionType.TRIBUNAL):
        game.pending_action = None
        game.turn_phase = pending.resume_phase or TurnPhase.POST_TURN

    accuser_id, accused_id = tribunal.accuser_id, tribunal.accused_id
    accuser = game.players.get(accuser_id) if accuser_id is not None else None
    accused = game.players[accused_id]
    accuser_competes = accuser is not None and accuser.is_active

    game.event_log.log(
        EventType.TRIBUNAL,
        f"Verdict on {accused.name}: {verdict.value}",
        accuser_id,
        tribunal_id=tribunal.tribunal_id,
        accused_id=accused_id,
        verdict=verdict.value,
    )

    if verdict == Verdict.GUILTY:
        send_to_gulag(game, accused_id, GulagReason.DENOUNCEMENT_GUILTY)
        if accuser_competes:
            if accuser.in_gulag:
                release_from_gulag(game, accuser_id, "informant rewarded")
            credit_from_state(game, accuser_id, game.config.informant_bonus, "informant bonus")
        _record_result(game, winner_id=accuser_id, loser_ids=[accused_id])

    elif verdict == Verdict.INNOCENT:
        if accuser_competes:
            demote_player(game, accuser_id)
            if tribunal.accuser_informing and accuser.in_gulag:
                extend_sentence(game, accuser_id, INFORMER_FAILURE_DAYS)
        _record_result(game, winner_id=accused_id, loser_ids=[accuser_id])

    elif verdict == Verdict.BOTH_GUILTY:
        send_to_gulag(game, accused_id, GulagReason.DENOUNCEMENT_GUILTY)
        if accuser_competes:
            send_to_gulag(game, accuser_id, GulagReason.DENOUNCEMENT_GUILTY)
        _record_result(game, winner_id=None, loser_ids=[accused_id, accuser_id])

    else:
        if accused.is_active:
            accused.under_suspicion = True
    return True


def _record_result(game: "GameState", winner_id: Optional[int], loser_ids: List[Optional[int]]) -> None:
    if winner_id is not None:
        stats = game.statistics.for_player(winner_id)
        if stats is not None:
            stats.tribunals_won += 1
    for loser_id in loser_ids:
        if loser_id is None:
            continue
        stats = game.statistics.for_player(loser_id)
        if stats is not None:
            stats.tribunals_lost += 1


def inform_on_player(game: "GameState", informer_id: int, accused_id: int, crime: str) -> Optional[Tribunal]:
    """A prisoner informs on a free player in exchange for release."""
    informer = game.players.get(informer_id)
    if informer is None or not informer.in_gulag or not informer.is_active:
        return None

    pending = game.pending_action
    if pending is not None and pending.is_type(PendingActionType.INFORM_ON_PLAYER) and pending.player_id == informer_id:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN
    elif pending is not None:
        return None

    return initiate_denouncement(game, informer_id, accused_id, crime, informing=True)
