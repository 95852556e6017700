"""
The Gulag: sentencing, daily service, escapes, vouchers and confessions.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Optional

from communistopoly.config import GULAG_POSITION
from communistopoly.money import EventType
from communistopoly.pending import PendingAction, PendingActionType, TurnPhase
from communistopoly.player import PieceType
from communistopoly.standing import EliminationReason, demote_player, eliminate_player

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)


class GulagReason(str, Enum):
    ENEMY_OF_STATE = "enemy_of_state"
    THREE_DOUBLES = "three_doubles"
    DENOUNCEMENT_GUILTY = "denouncement_guilty"
    DEBT_DEFAULT = "debt_default"
    PILFERING_CAUGHT = "pilfering_caught"
    STALIN_DECREE = "stalin_decree"
    RAILWAY_CAPTURE = "railway_capture"
    CAMP_LABOUR = "camp_labour"
    VOUCHER_CONSEQUENCE = "voucher_consequence"


# Offences by a vouched-for prisoner that drag the sponsor down with them
TRIGGERING_REASONS: FrozenSet[GulagReason] = frozenset({
    GulagReason.ENEMY_OF_STATE,
    GulagReason.THREE_DOUBLES,
    GulagReason.DENOUNCEMENT_GUILTY,
    GulagReason.PILFERING_CAUGHT,
    GulagReason.STALIN_DECREE,
    GulagReason.RAILWAY_CAPTURE,
    GulagReason.CAMP_LABOUR,
})

# Hammer pieces cannot be imprisoned by other players
HAMMER_IMMUNE_REASONS: FrozenSet[GulagReason] = frozenset({
    GulagReason.DENOUNCEMENT_GUILTY,
    GulagReason.THREE_DOUBLES,
})


class EscapeMethod(str, Enum):
    ROLL = "roll"
    PAY = "pay"
    VOUCH = "vouch"
    INFORM = "inform"
    BRIBE = "bribe"
    CARD = "card"


@dataclass
class Voucher:
    """A sponsor vouching for a released prisoner until ``expires_at_round``."""

    voucher_id: str
    prisoner_id: int
    sponsor_id: int
    expires_at_round: int
    is_active: bool = True


@dataclass
class Confession:
    confession_id: str
    prisoner_id: int
    text: str
    round_number: int
    reviewed: bool = False
    accepted: Optional[bool] = None


def get_gulag_escape_requirement(day: int) -> FrozenSet[int]:
    """Die faces that count as an escaping double on the given sentence day."""
    if day <= 1:
        return frozenset({6})
    if day == 2:
        return frozenset({5, 6})
    if day == 3:
        return frozenset({4, 5, 6})
    return frozenset(range(1, 7))


def is_valid_escape_roll(day: int, die1: int, die2: int) -> bool:
    return die1 == die2 and die1 in get_gulag_escape_requirement(day)


def send_to_gulag(game: "GameState", player_id: int, reason: GulagReason) -> bool:
    """
    Sentence a player.

    Returns True only when the player actually entered the Gulag; piece
    immunities and invalid targets return False.
    """
    player = game.players.get(player_id)
    if player is None or not player.is_active or player.in_gulag:
        return False

    is_current = game.current_player_id == player_id

    if player.piece == PieceType.HAMMER and reason in HAMMER_IMMUNE_REASONS:
        game.event_log.log(
            EventType.GULAG,
            f"{player.name}'s Hammer protects them from the Gulag",
            player_id,
            reason=reason.value,
            blocked=True,
        )
        if is_current:
            _finish_current_turn(game)
        return False

    if player.piece == PieceType.TANK and not player.has_used_tank_gulag_immunity:
        player.has_used_tank_gulag_immunity = True
        player.position = game.board.find_closest_railway(player.position)
        game.event_log.log(
            EventType.GULAG,
            f"{player.name}'s Tank evades the Gulag and is redirected to {game.board.get_space(player.position).name}",
            player_id,
            reason=reason.value,
            redirected_to=player.position,
        )
        demote_player(game, player_id)
        if is_current:
            _finish_current_turn(game)
        return False

    player.in_gulag = True
    player.gulag_turns = 0
    player.position = GULAG_POSITION

    game.statistics.total_gulag_sentences += 1
    stats = game.statistics.for_player(player_id)
    if stats is not None:
        stats.gulag_sentences += 1

    game.event_log.log(
        EventType.GULAG,
        f"{player.name} sent to the Gulag ({reason.value})",
        player_id,
        reason=reason.value,
    )
    logger.info("Player %s sentenced to the Gulag: %s", player_id, reason.value)

    demote_player(game, player_id)

    if reason in TRIGGERING_REASONS:
        check_voucher_consequences(game, player_id, reason)

    if is_current:
        _finish_current_turn(game)
    return True


def _finish_current_turn(game: "GameState") -> None:
    game.pending_action = None
    game.turn_phase = TurnPhase.POST_TURN


def release_from_gulag(game: "GameState", player_id: int, reason: str) -> bool:
    """Release a prisoner. Rank is not restored."""
    player = game.players.get(player_id)
    if player is None or not player.in_gulag:
        return False

    served = player.gulag_turns
    player.in_gulag = False
    player.gulag_turns = 0
    game.event_log.log(
        EventType.GULAG,
        f"{player.name} released from the Gulag ({reason})",
        player_id,
        reason=reason,
        days_served=served,
    )
    return True


def handle_gulag_turn(game: "GameState", player_id: int) -> bool:
    """
    Serve one day of a sentence at the start of the prisoner's turn.

    Reaching the timeout is fatal. Returns True while the player is
    still alive and imprisoned.
    """
    player = game.players.get(player_id)
    if player is None or not player.in_gulag or not player.is_active:
        return False

    player.gulag_turns += 1
    stats = game.statistics.for_player(player_id)
    if stats is not None:
        stats.total_gulag_turns += 1

    if player.gulag_turns >= game.config.gulag_timeout_turns:
        game.event_log.log(
            EventType.GULAG,
            f"{player.name} perished in the Gulag after {player.gulag_turns} days",
            player_id,
            days=player.gulag_turns,
        )
        eliminate_player(game, player_id, EliminationReason.GULAG_TIMEOUT)
        return False

    game.event_log.log(
        EventType.GULAG,
        f"{player.name} serves day {player.gulag_turns} in the Gulag",
        player_id,
        day=player.gulag_turns,
    )
    return True


def extend_sentence(game: "GameState", player_id: int, days: int) -> None:
    """Add days to a sentence; the timeout still applies."""
    player = game.players.get(player_id)
    if player is None or not player.in_gulag:
        return

    player.gulag_turns += days
    game.event_log.log(
        EventType.GULAG,
        f"{player.name}'s sentence is extended by {days} days",
        player_id,
        days=days,
        total=player.gulag_turns,
    )
    if player.gulag_turns >= game.config.gulag_timeout_turns:
        eliminate_player(game, player_id, EliminationReason.GULAG_TIMEOUT)


def attempt_gulag_escape(game: "GameState", player_id: int, method: EscapeMethod) -> bool:
    """
    Try one of the escape routes on the prisoner's own turn, before rolling.

    Roll, pay and card resolve immediately and end the turn without
    movement. Vouch, inform and bribe suspend on a pending decision.
    """
    player = game.players.get(player_id)
    if player is None or not player.in_gulag or not player.is_active:
        return False
    if game.current_player_id != player_id:
        logger.debug("Escape attempt by %s out of turn", player_id)
        return False
    if game.turn_phase != TurnPhase.PRE_ROLL or game.pending_action is not None:
        logger.debug("Escape attempt by %s in phase %s", player_id, game.turn_phase)
        return False

    if method == EscapeMethod.ROLL:
        return _escape_by_roll(game, player_id)
    if method == EscapeMethod.PAY:
        return _escape_by_payment(game, player_id)
    if method == EscapeMethod.CARD:
        return _escape_by_card(game, player_id)

    game.turn_phase = TurnPhase.RESOLVING
    if method == EscapeMethod.VOUCH:
        game.pending_action = PendingAction(
            PendingActionType.VOUCHER_REQUEST, player_id, {"prisoner_id": player_id}
        )
    elif method == EscapeMethod.INFORM:
        game.pending_action = PendingAction(
            PendingActionType.INFORM_ON_PLAYER, player_id, {"informer_id": player_id}
        )
    else:
        game.pending_action = PendingAction(
            PendingActionType.BRIBE_STALIN, player_id, {"reason": "gulag_escape"}
        )
    game.event_log.log(
        EventType.GULAG,
        f"{player.name} attempts to escape the Gulag ({method.value})",
        player_id,
        method=method.value,
    )
    return True


def _escape_by_roll(game: "GameState", player_id: int) -> bool:
    player = game.players[player_id]
    die1, die2 = game.roll_two_dice()
    game.dice = (die1, die2)
    game.has_rolled = True

    escaped = is_valid_escape_roll(player.gulag_turns, die1, die2)
    game.event_log.log(
        EventType.DICE_ROLL,
        f"{player.name} rolls {die1} and {die2} for escape",
        player_id,
        dice=[die1, die2],
        escaped=escaped,
    )
    if escaped:
        release_from_gulag(game, player_id, "rolled the required doubles")
        _record_escape(game, player_id)
    else:
        game.event_log.log(EventType.GULAG, f"{player.name} failed to escape the Gulag", player_id)

    _finish_current_turn(game)
    return escaped


def _escape_by_payment(game: "GameState", player_id: int) -> bool:
    player = game.players[player_id]
    cost = game.config.gulag_escape_cost
    if player.rubles < cost:
        game.event_log.log(
            EventType.SYSTEM,
            f"{player.name} cannot afford the {cost} ruble rehabilitation fee",
            player_id,
        )
        return False

    game.debit_to_state(player_id, cost, "rehabilitation fee")
    release_from_gulag(game, player_id, "paid for rehabilitation")
    _record_escape(game, player_id)
    demote_player(game, player_id)
    _finish_current_turn(game)
    return True


def _escape_by_card(game: "GameState", player_id: int) -> bool:
    player = game.players[player_id]
    if player.free_from_gulag_cards <= 0:
        game.event_log.log(
            EventType.SYSTEM, f"{player.name} has no Get out of Gulag free card", player_id
        )
        return False

    player.free_from_gulag_cards -= 1
    release_from_gulag(game, player_id, "used a Get out of Gulag free card")
    _record_escape(game, player_id)
    _finish_current_turn(game)
    return True


def _record_escape(game: "GameState", player_id: int) -> None:
    stats = game.statistics.for_player(player_id)
    if stats is not None:
        stats.gulag_escapes += 1


# === VOUCHERS ===

def request_voucher(game: "GameState", prisoner_id: int) -> bool:
    """Ask the other players to vouch for a prisoner."""
    prisoner = game.players.get(prisoner_id)
    if prisoner is None or not prisoner.in_gulag or not prisoner.is_active:
        return False
    if game.pending_action is not None and not game.pending_action.is_type(PendingActionType.VOUCHER_REQUEST):
        return False

    game.pending_action = PendingAction(
        PendingActionType.VOUCHER_REQUEST,
        prisoner_id,
        {"prisoner_id": prisoner_id},
        resume_phase=game.turn_phase if game.pending_action is None else game.pending_action.resume_phase,
    )
    game.turn_phase = TurnPhase.RESOLVING
    game.event_log.log(EventType.GULAG, f"{prisoner.name} requests a voucher", prisoner_id)
    return True


def vouch_for_player(game: "GameState", prisoner_id: int, sponsor_id: int) -> bool:
    """
    A free player vouches for a prisoner, releasing them at once.

    The sponsor shares the prisoner's fate for the next rounds.
    """
    prisoner = game.players.get(prisoner_id)
    sponsor = game.players.get(sponsor_id)
    if prisoner is None or sponsor is None:
        return False
    if prisoner_id == sponsor_id or not prisoner.in_gulag or not prisoner.is_active:
        return False
    if not sponsor.is_active or sponsor.in_gulag:
        game.event_log.log(EventType.SYSTEM, f"{sponsor.name} is in no position to vouch", sponsor_id)
        return False
    if sponsor.vouching_for is not None:
        game.event_log.log(
            EventType.SYSTEM, f"{sponsor.name} is already vouching for another prisoner", sponsor_id
        )
        return False

    expires = game.round_number + game.config.voucher_expiry_rounds
    game.vouchers.append(Voucher(game.new_id("voucher"), prisoner_id, sponsor_id, expires))
    sponsor.vouching_for = prisoner_id
    sponsor.vouched_by_round = expires

    release_from_gulag(game, prisoner_id, f"vouched for by {sponsor.name}")
    game.event_log.log(
        EventType.GULAG,
        f"{sponsor.name} vouches for {prisoner.name} until round {expires}",
        sponsor_id,
        prisoner_id=prisoner_id,
        expires_at_round=expires,
    )

    pending = game.pending_action
    if (
        pending is not None
        and pending.is_type(PendingActionType.VOUCHER_REQUEST)
        and pending.data.get("prisoner_id") == prisoner_id
    ):
        game.pending_action = None
        if game.current_player_id == prisoner_id:
            game.turn_phase = TurnPhase.POST_TURN
        elif pending.resume_phase is not None:
            game.turn_phase = pending.resume_phase
    return True


def decline_voucher_request(game: "GameState") -> bool:
    """Nobody vouches; the prisoner's turn ends."""
    pending = game.pending_action
    if pending is None or not pending.is_type(PendingActionType.VOUCHER_REQUEST):
        return False

    prisoner = game.players.get(pending.data["prisoner_id"])
    game.pending_action = None
    if prisoner is not None:
        game.event_log.log(EventType.GULAG, f"Nobody vouches for {prisoner.name}", prisoner.player_id)
        if game.current_player_id == prisoner.player_id:
            game.turn_phase = TurnPhase.POST_TURN
        else:
            game.turn_phase = pending.resume_phase or game.turn_phase
    return True


def withdraw_escape_attempt(game: "GameState", player_id: int) -> bool:
    """Abandon a pending bribe or informing attempt; the turn ends."""
    pending = game.pending_action
    if pending is None or pending.player_id != player_id:
        return False
    if not (pending.is_type(PendingActionType.BRIBE_STALIN) or pending.is_type(PendingActionType.INFORM_ON_PLAYER)):
        return False

    game.event_log.log(
        EventType.GULAG, f"{game.players[player_id].name} abandons the escape attempt", player_id
    )
    _finish_current_turn(game)
    return True


def check_voucher_consequences(game: "GameState", prisoner_id: int, reason: GulagReason) -> bool:
    """Send the sponsor of an active, unexpired voucher to the Gulag."""
    if reason not in TRIGGERING_REASONS:
        return False

    for voucher in game.vouchers:
        if not voucher.is_active or voucher.prisoner_id != prisoner_id:
            continue
        if game.round_number > voucher.expires_at_round:
            continue

        voucher.is_active = False
        sponsor = game.players.get(voucher.sponsor_id)
        if sponsor is not None:
            sponsor.vouching_for = None
            sponsor.vouched_by_round = None
            game.event_log.log(
                EventType.GULAG,
                f"{sponsor.name} shares the punishment of the prisoner they vouched for",
                voucher.sponsor_id,
                prisoner_id=prisoner_id,
                offence=reason.value,
            )
            send_to_gulag(game, voucher.sponsor_id, GulagReason.VOUCHER_CONSEQUENCE)
        return True
    return False


def expire_vouchers(game: "GameState") -> int:
    """Deactivate vouchers past their expiry round. Returns how many expired."""
    expired = 0
    for voucher in game.vouchers:
        if voucher.is_active and game.round_number > voucher.expires_at_round:
            voucher.is_active = False
            expired += 1
            sponsor = game.players.get(voucher.sponsor_id)
            if sponsor is not None and sponsor.vouching_for == voucher.prisoner_id:
                sponsor.vouching_for = None
                sponsor.vouched_by_round = None
            game.event_log.log(
                EventType.GULAG,
                "A voucher has expired",
                voucher.sponsor_id,
                prisoner_id=voucher.prisoner_id,
            )
    return expired


# === CONFESSIONS ===

def submit_confession(game: "GameState", prisoner_id: int, text: str) -> Optional[Confession]:
    """A prisoner submits a rehabilitation confession for Stalin to review."""
    prisoner = game.players.get(prisoner_id)
    if prisoner is None or not prisoner.in_gulag or not prisoner.is_active:
        return None
    if game.pending_action is not None:
        logger.debug("Confession from %s while another decision is pending", prisoner_id)
        return None

    confession = Confession(game.new_id("confession"), prisoner_id, text, game.round_number)
    game.confessions.append(confession)
    game.pending_action = PendingAction(
        PendingActionType.REVIEW_CONFESSION,
        game.stalin_id,
        {"confession_id": confession.confession_id, "prisoner_id": prisoner_id},
        resume_phase=game.turn_phase,
    )
    game.turn_phase = TurnPhase.RESOLVING
    game.event_log.log(
        EventType.GULAG,
        f"{prisoner.name} has submitted a rehabilitation confession",
        prisoner_id,
        confession_id=confession.confession_id,
    )
    return confession


def review_confession(game: "GameState", confession_id: str, accepted: bool) -> bool:
    confession = next((c for c in game.confessions if c.confession_id == confession_id), None)
    if confession is None or confession.reviewed:
        return False

    confession.reviewed = True
    confession.accepted = accepted
    prisoner = game.players[confession.prisoner_id]

    pending = game.pending_action
    if pending is not None and pending.data.get("confession_id") == confession_id:
        game.pending_action = None
        if pending.resume_phase is not None:
            game.turn_phase = pending.resume_phase

    if accepted:
        if release_from_gulag(game, prisoner.player_id, "confession accepted"):
            _record_escape(game, prisoner.player_id)
    else:
        game.event_log.log(
            EventType.GULAG,
            f"Stalin rejected {prisoner.name}'s confession",
            prisoner.player_id,
        )
    return True
