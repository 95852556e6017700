"""
Party Directive resolution.
"""

import logging
from typing import TYPE_CHECKING, Optional

from communistopoly.cards import CustomHandler, DirectiveCard, DirectiveEffectType
from communistopoly.config import BOARD_SIZE
from communistopoly.gulag import GulagReason, send_to_gulag
from communistopoly.ledger import (
    calculate_quota,
    charge_to_state,
    credit_from_state,
    pay_quota,
    transfer_rubles,
)
from communistopoly.money import EventType
from communistopoly.pending import GamePhase, PendingAction, PendingActionType, TurnPhase
from communistopoly.standing import demote_player, promote_player
from communistopoly.tribunal import trigger_anonymous_tribunal

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)


def calculate_property_tax(game: "GameState", player_id: int, per_property: int, per_improvement: int) -> int:
    """Tax on every held space plus every collectivization level."""
    player = game.players[player_id]
    levels = sum(game.properties[space_id].collectivization_level for space_id in player.properties)
    return per_property * len(player.properties) + per_improvement * levels


def draw_party_directive(game: "GameState", player_id: Optional[int] = None) -> Optional[DirectiveCard]:
    """Draw the top directive for the player waiting on one and apply it."""
    pending = game.pending_action
    if pending is None or not pending.is_type(PendingActionType.DRAW_PARTY_DIRECTIVE):
        return None
    if player_id is not None and pending.player_id != player_id:
        return None

    drawer_id = pending.player_id
    game.pending_action = None
    card = game.directive_deck.draw()
    game.event_log.log(
        EventType.CARD,
        f"{game.players[drawer_id].name} draws a Party Directive: {card.title}",
        drawer_id,
        card_id=card.card_id,
        description=card.description,
    )
    apply_directive(game, drawer_id, card)
    return card


def apply_directive(game: "GameState", player_id: int, card: DirectiveCard) -> None:
    """
    Apply a directive's effect.

    Movement effects resolve the landing space exactly like a normal
    move; everything else ends in POST_TURN.
    """
    player = game.players[player_id]
    effect = card.effect

    if effect == DirectiveEffectType.MOVE:
        game.turn_phase = TurnPhase.MOVING
        if card.pass_stoy:
            game.move_player(player_id, (card.destination - player.position) % BOARD_SIZE)
        else:
            _place_player(game, player_id, card.destination)
        game.resolve_current_space()
        return

    if effect == DirectiveEffectType.MOVE_RELATIVE:
        game.turn_phase = TurnPhase.MOVING
        game.move_player(player_id, card.spaces)
        game.resolve_current_space()
        return

    if effect == DirectiveEffectType.CUSTOM and card.handler == CustomHandler.ADVANCE_TO_NEAREST_RAILWAY:
        _advance_to_nearest_railway(game, player_id)
        return

    if effect == DirectiveEffectType.CUSTOM and card.handler == CustomHandler.TRIGGER_ANONYMOUS_TRIBUNAL:
        game.turn_phase = TurnPhase.POST_TURN
        trigger_anonymous_tribunal(game, player_id, card.title)
        return

    if effect == DirectiveEffectType.MONEY:
        if card.amount >= 0:
            credit_from_state(game, player_id, card.amount, card.title)
        else:
            charge_to_state(game, player_id, -card.amount, card.title)

    elif effect == DirectiveEffectType.GULAG:
        send_to_gulag(game, player_id, GulagReason.STALIN_DECREE)

    elif effect == DirectiveEffectType.FREE_FROM_GULAG:
        player.free_from_gulag_cards += 1
        game.event_log.log(EventType.CARD, f'{player.name} receives a "Get out of Gulag free" card', player_id)

    elif effect == DirectiveEffectType.RANK_CHANGE:
        if card.promote:
            promote_player(game, player_id)
        else:
            demote_player(game, player_id)

    elif effect == DirectiveEffectType.COLLECT_FROM_ALL:
        for other in game.get_active_players():
            if other.player_id == player_id:
                continue
            payment = min(card.amount, max(other.rubles, 0))
            if payment > 0:
                transfer_rubles(game, other.player_id, player_id, payment, card.title)

    elif effect == DirectiveEffectType.PAY_TO_ALL:
        for other in game.get_active_players():
            if other.player_id == player_id:
                continue
            payment = min(card.amount, max(player.rubles, 0))
            if payment > 0:
                transfer_rubles(game, player_id, other.player_id, payment, card.title)

    elif effect == DirectiveEffectType.PROPERTY_TAX:
        tax = calculate_property_tax(game, player_id, card.per_property, card.per_improvement)
        if tax > 0:
            charge_to_state(game, player_id, tax, "property tax")
        else:
            game.event_log.log(EventType.CARD, f"{player.name} owes no property tax", player_id)

    else:
        logger.warning("Directive %s has no handler", card.card_id)

    if game.game_phase == GamePhase.PLAYING and game.current_player_id == player_id:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN


def _place_player(game: "GameState", player_id: int, destination: int) -> None:
    """Move directly to a space; STOY is never passed."""
    player = game.players[player_id]
    old_position = player.position
    player.position = destination
    game.event_log.log(
        EventType.MOVE,
        f"{player.name} is sent directly to {game.board.get_space(destination).name}",
        player_id,
        from_position=old_position,
        to_position=destination,
        spaces=0,
    )


def _advance_to_nearest_railway(game: "GameState", player_id: int) -> None:
    """Ride forward to the next station; buy it from the State or pay the fee."""
    player = game.players[player_id]
    railway = game.board.find_nearest_railway(player.position)
    game.turn_phase = TurnPhase.MOVING
    game.move_player(player_id, (railway - player.position) % BOARD_SIZE)

    prop = game.properties[railway]
    if not prop.is_held():
        game.pending_action = PendingAction(
            PendingActionType.PROPERTY_PURCHASE, player_id, {"space_id": railway}
        )
        game.turn_phase = TurnPhase.RESOLVING
        return

    if prop.custodian_id != player_id and not prop.is_mortgaged:
        fee = calculate_quota(game, railway, player_id)
        game.event_log.log(
            EventType.CARD,
            f"{player.name} owes {fee} rubles railway fee",
            player_id,
            space_id=railway,
            amount=fee,
        )
        pay_quota(game, player_id, railway)

    if game.current_player_id == player_id:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN
