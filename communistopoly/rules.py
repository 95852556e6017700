"""
High-level rules API for controlling game flow.
This module provides the public interface for game actions and legal move detection.
"""

from enum import Enum
from typing import Any, Dict, List

from communistopoly.game import BreadlineChoice, GameState
from communistopoly.gulag import EscapeMethod, withdraw_escape_attempt
from communistopoly.ledger import GULAG_ESCAPE_BRIBE, can_hold, can_improve, purchase_price, unmortgage_cost
from communistopoly.pending import PendingActionType, TurnPhase
from communistopoly.player import PieceType
from communistopoly.tribunal import TribunalPhase, Verdict, WitnessSide, can_denounce, eligible_witnesses
from communistopoly.trade import TradeItems

BRIBE_AMOUNTS = (100, 250, 500)


class ActionType(Enum):
    """Types of actions a player can take."""

    ROLL_DICE = "roll_dice"
    ROLL_VODKA = "roll_vodka"
    FINISH_ROLLING = "finish_rolling"
    FINISH_MOVING = "finish_moving"
    END_TURN = "end_turn"

    BUY_PROPERTY = "buy_property"
    DECLINE_PURCHASE = "decline_purchase"
    PAY_QUOTA = "pay_quota"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    IMPROVE_PROPERTY = "improve_property"
    SELL_IMPROVEMENT = "sell_improvement"
    PAY_DEBT = "pay_debt"

    PILFER = "pilfer"
    DECLINE_PILFER = "decline_pilfer"
    CONTRIBUTE_BREADLINE = "contribute_breadline"
    DRAW_DIRECTIVE = "draw_directive"
    DRAW_TEST = "draw_test"
    ANSWER_TEST = "answer_test"

    PROPOSE_TRADE = "propose_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"

    ESCAPE_GULAG = "escape_gulag"
    VOUCH = "vouch"
    DECLINE_VOUCHER = "decline_voucher"
    INFORM = "inform"
    OFFER_BRIBE = "offer_bribe"
    WITHDRAW_ESCAPE = "withdraw_escape"
    RESPOND_TO_BRIBE = "respond_to_bribe"
    SUBMIT_CONFESSION = "submit_confession"
    REVIEW_CONFESSION = "review_confession"

    DENOUNCE = "denounce"
    ADVANCE_TRIBUNAL = "advance_tribunal"
    ADD_WITNESS = "add_witness"
    RENDER_VERDICT = "render_verdict"

    APPROVE_HAMMER = "approve_hammer"
    APPROVE_MINISTRY = "approve_ministry"
    ACKNOWLEDGE = "acknowledge"


class Action:
    """Represents a game action that can be taken."""

    def __init__(self, action_type: ActionType, **params: Any):
        self.action_type = action_type
        self.params: Dict[str, Any] = params

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Action) and (self.action_type, self.params) == (other.action_type, other.params)

    def __repr__(self) -> str:
        return f"Action({self.action_type.value}, {self.params})"


def get_legal_actions(game_state: GameState, player_id: int) -> List[Action]:
    """
    Get all legal actions available to a player.

    While a decision is pending only the player it waits on (and, for
    tribunals, the witnesses) may act. Otherwise the current player acts
    according to the turn phase, and Stalin may answer queued bribes.
    """
    if game_state.game_over or player_id not in game_state.players:
        return []

    player = game_state.players[player_id]
    if game_state.pending_action is not None:
        return _get_pending_actions(game_state, player_id)

    actions: List[Action] = []
    if player.is_stalin:
        for bribe in game_state.bribes:
            actions.append(Action(ActionType.RESPOND_TO_BRIBE, bribe_id=bribe.bribe_id, accepted=True))
            actions.append(Action(ActionType.RESPOND_TO_BRIBE, bribe_id=bribe.bribe_id, accepted=False))

    if game_state.current_player_id != player_id:
        return actions
    if not player.is_active:
        # An eliminated player's turn can only be handed on
        if game_state.turn_phase == TurnPhase.POST_TURN:
            actions.append(Action(ActionType.END_TURN))
        return actions

    phase = game_state.turn_phase
    if phase == TurnPhase.PRE_ROLL and player.in_gulag:
        actions.extend(_get_gulag_actions(game_state, player_id))
        actions.append(Action(ActionType.END_TURN))
        return actions

    if phase == TurnPhase.PRE_ROLL:
        actions.append(Action(ActionType.ROLL_DICE))
        if player.piece == PieceType.VODKA_BOTTLE and not player.vodka_used_this_lap:
            actions.append(Action(ActionType.ROLL_VODKA))
        actions.extend(_get_property_management_actions(game_state, player_id))
        return actions

    if phase == TurnPhase.ROLLING:
        actions.append(Action(ActionType.FINISH_ROLLING))
    elif phase == TurnPhase.MOVING:
        actions.append(Action(ActionType.FINISH_MOVING))
    elif phase == TurnPhase.POST_TURN:
        actions.append(Action(ActionType.END_TURN))
        actions.extend(_get_property_management_actions(game_state, player_id))
        actions.extend(_get_denounce_actions(game_state, player_id))
    return actions


def _get_pending_actions(game_state: GameState, player_id: int) -> List[Action]:
    pending = game_state.pending_action
    player = game_state.players[player_id]
    actions: List[Action] = []

    if pending.is_type(PendingActionType.TRIBUNAL):
        return _get_tribunal_actions(game_state, player_id)

    if pending.is_type(PendingActionType.VOUCHER_REQUEST):
        prisoner_id = pending.data["prisoner_id"]
        if player.is_active and not player.in_gulag and player_id != prisoner_id and player.vouching_for is None:
            actions.append(Action(ActionType.VOUCH, prisoner_id=prisoner_id))
        if player_id == prisoner_id:
            actions.append(Action(ActionType.DECLINE_VOUCHER))
        return actions

    if pending.player_id != player_id:
        return actions

    action_type = pending.action_type
    if action_type == PendingActionType.PROPERTY_PURCHASE:
        space_id = pending.data["space_id"]
        if game_state.can_purchase(player_id, space_id) and player.rubles >= purchase_price(game_state, player_id, space_id):
            actions.append(Action(ActionType.BUY_PROPERTY, space_id=space_id))
        actions.append(Action(ActionType.DECLINE_PURCHASE))

    elif action_type == PendingActionType.QUOTA_PAYMENT:
        actions.append(Action(ActionType.PAY_QUOTA, space_id=pending.data["space_id"]))

    elif action_type == PendingActionType.DRAW_PARTY_DIRECTIVE:
        actions.append(Action(ActionType.DRAW_DIRECTIVE))

    elif action_type == PendingActionType.DRAW_COMMUNIST_TEST:
        actions.append(Action(ActionType.DRAW_TEST))

    elif action_type == PendingActionType.COMMUNIST_TEST_ANSWER:
        actions.append(Action(ActionType.ANSWER_TEST))

    elif action_type == PendingActionType.STOY_PILFER:
        actions.append(Action(ActionType.PILFER))
        actions.append(Action(ActionType.DECLINE_PILFER))

    elif action_type == PendingActionType.BREADLINE_CONTRIBUTION:
        lander_id = pending.data["lander_id"]
        if player.rubles >= game_state.config.breadline_contribution:
            actions.append(Action(ActionType.CONTRIBUTE_BREADLINE, choice=BreadlineChoice.RUBLES.value))
        for space_id in sorted(player.properties):
            if not game_state.properties[space_id].is_mortgaged and can_hold(game_state, lander_id, space_id):
                actions.append(Action(
                    ActionType.CONTRIBUTE_BREADLINE, choice=BreadlineChoice.PROPERTY.value, space_id=space_id
                ))
        actions.append(Action(ActionType.CONTRIBUTE_BREADLINE, choice=BreadlineChoice.FAVOUR.value))
        actions.append(Action(ActionType.CONTRIBUTE_BREADLINE, choice=BreadlineChoice.REFUSE.value))

    elif action_type == PendingActionType.TRADE_RESPONSE:
        actions.append(Action(ActionType.ACCEPT_TRADE, trade_id=pending.data["trade_id"]))
        actions.append(Action(ActionType.REJECT_TRADE, trade_id=pending.data["trade_id"]))

    elif action_type == PendingActionType.REVIEW_CONFESSION:
        confession_id = pending.data["confession_id"]
        actions.append(Action(ActionType.REVIEW_CONFESSION, confession_id=confession_id, accepted=True))
        actions.append(Action(ActionType.REVIEW_CONFESSION, confession_id=confession_id, accepted=False))

    elif action_type == PendingActionType.BRIBE_STALIN:
        for amount in BRIBE_AMOUNTS:
            if player.rubles >= amount:
                actions.append(Action(ActionType.OFFER_BRIBE, amount=amount))
        actions.append(Action(ActionType.WITHDRAW_ESCAPE))

    elif action_type == PendingActionType.INFORM_ON_PLAYER:
        for other in game_state.get_active_players():
            if can_denounce(game_state, player_id, other.player_id, informing=True):
                actions.append(Action(ActionType.INFORM, accused_id=other.player_id))
        actions.append(Action(ActionType.WITHDRAW_ESCAPE))

    elif action_type == PendingActionType.HAMMER_APPROVAL:
        actions.append(Action(ActionType.APPROVE_HAMMER, approved=True))
        actions.append(Action(ActionType.APPROVE_HAMMER, approved=False))

    elif action_type == PendingActionType.MINISTRY_TRUTH_APPROVAL:
        actions.append(Action(ActionType.APPROVE_MINISTRY, approved=True))
        actions.append(Action(ActionType.APPROVE_MINISTRY, approved=False))

    elif action_type in (PendingActionType.KGB_TEST_PREVIEW, PendingActionType.PRAVDA_PRESS_REVOTE):
        actions.append(Action(ActionType.ACKNOWLEDGE))

    return actions


def _get_tribunal_actions(game_state: GameState, player_id: int) -> List[Action]:
    """Stalin runs the tribunal; free comrades may testify during the witness phase."""
    tribunal = game_state.active_tribunal
    actions: List[Action] = []
    if tribunal is None:
        return actions

    if player_id == game_state.stalin_id:
        if tribunal.phase == TribunalPhase.JUDGEMENT:
            actions.extend(Action(ActionType.RENDER_VERDICT, verdict=v.value) for v in Verdict)
        else:
            actions.append(Action(ActionType.ADVANCE_TRIBUNAL))
        return actions

    if tribunal.phase == TribunalPhase.WITNESSES and player_id in eligible_witnesses(game_state, tribunal):
        testified = player_id in tribunal.witnesses_for or player_id in tribunal.witnesses_against
        if not testified:
            actions.append(Action(ActionType.ADD_WITNESS, side=WitnessSide.FOR.value))
            actions.append(Action(ActionType.ADD_WITNESS, side=WitnessSide.AGAINST.value))
    return actions


def _get_gulag_actions(game_state: GameState, player_id: int) -> List[Action]:
    player = game_state.players[player_id]
    actions = [
        Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.ROLL.value),
        Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.VOUCH.value),
        Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.INFORM.value),
        Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.BRIBE.value),
    ]
    if player.rubles >= game_state.config.gulag_escape_cost:
        actions.append(Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.PAY.value))
    if player.free_from_gulag_cards > 0:
        actions.append(Action(ActionType.ESCAPE_GULAG, method=EscapeMethod.CARD.value))
    actions.append(Action(ActionType.SUBMIT_CONFESSION))
    return actions


def _get_property_management_actions(game_state: GameState, player_id: int) -> List[Action]:
    """Get actions related to collectivizing, mortgaging and debts."""
    actions: List[Action] = []
    player = game_state.players[player_id]

    for space_id in sorted(player.properties):
        prop = game_state.properties[space_id]
        if can_improve(game_state, player_id, space_id):
            cost = game_state.config.collectivization_cost_for(prop.collectivization_level)
            if player.rubles >= cost:
                actions.append(Action(ActionType.IMPROVE_PROPERTY, space_id=space_id))
        if prop.collectivization_level > 0 and _sells_evenly(game_state, space_id):
            actions.append(Action(ActionType.SELL_IMPROVEMENT, space_id=space_id))
        if prop.collectivization_level == 0 and not prop.is_mortgaged:
            actions.append(Action(ActionType.MORTGAGE_PROPERTY, space_id=space_id))
        if prop.is_mortgaged and player.rubles >= unmortgage_cost(game_state, space_id):
            actions.append(Action(ActionType.UNMORTGAGE_PROPERTY, space_id=space_id))

    if player.debt is not None and player.rubles >= player.debt.amount:
        actions.append(Action(ActionType.PAY_DEBT))
    return actions


def _sells_evenly(game_state: GameState, space_id: int) -> bool:
    space = game_state.board.get_property_space(space_id)
    levels = [game_state.properties[pos].collectivization_level for pos in game_state.board.get_group(space.group)]
    return game_state.properties[space_id].collectivization_level >= max(levels)


def _get_denounce_actions(game_state: GameState, player_id: int) -> List[Action]:
    return [
        Action(ActionType.DENOUNCE, accused_id=other.player_id)
        for other in game_state.get_active_players()
        if can_denounce(game_state, player_id, other.player_id)
    ]


def apply_action(game_state: GameState, action: Action, player_id: int) -> bool:
    """
    Apply an action to the game state on behalf of ``player_id``.

    This is the main interface for executing moves.

    Returns:
        True if the action took effect, False otherwise
    """
    params = action.params
    kind = action.action_type

    if kind == ActionType.ROLL_DICE or kind == ActionType.ROLL_VODKA:
        if game_state.current_player_id != player_id:
            return False
        return game_state.roll_dice(use_vodka=kind == ActionType.ROLL_VODKA) is not None

    if kind == ActionType.FINISH_ROLLING:
        if game_state.current_player_id != player_id:
            return False
        moved = game_state.finish_rolling()
        return moved or game_state.turn_phase == TurnPhase.POST_TURN

    if kind == ActionType.FINISH_MOVING:
        return game_state.current_player_id == player_id and game_state.finish_moving()

    if kind == ActionType.END_TURN:
        return game_state.current_player_id == player_id and game_state.end_turn()

    if kind == ActionType.BUY_PROPERTY:
        return game_state.purchase_property(player_id, params["space_id"])

    if kind == ActionType.DECLINE_PURCHASE:
        return game_state.decline_purchase(player_id)

    if kind == ActionType.PAY_QUOTA:
        pending = game_state.pending_action
        if pending is None or pending.player_id != player_id:
            return False
        game_state.pay_quota(player_id, params["space_id"])
        return True

    if kind == ActionType.MORTGAGE_PROPERTY:
        return game_state.mortgage_property(player_id, params["space_id"])

    if kind == ActionType.UNMORTGAGE_PROPERTY:
        return game_state.unmortgage_property(player_id, params["space_id"])

    if kind == ActionType.IMPROVE_PROPERTY:
        return game_state.improve_property(player_id, params["space_id"])

    if kind == ActionType.SELL_IMPROVEMENT:
        return game_state.sell_improvement(player_id, params["space_id"])

    if kind == ActionType.PAY_DEBT:
        return game_state.pay_debt(player_id)

    if kind == ActionType.PILFER:
        pending = game_state.pending_action
        if pending is None or pending.player_id != player_id:
            return False
        game_state.handle_stoy_pilfer(player_id, params.get("roll"))
        return True

    if kind == ActionType.DECLINE_PILFER:
        return game_state.decline_stoy_pilfer(player_id)

    if kind == ActionType.CONTRIBUTE_BREADLINE:
        return game_state.respond_to_breadline(player_id, params["choice"], params.get("space_id"))

    if kind == ActionType.DRAW_DIRECTIVE:
        return game_state.draw_party_directive(player_id) is not None

    if kind == ActionType.DRAW_TEST:
        pending = game_state.pending_action
        if pending is None or pending.player_id != player_id:
            return False
        return game_state.draw_communist_test(params.get("difficulty")) is not None

    if kind == ActionType.ANSWER_TEST:
        pending = game_state.pending_action
        if pending is None or not pending.is_type(PendingActionType.COMMUNIST_TEST_ANSWER):
            return False
        game_state.answer_communist_test(player_id, params.get("answer", ""), params.get("stalin_amount", 0))
        return pending is not game_state.pending_action

    if kind == ActionType.PROPOSE_TRADE:
        return game_state.propose_trade(
            player_id,
            params["recipient_id"],
            params.get("offering", TradeItems()),
            params.get("requesting", TradeItems()),
        ) is not None

    if kind == ActionType.ACCEPT_TRADE:
        if not _answers_trade(game_state, player_id, params["trade_id"]):
            return False
        return game_state.accept_trade(params["trade_id"])

    if kind == ActionType.REJECT_TRADE:
        if not _answers_trade(game_state, player_id, params["trade_id"]):
            return False
        return game_state.reject_trade(params["trade_id"])

    if kind == ActionType.ESCAPE_GULAG:
        attempted = game_state.attempt_gulag_escape(player_id, params["method"])
        return attempted or game_state.turn_phase == TurnPhase.POST_TURN

    if kind == ActionType.VOUCH:
        return game_state.vouch_for_player(params["prisoner_id"], player_id)

    if kind == ActionType.DECLINE_VOUCHER:
        pending = game_state.pending_action
        if pending is None or pending.data.get("prisoner_id") != player_id:
            return False
        return game_state.decline_voucher_request()

    if kind == ActionType.INFORM:
        crime = params.get("crime", "Counter-revolutionary activity")
        return game_state.inform_on_player(player_id, params["accused_id"], crime) is not None

    if kind == ActionType.OFFER_BRIBE:
        reason = params.get("reason", GULAG_ESCAPE_BRIBE)
        return game_state.submit_bribe(player_id, params["amount"], reason) is not None

    if kind == ActionType.WITHDRAW_ESCAPE:
        return withdraw_escape_attempt(game_state, player_id)

    if kind == ActionType.RESPOND_TO_BRIBE:
        if player_id != game_state.stalin_id:
            return False
        return game_state.respond_to_bribe(params["bribe_id"], params["accepted"])

    if kind == ActionType.SUBMIT_CONFESSION:
        text = params.get("text", "I confess to insufficient revolutionary zeal")
        return game_state.submit_confession(player_id, text) is not None

    if kind == ActionType.REVIEW_CONFESSION:
        if player_id != game_state.stalin_id:
            return False
        return game_state.review_confession(params["confession_id"], params["accepted"])

    if kind == ActionType.DENOUNCE:
        crime = params.get("crime", "Counter-revolutionary activity")
        return game_state.initiate_denouncement(player_id, params["accused_id"], crime) is not None

    if kind == ActionType.ADVANCE_TRIBUNAL:
        return player_id == game_state.stalin_id and game_state.advance_tribunal_phase()

    if kind == ActionType.ADD_WITNESS:
        return game_state.add_witness(player_id, params["side"])

    if kind == ActionType.RENDER_VERDICT:
        return player_id == game_state.stalin_id and game_state.render_verdict(params["verdict"])

    if kind == ActionType.APPROVE_HAMMER:
        return player_id == game_state.stalin_id and game_state.approve_hammer_ability(params["approved"])

    if kind == ActionType.APPROVE_MINISTRY:
        return player_id == game_state.stalin_id and game_state.approve_ministry_truth_rewrite(params["approved"])

    if kind == ActionType.ACKNOWLEDGE:
        pending = game_state.pending_action
        if pending is None or pending.player_id != player_id:
            return False
        return game_state.acknowledge_notice()

    return False


def _answers_trade(game_state: GameState, player_id: int, trade_id: int) -> bool:
    offer = game_state.trade_manager.get_trade(trade_id)
    return offer is not None and offer.recipient_id == player_id
