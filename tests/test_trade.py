"""
Tests for the trading system.
"""

import pytest

from communistopoly.ledger import set_custodian
from communistopoly.money import EventType
from communistopoly.pending import PendingActionType, TurnPhase
from communistopoly.standing import EliminationReason
from communistopoly.trade import TradeItems


@pytest.fixture
def game_with_properties(basic_game):
    """Yuri holds both Siberian Camps, Olga holds two collective farms."""
    game = basic_game
    set_custodian(game, 1, 1)
    set_custodian(game, 3, 1)
    set_custodian(game, 6, 2)
    set_custodian(game, 8, 2)
    return game


class TestTradeItems:
    def test_empty(self):
        assert TradeItems().is_empty()
        assert not TradeItems(rubles=100).is_empty()
        assert not TradeItems(favours=1).is_empty()

    def test_representation(self):
        items = TradeItems(rubles=100, properties={1, 3}, gulag_cards=1, favours=2)
        text = str(items)
        assert "100 rubles" in text
        assert "2 properties" in text
        assert "1 Gulag cards" in text
        assert "2 favours" in text
        assert str(TradeItems()) == "nothing"


class TestProposal:
    def test_proposal_waits_on_recipient(self, game_with_properties):
        game = game_with_properties
        trade = game.propose_trade(1, 2, TradeItems(rubles=100), TradeItems(properties={6}))

        assert trade is not None
        assert game.trade_manager.get_trade(trade.trade_id) is trade
        pending = game.pending_action
        assert pending.is_type(PendingActionType.TRADE_RESPONSE)
        assert pending.player_id == 2
        assert pending.data == {"trade_id": trade.trade_id}
        assert game.event_log.of_type(EventType.TRADE)

    @pytest.mark.parametrize("to_id", [99, 1, 0])
    def test_invalid_participants_are_rejected(self, game_with_properties, to_id):
        game = game_with_properties

        assert game.propose_trade(1, to_id, TradeItems(rubles=10), TradeItems()) is None
        assert game.pending_action is None
        assert game.trade_manager.active_trades == {}

    def test_eliminated_player_cannot_trade(self, game_with_properties):
        game = game_with_properties
        game.eliminate_player(3, EliminationReason.EXECUTION)

        assert game.propose_trade(1, 3, TradeItems(rubles=10), TradeItems()) is None
        assert game.propose_trade(3, 1, TradeItems(), TradeItems(rubles=10)) is None

    def test_empty_trade_is_rejected(self, game_with_properties):
        assert game_with_properties.propose_trade(1, 2, TradeItems(), TradeItems()) is None

    def test_offer_must_be_held(self, game_with_properties):
        game = game_with_properties

        assert game.propose_trade(1, 2, TradeItems(properties={6}), TradeItems()) is None
        assert game.propose_trade(1, 2, TradeItems(rubles=5000), TradeItems()) is None
        assert game.propose_trade(1, 2, TradeItems(gulag_cards=1), TradeItems()) is None
        assert "Invalid trade offer" in game.event_log.events[-1].message

    def test_recipient_must_be_allowed_to_hold(self, game_with_properties):
        game = game_with_properties
        set_custodian(game, 31, 1)  # elite, recipient is proletariat

        assert game.propose_trade(1, 2, TradeItems(properties={31}), TradeItems()) is None

    def test_one_decision_at_a_time(self, game_with_properties):
        game = game_with_properties
        game.propose_trade(1, 2, TradeItems(rubles=10), TradeItems())

        assert game.propose_trade(1, 3, TradeItems(rubles=10), TradeItems()) is None

    def test_rejection_resumes_the_interrupted_phase(self, game_with_properties):
        game = game_with_properties
        game.turn_phase = TurnPhase.POST_TURN
        trade = game.propose_trade(1, 2, TradeItems(rubles=10), TradeItems())
        assert game.turn_phase == TurnPhase.RESOLVING
        assert game.pending_action.resume_phase == TurnPhase.POST_TURN

        assert game.reject_trade(trade.trade_id)
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.POST_TURN


class TestAcceptance:
    def test_all_categories_transfer_together(self, game_with_properties):
        game = game_with_properties
        yuri, olga = game.players[1], game.players[2]
        yuri.free_from_gulag_cards = 1
        yuri.owes_favour_to = [2, 2]
        olga.owes_favour_to = [1]

        offering = TradeItems(rubles=200, properties={1}, gulag_cards=1, favours=1)
        requesting = TradeItems(rubles=50, properties={6, 8}, favours=2)
        trade = game.propose_trade(1, 2, offering, requesting)
        assert game.turn_phase == TurnPhase.RESOLVING

        assert game.accept_trade(trade.trade_id)

        assert yuri.rubles == 1500 - 200 + 50
        assert olga.rubles == 1500 + 200 - 50
        assert yuri.properties == {3, 6, 8}
        assert olga.properties == {1}
        assert game.properties[1].custodian_id == 2
        assert game.properties[6].custodian_id == 1
        assert yuri.free_from_gulag_cards == 0
        assert olga.free_from_gulag_cards == 1
        assert olga.owes_favour_to == []
        assert yuri.owes_favour_to == []

        assert game.trade_manager.get_trade(trade.trade_id) is None
        assert game.trade_manager.trade_history == [trade]
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.PRE_ROLL

    def test_transferred_property_keeps_its_state(self, game_with_properties):
        game = game_with_properties
        game.properties[1].is_mortgaged = True
        game.properties[3].collectivization_level = 2

        trade = game.propose_trade(1, 2, TradeItems(properties={1, 3}), TradeItems(rubles=10))
        assert game.accept_trade(trade.trade_id)

        assert game.properties[1].is_mortgaged
        assert game.properties[3].collectivization_level == 2
        assert game.properties[3].custodian_id == 2

    def test_failed_validation_moves_nothing(self, game_with_properties):
        game = game_with_properties
        trade = game.propose_trade(1, 2, TradeItems(rubles=100, properties={1}), TradeItems(properties={6}))

        # Olga gives away the farm before answering
        set_custodian(game, 6, 3)

        assert not game.accept_trade(trade.trade_id)
        assert game.players[1].rubles == 1500
        assert game.properties[1].custodian_id == 1
        assert game.properties[6].custodian_id == 3
        assert game.trade_manager.get_trade(trade.trade_id) is None
        assert game.pending_action is None
        assert "voided" in game.event_log.events[-1].message

    def test_eliminated_participant_voids_trade(self, game_with_properties):
        game = game_with_properties
        trade = game.propose_trade(1, 3, TradeItems(rubles=100), TradeItems(rubles=50))
        game.eliminate_player(3, EliminationReason.EXECUTION)

        assert not game.accept_trade(trade.trade_id)
        assert game.players[1].rubles == 1500

    def test_reject_moves_nothing(self, game_with_properties):
        game = game_with_properties
        trade = game.propose_trade(1, 2, TradeItems(rubles=100), TradeItems(properties={6}))

        assert game.reject_trade(trade.trade_id)
        assert game.players[1].rubles == 1500
        assert game.properties[6].custodian_id == 2
        assert game.trade_manager.active_trades == {}
        assert game.pending_action is None

    def test_unknown_trade_is_ignored(self, game_with_properties):
        game = game_with_properties

        assert not game.accept_trade(42)
        assert not game.reject_trade(42)

    def test_trade_cannot_be_answered_twice(self, game_with_properties):
        game = game_with_properties
        trade = game.propose_trade(1, 2, TradeItems(rubles=100), TradeItems())

        assert game.accept_trade(trade.trade_id)
        assert not game.accept_trade(trade.trade_id)
        assert game.players[2].rubles == 1600
