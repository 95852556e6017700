"""
Tests for legal move detection and action application.
"""

from communistopoly import PieceType
from communistopoly.gulag import GulagReason
from communistopoly.pending import PendingActionType, TurnPhase
from communistopoly.rules import Action, ActionType, apply_action, get_legal_actions
from communistopoly.standing import EliminationReason
from communistopoly.trade import TradeItems


def _land(game, player_id, position):
    game.players[player_id].position = position
    game.turn_phase = TurnPhase.MOVING
    game.resolve_current_space()


class TestLegalActions:
    def test_pre_roll(self, basic_game):
        game = basic_game

        assert get_legal_actions(game, 1) == [Action(ActionType.ROLL_DICE)]
        assert get_legal_actions(game, 2) == []
        assert get_legal_actions(game, 0) == []
        assert get_legal_actions(game, 99) == []

    def test_vodka_roll_once_per_lap(self, make_game):
        game = make_game(PieceType.VODKA_BOTTLE, None)
        assert Action(ActionType.ROLL_VODKA) in get_legal_actions(game, 1)

        game.players[1].vodka_used_this_lap = True
        assert Action(ActionType.ROLL_VODKA) not in get_legal_actions(game, 1)

    def test_prisoner_options(self, basic_game):
        game = basic_game
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.turn_phase = TurnPhase.PRE_ROLL

        assert get_legal_actions(game, 1) == [
            Action(ActionType.ESCAPE_GULAG, method="roll"),
            Action(ActionType.ESCAPE_GULAG, method="vouch"),
            Action(ActionType.ESCAPE_GULAG, method="inform"),
            Action(ActionType.ESCAPE_GULAG, method="bribe"),
            Action(ActionType.ESCAPE_GULAG, method="pay"),
            Action(ActionType.SUBMIT_CONFESSION),
            Action(ActionType.END_TURN),
        ]

    def test_purchase_decision(self, basic_game):
        game = basic_game
        _land(game, 1, 1)

        assert get_legal_actions(game, 1) == [
            Action(ActionType.BUY_PROPERTY, space_id=1),
            Action(ActionType.DECLINE_PURCHASE),
        ]
        assert get_legal_actions(game, 2) == []

    def test_rank_restricted_purchase_can_only_be_declined(self, basic_game):
        game = basic_game
        _land(game, 1, 31)

        assert get_legal_actions(game, 1) == [Action(ActionType.DECLINE_PURCHASE)]

    def test_post_turn(self, basic_game):
        game = basic_game
        _land(game, 1, 4)

        assert get_legal_actions(game, 1) == [
            Action(ActionType.END_TURN),
            Action(ActionType.DENOUNCE, accused_id=2),
            Action(ActionType.DENOUNCE, accused_id=3),
        ]

    def test_tribunal_actors(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")

        assert get_legal_actions(game, 0) == [Action(ActionType.ADVANCE_TRIBUNAL)]
        assert get_legal_actions(game, 3) == []

        game.advance_tribunal_phase()
        game.advance_tribunal_phase()
        assert get_legal_actions(game, 3) == [
            Action(ActionType.ADD_WITNESS, side="for"),
            Action(ActionType.ADD_WITNESS, side="against"),
        ]
        assert get_legal_actions(game, 2) == []

        game.add_witness(3, "for")
        assert get_legal_actions(game, 3) == []

        game.advance_tribunal_phase()
        verdicts = get_legal_actions(game, 0)
        assert [a.params["verdict"] for a in verdicts] == [
            "guilty", "innocent", "both_guilty", "insufficient_evidence"
        ]

    def test_voucher_request_actors(self, basic_game):
        game = basic_game
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.turn_phase = TurnPhase.PRE_ROLL
        game.attempt_gulag_escape(1, "vouch")

        assert get_legal_actions(game, 1) == [Action(ActionType.DECLINE_VOUCHER)]
        assert get_legal_actions(game, 2) == [Action(ActionType.VOUCH, prisoner_id=1)]
        assert get_legal_actions(game, 0) == []

    def test_stalin_answers_bribes(self, basic_game):
        game = basic_game
        bribe = game.submit_bribe(2, 100, "favour")

        assert get_legal_actions(game, 0) == [
            Action(ActionType.RESPOND_TO_BRIBE, bribe_id=bribe.bribe_id, accepted=True),
            Action(ActionType.RESPOND_TO_BRIBE, bribe_id=bribe.bribe_id, accepted=False),
        ]

    def test_nothing_after_game_over(self, basic_game):
        game = basic_game
        game.eliminate_player(2, EliminationReason.EXECUTION)
        game.eliminate_player(3, EliminationReason.EXECUTION)

        assert get_legal_actions(game, 1) == []


class TestApplyAction:
    def test_full_turn(self, basic_game, dice):
        game = basic_game
        deck = game.directive_deck
        bonus = next(c for c in deck.cards if c.card_id == "pd-3")
        deck.cards.remove(bonus)
        deck.cards.insert(0, bonus)
        dice.queue(3, 4)

        assert apply_action(game, Action(ActionType.ROLL_DICE), 1)
        assert apply_action(game, Action(ActionType.FINISH_ROLLING), 1)
        assert apply_action(game, Action(ActionType.FINISH_MOVING), 1)
        assert game.pending_action.is_type(PendingActionType.DRAW_PARTY_DIRECTIVE)
        assert apply_action(game, Action(ActionType.DRAW_DIRECTIVE), 1)
        assert game.players[1].rubles == 1700
        assert apply_action(game, Action(ActionType.END_TURN), 1)
        assert game.current_player_id == 2

    def test_actions_out_of_turn_fail(self, basic_game):
        game = basic_game

        assert not apply_action(game, Action(ActionType.ROLL_DICE), 2)
        assert not apply_action(game, Action(ActionType.END_TURN), 1)

    def test_buy_property(self, basic_game):
        game = basic_game
        _land(game, 1, 1)

        assert apply_action(game, Action(ActionType.BUY_PROPERTY, space_id=1), 1)
        assert game.properties[1].custodian_id == 1
        assert game.players[1].rubles == 1440
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_stalin_only_actions(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")

        assert not apply_action(game, Action(ActionType.ADVANCE_TRIBUNAL), 3)
        assert apply_action(game, Action(ActionType.ADVANCE_TRIBUNAL), 0)

        bribe = game.submit_bribe(3, 100, "favour")
        assert not apply_action(game, Action(ActionType.RESPOND_TO_BRIBE, bribe_id=bribe.bribe_id, accepted=True), 2)

    def test_verdict_by_string(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        for _ in range(3):
            apply_action(game, Action(ActionType.ADVANCE_TRIBUNAL), 0)

        assert apply_action(game, Action(ActionType.RENDER_VERDICT, verdict="guilty"), 0)
        assert game.players[2].in_gulag

    def test_only_the_recipient_answers_a_trade(self, basic_game):
        game = basic_game
        assert apply_action(
            game,
            Action(ActionType.PROPOSE_TRADE, recipient_id=2, offering=TradeItems(rubles=100)),
            1,
        )
        trade_id = game.pending_action.data["trade_id"]

        assert not apply_action(game, Action(ActionType.ACCEPT_TRADE, trade_id=trade_id), 3)
        assert apply_action(game, Action(ActionType.ACCEPT_TRADE, trade_id=trade_id), 2)
        assert game.players[2].rubles == 1600

    def test_escape_with_card(self, basic_game):
        game = basic_game
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.turn_phase = TurnPhase.PRE_ROLL
        game.players[1].free_from_gulag_cards = 1

        assert Action(ActionType.ESCAPE_GULAG, method="card") in get_legal_actions(game, 1)
        assert apply_action(game, Action(ActionType.ESCAPE_GULAG, method="card"), 1)
        assert not game.players[1].in_gulag

    def test_every_legal_action_applies(self, basic_game, dice):
        game = basic_game
        dice.queue(1, 2)

        for action in (Action(ActionType.ROLL_DICE), Action(ActionType.FINISH_ROLLING), Action(ActionType.FINISH_MOVING)):
            assert action in get_legal_actions(game, 1)
            assert apply_action(game, action, 1)

        # Camp Kolyma, unclaimed
        assert game.players[1].position == 3
        for action in get_legal_actions(game, 1):
            assert action.action_type in (ActionType.BUY_PROPERTY, ActionType.DECLINE_PURCHASE)
        assert apply_action(game, get_legal_actions(game, 1)[0], 1)
