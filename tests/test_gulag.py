"""
Tests for the Gulag: sentencing, escapes, vouchers and confessions.
"""

import pytest

from communistopoly import PartyRank, PieceType
from communistopoly.gulag import EscapeMethod, GulagReason, get_gulag_escape_requirement
from communistopoly.money import EventType
from communistopoly.pending import PendingActionType, TurnPhase


def _imprison_current(game, player_id=1, rank=None):
    """Sentence the current player and rewind to the start of their next turn."""
    if rank is not None:
        game.players[player_id].rank = rank
    game.send_to_gulag(player_id, GulagReason.STALIN_DECREE)
    game.turn_phase = TurnPhase.PRE_ROLL
    game.has_rolled = False


class TestSentencing:
    def test_send_to_gulag(self, basic_game):
        game = basic_game
        player = game.players[2]
        player.rank = PartyRank.COMMISSAR
        player.position = 24

        assert game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)
        assert player.in_gulag
        assert player.gulag_turns == 0
        assert player.position == 10
        assert player.rank == PartyRank.PARTY_MEMBER
        assert game.statistics.total_gulag_sentences == 1
        assert game.statistics.for_player(2).gulag_sentences == 1

    def test_already_imprisoned_is_not_resentenced(self, basic_game):
        game = basic_game
        game.players[2].rank = PartyRank.COMMISSAR
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.players[2].gulag_turns = 4

        assert not game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        assert game.players[2].gulag_turns == 4
        assert game.players[2].rank == PartyRank.PARTY_MEMBER

    def test_eliminated_and_unknown_players_are_ignored(self, basic_game):
        game = basic_game
        game.players[2].is_eliminated = True

        assert not game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        assert not game.send_to_gulag(99, GulagReason.STALIN_DECREE)
        assert not game.send_to_gulag(0, GulagReason.STALIN_DECREE)

    def test_sentencing_the_current_player_ends_their_turn(self, basic_game):
        game = basic_game
        game.turn_phase = TurnPhase.MOVING

        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        assert game.turn_phase == TurnPhase.POST_TURN
        assert game.pending_action is None

    @pytest.mark.parametrize("reason", [GulagReason.DENOUNCEMENT_GUILTY, GulagReason.THREE_DOUBLES])
    def test_hammer_is_immune_to_player_sentences(self, make_game, reason):
        game = make_game(PieceType.HAMMER, None)

        assert not game.send_to_gulag(1, reason)
        assert not game.players[1].in_gulag

    def test_hammer_still_obeys_stalin(self, make_game):
        game = make_game(PieceType.HAMMER, None)

        assert game.send_to_gulag(1, GulagReason.STALIN_DECREE)

    def test_tank_evades_its_first_sentence(self, make_game):
        game = make_game(PieceType.TANK, None)
        tank = game.players[1]
        tank.rank = PartyRank.PARTY_MEMBER
        tank.position = 30

        assert not game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
        assert not tank.in_gulag
        assert tank.position == 25
        assert tank.rank == PartyRank.PROLETARIAT
        assert tank.has_used_tank_gulag_immunity

        assert game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
        assert tank.in_gulag


class TestEscapeRequirement:
    @pytest.mark.parametrize(
        "day, faces",
        [
            (0, {6}),
            (1, {6}),
            (2, {5, 6}),
            (3, {4, 5, 6}),
            (4, {1, 2, 3, 4, 5, 6}),
            (9, {1, 2, 3, 4, 5, 6}),
        ],
    )
    def test_requirement_loosens(self, day, faces):
        assert get_gulag_escape_requirement(day) == faces


class TestEscapes:
    def test_roll_required_doubles(self, basic_game, dice):
        game = basic_game
        _imprison_current(game)
        dice.queue(6, 6)

        assert game.attempt_gulag_escape(1, EscapeMethod.ROLL)
        assert not game.players[1].in_gulag
        assert game.players[1].position == 10
        assert game.turn_phase == TurnPhase.POST_TURN
        assert game.statistics.for_player(1).gulag_escapes == 1

    def test_low_doubles_fail_on_day_zero(self, basic_game, dice):
        game = basic_game
        _imprison_current(game)
        dice.queue(5, 5)

        assert not game.attempt_gulag_escape(1, EscapeMethod.ROLL)
        assert game.players[1].in_gulag
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_low_doubles_succeed_later(self, basic_game, dice):
        game = basic_game
        _imprison_current(game)
        game.players[1].gulag_turns = 2
        dice.queue(5, 5)

        assert game.attempt_gulag_escape(1, EscapeMethod.ROLL)
        assert game.players[1].gulag_turns == 0

    def test_pay_costs_rubles_and_rank(self, basic_game):
        game = basic_game
        _imprison_current(game, rank=PartyRank.COMMISSAR)

        assert game.attempt_gulag_escape(1, EscapeMethod.PAY)
        player = game.players[1]
        assert not player.in_gulag
        assert player.rubles == 1000
        assert player.rank == PartyRank.PROLETARIAT
        assert game.treasury.balance == 5000

    def test_pay_requires_funds(self, basic_game):
        game = basic_game
        _imprison_current(game)
        game.players[1].rubles = 499

        assert not game.attempt_gulag_escape(1, EscapeMethod.PAY)
        assert game.players[1].in_gulag
        assert game.turn_phase == TurnPhase.PRE_ROLL

    def test_card(self, basic_game):
        game = basic_game
        _imprison_current(game)
        game.players[1].free_from_gulag_cards = 1

        assert game.attempt_gulag_escape(1, EscapeMethod.CARD)
        assert game.players[1].free_from_gulag_cards == 0
        assert not game.players[1].in_gulag

    def test_card_requires_a_card(self, basic_game):
        game = basic_game
        _imprison_current(game)

        assert not game.attempt_gulag_escape(1, EscapeMethod.CARD)

    @pytest.mark.parametrize(
        "method, pending_type",
        [
            (EscapeMethod.VOUCH, PendingActionType.VOUCHER_REQUEST),
            (EscapeMethod.INFORM, PendingActionType.INFORM_ON_PLAYER),
            (EscapeMethod.BRIBE, PendingActionType.BRIBE_STALIN),
        ],
    )
    def test_social_escapes_suspend(self, basic_game, method, pending_type):
        game = basic_game
        _imprison_current(game)

        assert game.attempt_gulag_escape(1, method)
        assert game.pending_action.is_type(pending_type)
        assert game.turn_phase == TurnPhase.RESOLVING

    def test_bribe_escape_flow(self, basic_game):
        game = basic_game
        _imprison_current(game)
        game.attempt_gulag_escape(1, EscapeMethod.BRIBE)

        bribe = game.submit_bribe(1, 300, "gulag_escape")
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.POST_TURN

        game.respond_to_bribe(bribe.bribe_id, accepted=True)
        assert not game.players[1].in_gulag
        assert game.players[1].rubles == 1200

    def test_escape_only_on_own_turn_before_rolling(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.players[2].free_from_gulag_cards = 1

        assert not game.attempt_gulag_escape(2, EscapeMethod.CARD)

        _imprison_current(game)
        game.turn_phase = TurnPhase.POST_TURN
        assert not game.attempt_gulag_escape(1, EscapeMethod.ROLL)

    def test_free_players_cannot_escape(self, basic_game):
        assert not basic_game.attempt_gulag_escape(1, EscapeMethod.ROLL)

    def test_unknown_method_is_rejected(self, basic_game):
        game = basic_game
        _imprison_current(game)

        assert not game.attempt_gulag_escape(1, "tunnel")
        assert game.players[1].in_gulag
        assert game.turn_phase == TurnPhase.PRE_ROLL
        assert game.event_log.of_type(EventType.SYSTEM)[-1].message == "Unknown escape method: 'tunnel'"

    def test_release_keeps_the_lowered_rank(self, basic_game):
        game = basic_game
        game.players[2].rank = PartyRank.COMMISSAR
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)

        assert game.release_from_gulag(2, "amnesty")
        assert game.players[2].rank == PartyRank.PARTY_MEMBER
        assert not game.release_from_gulag(2, "amnesty")


class TestDailyService:
    def test_each_turn_serves_a_day(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)

        assert game.handle_gulag_turn(2)
        assert game.handle_gulag_turn(2)
        assert game.players[2].gulag_turns == 2
        assert game.statistics.for_player(2).total_gulag_turns == 2

    def test_free_players_serve_nothing(self, basic_game):
        assert not basic_game.handle_gulag_turn(2)
        assert basic_game.players[2].gulag_turns == 0

    def test_tenth_day_is_fatal(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.players[2].gulag_turns = 9

        assert not game.handle_gulag_turn(2)
        assert game.players[2].is_eliminated
        assert game.players[2].elimination_reason == "gulag_timeout"
        assert not game.players[2].in_gulag


class TestVouchers:
    def test_vouching_releases_the_prisoner(self, basic_game):
        game = basic_game
        _imprison_current(game)
        game.attempt_gulag_escape(1, EscapeMethod.VOUCH)

        assert game.vouch_for_player(1, 2)

        assert not game.players[1].in_gulag
        assert game.players[2].vouching_for == 1
        assert game.players[2].vouched_by_round == 4
        voucher = game.vouchers[0]
        assert (voucher.prisoner_id, voucher.sponsor_id, voucher.expires_at_round) == (1, 2, 4)
        assert voucher.is_active
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_sponsor_must_be_free(self, basic_game):
        game = basic_game
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)

        assert not game.vouch_for_player(1, 2)
        assert not game.vouch_for_player(1, 1)
        assert not game.vouch_for_player(3, 2)  # not imprisoned

    def test_one_voucher_per_sponsor(self, basic_game):
        game = basic_game
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)

        assert game.vouch_for_player(1, 3)
        assert not game.vouch_for_player(2, 3)

    def test_declined_request_ends_the_turn(self, basic_game):
        game = basic_game
        _imprison_current(game)
        game.attempt_gulag_escape(1, EscapeMethod.VOUCH)

        assert game.decline_voucher_request()
        assert game.players[1].in_gulag
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_triggering_offence_drags_the_sponsor_down(self, basic_game):
        game = basic_game
        game.players[3].rank = PartyRank.PARTY_MEMBER
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.vouch_for_player(2, 3)

        game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)

        sponsor = game.players[3]
        assert sponsor.in_gulag
        assert sponsor.rank == PartyRank.PROLETARIAT
        assert sponsor.vouching_for is None
        assert not game.vouchers[0].is_active

    def test_non_triggering_reason_spares_the_sponsor(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.vouch_for_player(2, 3)

        game.send_to_gulag(2, GulagReason.DEBT_DEFAULT)

        assert not game.players[3].in_gulag
        assert game.vouchers[0].is_active

    def test_expired_voucher_spares_the_sponsor(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.vouch_for_player(2, 3)

        game.round_number = 5
        assert not game.check_voucher_consequences(2, GulagReason.ENEMY_OF_STATE)
        assert not game.players[3].in_gulag

    def test_vouchers_expire_at_round_boundaries(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.vouch_for_player(2, 3)

        for _ in range(3):
            game.increment_round()
        assert game.vouchers[0].is_active

        game.increment_round()
        assert not game.vouchers[0].is_active
        assert game.players[3].vouching_for is None


class TestConfessions:
    def test_accepted_confession_releases(self, basic_game):
        game = basic_game
        _imprison_current(game)

        confession = game.submit_confession(1, "I doubted the harvest figures")
        assert confession is not None
        pending = game.pending_action
        assert pending.is_type(PendingActionType.REVIEW_CONFESSION)
        assert pending.player_id == 0
        assert game.turn_phase == TurnPhase.RESOLVING

        assert game.review_confession(confession.confession_id, accepted=True)
        assert not game.players[1].in_gulag
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.PRE_ROLL

    def test_rejected_confession(self, basic_game):
        game = basic_game
        _imprison_current(game)
        confession = game.submit_confession(1, "I am innocent")

        assert game.review_confession(confession.confession_id, accepted=False)
        assert game.players[1].in_gulag
        assert confession.reviewed
        assert confession.accepted is False
        assert not game.review_confession(confession.confession_id, accepted=True)

    def test_only_prisoners_confess(self, basic_game):
        assert basic_game.submit_confession(1, "Nothing to confess") is None
