"""
Tests for denunciations and tribunals.
"""

import pytest

from communistopoly import PartyRank, PieceType
from communistopoly.gulag import EscapeMethod, GulagReason
from communistopoly.money import EventType
from communistopoly.pending import PendingActionType, TurnPhase
from communistopoly.tribunal import TribunalPhase, Verdict, WitnessSide, required_witnesses


def _to_judgement(game):
    for _ in range(3):
        assert game.advance_tribunal_phase()
    assert game.active_tribunal.phase == TribunalPhase.JUDGEMENT


def _judge(game, verdict):
    _to_judgement(game)
    assert game.render_verdict(verdict)


class TestDenouncement:
    def test_denouncement_opens_a_tribunal(self, basic_game):
        game = basic_game
        tribunal = game.initiate_denouncement(1, 2, "Hoarding grain")

        assert tribunal is not None
        assert game.active_tribunal is tribunal
        assert tribunal.phase == TribunalPhase.ACCUSATION
        assert (tribunal.accuser_id, tribunal.accused_id) == (1, 2)

        pending = game.pending_action
        assert pending.is_type(PendingActionType.TRIBUNAL)
        assert pending.player_id == 2
        assert pending.resume_phase == TurnPhase.PRE_ROLL
        assert game.turn_phase == TurnPhase.RESOLVING

        assert game.statistics.total_denouncements == 1
        assert game.statistics.total_tribunals == 1
        assert game.statistics.for_player(1).denouncements_made == 1
        assert game.statistics.for_player(2).denouncements_received == 1

    def test_invalid_targets(self, basic_game):
        game = basic_game
        game.send_to_gulag(3, GulagReason.STALIN_DECREE)

        assert not game.can_denounce(1, 1)
        assert not game.can_denounce(1, 3)
        assert not game.can_denounce(1, 99)
        assert game.initiate_denouncement(1, 3, "Idleness") is None

    def test_one_tribunal_at_a_time(self, basic_game):
        game = basic_game
        game.players[1].rank = PartyRank.COMMISSAR
        game.initiate_denouncement(1, 2, "Hoarding grain")

        assert not game.can_denounce(1, 3)

    def test_proletariat_denounces_once_per_round(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.INSUFFICIENT_EVIDENCE)

        assert game.initiate_denouncement(1, 3, "Laziness") is None

        game.increment_round()
        assert game.can_denounce(1, 3)

    def test_commissars_denounce_freely(self, basic_game):
        game = basic_game
        game.players[1].rank = PartyRank.COMMISSAR
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.INSUFFICIENT_EVIDENCE)

        assert game.initiate_denouncement(1, 3, "Laziness") is not None

    def test_denouncing_stalin_is_fatal_to_freedom(self, basic_game):
        game = basic_game

        assert game.initiate_denouncement(1, 0, "Tyranny") is None
        assert game.players[1].in_gulag
        assert game.active_tribunal is None

    def test_stalin_may_denounce_anyone(self, basic_game):
        game = basic_game
        game.players[2].rank = PartyRank.INNER_CIRCLE

        assert game.initiate_denouncement(0, 2, "Ambition") is not None

    def test_lenin_is_shielded_from_lower_ranks(self, make_game):
        game = make_game(None, PieceType.STATUE_OF_LENIN, None)
        game.players[2].rank = PartyRank.PARTY_MEMBER

        assert not game.can_denounce(1, 2)

        game.players[3].rank = PartyRank.PARTY_MEMBER
        assert game.can_denounce(3, 2)

    def test_anonymous_tribunal(self, basic_game):
        game = basic_game
        tribunal = game.trigger_anonymous_tribunal(2)

        assert tribunal.accuser_id is None
        assert game.pending_action.is_type(PendingActionType.TRIBUNAL)

        _judge(game, Verdict.GUILTY)
        assert game.players[2].in_gulag
        assert game.treasury.balance == 4500


class TestWitnesses:
    def test_unknown_side_is_rejected(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        game.advance_tribunal_phase()
        game.advance_tribunal_phase()

        assert not game.add_witness(3, "neutral")
        assert game.add_witness(3, "for")

    @pytest.mark.parametrize(
        "rank, expected",
        [
            (PartyRank.PROLETARIAT, 0),
            (PartyRank.PARTY_MEMBER, 0),
            (PartyRank.COMMISSAR, 2),
            (PartyRank.INNER_CIRCLE, None),
        ],
    )
    def test_required_by_rank(self, basic_game, rank, expected):
        basic_game.players[2].rank = rank
        assert required_witnesses(basic_game, 2) == expected

    def test_suspicion_waives_witnesses(self, basic_game):
        game = basic_game
        game.players[2].rank = PartyRank.INNER_CIRCLE
        game.players[2].under_suspicion = True

        assert required_witnesses(game, 2) == 0
        game.initiate_denouncement(0, 2, "Ambition")
        assert game.has_enough_witnesses()

    def test_commissar_needs_two(self, make_game):
        game = make_game(None, None, None, None)
        game.players[2].rank = PartyRank.COMMISSAR
        game.initiate_denouncement(1, 2, "Sabotage")

        assert game.add_witness(3, WitnessSide.FOR)
        assert not game.has_enough_witnesses()
        assert game.add_witness(4, WitnessSide.FOR)
        assert game.has_enough_witnesses()

    def test_inner_circle_needs_every_free_witness(self, make_game):
        game = make_game(None, None, None, None, None)
        game.players[2].rank = PartyRank.INNER_CIRCLE
        game.send_to_gulag(5, GulagReason.STALIN_DECREE)
        tribunal = game.initiate_denouncement(1, 2, "Conspiracy")

        assert tribunal.unanimous
        assert game.add_witness(3, WitnessSide.FOR)
        assert not game.has_enough_witnesses()
        assert game.add_witness(4, WitnessSide.FOR)
        assert game.has_enough_witnesses()

    def test_witness_rules(self, make_game):
        game = make_game(None, None, None, None)
        game.send_to_gulag(4, GulagReason.STALIN_DECREE)
        tribunal = game.initiate_denouncement(1, 2, "Sabotage")

        assert not game.add_witness(1, WitnessSide.FOR)
        assert not game.add_witness(2, WitnessSide.AGAINST)
        assert not game.add_witness(4, WitnessSide.FOR)
        assert not game.add_witness(0, WitnessSide.FOR)

        assert game.add_witness(3, WitnessSide.AGAINST)
        assert not game.add_witness(3, WitnessSide.AGAINST)
        assert not game.add_witness(3, WitnessSide.FOR)
        assert tribunal.witnesses_against == [3]

        assert game.remove_witness(3)
        assert not game.remove_witness(3)
        assert game.add_witness(3, WitnessSide.FOR)
        assert tribunal.witnesses_for == [3]


class TestVerdicts:
    def test_unknown_verdict_is_rejected(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _to_judgement(game)

        assert not game.render_verdict("acquitted")
        assert game.active_tribunal is not None
        assert not game.players[2].in_gulag
        assert game.event_log.of_type(EventType.SYSTEM)[-1].message == "Unknown verdict: 'acquitted'"

    def test_phases_run_in_order(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")

        assert not game.render_verdict(Verdict.GUILTY)
        _to_judgement(game)
        assert not game.advance_tribunal_phase()

    def test_guilty(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.GUILTY)

        assert game.players[2].in_gulag
        assert game.players[1].rubles == 1600
        assert game.treasury.balance == 4400
        assert game.statistics.for_player(1).tribunals_won == 1
        assert game.statistics.for_player(2).tribunals_lost == 1
        assert game.active_tribunal is None
        assert game.pending_action is None
        assert game.turn_phase == TurnPhase.PRE_ROLL

    def test_guilty_hammer_stays_free(self, make_game):
        game = make_game(None, PieceType.HAMMER, None)
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.GUILTY)

        assert not game.players[2].in_gulag

    def test_innocent_demotes_the_accuser(self, basic_game):
        game = basic_game
        game.players[1].rank = PartyRank.PARTY_MEMBER
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.INNOCENT)

        assert game.players[1].rank == PartyRank.PROLETARIAT
        assert not game.players[2].in_gulag
        assert game.statistics.for_player(2).tribunals_won == 1
        assert game.statistics.for_player(1).tribunals_lost == 1

    def test_both_guilty(self, basic_game):
        game = basic_game
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.BOTH_GUILTY)

        assert game.players[1].in_gulag
        assert game.players[2].in_gulag
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_insufficient_evidence_marks_suspicion(self, basic_game):
        game = basic_game
        game.players[2].rank = PartyRank.COMMISSAR
        game.initiate_denouncement(1, 2, "Hoarding grain")
        _judge(game, Verdict.INSUFFICIENT_EVIDENCE)

        accused = game.players[2]
        assert accused.under_suspicion
        assert not accused.in_gulag
        assert required_witnesses(game, 2) == 0


class TestInforming:
    def _inform(self, game):
        game.send_to_gulag(1, GulagReason.STALIN_DECREE)
        game.turn_phase = TurnPhase.PRE_ROLL
        assert game.attempt_gulag_escape(1, EscapeMethod.INFORM)
        return game.inform_on_player(1, 2, "Black market dealings")

    def test_informing_opens_a_tribunal(self, basic_game):
        game = basic_game
        tribunal = self._inform(game)

        assert tribunal is not None
        assert tribunal.accuser_informing
        assert game.pending_action.is_type(PendingActionType.TRIBUNAL)

    def test_successful_informant_is_released(self, basic_game):
        game = basic_game
        self._inform(game)
        _judge(game, Verdict.GUILTY)

        assert not game.players[1].in_gulag
        assert game.players[1].rubles == 1600
        assert game.players[2].in_gulag
        assert game.turn_phase == TurnPhase.POST_TURN

    def test_failed_informant_serves_longer(self, basic_game):
        game = basic_game
        self._inform(game)
        _judge(game, Verdict.INNOCENT)

        assert game.players[1].in_gulag
        assert game.players[1].gulag_turns == 2

    def test_only_prisoners_inform(self, basic_game):
        assert basic_game.inform_on_player(1, 2, "Black market dealings") is None
