"""
Tests for the Five-Year Plan, the Great Purge and the end-game vote.
"""

from communistopoly.gulag import GulagReason
from communistopoly.standing import EliminationReason, GameEndReason


class TestFiveYearPlan:
    def test_initiate_once_per_game(self, basic_game):
        game = basic_game
        plan = game.initiate_five_year_plan(1000, 10)

        assert plan.target == 1000
        assert plan.deadline > plan.started_at
        game.resolve_five_year_plan()
        assert game.initiate_five_year_plan(500, 5) is None

    def test_invalid_plan(self, basic_game):
        assert basic_game.initiate_five_year_plan(0, 10) is None
        assert basic_game.initiate_five_year_plan(1000, 0) is None

    def test_contributions_go_to_the_treasury(self, basic_game):
        game = basic_game
        game.initiate_five_year_plan(1000, 10)

        assert game.contribute_to_five_year_plan(1, 400)
        assert game.players[1].rubles == 1100
        assert game.treasury.balance == 4900
        assert game.five_year_plan.collected == 400

    def test_contribution_limits(self, basic_game):
        game = basic_game
        assert not game.contribute_to_five_year_plan(1, 100)

        game.initiate_five_year_plan(1000, 10)
        assert not game.contribute_to_five_year_plan(1, 1501)
        assert not game.contribute_to_five_year_plan(1, 0)
        assert not game.contribute_to_five_year_plan(0, 100)

    def test_plan_met_exactly_pays_everyone(self, basic_game):
        game = basic_game
        game.initiate_five_year_plan(1000, 10)
        game.contribute_to_five_year_plan(1, 500)
        game.contribute_to_five_year_plan(2, 500)

        assert game.resolve_five_year_plan() is True
        assert game.players[1].rubles == 1100
        assert game.players[2].rubles == 1100
        assert game.players[3].rubles == 1600
        assert game.players[0].rubles == 0
        assert game.five_year_plan is None

    def test_plan_one_short_jails_the_poorest(self, basic_game):
        game = basic_game
        game.initiate_five_year_plan(1000, 10)
        game.contribute_to_five_year_plan(1, 500)
        game.contribute_to_five_year_plan(2, 499)

        assert game.resolve_five_year_plan() is False
        assert game.players[1].in_gulag
        assert not game.players[2].in_gulag
        assert not game.players[3].in_gulag

    def test_poorest_ties_follow_roster_order(self, basic_game):
        game = basic_game
        game.players[2].rubles = 100
        game.players[3].rubles = 100
        game.initiate_five_year_plan(1000, 10)

        game.resolve_five_year_plan()
        assert game.players[2].in_gulag
        assert not game.players[3].in_gulag

    def test_prisoners_are_not_selected(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.players[2].rubles = 0
        game.players[3].rubles = 100
        game.initiate_five_year_plan(1000, 10)

        game.resolve_five_year_plan()
        assert game.players[3].in_gulag
        assert game.statistics.for_player(2).gulag_sentences == 1

    def test_resolve_without_plan(self, basic_game):
        assert basic_game.resolve_five_year_plan() is None


class TestGreatPurge:
    def test_once_per_game(self, basic_game):
        game = basic_game
        assert game.initiate_great_purge() is not None
        game.resolve_great_purge()

        assert game.initiate_great_purge() is None

    def test_most_votes_are_purged(self, basic_game):
        game = basic_game
        game.initiate_great_purge()

        assert game.vote_in_great_purge(1, 2)
        assert game.vote_in_great_purge(2, 2)
        assert game.vote_in_great_purge(3, 1)

        assert game.resolve_great_purge() == [2]
        assert game.players[2].in_gulag
        assert not game.players[1].in_gulag
        assert game.great_purge is None

    def test_ties_purge_everyone_tied(self, basic_game):
        game = basic_game
        game.initiate_great_purge()
        game.vote_in_great_purge(1, 2)
        game.vote_in_great_purge(2, 3)
        game.vote_in_great_purge(3, 1)

        assert game.resolve_great_purge() == [1, 2, 3]
        assert all(game.players[pid].in_gulag for pid in (1, 2, 3))

    def test_one_vote_each(self, basic_game):
        game = basic_game
        game.initiate_great_purge()

        assert game.vote_in_great_purge(1, 2)
        assert not game.vote_in_great_purge(1, 3)
        assert not game.vote_in_great_purge(0, 3)
        assert not game.vote_in_great_purge(2, 0)

    def test_prisoners_are_not_resentenced(self, basic_game):
        game = basic_game
        game.send_to_gulag(2, GulagReason.STALIN_DECREE)
        game.initiate_great_purge()
        game.vote_in_great_purge(1, 2)
        game.vote_in_great_purge(3, 2)

        assert game.resolve_great_purge() == [2]
        assert game.statistics.for_player(2).gulag_sentences == 1

    def test_no_votes(self, basic_game):
        game = basic_game
        game.initiate_great_purge()
        assert game.resolve_great_purge() == []

    def test_vote_requires_purge(self, basic_game):
        assert not basic_game.vote_in_great_purge(1, 2)


class TestEndVote:
    def test_stalin_cannot_call_the_vote(self, basic_game):
        assert basic_game.initiate_end_vote(0) is None

    def test_unanimous_yes_ends_the_game(self, basic_game):
        game = basic_game
        assert game.initiate_end_vote(1) is not None

        game.cast_end_vote(1, True)
        game.cast_end_vote(2, True)
        assert not game.game_over

        game.cast_end_vote(3, True)
        assert game.game_over
        assert game.end_reason == GameEndReason.UNANIMOUS
        assert game.winner_id is None

    def test_single_no_cancels(self, basic_game):
        game = basic_game
        game.initiate_end_vote(1)
        game.cast_end_vote(1, True)

        assert game.cast_end_vote(2, False)
        assert game.end_vote is None
        assert not game.game_over

        vote = game.initiate_end_vote(3)
        assert vote.votes == {}

    def test_only_competitors_vote(self, basic_game):
        game = basic_game
        game.initiate_end_vote(1)
        assert not game.cast_end_vote(0, True)

    def test_eliminated_players_are_not_counted(self, basic_game):
        game = basic_game
        game.eliminate_player(3, EliminationReason.EXECUTION)
        game.initiate_end_vote(1)

        game.cast_end_vote(1, True)
        game.cast_end_vote(2, True)
        assert game.game_over

    def test_one_vote_at_a_time(self, basic_game):
        game = basic_game
        game.initiate_end_vote(1)
        assert game.initiate_end_vote(2) is None
