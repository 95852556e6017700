"""
Collective mechanics: the Five-Year Plan, the Great Purge and the
unanimous vote to end the game.

Plan deadlines are advisory; resolution is always triggered by the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from communistopoly.gulag import GulagReason, send_to_gulag
from communistopoly.ledger import credit_from_state, debit_to_state
from communistopoly.money import EventType
from communistopoly.pending import GamePhase
from communistopoly.player import PieceType
from communistopoly.standing import GameEndReason, end_game

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)


@dataclass
class FiveYearPlan:
    target: int
    deadline: datetime
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    collected: int = 0

    @property
    def is_met(self) -> bool:
        return self.collected >= self.target


@dataclass
class GreatPurge:
    votes: Dict[int, int] = field(default_factory=dict)  # voter -> target
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def tally(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for target in self.votes.values():
            counts[target] = counts.get(target, 0) + 1
        return counts


@dataclass
class EndVote:
    initiator_id: int
    votes: Dict[int, bool] = field(default_factory=dict)


# === FIVE-YEAR PLAN ===

def initiate_five_year_plan(game: "GameState", target: int, duration_minutes: int) -> Optional[FiveYearPlan]:
    """Stalin sets a collective ruble target. Usable once per game."""
    if game.has_used_five_year_plan or game.five_year_plan is not None:
        game.event_log.log(EventType.SYSTEM, "The Five-Year Plan has already been used this game")
        return None
    if target <= 0 or duration_minutes <= 0:
        return None

    now = datetime.now(timezone.utc)
    plan = FiveYearPlan(target=target, deadline=now + timedelta(minutes=duration_minutes), started_at=now)
    game.five_year_plan = plan
    game.has_used_five_year_plan = True
    game.event_log.log(
        EventType.COLLECTIVE,
        f"Five-Year Plan initiated: the State requires {target} rubles within {duration_minutes} minutes",
        target=target,
        deadline=plan.deadline.isoformat(),
    )
    return plan


def contribute_to_five_year_plan(game: "GameState", player_id: int, amount: int) -> bool:
    plan = game.five_year_plan
    player = game.players.get(player_id)
    if plan is None or player is None or not player.is_active:
        return False
    if amount <= 0 or player.rubles < amount:
        game.event_log.log(EventType.SYSTEM, f"{player.name} cannot contribute {amount} rubles", player_id)
        return False

    debit_to_state(game, player_id, amount, "Five-Year Plan")
    plan.collected += amount
    game.event_log.log(
        EventType.COLLECTIVE,
        f"{player.name} contributes {amount} rubles to the Five-Year Plan ({plan.collected}/{plan.target})",
        player_id,
        amount=amount,
        collected=plan.collected,
    )
    return True


def resolve_five_year_plan(game: "GameState") -> Optional[bool]:
    """
    Close the plan. Success pays every competitor a bonus; failure sends
    the poorest free competitor to the Gulag.

    Returns whether the plan succeeded, or None when no plan is active.
    """
    plan = game.five_year_plan
    if plan is None:
        return None
    game.five_year_plan = None

    if plan.is_met:
        game.event_log.log(
            EventType.COLLECTIVE,
            f"Five-Year Plan successful! {plan.collected}/{plan.target} rubles collected",
            collected=plan.collected,
            target=plan.target,
        )
        for player in game.get_active_players():
            credit_from_state(game, player.player_id, game.config.five_year_plan_bonus, "Five-Year Plan bonus")
        return True

    game.event_log.log(
        EventType.COLLECTIVE,
        f"Five-Year Plan failed: {plan.collected}/{plan.target} rubles collected",
        collected=plan.collected,
        target=plan.target,
    )
    # sorted() is stable, so equal balances keep roster order
    candidates = sorted(
        (p for p in game.get_active_players() if not p.in_gulag),
        key=lambda p: p.rubles,
    )
    for player in candidates:
        had_tank_immunity = player.piece == PieceType.TANK and not player.has_used_tank_gulag_immunity
        sent = send_to_gulag(game, player.player_id, GulagReason.STALIN_DECREE)
        if sent or had_tank_immunity or player.is_eliminated:
            game.event_log.log(
                EventType.COLLECTIVE,
                f"{player.name} is punished for sabotaging the Five-Year Plan",
                player.player_id,
            )
            break
    return False


# === GREAT PURGE ===

def initiate_great_purge(game: "GameState") -> Optional[GreatPurge]:
    if game.has_used_great_purge:
        game.event_log.log(EventType.SYSTEM, "The Great Purge has already been used this game")
        return None

    game.has_used_great_purge = True
    game.great_purge = GreatPurge()
    game.event_log.log(EventType.COLLECTIVE, "The Great Purge has begun! Every comrade must vote")
    return game.great_purge


def vote_in_great_purge(game: "GameState", voter_id: int, target_id: int) -> bool:
    """Record one vote per voter. Voting for oneself is allowed."""
    purge = game.great_purge
    voter = game.players.get(voter_id)
    target = game.players.get(target_id)
    if purge is None or voter is None or target is None:
        return False
    if not voter.is_active or not target.is_active:
        return False
    if voter_id in purge.votes:
        return False

    purge.votes[voter_id] = target_id
    game.event_log.log(EventType.COLLECTIVE, f"{voter.name} has cast a purge vote", voter_id)
    return True


def resolve_great_purge(game: "GameState") -> List[int]:
    """Everyone tied on the most votes goes to the Gulag. Returns their ids."""
    purge = game.great_purge
    if purge is None:
        return []
    game.great_purge = None

    counts = purge.tally()
    if not counts:
        game.event_log.log(EventType.COLLECTIVE, "The Great Purge ended with no votes cast")
        return []

    most = max(counts.values())
    targets = [pid for pid in game.players if counts.get(pid) == most]
    game.event_log.log(
        EventType.COLLECTIVE,
        f"The Great Purge is complete: {', '.join(game.players[pid].name for pid in targets)} received {most} votes",
        votes=most,
        targets=targets,
    )
    for pid in targets:
        if not game.players[pid].in_gulag:
            send_to_gulag(game, pid, GulagReason.STALIN_DECREE)
    return targets


# === END VOTE ===

def initiate_end_vote(game: "GameState", initiator_id: int) -> Optional[EndVote]:
    initiator = game.players.get(initiator_id)
    if initiator is None or not initiator.is_active:
        return None
    if game.end_vote is not None or game.game_phase == GamePhase.ENDED:
        return None

    game.end_vote = EndVote(initiator_id)
    game.event_log.log(
        EventType.COLLECTIVE,
        f"{initiator.name} calls a vote to end the game. It must be unanimous",
        initiator_id,
    )
    return game.end_vote


def cast_end_vote(game: "GameState", player_id: int, vote: bool) -> bool:
    """
    Record a vote. Every competitor voting yes ends the game; a single no
    cancels the vote outright.
    """
    end_vote = game.end_vote
    player = game.players.get(player_id)
    if end_vote is None or player is None or not player.is_active:
        return False

    end_vote.votes[player_id] = vote
    game.event_log.log(
        EventType.COLLECTIVE,
        f"{player.name} votes {'YES' if vote else 'NO'} to end the game",
        player_id,
        vote=vote,
    )

    if not vote:
        game.end_vote = None
        game.event_log.log(EventType.COLLECTIVE, "The vote to end the game has failed")
        return True

    voters = [p.player_id for p in game.get_active_players()]
    if all(end_vote.votes.get(pid) for pid in voters):
        game.end_vote = None
        end_game(game, GameEndReason.UNANIMOUS, None)
    return True
