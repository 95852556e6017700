"""
Rank, wealth, elimination and win conditions.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from communistopoly.money import EventType
from communistopoly.pending import GamePhase, TurnPhase
from communistopoly.player import PartyRank, PieceType
from communistopoly.spaces import PropertySpace

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)


class EliminationReason(str, Enum):
    BANKRUPTCY = "bankruptcy"
    EXECUTION = "execution"
    GULAG_TIMEOUT = "gulag_timeout"
    RED_STAR_DEMOTION = "red_star_demotion"


class GameEndReason(str, Enum):
    SURVIVOR = "survivor"
    STALIN_WINS = "stalin_wins"
    UNANIMOUS = "unanimous"


def calculate_total_wealth(game: "GameState", player_id: int) -> int:
    """
    Rubles plus property values, minus any outstanding debt.

    A property counts at its base cost (half when mortgaged) plus the
    improvement value of each collectivization level.
    """
    player = game.players.get(player_id)
    if player is None:
        return 0

    wealth = player.rubles
    for space_id in player.properties:
        prop = game.properties.get(space_id)
        space = game.board.get_space(space_id)
        if prop is None:
            continue
        cost = getattr(space, "base_cost", 0)
        wealth += cost // 2 if prop.is_mortgaged else cost
        wealth += prop.collectivization_level * game.config.improvement_value

    if player.debt is not None:
        wealth -= player.debt.amount
    return wealth


def promote_player(game: "GameState", player_id: int) -> bool:
    """Raise a player one rank. Returns False at the top rank or for unknown players."""
    player = game.players.get(player_id)
    if player is None or not player.is_active:
        return False
    if player.rank == PartyRank.INNER_CIRCLE:
        return False

    old_rank = player.rank
    player.rank = old_rank.promoted()
    game.event_log.log(
        EventType.RANK,
        f"{player.name} promoted to {player.rank.value}",
        player_id,
        old_rank=old_rank.value,
        new_rank=player.rank.value,
    )
    return True


def demote_player(game: "GameState", player_id: int) -> bool:
    """
    Lower a player one rank.

    A Red Star that falls to proletariat is eliminated on the spot.
    """
    player = game.players.get(player_id)
    if player is None or not player.is_active:
        return False
    if player.rank == PartyRank.PROLETARIAT:
        return False

    old_rank = player.rank
    player.rank = old_rank.demoted()
    game.event_log.log(
        EventType.RANK,
        f"{player.name} demoted to {player.rank.value}",
        player_id,
        old_rank=old_rank.value,
        new_rank=player.rank.value,
    )

    if player.piece == PieceType.RED_STAR and player.rank == PartyRank.PROLETARIAT:
        eliminate_player(game, player_id, EliminationReason.RED_STAR_DEMOTION)
    return True


def check_elimination(game: "GameState", player_id: int) -> bool:
    """
    Eliminate a player whose total wealth is negative while a debt is active.

    Negative wealth alone never eliminates.
    """
    player = game.players.get(player_id)
    if player is None or not player.is_active:
        return False
    if player.debt is None:
        return False
    if calculate_total_wealth(game, player_id) >= 0:
        return False

    eliminate_player(game, player_id, EliminationReason.BANKRUPTCY)
    return True


def eliminate_player(game: "GameState", player_id: int, reason: EliminationReason) -> bool:
    """
    Remove a player from competition. Re-eliminating is a no-op.

    The player stays on the roster with a final snapshot for reporting.
    """
    player = game.players.get(player_id)
    if player is None or player.is_stalin or player.is_eliminated:
        return False

    player.final_wealth = calculate_total_wealth(game, player_id)
    player.final_rank = player.rank
    player.final_property_count = len(player.properties)

    for space_id in sorted(player.properties):
        prop = game.properties.get(space_id)
        if prop is not None:
            prop.return_to_state()
    player.properties.clear()

    player.is_eliminated = True
    player.elimination_reason = reason.value
    player.in_gulag = False
    player.gulag_turns = 0
    player.debt = None
    player.vouching_for = None
    player.vouched_by_round = None

    for voucher in game.vouchers:
        if voucher.is_active and player_id in (voucher.prisoner_id, voucher.sponsor_id):
            voucher.is_active = False

    stats = game.statistics.for_player(player_id)
    if stats is not None:
        stats.properties_owned = player.final_property_count
        stats.max_wealth = max(stats.max_wealth, player.final_wealth)

    game.event_log.log(
        EventType.ELIMINATION,
        f"{player.name} has been eliminated ({reason.value})",
        player_id,
        reason=reason.value,
        final_wealth=player.final_wealth,
        final_rank=player.final_rank.value,
        final_properties=player.final_property_count,
    )
    logger.info("Player %s eliminated: %s", player_id, reason.value)

    if game.current_player_id == player_id and game.game_phase == GamePhase.PLAYING:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN

    check_game_end(game)
    return True


def check_game_end(game: "GameState") -> bool:
    """End the game when one or zero competitors remain."""
    if game.game_phase == GamePhase.ENDED:
        return True

    survivors = game.get_active_players()
    if len(survivors) == 1:
        end_game(game, GameEndReason.SURVIVOR, survivors[0].player_id)
        return True
    if not survivors:
        end_game(game, GameEndReason.STALIN_WINS, game.stalin_id)
        return True
    return False


def end_game(game: "GameState", reason: GameEndReason, winner_id: Optional[int] = None) -> None:
    """Close the game and freeze the final report."""
    if game.game_phase == GamePhase.ENDED:
        return

    game.game_phase = GamePhase.ENDED
    game.end_reason = reason
    game.winner_id = winner_id
    game.pending_action = None
    game.statistics.game_end_time = datetime.now(timezone.utc)

    for player in game.players.values():
        if player.is_stalin:
            continue
        stats = game.statistics.for_player(player.player_id)
        if stats is not None and not player.is_eliminated:
            stats.properties_owned = len(player.properties)
            stats.max_wealth = max(stats.max_wealth, calculate_total_wealth(game, player.player_id))

    winner = game.players.get(winner_id) if winner_id is not None else None
    game.event_log.log(
        EventType.GAME_END,
        f"Game over ({reason.value}). Winner: {winner.name if winner else 'nobody'}",
        winner_id,
        reason=reason.value,
        rounds=game.round_number,
    )
    logger.info("Game ended: %s, winner=%s", reason.value, winner_id)
