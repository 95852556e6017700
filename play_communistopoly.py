#!/usr/bin/env python3
"""
Minimal CLI for simulating Communistopoly games.

This script exercises the engine by running a game in which every comrade,
and Stalin, picks uniformly among its legal actions.
"""

import argparse
import logging
import random
from typing import List, Optional

from communistopoly.config import GameConfig
from communistopoly.game import GameState, create_game
from communistopoly.player import PieceType, Player
from communistopoly.questions import get_question
from communistopoly.rules import Action, ActionType, apply_action, get_legal_actions
from communistopoly.settings import get_settings
from game_logger import GameLogger

logger = logging.getLogger("play_communistopoly")

PLAYER_NAMES = ["Yuri", "Olga", "Mikhail", "Katya", "Boris", "Natasha", "Ivan", "Sveta"]


class RandomComrade:
    """Picks a random legal action, answering tests correctly some of the time."""

    def __init__(self, player_id: int, name: str, rng: random.Random):
        self.player_id = player_id
        self.name = name
        self.rng = rng

    def choose_action(self, game: GameState, legal_actions: List[Action]) -> Action:
        end_turn = Action(ActionType.END_TURN)
        if end_turn in legal_actions and self.rng.random() < 0.5:
            return end_turn
        choices = [a for a in legal_actions if a != end_turn] or legal_actions
        action = self.rng.choice(choices)

        if action.action_type == ActionType.ANSWER_TEST:
            question = get_question(game.pending_action.data["question_id"])
            correct = question is not None and self.rng.random() < 0.5
            answer = question.answer if correct else "I do not recall, comrade"
            return Action(ActionType.ANSWER_TEST, answer=answer, stalin_amount=self.rng.choice([-100, 0, 100]))
        return action


def print_game_state(game: GameState) -> None:
    """Print current game state."""
    print("\n" + "=" * 60)
    print(f"ROUND {game.round_number} | State Treasury: {game.treasury.balance}R")
    print("=" * 60)

    for player_id, player in sorted(game.players.items()):
        if player.is_stalin:
            continue
        if player.is_eliminated:
            status = f"ELIMINATED ({player.elimination_reason})"
        elif player.in_gulag:
            status = f"IN GULAG ({player.gulag_turns} days)"
        else:
            status = f"at {game.board.get_space(player.position).name}"

        print(
            f"{player.name} [{player.rank.value}]: {player.rubles}R | "
            f"{len(player.properties)} properties | {status}"
        )


def print_game_summary(game: GameState) -> None:
    """Print final game summary."""
    print("\n" + "=" * 60)
    print("GAME OVER" if game.game_over else "GAME STOPPED")
    print("=" * 60)

    if game.winner_id is not None:
        winner = game.players[game.winner_id]
        print(f"\nWinner: {winner.name}")
        print(f"Final Rubles: {winner.rubles}")
    if game.end_reason is not None:
        print(f"Reason: {game.end_reason.value}")

    print("\nFinal Standings:")
    for player_id, player in sorted(game.players.items()):
        if player.is_stalin:
            continue
        status = "ELIMINATED" if player.is_eliminated else f"{game.calculate_total_wealth(player_id)}R"
        print(f"  {player.name}: {status}")

    print(f"\nRounds played: {game.round_number}")


def _next_actor(game: GameState, rng: random.Random) -> Optional[int]:
    """Pick the player who should act next."""
    pending = game.pending_action
    if pending is not None:
        # Tribunals and voucher requests accept several actors
        actors = [pid for pid in game.players if get_legal_actions(game, pid)]
        if pending.player_id in actors and len(actors) == 1:
            return pending.player_id
        return rng.choice(actors) if actors else None

    if game.bribes and game.stalin_id is not None:
        return game.stalin_id
    return game.current_player_id


def simulate_game(
    num_players: int = 4,
    seed: Optional[int] = None,
    verbose: bool = True,
    max_rounds: int = 200,
    log_file: Optional[str] = None,
) -> GameState:
    """
    Simulate a game of Communistopoly with random comrades.

    Args:
        num_players: Number of competing players (2-8), Stalin not included
        seed: Random seed for reproducibility
        verbose: Whether to print detailed output
        max_rounds: Stop after this many rounds
        log_file: Path to JSONL log file (None = auto-generate in the settings log_dir)
    """
    settings = get_settings()
    game_logger = GameLogger(log_file, log_dir=settings.log_dir)

    pieces = list(PieceType)
    roster = [Player(0, "Stalin", is_stalin=True)]
    roster.extend(
        Player(i + 1, PLAYER_NAMES[i], pieces[i % len(pieces)])
        for i in range(num_players)
    )

    config = GameConfig.from_settings(settings)
    if seed is not None:
        config.seed = seed
    game = create_game(config, roster)
    agent_rng = random.Random(config.seed)
    agents = {p.player_id: RandomComrade(p.player_id, p.name, agent_rng) for p in roster}

    game_logger.flush_engine_events(game)
    game_logger.log_round_snapshot(game)

    if verbose:
        print(f"Starting game with {num_players} comrades under Stalin")
        print(f"Seed: {config.seed}")
        print(f"Logging to: {game_logger.log_file}")

    # Safety limit for iterations, not rounds
    iteration_count = 0
    max_iterations = 50000
    last_round = game.round_number

    while not game.game_over and game.round_number <= max_rounds and iteration_count < max_iterations:
        iteration_count += 1
        actor_id = _next_actor(game, agent_rng)
        if actor_id is None:
            logger.warning("Nobody can answer %r, forcing end of turn", game.pending_action)
            game.pending_action = None
            game.end_turn()
            continue

        legal_actions = get_legal_actions(game, actor_id)
        if not legal_actions:
            logger.warning("No legal actions for player %s, forcing end turn", actor_id)
            game.end_turn()
            continue

        action = agents[actor_id].choose_action(game, legal_actions)
        if not apply_action(game, action, actor_id):
            logger.debug("Action %r by player %s had no effect", action, actor_id)
            if action.action_type != ActionType.END_TURN:
                apply_action(game, Action(ActionType.END_TURN), game.current_player_id)

        game_logger.flush_engine_events(game)

        if game.round_number != last_round:
            last_round = game.round_number
            game_logger.log_round_snapshot(game)
            if verbose and game.round_number % 10 == 0:
                print_game_state(game)

    if iteration_count >= max_iterations:
        print(f"\n!!! SAFETY LIMIT HIT ({max_iterations} iterations) !!!")
        print(f"Game state: round={game.round_number}, phase={game.turn_phase.value}")

    game_logger.flush_engine_events(game)

    if verbose:
        print_game_summary(game)
        print(f"\nGame logged to: {game_logger.log_file}")

    return game


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(description="Simulate a Communistopoly game")
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=range(2, 9),
        help="Number of competing comrades (2-8)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--quiet", action="store_true", help="Reduce output verbosity")
    parser.add_argument("--max-rounds", type=int, default=200, help="Stop after this many rounds")
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Path to JSONL log file (default: auto-generated timestamp)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, get_settings().log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    simulate_game(
        num_players=args.players,
        seed=args.seed,
        verbose=not args.quiet,
        max_rounds=args.max_rounds,
        log_file=args.log_file,
    )


if __name__ == "__main__":
    main()
