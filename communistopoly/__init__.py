"""
Communistopoly Rules Engine

A deterministic implementation of the Communistopoly "Stalin" rules: a
satirical property game run by a Stalin referee over a shared State
Treasury.
"""

from .board import Board
from .config import GameConfig
from .exceptions import CommunistopolyError, GameSetupError, SnapshotError
from .game import GameState, create_game
from .player import PartyRank, PieceType, Player, PlayerState

__all__ = [
    "GameState",
    "create_game",
    "Player",
    "PlayerState",
    "PartyRank",
    "PieceType",
    "Board",
    "GameConfig",
    "CommunistopolyError",
    "GameSetupError",
    "SnapshotError",
]
