"""Shared test fixtures for the Communistopoly engine tests."""

import random

import pytest

from communistopoly import GameConfig, Player, create_game


class FixedDice(random.Random):
    """Seeded random source whose ``randint`` calls return queued rolls first."""

    def __init__(self, rolls=(), seed=42):
        super().__init__(seed)
        self.rolls = list(rolls)

    def queue(self, *rolls):
        self.rolls.extend(rolls)

    def randint(self, a, b):
        if self.rolls:
            return self.rolls.pop(0)
        return super().randint(a, b)


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def comrades():
    """Stalin plus three competing comrades without pieces."""
    return [
        Player(0, "Stalin", is_stalin=True),
        Player(1, "Yuri"),
        Player(2, "Olga"),
        Player(3, "Mikhail"),
    ]


@pytest.fixture
def dice():
    return FixedDice()


@pytest.fixture
def basic_game(game_config, comrades, dice):
    """Four-seat game (Stalin and three comrades) with queued dice."""
    return create_game(game_config, comrades, rng=dice)


@pytest.fixture
def make_game(game_config, dice):
    """Build a game whose comrades carry the given pieces, in roster order from id 1."""

    def _make(*pieces):
        roster = [Player(0, "Stalin", is_stalin=True)]
        names = ["Yuri", "Olga", "Mikhail", "Katya", "Boris"]
        for index, piece in enumerate(pieces):
            roster.append(Player(index + 1, names[index], piece))
        return create_game(game_config, roster, rng=dice)

    return _make
