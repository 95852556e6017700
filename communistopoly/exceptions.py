"""
Exception hierarchy for the Communistopoly engine.

Domain rule violations (bad ids, unaffordable purchases, ineligible
denouncements) never raise; they are logged no-ops. These errors cover
programmer mistakes at the seams: building a game from an invalid roster
or restoring a corrupt snapshot.
"""


class CommunistopolyError(Exception):
    """Base exception for all engine errors."""


class GameSetupError(CommunistopolyError):
    """Roster or configuration cannot produce a playable game."""


class SnapshotError(CommunistopolyError):
    """Persisted snapshot data failed validation."""
