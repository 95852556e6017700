"""
Party Directive card catalog and deck.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import random


class DirectiveEffectType(Enum):
    """Types of directive card effects."""

    MOVE = "move"
    MOVE_RELATIVE = "move_relative"
    MONEY = "money"
    GULAG = "gulag"
    FREE_FROM_GULAG = "free_from_gulag"
    RANK_CHANGE = "rank_change"
    COLLECT_FROM_ALL = "collect_from_all"
    PAY_TO_ALL = "pay_to_all"
    PROPERTY_TAX = "property_tax"
    CUSTOM = "custom"


class CustomHandler(Enum):
    """Named handlers for cards that need bespoke resolution."""

    ADVANCE_TO_NEAREST_RAILWAY = "advance_to_nearest_railway"
    TRIGGER_ANONYMOUS_TRIBUNAL = "trigger_anonymous_tribunal"


@dataclass
class DirectiveCard:
    """A Party Directive card."""

    card_id: str
    title: str
    description: str
    effect: DirectiveEffectType
    destination: Optional[int] = None
    spaces: int = 0
    amount: int = 0
    promote: bool = True
    per_property: int = 0
    per_improvement: int = 0
    handler: Optional[CustomHandler] = None
    pass_stoy: bool = True

    def __repr__(self) -> str:
        return f"DirectiveCard('{self.card_id}: {self.title}')"


PARTY_DIRECTIVE_CARDS: List[DirectiveCard] = [
    DirectiveCard(
        "pd-1", "ADVANCE TO STOY",
        "Report to checkpoint immediately. Pay travel tax if you pass.",
        DirectiveEffectType.MOVE, destination=0,
    ),
    DirectiveCard(
        "pd-2", "LABOUR REASSIGNMENT",
        "You are needed at Camp Vorkuta. Go directly, do not pass STOY.",
        DirectiveEffectType.MOVE, destination=1, pass_stoy=False,
    ),
    DirectiveCard(
        "pd-3", "PARTY BONUS",
        "Your dedication has been noted. Collect 200 rubles from the State.",
        DirectiveEffectType.MONEY, amount=200,
    ),
    DirectiveCard(
        "pd-4", "COUNTER-REVOLUTIONARY ACTIVITY DETECTED",
        "Go directly to Gulag. Do not pass STOY.",
        DirectiveEffectType.GULAG,
    ),
    DirectiveCard(
        "pd-5", "REHABILITATION COMPLETE",
        "Your re-education is successful. Get out of Gulag free.",
        DirectiveEffectType.FREE_FROM_GULAG,
    ),
    DirectiveCard(
        "pd-6", "PRODUCTION QUOTA MET",
        "Each comrade must contribute 50 rubles to your excellence.",
        DirectiveEffectType.COLLECT_FROM_ALL, amount=50,
    ),
    DirectiveCard(
        "pd-7", "VOLUNTARY DONATION",
        "The State requires your support. Pay 150 rubles.",
        DirectiveEffectType.MONEY, amount=-150,
    ),
    DirectiveCard(
        "pd-8", "ADVANCE TO MINISTRY OF LOVE",
        "You are required for questioning.",
        DirectiveEffectType.MOVE, destination=19,
    ),
    DirectiveCard(
        "pd-9", "GO BACK THREE SPACES",
        "Administrative error. Return whence you came.",
        DirectiveEffectType.MOVE_RELATIVE, spaces=-3,
    ),
    DirectiveCard(
        "pd-10", "PROPERTY TAX",
        "Pay 25 rubles per property, 100 rubles per improvement.",
        DirectiveEffectType.PROPERTY_TAX, per_property=25, per_improvement=100,
    ),
    DirectiveCard(
        "pd-11", "DENOUNCED!",
        "An anonymous comrade has reported you. Tribunal immediately.",
        DirectiveEffectType.CUSTOM, handler=CustomHandler.TRIGGER_ANONYMOUS_TRIBUNAL,
    ),
    DirectiveCard(
        "pd-12", "PARTY RECOGNITION",
        "Your loyalty is exemplary. Advance one rank.",
        DirectiveEffectType.RANK_CHANGE, promote=True,
    ),
    DirectiveCard(
        "pd-13", "ADVANCE TO NEAREST RAILWAY",
        "Take the train. If unowned, you may purchase from the State. If owned, pay quota.",
        DirectiveEffectType.CUSTOM, handler=CustomHandler.ADVANCE_TO_NEAREST_RAILWAY,
    ),
    DirectiveCard(
        "pd-14", "BANK ERROR IN YOUR FAVOUR",
        "The State accounting office has made a mistake. Collect 300 rubles.",
        DirectiveEffectType.MONEY, amount=300,
    ),
    DirectiveCard(
        "pd-15", "GO TO BREADLINE",
        "Advance directly to Breadline. Collect from all players.",
        DirectiveEffectType.MOVE, destination=20,
    ),
    DirectiveCard(
        "pd-16", "STREET REPAIRS",
        "Pay 40 rubles per improvement you own.",
        DirectiveEffectType.PROPERTY_TAX, per_property=0, per_improvement=40,
    ),
    DirectiveCard(
        "pd-17", "YOU ARE ASSESSED FOR STREET REPAIRS",
        "Pay 50 rubles per improvement.",
        DirectiveEffectType.PROPERTY_TAX, per_property=0, per_improvement=50,
    ),
    DirectiveCard(
        "pd-18", "ADVANCE TO KREMLIN COMPLEX",
        "Advance to Stalin's Private Office.",
        DirectiveEffectType.MOVE, destination=39,
    ),
    DirectiveCard(
        "pd-19", "GENERAL REPAIRS",
        "Make general repairs on all your properties. Pay 25 rubles per property.",
        DirectiveEffectType.PROPERTY_TAX, per_property=25, per_improvement=0,
    ),
    DirectiveCard(
        "pd-20", "SURPRISE INSPECTION",
        "Your properties are inspected. Pay 15 rubles per property, 50 rubles per improvement.",
        DirectiveEffectType.PROPERTY_TAX, per_property=15, per_improvement=50,
    ),
]


def get_directive_card(card_id: str) -> Optional[DirectiveCard]:
    """Look up a catalog card by id."""
    for card in PARTY_DIRECTIVE_CARDS:
        if card.card_id == card_id:
            return card
    return None


class Deck:
    """A deck of cards that can be shuffled and drawn from."""

    def __init__(self, cards: List[DirectiveCard], rng: random.Random):
        self.cards = cards.copy()
        self.rng = rng
        self.discard_pile: List[DirectiveCard] = []
        self.shuffle()

    def shuffle(self) -> None:
        """Shuffle the deck."""
        self.rng.shuffle(self.cards)

    def draw(self) -> DirectiveCard:
        """
        Draw a card from the front of the deck onto the discard pile.
        If the deck is empty, the discard pile is reshuffled into a new deck first.
        """
        if not self.cards:
            self.cards = self.discard_pile.copy()
            self.discard_pile.clear()
            self.shuffle()

        card = self.cards.pop(0)
        self.discard_pile.append(card)
        return card

    def __len__(self) -> int:
        return len(self.cards)


def create_directive_deck(rng: random.Random) -> Deck:
    """Create a shuffled Party Directive deck."""
    return Deck(PARTY_DIRECTIVE_CARDS, rng)
