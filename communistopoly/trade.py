import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from communistopoly.ledger import can_hold, set_custodian
from communistopoly.money import EventLog, EventType
from communistopoly.pending import PendingAction, PendingActionType, TurnPhase

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)


@dataclass
class TradeItems:
    """
    One side of a trade.

    ``favours`` counts favours the giving side releases: favours the other
    side owes to them.
    """
    rubles: int = 0
    properties: Set[int] = field(default_factory=set)  # Space ids
    gulag_cards: int = 0  # Get out of Gulag free cards
    favours: int = 0

    def is_empty(self) -> bool:
        """Check if the side contains anything."""
        return self.rubles == 0 and not self.properties and self.gulag_cards == 0 and self.favours == 0

    def __repr__(self) -> str:
        items = []
        if self.rubles > 0:
            items.append(f"{self.rubles} rubles")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        if self.gulag_cards > 0:
            items.append(f"{self.gulag_cards} Gulag cards")
        if self.favours > 0:
            items.append(f"{self.favours} favours")
        return " + ".join(items) if items else "nothing"


class Trade:
    """
    A trade between two players.

    Trade flow:
    1. Proposer creates trade with what they offer and what they request
    2. Recipient accepts or rejects
    3. If accepted, everything is transferred at once
    """

    def __init__(
            self,
            trade_id: int,
            proposer_id: int,
            recipient_id: int,
            offering: TradeItems,
            requesting: TradeItems,
            event_log: EventLog,
    ):
        self.trade_id = trade_id
        self.proposer_id = proposer_id
        self.recipient_id = recipient_id
        self.offering = offering
        self.requesting = requesting
        self.event_log = event_log

        self.event_log.log(
            EventType.TRADE,
            f"Trade #{trade_id} proposed: {offering} for {requesting}",
            proposer_id,
            trade_id=trade_id,
            recipient_id=recipient_id,
            offering=str(offering),
            requesting=str(requesting),
        )

    def __repr__(self) -> str:
        return f"Trade(#{self.trade_id}, {self.proposer_id} -> {self.recipient_id})"


class TradeManager:
    """
    Open trade offers and trade history.
    An offer is removed from the open set once accepted, rejected or voided.
    """

    def __init__(self, event_log: EventLog):
        self.event_log = event_log
        self.active_trades: Dict[int, Trade] = {}  # trade_id -> Trade
        self.next_trade_id = 1
        self.trade_history: List[Trade] = []

    def create_trade(
            self,
            proposer_id: int,
            recipient_id: int,
            offering: TradeItems,
            requesting: TradeItems,
    ) -> Trade:
        """Create a new trade proposal."""
        trade = Trade(
            self.next_trade_id,
            proposer_id,
            recipient_id,
            offering,
            requesting,
            self.event_log,
        )
        self.active_trades[self.next_trade_id] = trade
        self.next_trade_id += 1
        return trade

    def complete_trade(self, trade_id: int) -> None:
        """Remove a trade from the open set and move it to history."""
        if trade_id in self.active_trades:
            trade = self.active_trades[trade_id]
            self.trade_history.append(trade)
            del self.active_trades[trade_id]

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        """Get trade by ID."""
        return self.active_trades.get(trade_id)


def _is_trader(game: "GameState", player_id: int) -> bool:
    player = game.players.get(player_id)
    return player is not None and player.is_active


def validate_side(game: "GameState", giver_id: int, receiver_id: int, items: TradeItems) -> Optional[str]:
    """Return why ``giver_id`` cannot hand over ``items``, or None if they can."""
    giver = game.players[giver_id]
    if items.rubles < 0 or items.gulag_cards < 0 or items.favours < 0:
        return "negative amounts"
    if giver.rubles < items.rubles:
        return f"{giver.name} lacks {items.rubles} rubles"
    if giver.free_from_gulag_cards < items.gulag_cards:
        return f"{giver.name} lacks {items.gulag_cards} Gulag cards"
    if game.players[receiver_id].owes_favour_to.count(giver_id) < items.favours:
        return f"{game.players[receiver_id].name} does not owe {items.favours} favours to {giver.name}"
    for space_id in items.properties:
        prop = game.properties.get(space_id)
        if prop is None or prop.custodian_id != giver_id:
            return f"{giver.name} does not hold space {space_id}"
        if not can_hold(game, receiver_id, space_id):
            return f"{game.players[receiver_id].name} may not hold space {space_id}"
    return None


def propose_trade(
    game: "GameState",
    from_id: int,
    to_id: int,
    offering: TradeItems,
    requesting: TradeItems,
) -> Optional[Trade]:
    """Offer a trade and wait on the recipient's answer."""
    if from_id == to_id or not _is_trader(game, from_id) or not _is_trader(game, to_id):
        logger.debug("Rejected trade proposal %s -> %s", from_id, to_id)
        return None
    if offering.is_empty() and requesting.is_empty():
        return None
    if game.pending_action is not None:
        logger.debug("Trade proposal while %r is pending", game.pending_action)
        return None

    problem = validate_side(game, from_id, to_id, offering)
    if problem is not None:
        game.event_log.log(EventType.SYSTEM, f"Invalid trade offer: {problem}", from_id)
        return None

    trade = game.trade_manager.create_trade(from_id, to_id, offering, requesting)
    game.pending_action = PendingAction(
        PendingActionType.TRADE_RESPONSE,
        to_id,
        {"trade_id": trade.trade_id},
        resume_phase=game.turn_phase,
    )
    game.turn_phase = TurnPhase.RESOLVING
    return trade


def _settle_pending(game: "GameState", trade_id: int) -> None:
    pending = game.pending_action
    if pending is not None and pending.is_type(PendingActionType.TRADE_RESPONSE) and pending.data.get("trade_id") == trade_id:
        game.pending_action = None
        if pending.resume_phase is not None:
            game.turn_phase = pending.resume_phase


def _give(game: "GameState", giver_id: int, receiver_id: int, items: TradeItems) -> None:
    giver = game.players[giver_id]
    receiver = game.players[receiver_id]

    giver.rubles -= items.rubles
    receiver.rubles += items.rubles

    for space_id in sorted(items.properties):
        prop = game.properties[space_id]
        level, mortgaged = prop.collectivization_level, prop.is_mortgaged
        set_custodian(game, space_id, receiver_id)
        prop.collectivization_level = level
        prop.is_mortgaged = mortgaged

    giver.free_from_gulag_cards -= items.gulag_cards
    receiver.free_from_gulag_cards += items.gulag_cards

    for _ in range(items.favours):
        receiver.owes_favour_to.remove(giver_id)


def accept_trade(game: "GameState", trade_id: int) -> bool:
    """
    Execute a trade all at once.

    Both sides are validated first; if either fails nothing moves and
    the offer is dropped.
    """
    trade = game.trade_manager.get_trade(trade_id)
    if trade is None:
        return False

    proposer_id, recipient_id = trade.proposer_id, trade.recipient_id
    problem = None
    if not _is_trader(game, proposer_id) or not _is_trader(game, recipient_id):
        problem = "a participant is no longer in the game"
    else:
        problem = (
            validate_side(game, proposer_id, recipient_id, trade.offering)
            or validate_side(game, recipient_id, proposer_id, trade.requesting)
        )

    game.trade_manager.complete_trade(trade_id)
    _settle_pending(game, trade_id)

    if problem is not None:
        game.event_log.log(
            EventType.TRADE,
            f"Trade #{trade_id} voided: {problem}",
            recipient_id,
            trade_id=trade_id,
            voided=True,
        )
        return False

    _give(game, proposer_id, recipient_id, trade.offering)
    _give(game, recipient_id, proposer_id, trade.requesting)

    game.event_log.log(
        EventType.TRADE,
        f"Trade #{trade_id} accepted",
        recipient_id,
        trade_id=trade_id,
        proposer_id=proposer_id,
    )
    return True


def reject_trade(game: "GameState", trade_id: int) -> bool:
    trade = game.trade_manager.get_trade(trade_id)
    if trade is None:
        return False

    game.trade_manager.complete_trade(trade_id)
    _settle_pending(game, trade_id)
    game.event_log.log(
        EventType.TRADE,
        f"Trade #{trade_id} rejected",
        trade.recipient_id,
        trade_id=trade_id,
    )
    return True
