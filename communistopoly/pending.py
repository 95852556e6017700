"""
Turn phases and the single pending decision a game can be suspended on.

The engine never blocks. When a landing or request needs an outside
decision it stores one ``PendingAction`` and sets the turn phase to
RESOLVING; the matching follow-up operation clears it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class GamePhase(Enum):
    PLAYING = "playing"
    ENDED = "ended"


class TurnPhase(Enum):
    """Phases of a single turn, in the only order they may advance."""

    PRE_ROLL = "pre_roll"
    ROLLING = "rolling"
    MOVING = "moving"
    RESOLVING = "resolving"
    POST_TURN = "post_turn"


class PendingActionType(Enum):
    """Closed set of decisions the engine can wait on."""

    PROPERTY_PURCHASE = "property_purchase"
    QUOTA_PAYMENT = "quota_payment"
    DRAW_PARTY_DIRECTIVE = "draw_party_directive"
    DRAW_COMMUNIST_TEST = "draw_communist_test"
    COMMUNIST_TEST_ANSWER = "communist_test_answer"
    STOY_PILFER = "stoy_pilfer"
    BREADLINE_CONTRIBUTION = "breadline_contribution"
    TRADE_RESPONSE = "trade_response"
    REVIEW_CONFESSION = "review_confession"
    TRIBUNAL = "tribunal"
    BRIBE_STALIN = "bribe_stalin"
    VOUCHER_REQUEST = "voucher_request"
    INFORM_ON_PLAYER = "inform_on_player"
    HAMMER_APPROVAL = "hammer_approval"
    MINISTRY_TRUTH_APPROVAL = "ministry_truth_approval"
    PRAVDA_PRESS_REVOTE = "pravda_press_revote"
    KGB_TEST_PREVIEW = "kgb_test_preview"


@dataclass
class PendingAction:
    """
    A decision the engine is suspended on.

    ``resume_phase`` is the turn phase that was interrupted; side requests
    (trades, confessions, ability approvals) return to it once answered,
    while landing decisions move the turn on to POST_TURN.
    """

    action_type: PendingActionType
    player_id: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)
    resume_phase: Optional[TurnPhase] = None

    def is_type(self, action_type: PendingActionType) -> bool:
        return self.action_type == action_type

    def __repr__(self) -> str:
        return f"PendingAction({self.action_type.value}, player={self.player_id}, {self.data})"
