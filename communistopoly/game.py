"""
Main game engine and state management.
"""

import logging
import random
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from communistopoly import abilities, collective, directives, gulag, ledger, standing, trade, tribunal
from communistopoly.board import Board
from communistopoly.cards import DirectiveCard, create_directive_deck
from communistopoly.config import (
    BOARD_SIZE,
    BREADLINE_POSITION,
    ENEMY_OF_STATE_POSITION,
    GULAG_POSITION,
    STOY_POSITION,
    GameConfig,
)
from communistopoly.exceptions import GameSetupError
from communistopoly.money import EventLog, EventType, StateTreasury
from communistopoly.pending import GamePhase, PendingAction, PendingActionType, TurnPhase
from communistopoly.player import PieceType, Player, PlayerState, PropertyState
from communistopoly.questions import TestDifficulty, TestQuestion, draw_question, get_question
from communistopoly.spaces import SpaceType, TaxSpace
from communistopoly.statistics import GameStatistics, PlayerStatistics
from communistopoly.trade import TradeItems, TradeManager

logger = logging.getLogger(__name__)


class BreadlineChoice(str, Enum):
    """What a comrade gives a player standing in the Breadline."""

    RUBLES = "rubles"
    PROPERTY = "property"
    FAVOUR = "favour"
    REFUSE = "refuse"


class GameState:
    """
    Represents the complete state of a Communistopoly game.
    This is the main interface for the game engine.
    """

    def __init__(self, config: GameConfig, players: List[Player], rng: Optional[random.Random] = None):
        self.config = config
        self.board = Board()
        self.event_log = EventLog()
        self.event_log.round_number = 1

        # Initialize RNG
        self.rng = rng if rng is not None else random.Random(config.seed)

        # Initialize players, keeping roster order
        self.players: Dict[int, PlayerState] = {}
        self.stalin_id: Optional[int] = None
        for player in players:
            self.players[player.player_id] = PlayerState(
                player.player_id,
                player.name,
                config.starting_rubles,
                piece=None if player.is_stalin else player.piece,
                is_stalin=player.is_stalin,
            )
            if player.is_stalin:
                self.stalin_id = player.player_id
        self.turn_order: List[int] = list(self.players)

        # Custodianship tracking
        self.properties: Dict[int, PropertyState] = {
            position: PropertyState(position) for position in self.board.ownable_positions()
        }

        competitors = [p for p in self.players.values() if not p.is_stalin]
        self.treasury = StateTreasury(len(competitors) * config.starting_rubles)
        self.statistics = GameStatistics(
            state_treasury_peak=self.treasury.balance,
            player_stats={p.player_id: PlayerStatistics(max_wealth=p.rubles) for p in competitors},
        )

        self.directive_deck = create_directive_deck(self.rng)
        self.trade_manager = TradeManager(self.event_log)

        # Turn state
        self.game_phase = GamePhase.PLAYING
        self.turn_phase = TurnPhase.PRE_ROLL
        self.current_player_index = self.turn_order.index(competitors[0].player_id) if competitors else 0
        self.pending_action: Optional[PendingAction] = None
        self.dice: Tuple[int, int] = (1, 1)
        self.has_rolled = False
        self.doubles_count = 0

        # Subsystem state
        self.vouchers: List[gulag.Voucher] = []
        self.confessions: List[gulag.Confession] = []
        self.bribes: List[ledger.Bribe] = []
        self.denouncements_this_round: List[tribunal.Denouncement] = []
        self.active_tribunal: Optional[tribunal.Tribunal] = None
        self.five_year_plan: Optional[collective.FiveYearPlan] = None
        self.great_purge: Optional[collective.GreatPurge] = None
        self.end_vote: Optional[collective.EndVote] = None
        self.has_used_five_year_plan = False
        self.has_used_great_purge = False
        self.previewed_question_id: Optional[str] = None
        self.rule_rewrites: List[str] = []

        self.winner_id: Optional[int] = None
        self.end_reason: Optional[standing.GameEndReason] = None
        self._next_id = 1

        self.event_log.log(
            EventType.GAME_START,
            f"The game begins with {len(competitors)} comrades",
            players=[p.name for p in competitors],
            stalin=self.players[self.stalin_id].name if self.stalin_id is not None else None,
            starting_rubles=config.starting_rubles,
            seed=config.seed,
        )

    # === QUERIES ===

    @property
    def round_number(self) -> int:
        return self.event_log.round_number

    @round_number.setter
    def round_number(self, value: int) -> None:
        self.event_log.round_number = value

    @property
    def current_player_id(self) -> int:
        return self.turn_order[self.current_player_index % len(self.turn_order)]

    @property
    def game_over(self) -> bool:
        return self.game_phase == GamePhase.ENDED

    def get_current_player(self) -> PlayerState:
        """Get the player whose turn it is."""
        return self.players[self.current_player_id]

    def get_active_players(self) -> List[PlayerState]:
        """Get all non-Stalin, non-eliminated players in roster order."""
        return [p for p in self.players.values() if p.is_active]

    def new_id(self, prefix: str) -> str:
        """Sequential ids, so seeded games stay reproducible."""
        value = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return value

    def roll_two_dice(self) -> Tuple[int, int]:
        return self.rng.randint(1, 6), self.rng.randint(1, 6)

    def _is_playing(self) -> bool:
        if self.game_phase != GamePhase.PLAYING:
            logger.debug("Ignoring request: game has ended")
            return False
        return True

    def _reject_choice(self, kind: str, value, player_id: Optional[int]) -> None:
        logger.debug("Unknown %s %r", kind, value)
        self.event_log.log(EventType.SYSTEM, f"Unknown {kind}: {value!r}", player_id)

    # === DICE AND MOVEMENT ===

    def roll_dice(self, use_vodka: bool = False) -> Optional[Tuple[int, int]]:
        """
        Roll for the current player.

        With ``use_vodka`` a Vodka Bottle rolls three dice and keeps the
        best two, once per lap. Returns the dice kept, or None if rolling
        is not allowed right now.
        """
        if not self._is_playing():
            return None
        if self.turn_phase != TurnPhase.PRE_ROLL or self.pending_action is not None or self.has_rolled:
            logger.debug("Cannot roll in phase %s", self.turn_phase.value)
            return None

        player = self.get_current_player()
        if use_vodka:
            if player.piece != PieceType.VODKA_BOTTLE or player.vodka_used_this_lap:
                self.event_log.log(
                    EventType.SYSTEM, f"{player.name} cannot use the Vodka Bottle now", player.player_id
                )
                return None
            rolled = sorted((self.rng.randint(1, 6) for _ in range(3)), reverse=True)
            self.dice = (rolled[0], rolled[1])
            player.vodka_used_this_lap = True
            player.vodka_use_count += 1
        else:
            rolled = list(self.roll_two_dice())
            self.dice = (rolled[0], rolled[1])

        self.has_rolled = True
        self.turn_phase = TurnPhase.ROLLING
        die1, die2 = self.dice
        self.event_log.log(
            EventType.DICE_ROLL,
            f"{player.name} rolled {die1} + {die2} = {die1 + die2}",
            player.player_id,
            dice=rolled,
            total=die1 + die2,
            doubles=die1 == die2,
            vodka=use_vodka,
        )
        return self.dice

    def finish_rolling(self) -> bool:
        """
        Apply the roll: count doubles, punish a third double, and move.

        Returns True when the player moved.
        """
        if not self._is_playing() or self.turn_phase != TurnPhase.ROLLING:
            return False

        player = self.get_current_player()
        die1, die2 = self.dice
        if die1 == die2:
            self.doubles_count += 1
        else:
            self.doubles_count = 0

        if self.doubles_count >= self.config.three_doubles_threshold:
            self.doubles_count = 0
            gulag.send_to_gulag(self, player.player_id, gulag.GulagReason.THREE_DOUBLES)
            self._finish_turn_actions()
            return False

        if player.in_gulag:
            self.turn_phase = TurnPhase.POST_TURN
            return False

        self.turn_phase = TurnPhase.MOVING
        self.move_player(player.player_id, die1 + die2)
        return True

    def move_player(self, player_id: int, spaces: int) -> int:
        """
        Move a player by ``spaces`` (negative moves go backward).

        Completing a lap re-arms the per-lap abilities; passing STOY
        without landing on it costs the travel tax. Returns the new position.
        """
        player = self.players[player_id]
        old_position = player.position
        new_position = (old_position + spaces) % BOARD_SIZE
        completed_lap = spaces > 0 and old_position != STOY_POSITION and old_position + spaces >= BOARD_SIZE

        player.position = new_position
        self.event_log.log(
            EventType.MOVE,
            f"{player.name} moved from {self.board.get_space(old_position).name} "
            f"to {self.board.get_space(new_position).name}",
            player_id,
            from_position=old_position,
            to_position=new_position,
            spaces=spaces,
        )

        if completed_lap:
            player.laps_completed += 1
            player.tank_requisition_used_this_lap = False
            player.vodka_used_this_lap = False
            if new_position != STOY_POSITION:
                self._charge_stoy_travel_tax(player_id)

        return new_position

    def _charge_stoy_travel_tax(self, player_id: int) -> None:
        player = self.players[player_id]
        tax = self.config.stoy_travel_tax
        self.event_log.log(EventType.PASS_STOY, f"{player.name} paid {tax} rubles travel tax at STOY", player_id)
        # rubles may go negative; no debt
        ledger.debit_to_state(self, player_id, tax, "STOY travel tax")
        if player.piece == PieceType.HAMMER and player.is_active:
            ledger.credit_from_state(self, player_id, self.config.hammer_stoy_bonus, "Hammer bonus at STOY")

    def finish_moving(self) -> bool:
        if not self._is_playing() or self.turn_phase != TurnPhase.MOVING:
            return False
        self.resolve_current_space()
        return True

    def resolve_current_space(self) -> None:
        """
        Resolve the space the current player is standing on.

        Spaces that need a decision leave a pending action and the
        RESOLVING phase; everything else moves the turn to POST_TURN.
        """
        if not self._is_playing():
            return

        player = self.get_current_player()
        position = player.position
        space = self.board.get_space(position)
        self.event_log.log(EventType.LAND, f"{player.name} landed on {space.name}", player.player_id, position=position)

        if position == STOY_POSITION:
            self._await(PendingAction(PendingActionType.STOY_PILFER, player.player_id))
        elif position == GULAG_POSITION:
            self.event_log.log(EventType.LAND, f"{player.name} is just visiting the Gulag", player.player_id)
            self._finish_turn_actions()
        elif position == BREADLINE_POSITION:
            self._open_breadline(player)
        elif position == ENEMY_OF_STATE_POSITION:
            gulag.send_to_gulag(self, player.player_id, gulag.GulagReason.ENEMY_OF_STATE)
            self._finish_turn_actions()
        elif position in self.properties:
            self._resolve_property(player, position)
        elif space.space_type == SpaceType.PARTY_DIRECTIVE:
            self._await(PendingAction(PendingActionType.DRAW_PARTY_DIRECTIVE, player.player_id))
        elif space.space_type == SpaceType.COMMUNIST_TEST:
            self._await(PendingAction(PendingActionType.DRAW_COMMUNIST_TEST, player.player_id))
        elif isinstance(space, TaxSpace):
            self.event_log.log(EventType.LAND, f"{space.name}: {space.rule}", player.player_id)
            self._finish_turn_actions()
        else:
            self._finish_turn_actions()

    def _resolve_property(self, player: PlayerState, space_id: int) -> None:
        prop = self.properties[space_id]
        if not prop.is_held():
            self._await(PendingAction(PendingActionType.PROPERTY_PURCHASE, player.player_id, {"space_id": space_id}))
            return

        if prop.custodian_id != player.player_id and not prop.is_mortgaged:
            amount = ledger.calculate_quota(self, space_id, player.player_id, sum(self.dice))
            self._await(PendingAction(
                PendingActionType.QUOTA_PAYMENT,
                player.player_id,
                {"space_id": space_id, "amount": amount, "custodian_id": prop.custodian_id},
            ))
            return

        if prop.is_mortgaged and prop.custodian_id != player.player_id:
            self.event_log.log(
                EventType.LAND,
                f"{self.board.get_space(space_id).name} is mortgaged, no quota charged",
                player.player_id,
            )
        self._finish_turn_actions()

    def _await(self, action: PendingAction) -> None:
        self.pending_action = action
        self.turn_phase = TurnPhase.RESOLVING

    def _finish_turn_actions(self) -> None:
        if self.game_phase == GamePhase.PLAYING:
            self.pending_action = None
            self.turn_phase = TurnPhase.POST_TURN

    # === TURN FLOW ===

    def end_turn(self) -> bool:
        """
        End the current turn.

        A player who rolled doubles and is not in the Gulag goes again.
        Otherwise play passes to the next competitor (prisoners included),
        and wrapping past the end of the roster starts a new round.
        """
        if not self._is_playing() or self.pending_action is not None:
            return False

        player = self.get_current_player()
        serving_sentence = self.turn_phase == TurnPhase.PRE_ROLL and player.in_gulag
        if self.turn_phase != TurnPhase.POST_TURN and not serving_sentence:
            logger.debug("Cannot end turn in phase %s", self.turn_phase.value)
            return False

        self.statistics.total_turns += 1
        stats = self.statistics.for_player(player.player_id)
        if stats is not None:
            stats.turns_played += 1
        self.statistics.record_wealth(player.player_id, standing.calculate_total_wealth(self, player.player_id))
        self.statistics.record_treasury(self.treasury.balance)

        if self.doubles_count > 0 and player.is_active and not player.in_gulag:
            self._reset_turn()
            self.event_log.log(EventType.TURN_START, f"{player.name} rolled doubles and goes again", player.player_id)
            return True

        count = len(self.turn_order)
        next_index = None
        for step in range(1, count + 1):
            candidate = (self.current_player_index + step) % count
            if self.players[self.turn_order[candidate]].is_active:
                next_index = candidate
                break
        if next_index is None:
            standing.check_game_end(self)
            return False

        wrapped = next_index <= self.current_player_index
        self.current_player_index = next_index
        self.doubles_count = 0
        self._reset_turn()

        if wrapped:
            self.increment_round()
            if not self._is_playing():
                return True
            self._reset_turn()

        incoming = self.get_current_player()
        self.event_log.log(EventType.TURN_START, f"{incoming.name}'s turn", incoming.player_id)
        if incoming.in_gulag:
            gulag.handle_gulag_turn(self, incoming.player_id)
        return True

    def _reset_turn(self) -> None:
        self.turn_phase = TurnPhase.PRE_ROLL
        self.has_rolled = False
        self.pending_action = None

    def increment_round(self) -> None:
        """Start a new round and run the round-boundary bookkeeping."""
        self.round_number += 1
        self.denouncements_this_round = []
        for player in self.players.values():
            player.kgb_test_previews_used_this_round = 0

        self.event_log.log(EventType.ROUND_START, f"Round {self.round_number} begins")
        gulag.expire_vouchers(self)
        ledger.check_debt_status(self)

    # === STOY AND BREADLINE ===

    def handle_stoy_pilfer(self, player_id: int, roll: Optional[int] = None) -> bool:
        """
        Try to pilfer from the treasury after landing exactly on STOY.

        The engine rolls one die when ``roll`` is None. Returns True on
        a successful pilfer.
        """
        pending = self.pending_action
        if pending is None or not pending.is_type(PendingActionType.STOY_PILFER) or pending.player_id != player_id:
            return False

        if roll is None:
            roll = self.rng.randint(1, 6)
        self.pending_action = None
        player = self.players[player_id]

        success = roll >= self.config.pilfer_threshold
        if success:
            ledger.credit_from_state(self, player_id, self.config.pilfer_amount, "pilfered at STOY")
            self.event_log.log(
                EventType.PAYMENT,
                f"{player.name} rolled {roll} and pilfered {self.config.pilfer_amount} rubles from the State",
                player_id,
                roll=roll,
            )
        else:
            self.event_log.log(EventType.GULAG, f"{player.name} rolled {roll} and was caught pilfering", player_id, roll=roll)
            gulag.send_to_gulag(self, player_id, gulag.GulagReason.PILFERING_CAUGHT)

        self._finish_turn_actions()
        return success

    def decline_stoy_pilfer(self, player_id: int) -> bool:
        pending = self.pending_action
        if pending is None or not pending.is_type(PendingActionType.STOY_PILFER) or pending.player_id != player_id:
            return False
        self.event_log.log(EventType.LAND, f"{self.players[player_id].name} resists temptation at STOY", player_id)
        self._finish_turn_actions()
        return True

    def _open_breadline(self, lander: PlayerState) -> None:
        contributors = [
            p.player_id for p in self.get_active_players()
            if p.player_id != lander.player_id and not p.in_gulag
        ]
        self.event_log.log(
            EventType.LAND,
            f"{lander.name} landed on the Breadline - all comrades must contribute!",
            lander.player_id,
        )
        if not contributors:
            self._finish_turn_actions()
            return
        self._await(PendingAction(
            PendingActionType.BREADLINE_CONTRIBUTION,
            contributors[0],
            {"lander_id": lander.player_id, "contributors": contributors, "responses": {}},
        ))

    def respond_to_breadline(
        self,
        contributor_id: int,
        choice: Union[BreadlineChoice, str],
        space_id: Optional[int] = None,
    ) -> bool:
        """Record one comrade's Breadline answer; the turn continues once all have answered."""
        pending = self.pending_action
        if pending is None or not pending.is_type(PendingActionType.BREADLINE_CONTRIBUTION):
            return False
        if pending.player_id != contributor_id:
            return False
        try:
            choice = BreadlineChoice(choice)
        except ValueError:
            logger.debug("Unknown breadline choice %r", choice)
            return False

        lander_id = pending.data["lander_id"]
        lander = self.players[lander_id]
        contributor = self.players[contributor_id]

        if choice == BreadlineChoice.RUBLES:
            amount = self.config.breadline_contribution
            if contributor.rubles < amount:
                self.event_log.log(
                    EventType.SYSTEM, f"{contributor.name} does not have {amount} rubles to contribute", contributor_id
                )
                return False
            ledger.transfer_rubles(self, contributor_id, lander_id, amount, "Breadline contribution")

        elif choice == BreadlineChoice.PROPERTY:
            prop = self.properties.get(space_id) if space_id is not None else None
            if prop is None or prop.custodian_id != contributor_id or prop.is_mortgaged:
                return False
            if not ledger.can_hold(self, lander_id, space_id):
                return False
            ledger.set_custodian(self, space_id, lander_id)
            self.event_log.log(
                EventType.PROPERTY,
                f"{contributor.name} contributed {self.board.get_space(space_id).name} to {lander.name} at the Breadline",
                contributor_id,
                space_id=space_id,
            )

        elif choice == BreadlineChoice.FAVOUR:
            contributor.owes_favour_to.append(lander_id)
            self.event_log.log(
                EventType.SYSTEM, f"{contributor.name} owes a favour to {lander.name} from the Breadline", contributor_id
            )

        else:
            self.event_log.log(
                EventType.SYSTEM,
                f"{contributor.name} REFUSED to contribute at the Breadline - subject to denouncement!",
                contributor_id,
            )

        pending.data["responses"][contributor_id] = choice.value
        remaining = [
            pid for pid in pending.data["contributors"]
            if pid not in pending.data["responses"] and self.players[pid].is_active
        ]
        if remaining:
            pending.player_id = remaining[0]
        else:
            self._finish_turn_actions()
        return True

    # === COMMUNIST TEST ===

    def draw_communist_test(
        self, difficulty: Optional[Union[TestDifficulty, str]] = None
    ) -> Optional[TestQuestion]:
        """Draw a question for the player waiting on a test. A KGB preview fixes the question."""
        pending = self.pending_action
        if pending is None or not pending.is_type(PendingActionType.DRAW_COMMUNIST_TEST):
            return None

        question = get_question(self.previewed_question_id) if self.previewed_question_id else None
        self.previewed_question_id = None
        if question is None:
            question = draw_question(self.rng, TestDifficulty(difficulty) if difficulty else None)

        tested_id = pending.player_id
        self.pending_action = PendingAction(
            PendingActionType.COMMUNIST_TEST_ANSWER,
            tested_id,
            {"question_id": question.question_id, "difficulty": question.difficulty.value, "question": question.question},
        )
        self.event_log.log(
            EventType.TEST,
            f"{self.players[tested_id].name} faces a {question.difficulty.value} Communist Test: {question.question}",
            tested_id,
            question_id=question.question_id,
        )
        return question

    def answer_communist_test(self, player_id: int, answer: str, stalin_amount: int = 0) -> Optional[bool]:
        """
        Grade an answer and apply the reward or penalty.

        Trick questions have no fixed outcome; Stalin's ``stalin_amount``
        is paid (positive) or charged (negative). Returns whether the
        answer was judged correct, or None if no test is pending.
        """
        pending = self.pending_action
        if pending is None or not pending.is_type(PendingActionType.COMMUNIST_TEST_ANSWER):
            return None
        if pending.player_id != player_id:
            return None

        question = get_question(pending.data["question_id"])
        player = self.players[player_id]
        stats = self.statistics.for_player(player_id)
        self.pending_action = None

        if question.difficulty == TestDifficulty.TRICK:
            correct = self._settle_trick_question(player, stalin_amount)
        else:
            correct = question.is_correct(answer)
            multiplier = 2 if player.piece == PieceType.RED_STAR else 1
            if correct:
                player.correct_test_answers += 1
                player.consecutive_failed_tests = 0
                ledger.credit_from_state(self, player_id, question.reward, "Communist Test reward")
                self.event_log.log(
                    EventType.TEST, f"{player.name} answered correctly: {question.answer}", player_id, correct=True
                )
                if question.grants_rank_up:
                    standing.promote_player(self, player_id)
            else:
                player.consecutive_failed_tests += 1
                self.event_log.log(
                    EventType.TEST,
                    f"{player.name} answered incorrectly. The correct answer: {question.answer}",
                    player_id,
                    correct=False,
                )
                if question.penalty > 0:
                    ledger.charge_to_state(self, player_id, question.penalty * multiplier, "Communist Test penalty")
                if player.consecutive_failed_tests >= 2:
                    player.consecutive_failed_tests = 0
                    standing.demote_player(self, player_id)

        if stats is not None and correct is not None:
            if correct:
                stats.tests_passed += 1
            else:
                stats.tests_failed += 1

        if self.current_player_id == player_id:
            self._finish_turn_actions()
        return correct

    def _settle_trick_question(self, player: PlayerState, stalin_amount: int) -> Optional[bool]:
        if player.piece == PieceType.VODKA_BOTTLE:
            self.event_log.log(
                EventType.TEST, f"{player.name}'s Vodka Bottle makes them immune to trick questions", player.player_id
            )
            return None
        if stalin_amount > 0:
            ledger.credit_from_state(self, player.player_id, stalin_amount, "trick question reward")
            self.event_log.log(EventType.TEST, f"Stalin rewards {player.name} with {stalin_amount} rubles", player.player_id)
            return True
        if stalin_amount < 0:
            ledger.charge_to_state(self, player.player_id, -stalin_amount, "trick question penalty")
            self.event_log.log(EventType.TEST, f"Stalin punishes {player.name}: {-stalin_amount} rubles", player.player_id)
            return False
        self.event_log.log(EventType.TEST, f"Stalin lets {player.name}'s answer pass without comment", player.player_id)
        return None

    # === LEDGER ===

    def adjust_treasury(self, delta: int) -> int:
        return ledger.adjust_treasury(self, delta)

    def credit_from_state(self, player_id: int, amount: int, reason: str = "") -> None:
        ledger.credit_from_state(self, player_id, amount, reason)

    def debit_to_state(self, player_id: int, amount: int, reason: str = "") -> None:
        ledger.debit_to_state(self, player_id, amount, reason)

    def can_purchase(self, player_id: int, space_id: int) -> bool:
        return ledger.can_purchase(self, player_id, space_id)

    def purchase_property(self, player_id: int, space_id: int) -> bool:
        return ledger.purchase_property(self, player_id, space_id)

    def decline_purchase(self, player_id: int) -> bool:
        return ledger.decline_purchase(self, player_id)

    def calculate_quota(self, space_id: int, lander_id: int, dice_total: int = 0) -> int:
        return ledger.calculate_quota(self, space_id, lander_id, dice_total)

    def pay_quota(self, payer_id: int, space_id: int) -> bool:
        return ledger.pay_quota(self, payer_id, space_id)

    def mortgage_property(self, player_id: int, space_id: int) -> bool:
        return ledger.mortgage_property(self, player_id, space_id)

    def unmortgage_property(self, player_id: int, space_id: int) -> bool:
        return ledger.unmortgage_property(self, player_id, space_id)

    def improve_property(self, player_id: int, space_id: int) -> bool:
        return ledger.improve_property(self, player_id, space_id)

    def sell_improvement(self, player_id: int, space_id: int) -> bool:
        return ledger.sell_improvement(self, player_id, space_id)

    def create_debt(self, debtor_id: int, creditor_id: Optional[int], amount: int, reason: str):
        return ledger.create_debt(self, debtor_id, creditor_id, amount, reason)

    def pay_debt(self, player_id: int) -> bool:
        return ledger.pay_debt(self, player_id)

    def check_debt_status(self) -> None:
        ledger.check_debt_status(self)

    def submit_bribe(self, player_id: int, amount: int, reason: str) -> Optional[ledger.Bribe]:
        return ledger.submit_bribe(self, player_id, amount, reason)

    def respond_to_bribe(self, bribe_id: str, accepted: bool) -> bool:
        return ledger.respond_to_bribe(self, bribe_id, accepted)

    # === TRADING ===

    def propose_trade(self, from_id: int, to_id: int, offering: TradeItems, requesting: TradeItems) -> Optional[trade.Trade]:
        return trade.propose_trade(self, from_id, to_id, offering, requesting)

    def accept_trade(self, trade_id: int) -> bool:
        return trade.accept_trade(self, trade_id)

    def reject_trade(self, trade_id: int) -> bool:
        return trade.reject_trade(self, trade_id)

    # === RANK, WEALTH AND ELIMINATION ===

    def promote_player(self, player_id: int) -> bool:
        return standing.promote_player(self, player_id)

    def demote_player(self, player_id: int) -> bool:
        return standing.demote_player(self, player_id)

    def calculate_total_wealth(self, player_id: int) -> int:
        return standing.calculate_total_wealth(self, player_id)

    def check_elimination(self, player_id: int) -> bool:
        return standing.check_elimination(self, player_id)

    def eliminate_player(self, player_id: int, reason: standing.EliminationReason) -> bool:
        return standing.eliminate_player(self, player_id, reason)

    def check_game_end(self) -> bool:
        return standing.check_game_end(self)

    # === GULAG ===

    def send_to_gulag(self, player_id: int, reason: gulag.GulagReason) -> bool:
        return gulag.send_to_gulag(self, player_id, reason)

    def release_from_gulag(self, player_id: int, reason: str) -> bool:
        return gulag.release_from_gulag(self, player_id, reason)

    def handle_gulag_turn(self, player_id: int) -> bool:
        return gulag.handle_gulag_turn(self, player_id)

    def attempt_gulag_escape(self, player_id: int, method: gulag.EscapeMethod) -> bool:
        try:
            method = gulag.EscapeMethod(method)
        except ValueError:
            self._reject_choice("escape method", method, player_id)
            return False
        return gulag.attempt_gulag_escape(self, player_id, method)

    def request_voucher(self, prisoner_id: int) -> bool:
        return gulag.request_voucher(self, prisoner_id)

    def vouch_for_player(self, prisoner_id: int, sponsor_id: int) -> bool:
        return gulag.vouch_for_player(self, prisoner_id, sponsor_id)

    def decline_voucher_request(self) -> bool:
        return gulag.decline_voucher_request(self)

    def check_voucher_consequences(self, prisoner_id: int, reason: gulag.GulagReason) -> bool:
        return gulag.check_voucher_consequences(self, prisoner_id, reason)

    def expire_vouchers(self) -> int:
        return gulag.expire_vouchers(self)

    def submit_confession(self, prisoner_id: int, text: str) -> Optional[gulag.Confession]:
        return gulag.submit_confession(self, prisoner_id, text)

    def review_confession(self, confession_id: str, accepted: bool) -> bool:
        return gulag.review_confession(self, confession_id, accepted)

    # === TRIBUNAL ===

    def can_denounce(self, accuser_id: int, accused_id: int) -> bool:
        return tribunal.can_denounce(self, accuser_id, accused_id)

    def initiate_denouncement(self, accuser_id: int, accused_id: int, crime: str) -> Optional[tribunal.Tribunal]:
        return tribunal.initiate_denouncement(self, accuser_id, accused_id, crime)

    def trigger_anonymous_tribunal(self, accused_id: int, crime: str = "Anonymous denunciation") -> Optional[tribunal.Tribunal]:
        return tribunal.trigger_anonymous_tribunal(self, accused_id, crime)

    def inform_on_player(self, informer_id: int, accused_id: int, crime: str) -> Optional[tribunal.Tribunal]:
        return tribunal.inform_on_player(self, informer_id, accused_id, crime)

    def advance_tribunal_phase(self) -> bool:
        return tribunal.advance_tribunal_phase(self)

    def add_witness(self, witness_id: int, side: tribunal.WitnessSide) -> bool:
        try:
            side = tribunal.WitnessSide(side)
        except ValueError:
            self._reject_choice("witness side", side, witness_id)
            return False
        return tribunal.add_witness(self, witness_id, side)

    def remove_witness(self, witness_id: int) -> bool:
        return tribunal.remove_witness(self, witness_id)

    def has_enough_witnesses(self) -> bool:
        return tribunal.has_enough_witnesses(self)

    def render_verdict(self, verdict: tribunal.Verdict) -> bool:
        try:
            verdict = tribunal.Verdict(verdict)
        except ValueError:
            self._reject_choice("verdict", verdict, self.stalin_id)
            return False
        return tribunal.render_verdict(self, verdict)

    # === PARTY DIRECTIVES ===

    def draw_party_directive(self, player_id: Optional[int] = None) -> Optional[DirectiveCard]:
        return directives.draw_party_directive(self, player_id)

    # === COLLECTIVE MECHANICS ===

    def initiate_five_year_plan(self, target: int, duration_minutes: int) -> Optional[collective.FiveYearPlan]:
        return collective.initiate_five_year_plan(self, target, duration_minutes)

    def contribute_to_five_year_plan(self, player_id: int, amount: int) -> bool:
        return collective.contribute_to_five_year_plan(self, player_id, amount)

    def resolve_five_year_plan(self) -> Optional[bool]:
        return collective.resolve_five_year_plan(self)

    def initiate_great_purge(self) -> Optional[collective.GreatPurge]:
        return collective.initiate_great_purge(self)

    def vote_in_great_purge(self, voter_id: int, target_id: int) -> bool:
        return collective.vote_in_great_purge(self, voter_id, target_id)

    def resolve_great_purge(self) -> List[int]:
        return collective.resolve_great_purge(self)

    def initiate_end_vote(self, initiator_id: int) -> Optional[collective.EndVote]:
        return collective.initiate_end_vote(self, initiator_id)

    def cast_end_vote(self, player_id: int, vote: bool) -> bool:
        return collective.cast_end_vote(self, player_id, vote)

    # === ABILITIES ===

    def tank_requisition(self, tank_id: int, target_id: int) -> bool:
        return abilities.tank_requisition(self, tank_id, target_id)

    def sickle_harvest(self, sickle_id: int, space_id: int) -> bool:
        return abilities.sickle_harvest(self, sickle_id, space_id)

    def iron_curtain_disappear(self, player_id: int, space_id: int) -> bool:
        return abilities.iron_curtain_disappear(self, player_id, space_id)

    def lenin_speech(self, lenin_id: int, applauder_ids: List[int]) -> int:
        return abilities.lenin_speech(self, lenin_id, applauder_ids)

    def siberian_camps_gulag(self, custodian_id: int, target_id: int) -> bool:
        return abilities.siberian_camps_gulag(self, custodian_id, target_id)

    def approve_hammer_ability(self, approved: bool) -> bool:
        return abilities.approve_hammer_ability(self, approved)

    def kgb_preview_test(self, custodian_id: int) -> bool:
        return abilities.kgb_preview_test(self, custodian_id)

    def ministry_truth_rewrite(self, custodian_id: int, new_rule: str) -> bool:
        return abilities.ministry_truth_rewrite(self, custodian_id, new_rule)

    def approve_ministry_truth_rewrite(self, approved: bool) -> bool:
        return abilities.approve_ministry_truth_rewrite(self, approved)

    def pravda_press_revote(self, custodian_id: int, decision: str) -> bool:
        return abilities.pravda_press_revote(self, custodian_id, decision)

    def acknowledge_notice(self) -> bool:
        return abilities.acknowledge_notice(self)

    def __repr__(self) -> str:
        return (
            f"GameState(round={self.round_number}, phase={self.game_phase.value}, "
            f"turn={self.turn_phase.value}, current={self.current_player_id})"
        )


def create_game(config: GameConfig, players: List[Player], rng: Optional[random.Random] = None) -> GameState:
    """
    Create a new game with the given configuration and players.

    Raises GameSetupError for rosters that cannot produce a playable game.
    """
    if not players:
        raise GameSetupError("A game needs players")

    ids = [p.player_id for p in players]
    if len(set(ids)) != len(ids):
        raise GameSetupError(f"Duplicate player ids: {ids}")

    stalins = [p for p in players if p.is_stalin]
    if len(stalins) > 1:
        raise GameSetupError("Only one player may be Stalin")

    competitors = [p for p in players if not p.is_stalin]
    if len(competitors) < 2:
        raise GameSetupError("A game needs at least two competing comrades")

    game = GameState(config, players, rng)
    logger.info("Created game with %d players (seed=%s)", len(players), config.seed)
    return game
