"""
Economic ledger: custodianship, quota, mortgages, collectivization,
treasury transfers, debt and bribes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from communistopoly.config import COLLECTIVIZATION_MULTIPLIERS, MAX_COLLECTIVIZATION_LEVEL, RANK_DISCOUNTS
from communistopoly.gulag import GulagReason, release_from_gulag, send_to_gulag
from communistopoly.money import EventType
from communistopoly.pending import PendingActionType, TurnPhase
from communistopoly.player import Debt, PartyRank, PieceType
from communistopoly.spaces import PropertyGroup, PropertySpace, RailwaySpace, UtilitySpace

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)

GULAG_ESCAPE_BRIBE = "gulag_escape"


@dataclass
class Bribe:
    """A bribe queued for Stalin's decision."""

    bribe_id: str
    player_id: int
    amount: int
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# === TREASURY AND TRANSFERS ===

def adjust_treasury(game: "GameState", delta: int) -> int:
    """Move the treasury balance, clamped at zero. Returns the applied delta."""
    applied = game.treasury.adjust(delta)
    game.statistics.record_treasury(game.treasury.balance)
    return applied


def credit_from_state(game: "GameState", player_id: int, amount: int, reason: str = "") -> None:
    """
    Pay a player from the treasury.

    The player always receives the full amount; the treasury is clamped
    at zero if it cannot cover it.
    """
    player = game.players[player_id]
    player.rubles += amount
    adjust_treasury(game, -amount)
    game.statistics.record_earned(player_id, amount)
    game.statistics.record_wealth(player_id, player.rubles)
    game.event_log.log(
        EventType.PAYMENT,
        f"{player.name} receives {amount} rubles from the State" + (f" ({reason})" if reason else ""),
        player_id,
        amount=amount,
        reason=reason,
    )


def debit_to_state(game: "GameState", player_id: int, amount: int, reason: str = "") -> None:
    """Charge a player into the treasury. Player rubles may go negative."""
    player = game.players[player_id]
    player.rubles -= amount
    adjust_treasury(game, amount)
    game.statistics.record_spent(player_id, amount)
    game.event_log.log(
        EventType.PAYMENT,
        f"{player.name} pays {amount} rubles to the State" + (f" ({reason})" if reason else ""),
        player_id,
        amount=amount,
        reason=reason,
    )


def charge_to_state(game: "GameState", player_id: int, amount: int, reason: str) -> int:
    """
    Charge a player what they can afford; any shortfall becomes a debt to
    the State. Returns the rubles actually paid.
    """
    player = game.players[player_id]
    paid = min(amount, max(player.rubles, 0))
    if paid > 0:
        debit_to_state(game, player_id, paid, reason)
    if paid < amount:
        create_debt(game, player_id, None, amount - paid, reason)
    return paid


def transfer_rubles(game: "GameState", from_id: int, to_id: int, amount: int, reason: str = "") -> None:
    payer = game.players[from_id]
    payee = game.players[to_id]
    payer.rubles -= amount
    payee.rubles += amount
    game.statistics.record_spent(from_id, amount)
    game.statistics.record_earned(to_id, amount)
    game.statistics.record_wealth(to_id, payee.rubles)
    game.event_log.log(
        EventType.PAYMENT,
        f"{payer.name} pays {amount} rubles to {payee.name}" + (f" ({reason})" if reason else ""),
        from_id,
        to_player_id=to_id,
        amount=amount,
        reason=reason,
    )


def set_custodian(game: "GameState", space_id: int, custodian_id: Optional[int]) -> None:
    """Reassign a property, keeping both players' holdings in sync."""
    prop = game.properties[space_id]
    if prop.custodian_id is not None and prop.custodian_id in game.players:
        game.players[prop.custodian_id].properties.discard(space_id)
    prop.custodian_id = custodian_id
    if custodian_id is None:
        prop.return_to_state()
    else:
        game.players[custodian_id].properties.add(space_id)
        stats = game.statistics.for_player(custodian_id)
        if stats is not None:
            stats.properties_owned = max(stats.properties_owned, len(game.players[custodian_id].properties))


# === PURCHASE ===

def can_hold(game: "GameState", player_id: int, space_id: int) -> bool:
    """Rank and piece rules on who may be custodian of a space."""
    player = game.players.get(player_id)
    space = game.board.get_space(space_id) if game.board.is_valid_position(space_id) else None
    if player is None or space is None or not space.is_ownable or not player.is_active:
        return False

    if isinstance(space, UtilitySpace):
        return player.rank.level >= PartyRank.COMMISSAR.level
    if isinstance(space, PropertySpace):
        if space.group == PropertyGroup.ELITE and player.rank.level < PartyRank.PARTY_MEMBER.level:
            return False
        if space.group == PropertyGroup.KREMLIN and player.rank != PartyRank.INNER_CIRCLE:
            return False
        if space.group == PropertyGroup.COLLECTIVE and player.piece == PieceType.TANK:
            return False
    return True


def can_purchase(game: "GameState", player_id: int, space_id: int) -> bool:
    if not can_hold(game, player_id, space_id):
        return False
    return not game.properties[space_id].is_held()


def purchase_price(game: "GameState", player_id: int, space_id: int) -> int:
    """Base cost less the buyer's rank discount."""
    space = game.board.get_space(space_id)
    discount = RANK_DISCOUNTS[game.players[player_id].rank.level]
    return int(space.base_cost * (1 - discount))


def purchase_property(game: "GameState", player_id: int, space_id: int) -> bool:
    """
    Buy an unclaimed space from the State.

    Answers a property_purchase decision if one is pending for this space.
    """
    player = game.players.get(player_id)
    if player is None or space_id not in game.properties:
        return False

    if not can_purchase(game, player_id, space_id):
        game.event_log.log(
            EventType.SYSTEM,
            f"{player.name} may not take custody of {game.board.get_space(space_id).name}",
            player_id,
            space_id=space_id,
            rank=player.rank.value,
        )
        return False

    price = purchase_price(game, player_id, space_id)
    if player.rubles < price:
        game.event_log.log(
            EventType.SYSTEM,
            f"{player.name} cannot afford {game.board.get_space(space_id).name} ({price} rubles)",
            player_id,
            space_id=space_id,
            price=price,
        )
        return False

    debit_to_state(game, player_id, price, "property purchase")
    set_custodian(game, space_id, player_id)
    game.event_log.log(
        EventType.PROPERTY,
        f"{player.name} becomes custodian of {game.board.get_space(space_id).name} for {price} rubles",
        player_id,
        space_id=space_id,
        price=price,
    )
    _clear_landing_decision(game, PendingActionType.PROPERTY_PURCHASE, space_id)
    return True


def decline_purchase(game: "GameState", player_id: int) -> bool:
    pending = game.pending_action
    if pending is None or not pending.is_type(PendingActionType.PROPERTY_PURCHASE):
        return False
    if pending.player_id != player_id:
        return False

    game.event_log.log(
        EventType.PROPERTY,
        f"{game.players[player_id].name} declines {game.board.get_space(pending.data['space_id']).name}",
        player_id,
        space_id=pending.data["space_id"],
    )
    game.pending_action = None
    game.turn_phase = TurnPhase.POST_TURN
    return True


def _clear_landing_decision(game: "GameState", action_type: PendingActionType, space_id: int) -> None:
    pending = game.pending_action
    if pending is not None and pending.is_type(action_type) and pending.data.get("space_id") == space_id:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN


# === QUOTA ===

def owns_whole_group(game: "GameState", player_id: int, group: PropertyGroup) -> bool:
    positions = game.board.get_group(group)
    return bool(positions) and all(game.properties[pos].custodian_id == player_id for pos in positions)


def count_held(game: "GameState", player_id: int, positions) -> int:
    return sum(1 for pos in positions if game.properties[pos].custodian_id == player_id)


def calculate_quota(game: "GameState", space_id: int, lander_id: int, dice_total: int = 0) -> int:
    """
    Quota owed by ``lander_id`` for landing on ``space_id``.

    Zero for State-held, mortgaged or the lander's own spaces.
    """
    prop = game.properties.get(space_id)
    lander = game.players.get(lander_id)
    if prop is None or lander is None:
        return 0
    if not prop.is_held() or prop.is_mortgaged or prop.custodian_id == lander_id:
        return 0

    space = game.board.get_space(space_id)
    custodian_id = prop.custodian_id

    if isinstance(space, RailwaySpace):
        held = count_held(game, custodian_id, game.board.get_all_railways())
        return game.config.railway_fee_per_station * held

    if isinstance(space, UtilitySpace):
        utilities = game.board.get_all_utilities()
        if count_held(game, custodian_id, utilities) == len(utilities):
            return dice_total * game.config.utility_multiplier_both
        return dice_total * game.config.utility_multiplier_single

    quota = int(space.base_quota * COLLECTIVIZATION_MULTIPLIERS[prop.collectivization_level])
    if owns_whole_group(game, custodian_id, space.group):
        quota *= 2
    if space.group == PropertyGroup.ELITE and lander.rank == PartyRank.PROLETARIAT:
        quota *= 2
    if space.group == PropertyGroup.COLLECTIVE and lander.piece == PieceType.SICKLE:
        quota //= 2
    return quota


def pay_quota(game: "GameState", payer_id: int, space_id: int) -> bool:
    """
    Pay the custodian of ``space_id``.

    A payer who cannot cover it owes the full quota as a debt instead.
    Returns True when rubles changed hands.
    """
    payer = game.players.get(payer_id)
    prop = game.properties.get(space_id)
    if payer is None or prop is None:
        return False

    pending = game.pending_action
    if pending is not None and pending.is_type(PendingActionType.QUOTA_PAYMENT) and pending.data.get("space_id") == space_id:
        amount = pending.data["amount"]
    else:
        amount = calculate_quota(game, space_id, payer_id, sum(game.dice))

    custodian_id = prop.custodian_id
    paid = False
    if amount > 0 and custodian_id is not None and payer.rubles >= amount:
        transfer_rubles(game, payer_id, custodian_id, amount, f"quota for {game.board.get_space(space_id).name}")
        paid = True
    elif amount > 0 and custodian_id is not None:
        game.event_log.log(
            EventType.DEBT,
            f"{payer.name} cannot pay {amount} rubles quota to {game.players[custodian_id].name}",
            payer_id,
            amount=amount,
        )
        create_debt(game, payer_id, custodian_id, amount, "quota")

    _clear_landing_decision(game, PendingActionType.QUOTA_PAYMENT, space_id)
    return paid


# === MORTGAGES ===

def mortgage_property(game: "GameState", player_id: int, space_id: int) -> bool:
    player = game.players.get(player_id)
    prop = game.properties.get(space_id)
    if player is None or prop is None or prop.custodian_id != player_id:
        return False
    if prop.is_mortgaged:
        return False
    if prop.collectivization_level > 0:
        game.event_log.log(
            EventType.SYSTEM, "Remove collectivization before mortgaging", player_id, space_id=space_id
        )
        return False

    value = game.board.get_space(space_id).mortgage_value
    prop.is_mortgaged = True
    credit_from_state(game, player_id, value, "mortgage")
    game.event_log.log(
        EventType.PROPERTY,
        f"{player.name} mortgages {game.board.get_space(space_id).name} for {value} rubles",
        player_id,
        space_id=space_id,
        amount=value,
    )
    return True


def unmortgage_cost(game: "GameState", space_id: int) -> int:
    value = game.board.get_space(space_id).mortgage_value
    return int(value * (1 + game.config.unmortgage_interest))


def unmortgage_property(game: "GameState", player_id: int, space_id: int) -> bool:
    player = game.players.get(player_id)
    prop = game.properties.get(space_id)
    if player is None or prop is None or prop.custodian_id != player_id or not prop.is_mortgaged:
        return False

    cost = unmortgage_cost(game, space_id)
    if player.rubles < cost:
        game.event_log.log(
            EventType.SYSTEM, f"{player.name} cannot afford to unmortgage ({cost} rubles)", player_id
        )
        return False

    debit_to_state(game, player_id, cost, "unmortgage")
    prop.is_mortgaged = False
    game.event_log.log(
        EventType.PROPERTY,
        f"{player.name} unmortgages {game.board.get_space(space_id).name}",
        player_id,
        space_id=space_id,
        amount=cost,
    )
    return True


# === COLLECTIVIZATION ===

def can_improve(game: "GameState", player_id: int, space_id: int) -> bool:
    prop = game.properties.get(space_id)
    space = game.board.get_property_space(space_id) if space_id in game.properties else None
    if prop is None or space is None:
        return False
    if prop.custodian_id != player_id or prop.is_mortgaged:
        return False
    if prop.collectivization_level >= MAX_COLLECTIVIZATION_LEVEL:
        return False

    # Even building across the group
    group_levels = [game.properties[pos].collectivization_level for pos in game.board.get_group(space.group)]
    return prop.collectivization_level <= min(group_levels)


def improve_property(game: "GameState", player_id: int, space_id: int) -> bool:
    """Raise a property one collectivization level."""
    player = game.players.get(player_id)
    if player is None or not can_improve(game, player_id, space_id):
        return False

    prop = game.properties[space_id]
    cost = game.config.collectivization_cost_for(prop.collectivization_level)
    if player.rubles < cost:
        game.event_log.log(
            EventType.SYSTEM, f"{player.name} cannot afford collectivization ({cost} rubles)", player_id
        )
        return False

    debit_to_state(game, player_id, cost, "collectivization")
    prop.collectivization_level += 1
    game.event_log.log(
        EventType.PROPERTY,
        f"{player.name} raises {game.board.get_space(space_id).name} to level {prop.collectivization_level}",
        player_id,
        space_id=space_id,
        level=prop.collectivization_level,
        cost=cost,
    )
    return True


def sell_improvement(game: "GameState", player_id: int, space_id: int) -> bool:
    """Remove one collectivization level for half its cost."""
    player = game.players.get(player_id)
    prop = game.properties.get(space_id)
    space = game.board.get_property_space(space_id) if prop is not None else None
    if player is None or prop is None or space is None:
        return False
    if prop.custodian_id != player_id or prop.collectivization_level == 0:
        return False

    group_levels = [game.properties[pos].collectivization_level for pos in game.board.get_group(space.group)]
    if prop.collectivization_level < max(group_levels):
        return False

    refund = game.config.collectivization_cost_for(prop.collectivization_level - 1) // 2
    prop.collectivization_level -= 1
    credit_from_state(game, player_id, refund, "sold collectivization")
    game.event_log.log(
        EventType.PROPERTY,
        f"{player.name} lowers {space.name} to level {prop.collectivization_level}",
        player_id,
        space_id=space_id,
        level=prop.collectivization_level,
        refund=refund,
    )
    return True


# === DEBT ===

def create_debt(
    game: "GameState", debtor_id: int, creditor_id: Optional[int], amount: int, reason: str
) -> Optional[Debt]:
    """
    Attach a debt to a player, replacing any previous one.

    The debtor gets one full round to pay; see ``check_debt_status``.
    """
    debtor = game.players.get(debtor_id)
    if debtor is None or not debtor.is_active or amount <= 0:
        return None

    debtor.debt = Debt(creditor_id, amount, game.round_number, reason)
    creditor_name = game.players[creditor_id].name if creditor_id is not None else "the State"
    game.event_log.log(
        EventType.DEBT,
        f"{debtor.name} owes {amount} rubles to {creditor_name} ({reason})",
        debtor_id,
        creditor_id=creditor_id,
        amount=amount,
        reason=reason,
    )
    return debtor.debt


def pay_debt(game: "GameState", player_id: int) -> bool:
    player = game.players.get(player_id)
    if player is None or player.debt is None:
        return False

    debt = player.debt
    if player.rubles < debt.amount:
        game.event_log.log(
            EventType.SYSTEM, f"{player.name} cannot yet pay the {debt.amount} ruble debt", player_id
        )
        return False

    if debt.creditor_id is None or debt.creditor_id not in game.players:
        debit_to_state(game, player_id, debt.amount, "debt repayment")
    else:
        transfer_rubles(game, player_id, debt.creditor_id, debt.amount, "debt repayment")
    player.debt = None
    game.event_log.log(EventType.DEBT, f"{player.name} settles their debt", player_id, amount=debt.amount)
    return True


def check_debt_status(game: "GameState") -> None:
    """Debts unpaid for more than a full round end in the Gulag."""
    for player in game.players.values():
        if player.debt is None or not player.is_active:
            continue
        if game.round_number > player.debt.created_at_round + 1:
            game.event_log.log(
                EventType.DEBT,
                f"{player.name} defaulted on {player.debt.amount} rubles",
                player.player_id,
                amount=player.debt.amount,
            )
            player.debt = None
            send_to_gulag(game, player.player_id, GulagReason.DEBT_DEFAULT)


# === BRIBES ===

def submit_bribe(game: "GameState", player_id: int, amount: int, reason: str) -> Optional[Bribe]:
    """Queue a bribe for Stalin. Money moves only when Stalin decides."""
    player = game.players.get(player_id)
    if player is None or not player.is_active or amount <= 0:
        return None
    if player.rubles < amount:
        game.event_log.log(
            EventType.SYSTEM, f"{player.name} cannot offer a bribe of {amount} rubles", player_id
        )
        return None

    bribe = Bribe(game.new_id("bribe"), player_id, amount, reason)
    game.bribes.append(bribe)
    game.event_log.log(
        EventType.BRIBE,
        f"{player.name} offers Stalin a bribe of {amount} rubles",
        player_id,
        bribe_id=bribe.bribe_id,
        amount=amount,
        reason=reason,
    )

    pending = game.pending_action
    if pending is not None and pending.is_type(PendingActionType.BRIBE_STALIN) and pending.player_id == player_id:
        game.pending_action = None
        game.turn_phase = TurnPhase.POST_TURN
    return bribe


def respond_to_bribe(game: "GameState", bribe_id: str, accepted: bool) -> bool:
    """
    Stalin decides on a queued bribe.

    The money is taken either way; an accepted Gulag escape bribe also
    frees the prisoner.
    """
    bribe = next((b for b in game.bribes if b.bribe_id == bribe_id), None)
    if bribe is None:
        return False

    game.bribes.remove(bribe)
    player = game.players[bribe.player_id]
    if not player.is_active:
        return True

    debit_to_state(game, bribe.player_id, bribe.amount, "bribe")
    game.event_log.log(
        EventType.BRIBE,
        f"Stalin {'accepts' if accepted else 'rejects'} {player.name}'s bribe",
        bribe.player_id,
        bribe_id=bribe_id,
        accepted=accepted,
    )

    if accepted and bribe.reason == GULAG_ESCAPE_BRIBE:
        release_from_gulag(game, bribe.player_id, "bribe accepted")
        stats = game.statistics.for_player(bribe.player_id)
        if stats is not None:
            stats.gulag_escapes += 1
    return True

