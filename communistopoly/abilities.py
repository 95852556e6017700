"""
Piece abilities and property group powers.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from communistopoly.gulag import GulagReason, send_to_gulag
from communistopoly.ledger import can_hold, set_custodian, transfer_rubles
from communistopoly.money import EventType
from communistopoly.pending import PendingAction, PendingActionType, TurnPhase
from communistopoly.player import PieceType, PlayerState
from communistopoly.questions import draw_question

if TYPE_CHECKING:
    from communistopoly.game import GameState

logger = logging.getLogger(__name__)

SIBERIAN_CAMPS = (1, 3)
KGB_HEADQUARTERS = 23
MINISTRIES = (16, 18, 19)
STATE_MEDIA = (26, 27, 29)


def _piece_holder(game: "GameState", player_id: int, piece: PieceType) -> Optional[PlayerState]:
    player = game.players.get(player_id)
    if player is None or not player.is_active or player.piece != piece:
        return None
    return player


def _controls(game: "GameState", player_id: int, spaces) -> bool:
    return all(game.properties[space_id].custodian_id == player_id for space_id in spaces)


def _suspend(game: "GameState", action: PendingAction) -> bool:
    if game.pending_action is not None:
        logger.debug("Ability request while %r is pending", game.pending_action)
        return False
    action.resume_phase = game.turn_phase
    game.pending_action = action
    game.turn_phase = TurnPhase.RESOLVING
    return True


def _resume(game: "GameState", action_type: PendingActionType) -> Optional[PendingAction]:
    pending = game.pending_action
    if pending is None or not pending.is_type(action_type):
        return None
    game.pending_action = None
    if pending.resume_phase is not None:
        game.turn_phase = pending.resume_phase
    return pending


# === PIECES ===

def tank_requisition(game: "GameState", tank_id: int, target_id: int) -> bool:
    """Take up to 50 rubles from another player, once per lap."""
    tank = _piece_holder(game, tank_id, PieceType.TANK)
    target = game.players.get(target_id)
    if tank is None or target is None or not target.is_active or tank_id == target_id:
        return False
    if tank.tank_requisition_used_this_lap:
        game.event_log.log(EventType.SYSTEM, f"{tank.name} has already requisitioned this lap", tank_id)
        return False

    amount = min(game.config.tank_requisition_amount, max(target.rubles, 0))
    tank.tank_requisition_used_this_lap = True
    if amount > 0:
        transfer_rubles(game, target_id, tank_id, amount, "Tank requisition")
    game.event_log.log(
        EventType.ABILITY,
        f"{tank.name}'s Tank requisitioned {amount} rubles from {target.name}",
        tank_id,
        ability="tank_requisition",
        amount=amount,
    )
    return True


def sickle_harvest(game: "GameState", sickle_id: int, space_id: int) -> bool:
    """Once per game, take a cheap property from whoever holds it."""
    sickle = _piece_holder(game, sickle_id, PieceType.SICKLE)
    prop = game.properties.get(space_id)
    if sickle is None or prop is None:
        return False
    if sickle.has_used_sickle_harvest or prop.custodian_id == sickle_id:
        return False

    space = game.board.get_space(space_id)
    if space.base_cost >= game.config.sickle_harvest_threshold:
        game.event_log.log(
            EventType.SYSTEM,
            f"Cannot harvest {space.name}: its value must be under {game.config.sickle_harvest_threshold} rubles",
            sickle_id,
        )
        return False
    if not can_hold(game, sickle_id, space_id):
        return False

    previous = prop.custodian_id
    set_custodian(game, space_id, sickle_id)
    sickle.has_used_sickle_harvest = True
    game.event_log.log(
        EventType.ABILITY,
        f"{sickle.name}'s Sickle harvested {space.name} from "
        f"{game.players[previous].name if previous is not None else 'the State'}",
        sickle_id,
        ability="sickle_harvest",
        space_id=space_id,
        previous_custodian=previous,
    )
    return True


def iron_curtain_disappear(game: "GameState", player_id: int, space_id: int) -> bool:
    """Once per game, a held property vanishes back to the State."""
    player = _piece_holder(game, player_id, PieceType.IRON_CURTAIN)
    prop = game.properties.get(space_id)
    if player is None or prop is None or player.has_used_iron_curtain_disappear:
        return False
    if not prop.is_held():
        return False

    victim = prop.custodian_id
    set_custodian(game, space_id, None)
    player.has_used_iron_curtain_disappear = True
    game.event_log.log(
        EventType.ABILITY,
        f"{player.name}'s Iron Curtain made {game.board.get_space(space_id).name} disappear "
        f"from {game.players[victim].name}",
        player_id,
        ability="iron_curtain_disappear",
        space_id=space_id,
        victim_id=victim,
    )
    return True


def lenin_speech(game: "GameState", lenin_id: int, applauder_ids: List[int]) -> int:
    """Once per game, collect up to 100 rubles from each applauding comrade."""
    lenin = _piece_holder(game, lenin_id, PieceType.STATUE_OF_LENIN)
    if lenin is None or lenin.has_used_lenin_speech:
        return 0

    lenin.has_used_lenin_speech = True
    collected = 0
    for applauder_id in dict.fromkeys(applauder_ids):
        applauder = game.players.get(applauder_id)
        if applauder is None or not applauder.is_active or applauder_id == lenin_id:
            continue
        amount = min(game.config.lenin_speech_amount, max(applauder.rubles, 0))
        if amount > 0:
            transfer_rubles(game, applauder_id, lenin_id, amount, "applause for Lenin")
            collected += amount

    game.event_log.log(
        EventType.ABILITY,
        f"{lenin.name}'s inspiring speech collected {collected} rubles",
        lenin_id,
        ability="lenin_speech",
        amount=collected,
    )
    return collected


# === PROPERTY GROUPS ===

def siberian_camps_gulag(game: "GameState", custodian_id: int, target_id: int) -> bool:
    """Ask Stalin to send a player to the camps. Needs both Siberian Camps."""
    custodian = game.players.get(custodian_id)
    target = game.players.get(target_id)
    if custodian is None or target is None or not custodian.is_active or not target.is_active:
        return False
    if custodian.has_used_siberian_camps_gulag or custodian_id == target_id:
        return False
    if not _controls(game, custodian_id, SIBERIAN_CAMPS):
        game.event_log.log(
            EventType.SYSTEM, f"{custodian.name} must control both Siberian Camps", custodian_id
        )
        return False

    return _suspend(game, PendingAction(
        PendingActionType.HAMMER_APPROVAL,
        game.stalin_id,
        {"custodian_id": custodian_id, "target_id": target_id},
    ))


def approve_hammer_ability(game: "GameState", approved: bool) -> bool:
    pending = _resume(game, PendingActionType.HAMMER_APPROVAL)
    if pending is None:
        return False

    custodian = game.players[pending.data["custodian_id"]]
    target = game.players[pending.data["target_id"]]
    if approved:
        custodian.has_used_siberian_camps_gulag = True
        game.event_log.log(
            EventType.ABILITY,
            f"{custodian.name} sends {target.name} to the Siberian Camps",
            custodian.player_id,
            ability="siberian_camps_gulag",
            target_id=target.player_id,
        )
        send_to_gulag(game, target.player_id, GulagReason.CAMP_LABOUR)
    else:
        game.event_log.log(
            EventType.ABILITY,
            f"Stalin denied {custodian.name}'s request to send {target.name} to the Gulag",
            custodian.player_id,
        )
    return True


def kgb_preview_test(game: "GameState", custodian_id: int) -> bool:
    """Peek at the next Communist Test question, once per round."""
    custodian = game.players.get(custodian_id)
    if custodian is None or not custodian.is_active:
        return False
    if not _controls(game, custodian_id, (KGB_HEADQUARTERS,)):
        game.event_log.log(
            EventType.SYSTEM, f"{custodian.name} must control KGB Headquarters", custodian_id
        )
        return False
    if custodian.kgb_test_previews_used_this_round >= 1:
        game.event_log.log(
            EventType.SYSTEM, f"{custodian.name} has already used the KGB preview this round", custodian_id
        )
        return False

    question = draw_question(game.rng)
    if not _suspend(game, PendingAction(
        PendingActionType.KGB_TEST_PREVIEW,
        custodian_id,
        {
            "question_id": question.question_id,
            "difficulty": question.difficulty.value,
            "question": question.question,
            "answer": question.answer,
        },
    )):
        return False

    custodian.kgb_test_previews_used_this_round += 1
    game.previewed_question_id = question.question_id
    game.event_log.log(
        EventType.ABILITY,
        f"{custodian.name} used KGB Headquarters to preview a Communist Test question",
        custodian_id,
        ability="kgb_preview_test",
    )
    return True


def ministry_truth_rewrite(game: "GameState", custodian_id: int, new_rule: str) -> bool:
    """Propose a rule rewrite for Stalin's approval. Needs all three Ministries."""
    custodian = game.players.get(custodian_id)
    if custodian is None or not custodian.is_active or custodian.has_used_ministry_truth_rewrite:
        return False
    if not _controls(game, custodian_id, MINISTRIES):
        game.event_log.log(
            EventType.SYSTEM, f"{custodian.name} must control all three Government Ministries", custodian_id
        )
        return False

    return _suspend(game, PendingAction(
        PendingActionType.MINISTRY_TRUTH_APPROVAL,
        game.stalin_id,
        {"custodian_id": custodian_id, "new_rule": new_rule},
    ))


def approve_ministry_truth_rewrite(game: "GameState", approved: bool) -> bool:
    pending = _resume(game, PendingActionType.MINISTRY_TRUTH_APPROVAL)
    if pending is None:
        return False

    custodian = game.players[pending.data["custodian_id"]]
    new_rule = pending.data["new_rule"]
    if approved:
        custodian.has_used_ministry_truth_rewrite = True
        game.rule_rewrites.append(new_rule)
        game.event_log.log(
            EventType.ABILITY,
            f'{custodian.name} used the Ministry of Truth to rewrite a rule: "{new_rule}"',
            custodian.player_id,
            ability="ministry_truth_rewrite",
            rule=new_rule,
        )
    else:
        game.event_log.log(
            EventType.ABILITY, f"Stalin vetoed {custodian.name}'s rule rewrite", custodian.player_id
        )
    return True


def pravda_press_revote(game: "GameState", custodian_id: int, decision: str) -> bool:
    """Once per game, force a public re-vote. Needs all three State Media spaces."""
    custodian = game.players.get(custodian_id)
    if custodian is None or not custodian.is_active or custodian.has_used_pravda_press_revote:
        return False
    if not _controls(game, custodian_id, STATE_MEDIA):
        game.event_log.log(
            EventType.SYSTEM, f"{custodian.name} must control all three State Media properties", custodian_id
        )
        return False

    if not _suspend(game, PendingAction(
        PendingActionType.PRAVDA_PRESS_REVOTE,
        custodian_id,
        {"decision": decision},
    )):
        return False

    custodian.has_used_pravda_press_revote = True
    game.event_log.log(
        EventType.ABILITY,
        f'{custodian.name} used Pravda Press to force a re-vote on: "{decision}"',
        custodian_id,
        ability="pravda_press_revote",
        decision=decision,
    )
    return True


def acknowledge_notice(game: "GameState") -> bool:
    """Dismiss a KGB preview or Pravda re-vote notice and resume the turn."""
    for action_type in (PendingActionType.KGB_TEST_PREVIEW, PendingActionType.PRAVDA_PRESS_REVOTE):
        if _resume(game, action_type) is not None:
            return True
    return False
