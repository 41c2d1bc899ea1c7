"""Combat rules: damage calculation, attack resolution, target validation, skills."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from config import SKILL_MP_COSTS
from engine.errors import IllegalAction, IllegalTarget, InsufficientResource
from engine.grid import range_positions
from models.actions import ActionResult, ActionType

if TYPE_CHECKING:
    from models.actions import RangeCell
    from models.characters import Combatant

logger = logging.getLogger(__name__)


def calculate_damage(attacker: Combatant, target: Combatant, magic: bool = False) -> int:
    """Damage dealt by one hit, never less than 1.

    Args:
        attacker: The attacking combatant.
        target: The combatant being hit.
        magic: Use magic strength against magic defense.

    Returns:
        max(1, attack - defense).
    """
    if magic:
        return max(1, attacker.stats.magic_strength - target.stats.magic_defense)
    return max(1, attacker.stats.strength - target.stats.defense)


def check_death(combatant: Combatant) -> bool:
    """Check if a combatant is dead (at 0 HP)."""
    return combatant.stats.hp <= 0


def apply_damage(combatant: Combatant, damage: int) -> bool:
    """Apply damage to a combatant.

    Returns:
        True if the combatant died.
    """
    combatant.take_damage(damage)
    return check_death(combatant)


def validate_attack_target(
    attacker: Combatant,
    target: Combatant,
    attack_range: Iterable[RangeCell],
) -> None:
    """Check that target may be struck from the precomputed range.

    Raises:
        IllegalTarget: If the target is dead, on the attacker's side, or out of range.
    """
    if not target.is_alive:
        raise IllegalTarget(f"{target.name} is already defeated")
    if target.is_enemy == attacker.is_enemy:
        raise IllegalTarget(f"{attacker.name} cannot attack an ally")
    if target.position not in range_positions(attack_range):
        raise IllegalTarget(f"{target.name} is out of range")


def perform_attack(attacker: Combatant, target: Combatant) -> ActionResult:
    """Resolve a physical attack and apply its damage.

    Range checks are the caller's job. Nothing but target hp changes.

    Args:
        attacker: The attacking combatant.
        target: The combatant being hit.

    Returns:
        ActionResult with damage dealt and the target's remaining hp.
    """
    damage = calculate_damage(attacker, target)
    defeated = apply_damage(target, damage)

    description = (
        f"{attacker.name} attacks {target.name} for {damage} damage. "
        f"{target.name} has {target.stats.hp}/{target.stats.max_hp} HP remaining."
    )
    if defeated:
        description += f" {target.name} has been defeated!"
    logger.info(description)

    return ActionResult(
        success=True,
        action_type=ActionType.ATTACK,
        description=description,
        damage_dealt=damage,
        target_hp_remaining=target.stats.hp,
        target_defeated=defeated,
    )


def skill_cost(slot: int) -> int:
    """Mp cost of a skill slot.

    Raises:
        IllegalAction: If the slot does not exist.
    """
    if slot not in SKILL_MP_COSTS:
        raise IllegalAction(f"Unknown skill slot {slot}")
    return SKILL_MP_COSTS[slot]


def use_skill(combatant: Combatant, slot: int) -> ActionResult:
    """Pay for a skill. Skills have no effect yet beyond their mp cost.

    Raises:
        InsufficientResource: If the combatant cannot afford the skill.
    """
    cost = skill_cost(slot)
    if not combatant.consume_mp(cost):
        raise InsufficientResource(
            f"{combatant.name} needs {cost} MP for skill {slot} but has {combatant.stats.mp}"
        )
    return ActionResult(
        success=True,
        action_type=ActionType.SKILL,
        description=f"{combatant.name} uses skill {slot} ({cost} MP).",
    )
