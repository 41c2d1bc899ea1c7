"""AI decisions for computer-controlled combatants."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from engine.grid import compute_attack_range, compute_movement_range, manhattan, range_positions
from models.actions import ActionType, AIDecision

if TYPE_CHECKING:
    from models.characters import Combatant
    from models.game_state import Grid

logger = logging.getLogger(__name__)


def opponents_of(actor: Combatant, combatants: Iterable[Combatant]) -> list[Combatant]:
    """Living combatants on the other side, in battle order."""
    return [c for c in combatants if c.is_alive and c.is_enemy != actor.is_enemy]


def decide_action(
    actor: Combatant,
    combatants: list[Combatant],
    grid: Grid,
) -> AIDecision | None:
    """Pick a move (and possibly an attack) for an AI-controlled combatant.

    Every reachable cell, staying put included, is tried in row-major order.
    The cheapest move that puts an opponent inside attack range wins; the
    first one found wins ties. If nothing is attackable this activation the
    actor walks toward the closest opponent instead.

    Args:
        actor: The combatant deciding.
        combatants: Everyone on the battlefield.
        grid: The battlefield bounds.

    Returns:
        The decision, or None when there is nobody left to fight.
    """
    targets = opponents_of(actor, combatants)
    if not targets:
        logger.info("%s has no opponents left", actor.name)
        return None

    start = actor.position
    reachable = range_positions(compute_movement_range(actor, combatants, grid), include_origin=True)
    candidates = [cell for cell in grid.cells() if cell in reachable]

    best: AIDecision | None = None
    best_cost = None
    for cell in candidates:
        reach = range_positions(compute_attack_range(actor, grid, origin=cell))
        for target in targets:
            if target.position not in reach:
                continue
            cost = manhattan(start, cell)
            if best_cost is None or cost < best_cost:
                best_cost = cost
                best = AIDecision(action_type=ActionType.ATTACK, move_to=cell, target_id=target.id)

    if best is not None:
        logger.info("%s decides to attack %s from %s", actor.name, best.target_id, best.move_to)
        return best

    closest = targets[0]
    closest_distance = manhattan(start, closest.position)
    for target in targets[1:]:
        d = manhattan(start, target.position)
        if d < closest_distance:
            closest, closest_distance = target, d

    move_to = start
    best_distance = closest_distance
    for cell in candidates:
        d = manhattan(cell, closest.position)
        if d < best_distance:
            move_to, best_distance = cell, d

    logger.info("%s advances toward %s, moving to %s", actor.name, closest.name, move_to)
    return AIDecision(action_type=ActionType.MOVE, move_to=move_to)
