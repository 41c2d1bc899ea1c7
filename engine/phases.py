"""Per-activation action state machine: which inputs are legal right now."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from engine.errors import IllegalAction, IllegalTarget, NotYourTurn
from engine.grid import compute_attack_range, compute_movement_range, move_combatant, range_positions
from engine.rules import validate_attack_target
from models.game_state import PhaseState

if TYPE_CHECKING:
    from models.actions import RangeCell
    from models.characters import Combatant
    from models.game_state import Grid

logger = logging.getLogger(__name__)


class ActionPhase:
    """Tracks one combatant's activation.

    normal -> moving -> moved -> attacking -> resolved, with attack, skill and
    wait also reachable straight from normal. A committed move can be undone
    from moved; nothing else can be taken back. Exactly one resolution is
    allowed per activation.
    """

    def __init__(self) -> None:
        self.actor: Combatant | None = None
        self.selected: Combatant | None = None
        self.state = PhaseState.NORMAL
        self.original_position: tuple[int, int] | None = None
        self.movement_range: list[RangeCell] = []
        self.attack_range: list[RangeCell] = []
        self.resolved = False
        self._attack_from = PhaseState.NORMAL

    def begin(self, actor: Combatant | None) -> None:
        """Reset for a new activation."""
        self.actor = actor
        self.selected = actor
        self.state = PhaseState.NORMAL
        self.original_position = None
        self.movement_range = []
        self.attack_range = []
        self.resolved = False
        self._attack_from = PhaseState.NORMAL

    def _require(self, actor: Combatant, *states: PhaseState) -> None:
        if self.actor is None or actor.id != self.actor.id:
            raise NotYourTurn(f"It is not {actor.name}'s turn")
        if self.resolved:
            raise IllegalAction(f"{actor.name} has already acted this turn")
        if self.state not in states:
            raise IllegalAction(f"Action not available while {self.state.value}")

    def start_move(
        self,
        actor: Combatant,
        combatants: Iterable[Combatant],
        grid: Grid,
    ) -> list[RangeCell]:
        """normal -> moving. Exposes the movement range without moving anyone."""
        self._require(actor, PhaseState.NORMAL)
        self.selected = actor
        self.movement_range = compute_movement_range(actor, combatants, grid)
        self.attack_range = []
        self.state = PhaseState.MOVING
        logger.debug("%s choosing destination among %d cells", actor.name, len(self.movement_range))
        return self.movement_range

    def choose_destination(
        self,
        actor: Combatant,
        pos: tuple[int, int],
        combatants: Iterable[Combatant],
        grid: Grid,
    ) -> list[tuple[int, int]]:
        """moving -> moved. Commits the position change.

        Picking a cell outside the range (or the actor's own cell) drops back
        to normal instead.

        Returns:
            The walking path.

        Raises:
            IllegalTarget: If pos is not a legal destination.
        """
        self._require(actor, PhaseState.MOVING)
        if pos not in range_positions(self.movement_range):
            self.deselect(actor)
            raise IllegalTarget(f"({pos[0]}, {pos[1]}) is not within {actor.name}'s movement range")

        start = actor.position
        path = move_combatant(actor, pos, combatants, grid)
        self.original_position = start
        self.movement_range = []
        self.state = PhaseState.MOVED
        logger.info("%s moves %s -> %s", actor.name, start, pos)
        return path

    def deselect(self, actor: Combatant) -> None:
        """Back out of range selection: moving -> normal, attacking -> where it came from."""
        self._require(actor, PhaseState.MOVING, PhaseState.ATTACKING)
        if self.state == PhaseState.MOVING:
            self.state = PhaseState.NORMAL
        else:
            self.state = self._attack_from
        self.movement_range = []
        self.attack_range = []

    def cancel_move(self, actor: Combatant) -> tuple[int, int]:
        """moved -> normal, putting the actor back where it started.

        Returns:
            The restored position.
        """
        self._require(actor, PhaseState.MOVED)
        if self.original_position is None:
            raise IllegalAction(f"{actor.name} has no move to cancel")
        actor.position = self.original_position
        logger.info("%s cancels move, back to %s", actor.name, self.original_position)
        self.original_position = None
        self.attack_range = []
        self.state = PhaseState.NORMAL
        return actor.position

    def start_attack(self, actor: Combatant, grid: Grid) -> list[RangeCell]:
        """normal | moved -> attacking. Range is taken from the current position."""
        self._require(actor, PhaseState.NORMAL, PhaseState.MOVED)
        self._attack_from = self.state
        self.selected = actor
        self.attack_range = compute_attack_range(actor, grid)
        self.movement_range = []
        self.state = PhaseState.ATTACKING
        return self.attack_range

    def choose_target(self, actor: Combatant, target: Combatant) -> None:
        """Validate an attack target. The state stays attacking until resolve().

        Raises:
            IllegalTarget: If the target is dead, friendly, or out of range.
        """
        self._require(actor, PhaseState.ATTACKING)
        validate_attack_target(actor, target, self.attack_range)

    def choose_wait(self, actor: Combatant) -> None:
        self._require(actor, PhaseState.NORMAL, PhaseState.MOVED)

    def choose_skill(self, actor: Combatant) -> None:
        self._require(actor, PhaseState.NORMAL, PhaseState.MOVED)

    def resolve(self, actor: Combatant) -> None:
        """Close the activation. A second call for the same activation is refused."""
        if self.actor is None or actor.id != self.actor.id:
            raise NotYourTurn(f"It is not {actor.name}'s turn")
        if self.resolved:
            raise IllegalAction(f"{actor.name} has already acted this turn")
        self.resolved = True
        self.selected = None
        self.movement_range = []
        self.attack_range = []
