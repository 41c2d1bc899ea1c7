"""Battle orchestration: setup, turns, player commands, AI turns, win conditions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from config import AUTO_RESOLVE_EFFECTS, GRID_HEIGHT, GRID_WIDTH, SPEED_BASE
from engine.effects import EffectQueue
from engine.errors import BattleError, IllegalAction, IllegalTarget, NotYourTurn
from engine.grid import compute_attack_range, compute_movement_range, create_grid, occupant_at
from engine.initiative import InitiativeScheduler
from engine.npc import decide_action
from engine.phases import ActionPhase
from engine.rules import perform_attack, use_skill
from models.actions import (
    ActionRequest,
    ActionResult,
    ActionType,
    AIDecision,
    EffectKind,
    RangeCell,
)
from models.characters import Combatant, Stats
from models.game_state import (
    BattleSnapshot,
    BattleStatus,
    GameEvent,
    Grid,
    QueueEntry,
)

logger = logging.getLogger(__name__)

PLAYERS = "players"
ENEMIES = "enemies"


class BattleSession:
    """One battle: the combatants, the initiative queue, and the current activation.

    The presentation layer reads state through the query methods and feeds
    input through the submit_* methods. Visual effects come back as tickets
    that must be completed with notify_animation_complete() before the turn
    moves on. AI-controlled combatants act on their own whenever they
    become the current actor.
    """

    def __init__(
        self,
        grid: Grid,
        *,
        auto_resolve_effects: bool = AUTO_RESOLVE_EFFECTS,
        speed_base: float = SPEED_BASE,
    ) -> None:
        self.grid = grid
        self.combatants: dict[str, Combatant] = {}
        self.scheduler = InitiativeScheduler([], speed_base)
        self.phase = ActionPhase()
        self.effects = EffectQueue()
        self.auto_resolve_effects = auto_resolve_effects
        self.status = BattleStatus.WAITING
        self.winner: str | None = None
        self.event_log: list[GameEvent] = []
        self._ai_pending = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_combatant(self, combatant: Combatant) -> Combatant:
        """Place a combatant on the battlefield.

        Raises:
            ValueError: If the id is taken, or the cell is out of bounds or occupied.
        """
        x, y = combatant.position
        if combatant.id in self.combatants:
            raise ValueError(f"Combatant '{combatant.id}' already exists")
        if not self.grid.in_bounds(x, y):
            raise ValueError(f"Position ({x}, {y}) is out of bounds")
        if occupant_at(self.combatants.values(), combatant.position) is not None:
            raise ValueError(f"Position ({x}, {y}) is already occupied")

        self.combatants[combatant.id] = combatant
        self.scheduler.add(combatant)
        return combatant

    def start(self) -> Combatant | None:
        """Fill the initiative queue and hand the first turn out.

        Returns:
            The first actor.

        Raises:
            ValueError: If either side has nobody alive.
        """
        sides = {c.is_enemy for c in self.combatants.values() if c.is_alive}
        if sides != {True, False}:
            raise ValueError("Need at least one ally and one enemy to start a battle")

        self.status = BattleStatus.ACTIVE
        self.winner = None
        self.effects.clear()
        actor = self.scheduler.start()
        self._begin_turn(actor)
        self._pump()
        return self.get_current_actor()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_combatants(self) -> list[Combatant]:
        """Copies of every combatant, dead ones included."""
        return [c.model_copy(deep=True) for c in self.combatants.values()]

    def get_combatant(self, combatant_id: str) -> Combatant | None:
        combatant = self.combatants.get(combatant_id)
        return combatant.model_copy(deep=True) if combatant else None

    def get_current_actor(self) -> Combatant | None:
        if self.status != BattleStatus.ACTIVE or self.scheduler.current is None:
            return None
        return self.scheduler.current.model_copy(deep=True)

    def get_movement_range(self, combatant_id: str) -> list[RangeCell]:
        """Where a combatant could walk from where it stands now.

        Raises:
            KeyError: If the combatant does not exist.
        """
        combatant = self.combatants[combatant_id]
        return compute_movement_range(combatant, self.combatants.values(), self.grid)

    def get_attack_range(self, combatant_id: str) -> list[RangeCell]:
        """Cells a combatant could strike from where it stands now.

        Raises:
            KeyError: If the combatant does not exist.
        """
        return compute_attack_range(self.combatants[combatant_id], self.grid)

    def snapshot(self) -> BattleSnapshot:
        current = self.scheduler.current if self.status == BattleStatus.ACTIVE else None
        return BattleSnapshot(
            status=self.status,
            phase=self.phase.state,
            turn_number=self.scheduler.turn_number,
            current_actor_id=current.id if current else None,
            selected_id=self.phase.selected.id if self.phase.selected else None,
            original_position=self.phase.original_position,
            grid=self.grid,
            combatants=self.get_combatants(),
            initiative_queue=[
                QueueEntry(
                    id=c.id,
                    name=c.name,
                    is_enemy=c.is_enemy,
                    wait_time=wait,
                    is_current=current is not None and c.id == current.id,
                )
                for c, wait in self.scheduler.order()
            ],
            movement_range=self.phase.movement_range,
            attack_range=self.phase.attack_range,
            pending_effects=self.effects.pending(),
            winner=self.winner,
        )

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------

    def begin_move(self, character_id: str) -> ActionResult:
        """Open the movement range for the current actor."""
        try:
            actor = self._actor_for(character_id)
            cells = self.phase.start_move(actor, self.combatants.values(), self.grid)
        except BattleError as e:
            return self._reject(ActionType.BEGIN_MOVE, e)
        return ActionResult(
            success=True,
            action_type=ActionType.BEGIN_MOVE,
            description=f"{actor.name} is choosing where to move.",
            movement_range=cells,
        )

    def submit_move_to(self, character_id: str, x: int, y: int) -> ActionResult:
        """Move the current actor to a cell inside its movement range.

        An illegal cell is refused and closes the movement range.
        """
        try:
            actor = self._actor_for(character_id)
            path = self.phase.choose_destination(actor, (x, y), self.combatants.values(), self.grid)
        except BattleError as e:
            return self._reject(ActionType.MOVE, e)

        ticket = self.effects.enqueue(
            EffectKind.MOVE, actor.id, None, position=(x, y), path=path,
        )
        description = f"{actor.name} moves to ({x}, {y})."
        self._log_event(actor, ActionType.MOVE, description, {"path": path})
        self._pump()
        return ActionResult(
            success=True,
            action_type=ActionType.MOVE,
            description=description,
            movement_path=path,
            effect=ticket,
        )

    def submit_cancel_move(self, character_id: str) -> ActionResult:
        """Undo the move made this activation."""
        try:
            actor = self._actor_for(character_id)
            pos = self.phase.cancel_move(actor)
        except BattleError as e:
            return self._reject(ActionType.CANCEL_MOVE, e)

        description = f"{actor.name} returns to {pos}."
        self._log_event(actor, ActionType.CANCEL_MOVE, description, {"position": pos})
        return ActionResult(
            success=True,
            action_type=ActionType.CANCEL_MOVE,
            description=description,
        )

    def deselect(self, character_id: str) -> ActionResult:
        """Close the open movement or attack range without acting."""
        try:
            actor = self._actor_for(character_id)
            self.phase.deselect(actor)
        except BattleError as e:
            return self._reject(ActionType.DESELECT, e)
        return ActionResult(
            success=True,
            action_type=ActionType.DESELECT,
            description=f"{actor.name} is back at the action menu.",
        )

    def begin_attack(self, character_id: str) -> ActionResult:
        """Open the attack range for the current actor."""
        try:
            actor = self._actor_for(character_id)
            cells = self.phase.start_attack(actor, self.grid)
        except BattleError as e:
            return self._reject(ActionType.BEGIN_ATTACK, e)
        return ActionResult(
            success=True,
            action_type=ActionType.BEGIN_ATTACK,
            description=f"{actor.name} is choosing a target.",
            attack_range=cells,
        )

    def submit_attack(self, character_id: str, target_id: str) -> ActionResult:
        """Strike a target inside the open attack range.

        Damage is applied at once; the turn ends after the attack effect and
        damage number tickets are completed.
        """
        try:
            actor = self._actor_for(character_id)
            target = self.combatants.get(target_id)
            if target is None:
                raise IllegalTarget(f"Target '{target_id}' not found")
            self.phase.choose_target(actor, target)
        except BattleError as e:
            return self._reject(ActionType.ATTACK, e)

        result = self._resolve_attack(actor, target)
        self._pump()
        return result

    def submit_wait(self, character_id: str) -> ActionResult:
        """End the activation without acting."""
        try:
            actor = self._actor_for(character_id)
            self.phase.choose_wait(actor)
            self.phase.resolve(actor)
        except BattleError as e:
            return self._reject(ActionType.WAIT, e)

        description = f"{actor.name} waits."
        self._log_event(actor, ActionType.WAIT, description)
        self._finish_turn(actor.id)
        self._pump()
        return ActionResult(success=True, action_type=ActionType.WAIT, description=description)

    def submit_skill(self, character_id: str, slot: int) -> ActionResult:
        """Use a skill slot. Only its mp cost is applied."""
        try:
            actor = self._actor_for(character_id)
            self.phase.choose_skill(actor)
            result = use_skill(actor, slot)
            self.phase.resolve(actor)
        except BattleError as e:
            return self._reject(ActionType.SKILL, e)

        self._log_event(actor, ActionType.SKILL, result.description, {"slot": slot})
        self._finish_turn(actor.id)
        self._pump()
        return result

    def process_action(self, character_id: str, action: ActionRequest) -> ActionResult:
        """Dispatch an ActionRequest to the matching command."""
        action_type = action.action_type
        if action_type == ActionType.BEGIN_MOVE:
            return self.begin_move(character_id)
        if action_type == ActionType.MOVE:
            if action.target_position is None:
                return self._reject(action_type, IllegalTarget("Move requires a target_position"))
            x, y = action.target_position
            return self.submit_move_to(character_id, x, y)
        if action_type == ActionType.BEGIN_ATTACK:
            return self.begin_attack(character_id)
        if action_type == ActionType.ATTACK:
            if action.target_id is None:
                return self._reject(action_type, IllegalTarget("Attack requires a target_id"))
            return self.submit_attack(character_id, action.target_id)
        if action_type == ActionType.SKILL:
            if action.skill_slot is None:
                return self._reject(action_type, IllegalAction("Skill requires a skill_slot"))
            return self.submit_skill(character_id, action.skill_slot)
        if action_type == ActionType.WAIT:
            return self.submit_wait(character_id)
        if action_type == ActionType.CANCEL_MOVE:
            return self.submit_cancel_move(character_id)
        return self.deselect(character_id)

    def notify_animation_complete(self, ticket_id: str) -> bool:
        """Presentation hook: an effect finished playing.

        Returns:
            False if the ticket is unknown or already completed.
        """
        if not self.effects.complete(ticket_id):
            return False
        self._pump()
        return True

    # ------------------------------------------------------------------
    # Turn sequencing
    # ------------------------------------------------------------------

    def _actor_for(self, character_id: str) -> Combatant:
        if self.status != BattleStatus.ACTIVE:
            raise IllegalAction(f"Battle is not active (status: {self.status.value})")
        character = self.combatants.get(character_id)
        if character is None:
            raise NotYourTurn(f"Combatant '{character_id}' not found")
        current = self.scheduler.current
        if current is None or current.id != character_id:
            raise NotYourTurn(f"It is not {character.name}'s turn")
        if character.is_enemy:
            raise NotYourTurn(f"{character.name} is controlled by the AI")
        if self.effects.has_pending:
            raise IllegalAction("Waiting for effects to finish")
        return character

    def _reject(self, action_type: ActionType, error: BattleError) -> ActionResult:
        logger.info("Rejected %s: %s", action_type.value, error)
        return ActionResult(
            success=False,
            action_type=action_type,
            description=str(error),
            error=str(error),
            error_kind=type(error).__name__,
        )

    def _begin_turn(self, actor: Combatant | None) -> None:
        self.phase.begin(actor)
        self._ai_pending = actor is not None and actor.is_enemy

    def _resolve_attack(self, actor: Combatant, target: Combatant) -> ActionResult:
        """Apply an already validated attack and queue its effects."""
        result = perform_attack(actor, target)
        self.phase.resolve(actor)
        self._log_event(actor, ActionType.ATTACK, result.description, {
            "target_id": target.id,
            "damage_dealt": result.damage_dealt,
            "target_defeated": result.target_defeated,
        })
        result.effect = self.effects.enqueue(
            EffectKind.ATTACK_EFFECT,
            actor.id,
            self._show_damage,
            actor.id,
            target.id,
            result.damage_dealt,
            target_id=target.id,
            position=target.position,
        )
        return result

    def _show_damage(self, actor_id: str, target_id: str, damage: int) -> None:
        self.effects.enqueue(
            EffectKind.DAMAGE_NUMBER,
            actor_id,
            self._finish_turn,
            actor_id,
            target_id=target_id,
            position=self.combatants[target_id].position,
            damage=damage,
        )

    def _finish_turn(self, actor_id: str) -> None:
        """Send the actor back into the queue and start the next activation."""
        current = self.scheduler.current
        if current is None or current.id != actor_id:
            raise IllegalAction(f"'{actor_id}' is not the current actor")

        winner = self.check_win_condition()
        if winner:
            self.winner = winner
            self.status = BattleStatus.COMPLETED
            self.scheduler.current = None
            self._begin_turn(None)
            logger.info("Battle over, %s win", winner)
            return

        self._begin_turn(self.scheduler.complete_action(current))

    def _run_ai_turn(self, actor: Combatant) -> None:
        decision = decide_action(actor, list(self.combatants.values()), self.grid)
        if decision is None:
            self.phase.resolve(actor)
            self._finish_turn(actor.id)
            return

        if decision.move_to != actor.position:
            self.phase.start_move(actor, self.combatants.values(), self.grid)
            path = self.phase.choose_destination(
                actor, decision.move_to, self.combatants.values(), self.grid,
            )
            description = f"{actor.name} moves to {decision.move_to}."
            self._log_event(actor, ActionType.MOVE, description, {"path": path})
            self.effects.enqueue(
                EffectKind.MOVE,
                actor.id,
                self._ai_after_move,
                actor.id,
                decision,
                position=decision.move_to,
                path=path,
            )
        else:
            self._ai_after_move(actor.id, decision)

    def _ai_after_move(self, actor_id: str, decision: AIDecision) -> None:
        actor = self.combatants[actor_id]
        if decision.action_type == ActionType.ATTACK and decision.target_id is not None:
            target = self.combatants[decision.target_id]
            self.phase.start_attack(actor, self.grid)
            self.phase.choose_target(actor, target)
            self._resolve_attack(actor, target)
            return

        self.phase.resolve(actor)
        self._log_event(actor, ActionType.WAIT, f"{actor.name} ends its turn.")
        self._finish_turn(actor_id)

    def _pump(self) -> None:
        """Run AI turns and auto-resolved effects until player input is needed."""
        while self.status == BattleStatus.ACTIVE:
            if self.effects.has_pending:
                if not self.auto_resolve_effects:
                    return
                self.effects.resolve_next()
                continue
            actor = self.scheduler.current
            if actor is not None and self._ai_pending:
                self._ai_pending = False
                self._run_ai_turn(actor)
                continue
            return

    def check_win_condition(self) -> str | None:
        """Check if only one side has living combatants.

        Returns:
            "players" or "enemies" if that side won, else None.
        """
        sides = {c.is_enemy for c in self.combatants.values() if c.is_alive}
        if sides == {True}:
            return ENEMIES
        if sides == {False}:
            return PLAYERS
        return None

    def _log_event(
        self,
        actor: Combatant,
        action_type: ActionType,
        description: str,
        details: dict | None = None,
    ) -> None:
        self.event_log.append(GameEvent(
            turn=self.scheduler.turn_number,
            character_id=actor.id,
            action_type=action_type.value,
            description=description,
            details=details or {},
            timestamp=datetime.now(timezone.utc),
        ))


def create_battle(
    width: int = GRID_WIDTH,
    height: int = GRID_HEIGHT,
    *,
    auto_resolve_effects: bool = AUTO_RESOLVE_EFFECTS,
) -> BattleSession:
    """Create an empty battle on a fresh grid."""
    return BattleSession(create_grid(width, height), auto_resolve_effects=auto_resolve_effects)


def create_default_battle(*, auto_resolve_effects: bool = AUTO_RESOLVE_EFFECTS) -> BattleSession:
    """The opening skirmish: two allies against one enemy on a 12x8 grid, already started."""
    battle = create_battle(auto_resolve_effects=auto_resolve_effects)
    hero_stats = {
        "hp": 120, "maxhp": 120, "mp": 60, "maxmp": 60,
        "str": 28, "def": 12, "mstr": 14, "mdef": 10,
        "spd": 100, "mv": 3, "range": 1,
    }
    battle.add_combatant(Combatant(
        id="hero", name="Hero", position=(6, 4), stats=Stats(**hero_stats),
    ))
    battle.add_combatant(Combatant(
        id="ally", name="Ally", position=(5, 4), stats=Stats(**{**hero_stats, "spd": 90}),
    ))
    battle.add_combatant(Combatant(
        id="enemy",
        name="Enemy",
        is_enemy=True,
        position=(8, 5),
        stats=Stats(**{
            "hp": 100, "maxhp": 100, "mp": 40, "maxmp": 40,
            "str": 16, "def": 8, "mstr": 10, "mdef": 6,
            "spd": 80, "mv": 2, "range": 1,
        }),
    ))
    battle.start()
    return battle
