"""Action request, result, range and effect models for the tactics core."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ActionType(str, Enum):
    """Inputs the presentation layer (or the AI) can feed into a turn."""
    BEGIN_MOVE = "begin_move"       # Open the movement range
    MOVE = "move"                   # Pick a destination
    BEGIN_ATTACK = "begin_attack"   # Open the attack range
    ATTACK = "attack"               # Pick a target
    SKILL = "skill"
    WAIT = "wait"                   # End the activation without acting
    CANCEL_MOVE = "cancel_move"     # Undo a committed move
    DESELECT = "deselect"           # Back out of range selection


class EffectKind(str, Enum):
    """Visual effects the core waits on before continuing a turn."""
    MOVE = "move"
    ATTACK_EFFECT = "attack_effect"
    DAMAGE_NUMBER = "damage_number"


class RangeCell(BaseModel):
    """A cell returned by a reachability query."""
    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    distance: int                   # Grid steps from the query origin


class EffectTicket(BaseModel):
    """A visual effect the presentation layer must play and then complete."""
    id: str
    kind: EffectKind
    actor_id: str
    target_id: str | None = None
    position: tuple[int, int] | None = None
    path: list[tuple[int, int]] = []
    damage: int | None = None


class ActionRequest(BaseModel):
    """A requested action for the current actor."""
    character_id: str
    action_type: ActionType
    target_id: str | None = None                    # For attacks
    target_position: tuple[int, int] | None = None  # For movement
    skill_slot: int | None = None                   # For skills


class ActionResult(BaseModel):
    """The core's response after processing an action."""
    success: bool
    action_type: ActionType
    description: str                    # Human-readable narrative
    damage_dealt: int | None = None
    target_hp_remaining: int | None = None
    target_defeated: bool | None = None
    movement_path: list[tuple[int, int]] | None = None
    movement_range: list[RangeCell] | None = None
    attack_range: list[RangeCell] | None = None
    effect: EffectTicket | None = None  # First effect to play, if any
    error: str | None = None            # If action was rejected
    error_kind: str | None = None       # Rejection class, e.g. "IllegalTarget"


class AIDecision(BaseModel):
    """What an AI-controlled combatant will do this activation."""
    action_type: ActionType             # ATTACK or MOVE
    move_to: tuple[int, int]
    target_id: str | None = None
