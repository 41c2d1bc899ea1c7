"""Grid, phase, status, and event models for the tactics core."""

from collections.abc import Iterator
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from models.actions import EffectTicket, RangeCell
from models.characters import Combatant


class BattleStatus(str, Enum):
    """Possible states for a battle."""
    WAITING = "waiting"             # Set up, not started
    ACTIVE = "active"               # Turns are being taken
    COMPLETED = "completed"         # One side has been wiped out


class PhaseState(str, Enum):
    """Where the current actor is within its activation."""
    NORMAL = "normal"               # Action menu open, nothing chosen yet
    MOVING = "moving"               # Choosing a destination
    MOVED = "moved"                 # Moved, may still act or cancel the move
    ATTACKING = "attacking"         # Choosing an attack target


class Grid(BaseModel):
    """Static battlefield bounds. Occupancy lives on the combatants."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cells(self) -> Iterator[tuple[int, int]]:
        """Yield every cell in row-major order (y, then x)."""
        for y in range(self.height):
            for x in range(self.width):
                yield (x, y)


class GameEvent(BaseModel):
    """A logged event from the battle."""
    turn: int
    character_id: str
    action_type: str
    description: str
    details: dict = {}              # Damage, path, etc.
    timestamp: datetime


class QueueEntry(BaseModel):
    """One row of the initiative queue display."""
    id: str
    name: str
    is_enemy: bool
    wait_time: float
    is_current: bool = False


class BattleSnapshot(BaseModel):
    """Everything the presentation layer needs to draw one frame."""
    status: BattleStatus
    phase: PhaseState
    turn_number: int
    current_actor_id: str | None = None
    selected_id: str | None = None
    original_position: tuple[int, int] | None = None
    grid: Grid
    combatants: list[Combatant]
    initiative_queue: list[QueueEntry] = []
    movement_range: list[RangeCell] = []
    attack_range: list[RangeCell] = []
    pending_effects: list[EffectTicket] = []
    winner: str | None = None       # "players" or "enemies"
