"""Grid distance, occupancy, and reachability (movement and attack ranges)."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING

from config import GRID_HEIGHT, GRID_WIDTH
from models.actions import RangeCell
from models.game_state import Grid

if TYPE_CHECKING:
    from models.characters import Combatant

# Up, down, left, right
DIRECTIONS = ((0, -1), (0, 1), (-1, 0), (1, 0))


def create_grid(width: int = GRID_WIDTH, height: int = GRID_HEIGHT) -> Grid:
    """Create the battlefield bounds.

    Args:
        width: Number of columns.
        height: Number of rows.

    Returns:
        An immutable Grid.
    """
    return Grid(width=width, height=height)


def manhattan(pos1: tuple[int, int], pos2: tuple[int, int]) -> int:
    """Grid-step distance between two cells (4-directional movement).

    Args:
        pos1: (x, y) of first position.
        pos2: (x, y) of second position.

    Returns:
        |dx| + |dy|.
    """
    return abs(pos1[0] - pos2[0]) + abs(pos1[1] - pos2[1])


def occupant_at(
    combatants: Iterable[Combatant],
    pos: tuple[int, int],
    *,
    living_only: bool = False,
) -> Combatant | None:
    """Return the combatant standing on pos, if any.

    Dead combatants still occupy their cell unless living_only is set.
    """
    for c in combatants:
        if c.position == pos and (c.is_alive or not living_only):
            return c
    return None


def _bfs(
    origin: tuple[int, int],
    limit: int,
    grid: Grid,
    blocked: set[tuple[int, int]],
) -> list[RangeCell]:
    """Breadth-first flood from origin up to limit steps.

    Returns every reached cell, origin first with distance 0.
    """
    visited = {origin}
    queue = deque([(origin, 0)])
    reached = [RangeCell(x=origin[0], y=origin[1], distance=0)]

    while queue:
        (cx, cy), dist = queue.popleft()
        if dist >= limit:
            continue
        for dx, dy in DIRECTIONS:
            nxt = (cx + dx, cy + dy)
            if nxt in visited or not grid.in_bounds(*nxt):
                continue
            if nxt in blocked:
                continue
            visited.add(nxt)
            queue.append((nxt, dist + 1))
            reached.append(RangeCell(x=nxt[0], y=nxt[1], distance=dist + 1))

    return reached


def compute_movement_range(
    combatant: Combatant,
    combatants: Iterable[Combatant],
    grid: Grid,
) -> list[RangeCell]:
    """Get every cell a combatant can walk to this activation.

    BFS over orthogonal steps, bounded by the combatant's move stat. Any other
    combatant blocks its cell, alive or dead. The origin is included with
    distance 0 for highlighting; it is not a legal destination.

    Args:
        combatant: The combatant moving.
        combatants: Everyone on the battlefield (the mover may be included).
        grid: The battlefield bounds.

    Returns:
        Range cells in BFS order.
    """
    blocked = {c.position for c in combatants if c is not combatant and c.id != combatant.id}
    return _bfs(combatant.position, combatant.stats.move, grid, blocked)


def compute_attack_range(
    combatant: Combatant,
    grid: Grid,
    origin: tuple[int, int] | None = None,
) -> list[RangeCell]:
    """Get every cell a combatant can strike.

    Same BFS as movement but occupancy never blocks, so the result is the
    diamond of Manhattan radius attack_range clipped to the grid, without
    the origin itself.

    Args:
        combatant: The attacker.
        grid: The battlefield bounds.
        origin: Evaluate from this cell instead of the combatant's position.

    Returns:
        Range cells with distance >= 1.
    """
    start = combatant.position if origin is None else origin
    return _bfs(start, combatant.stats.attack_range, grid, set())[1:]


def range_positions(
    cells: Iterable[RangeCell],
    include_origin: bool = False,
) -> set[tuple[int, int]]:
    """Collapse range cells into an (x, y) membership set."""
    return {(c.x, c.y) for c in cells if include_origin or c.distance > 0}


def calculate_move_path(
    start: tuple[int, int],
    end: tuple[int, int],
) -> list[tuple[int, int]]:
    """Step-by-step walking path, x axis first, then y.

    Args:
        start: (x, y) the walk begins from (not included).
        end: (x, y) destination (included).

    Returns:
        Cells visited in order. Empty if start == end.
    """
    x, y = start
    path: list[tuple[int, int]] = []
    while x != end[0]:
        x += 1 if x < end[0] else -1
        path.append((x, y))
    while y != end[1]:
        y += 1 if y < end[1] else -1
        path.append((x, y))
    return path


def move_combatant(
    combatant: Combatant,
    target_pos: tuple[int, int],
    combatants: Iterable[Combatant],
    grid: Grid,
) -> list[tuple[int, int]]:
    """Commit a combatant's position change.

    Reachability is the caller's job; this only guards bounds and occupancy.

    Args:
        combatant: The combatant to move.
        target_pos: Destination (x, y).
        combatants: Everyone on the battlefield.
        grid: The battlefield bounds.

    Returns:
        The walking path from the old position to target_pos.

    Raises:
        ValueError: If the destination is out of bounds or occupied.
    """
    tx, ty = target_pos
    if not grid.in_bounds(tx, ty):
        raise ValueError(f"Target position ({tx}, {ty}) is out of bounds")

    occupant = occupant_at(combatants, target_pos)
    if occupant is not None and occupant is not combatant:
        raise ValueError(f"Target position ({tx}, {ty}) is occupied")

    path = calculate_move_path(combatant.position, target_pos)
    combatant.position = target_pos
    return path
