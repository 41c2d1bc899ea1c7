"""Tests for grid distance, occupancy, and movement/attack reachability."""

import pytest

from engine.grid import (
    calculate_move_path,
    compute_attack_range,
    compute_movement_range,
    create_grid,
    manhattan,
    move_combatant,
    occupant_at,
    range_positions,
)
from models.characters import Combatant, Stats


def _make_combatant(
    char_id: str = "c1",
    position: tuple[int, int] = (6, 4),
    mv: int = 3,
    attack_range: int = 1,
    hp: int = 100,
    is_enemy: bool = False,
) -> Combatant:
    """Helper to create a test combatant."""
    return Combatant(
        id=char_id,
        name=f"Char_{char_id}",
        is_enemy=is_enemy,
        position=position,
        stats=Stats(hp=hp, maxhp=100, mv=mv, range=attack_range),
    )


def _diamond(origin: tuple[int, int], low: int, high: int, width: int, height: int) -> set:
    """All in-bounds cells whose Manhattan distance from origin is in [low, high]."""
    return {
        (x, y)
        for x in range(width)
        for y in range(height)
        if low <= manhattan(origin, (x, y)) <= high
    }


class TestCreateGrid:
    """Tests for create_grid()."""

    def test_dimensions(self):
        grid = create_grid(5, 3)
        assert grid.width == 5
        assert grid.height == 3

    def test_defaults_match_battlefield(self):
        grid = create_grid()
        assert (grid.width, grid.height) == (12, 8)

    def test_in_bounds(self):
        grid = create_grid(4, 4)
        assert grid.in_bounds(0, 0)
        assert grid.in_bounds(3, 3)
        assert not grid.in_bounds(4, 0)
        assert not grid.in_bounds(0, -1)

    def test_cells_row_major(self):
        grid = create_grid(2, 2)
        assert list(grid.cells()) == [(0, 0), (1, 0), (0, 1), (1, 1)]

    def test_grid_is_immutable(self):
        grid = create_grid(4, 4)
        with pytest.raises(Exception):
            grid.width = 10

    def test_zero_size_rejected(self):
        with pytest.raises(ValueError):
            create_grid(0, 5)


class TestManhattan:
    """Tests for manhattan()."""

    def test_same_position(self):
        assert manhattan((3, 3), (3, 3)) == 0

    def test_orthogonal(self):
        assert manhattan((0, 0), (3, 0)) == 3
        assert manhattan((0, 0), (0, 4)) == 4

    def test_diagonal_counts_both_axes(self):
        assert manhattan((0, 0), (2, 3)) == 5
        assert manhattan((8, 5), (6, 4)) == 3


class TestOccupantAt:
    """Tests for occupant_at()."""

    def test_finds_combatant(self):
        a = _make_combatant("a", (1, 1))
        assert occupant_at([a], (1, 1)) is a

    def test_empty_cell(self):
        a = _make_combatant("a", (1, 1))
        assert occupant_at([a], (2, 2)) is None

    def test_dead_still_occupies(self):
        corpse = _make_combatant("a", (1, 1), hp=0)
        assert occupant_at([corpse], (1, 1)) is corpse
        assert occupant_at([corpse], (1, 1), living_only=True) is None


class TestMovementRange:
    """Tests for compute_movement_range()."""

    def test_open_field_diamond(self):
        """12x8 grid, mv=3 from (6,4): the 24 cells at distance 1-3 plus the origin."""
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), mv=3)
        cells = compute_movement_range(actor, [actor], grid)

        moves = range_positions(cells)
        assert len(moves) == 24
        assert moves == _diamond((6, 4), 1, 3, 12, 8)

        origin = [c for c in cells if c.distance == 0]
        assert len(origin) == 1
        assert (origin[0].x, origin[0].y) == (6, 4)

    def test_distances_are_step_counts(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), mv=3)
        for cell in compute_movement_range(actor, [actor], grid):
            assert cell.distance == manhattan((6, 4), (cell.x, cell.y))

    def test_clipped_at_corner(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(0, 0), mv=2)
        moves = range_positions(compute_movement_range(actor, [actor], grid))
        assert moves == {(1, 0), (2, 0), (0, 1), (0, 2), (1, 1)}

    def test_never_leaves_grid(self):
        grid = create_grid(3, 3)
        actor = _make_combatant(position=(1, 1), mv=5)
        for cell in compute_movement_range(actor, [actor], grid):
            assert grid.in_bounds(cell.x, cell.y)

    def test_occupied_cell_excluded(self):
        grid = create_grid(12, 8)
        actor = _make_combatant("a", (6, 4), mv=3)
        other = _make_combatant("b", (5, 4))
        moves = range_positions(compute_movement_range(actor, [actor, other], grid))
        assert (5, 4) not in moves

    def test_dead_combatant_still_blocks(self):
        grid = create_grid(12, 8)
        actor = _make_combatant("a", (6, 4), mv=3)
        corpse = _make_combatant("b", (5, 4), hp=0)
        moves = range_positions(compute_movement_range(actor, [actor, corpse], grid))
        assert (5, 4) not in moves

    def test_blocker_forces_detour(self):
        """In a one-row corridor a blocker cuts off everything behind it."""
        grid = create_grid(6, 1)
        actor = _make_combatant("a", (0, 0), mv=5)
        wall = _make_combatant("b", (2, 0), is_enemy=True)
        moves = range_positions(compute_movement_range(actor, [actor, wall], grid))
        assert moves == {(1, 0)}

    def test_surrounded_has_only_origin(self):
        grid = create_grid(3, 3)
        actor = _make_combatant("a", (1, 1), mv=3)
        blockers = [
            _make_combatant(f"b{i}", pos)
            for i, pos in enumerate([(0, 1), (2, 1), (1, 0), (1, 2)])
        ]
        cells = compute_movement_range(actor, [actor, *blockers], grid)
        assert [(c.x, c.y, c.distance) for c in cells] == [(1, 1, 0)]

    def test_zero_move(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), mv=0)
        assert range_positions(compute_movement_range(actor, [actor], grid)) == set()


class TestAttackRange:
    """Tests for compute_attack_range()."""

    def test_melee_is_four_neighbours(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), attack_range=1)
        cells = compute_attack_range(actor, grid)
        assert range_positions(cells) == {(6, 3), (6, 5), (5, 4), (7, 4)}
        assert all(c.distance == 1 for c in cells)

    @pytest.mark.parametrize("radius", [1, 2, 4])
    def test_exact_diamond(self, radius):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), attack_range=radius)
        assert range_positions(compute_attack_range(actor, grid)) == _diamond((6, 4), 1, radius, 12, 8)

    def test_origin_excluded(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), attack_range=2)
        assert all(c.distance >= 1 for c in compute_attack_range(actor, grid))

    def test_ignores_occupancy(self):
        """Unlike movement, attack range reaches past other combatants."""
        grid = create_grid(6, 1)
        actor = _make_combatant("a", (0, 0), attack_range=3)
        blocker = _make_combatant("b", (1, 0))
        reach = range_positions(compute_attack_range(actor, grid))
        assert reach == {(1, 0), (2, 0), (3, 0)}
        # Same geometry blocks movement
        moves = range_positions(compute_movement_range(
            _make_combatant("a", (0, 0), mv=3), [actor, blocker], grid,
        ))
        assert moves == set()

    def test_hypothetical_origin(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), attack_range=1)
        reach = range_positions(compute_attack_range(actor, grid, origin=(0, 0)))
        assert reach == {(1, 0), (0, 1)}
        assert actor.position == (6, 4)

    def test_zero_range_is_empty(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4), attack_range=0)
        assert compute_attack_range(actor, grid) == []


class TestMovePath:
    """Tests for calculate_move_path()."""

    def test_x_then_y(self):
        assert calculate_move_path((6, 4), (4, 5)) == [(5, 4), (4, 4), (4, 5)]

    def test_same_cell_is_empty(self):
        assert calculate_move_path((2, 2), (2, 2)) == []

    def test_path_length_is_manhattan(self):
        path = calculate_move_path((0, 0), (3, 2))
        assert len(path) == 5
        assert path[-1] == (3, 2)


class TestMoveCombatant:
    """Tests for move_combatant()."""

    def test_moves_and_returns_path(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4))
        path = move_combatant(actor, (6, 2), [actor], grid)
        assert actor.position == (6, 2)
        assert path == [(6, 3), (6, 2)]

    def test_out_of_bounds(self):
        grid = create_grid(12, 8)
        actor = _make_combatant(position=(6, 4))
        with pytest.raises(ValueError, match="out of bounds"):
            move_combatant(actor, (12, 4), [actor], grid)
        assert actor.position == (6, 4)

    def test_occupied(self):
        grid = create_grid(12, 8)
        actor = _make_combatant("a", (6, 4))
        other = _make_combatant("b", (6, 5))
        with pytest.raises(ValueError, match="occupied"):
            move_combatant(actor, (6, 5), [actor, other], grid)
