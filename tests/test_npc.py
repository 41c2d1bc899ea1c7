"""Tests for AI decisions of computer-controlled combatants."""

from engine.grid import create_grid, manhattan
from engine.npc import decide_action, opponents_of
from models.actions import ActionType
from models.characters import Combatant, Stats


def _make_combatant(
    char_id: str,
    position: tuple[int, int],
    is_enemy: bool = False,
    mv: int = 3,
    attack_range: int = 1,
    hp: int = 100,
) -> Combatant:
    """Helper to create a test combatant."""
    return Combatant(
        id=char_id,
        name=f"Char_{char_id}",
        is_enemy=is_enemy,
        position=position,
        stats=Stats(hp=hp, mv=mv, range=attack_range),
    )


# ---------------------------------------------------------------------------
# Target selection
# ---------------------------------------------------------------------------


class TestOpponents:
    """Tests for opponents_of()."""

    def test_other_side_only(self):
        enemy = _make_combatant("e", (0, 0), is_enemy=True)
        hero = _make_combatant("h", (1, 1))
        buddy = _make_combatant("b", (2, 2), is_enemy=True)
        assert opponents_of(enemy, [enemy, hero, buddy]) == [hero]

    def test_dead_excluded(self):
        enemy = _make_combatant("e", (0, 0), is_enemy=True)
        corpse = _make_combatant("h", (1, 1), hp=0)
        assert opponents_of(enemy, [enemy, corpse]) == []

    def test_works_for_player_side(self):
        hero = _make_combatant("h", (1, 1))
        enemy = _make_combatant("e", (0, 0), is_enemy=True)
        assert opponents_of(hero, [hero, enemy]) == [enemy]


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class TestDecideAttack:
    """Move-and-attack decisions."""

    def test_reaches_target_three_away(self):
        """mv=2 + range=1 covers a target at Manhattan distance 3."""
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (8, 5), is_enemy=True, mv=2, attack_range=1)
        target = _make_combatant("t", (6, 4))
        decision = decide_action(ai, [ai, target], grid)

        assert decision.action_type == ActionType.ATTACK
        assert decision.target_id == "t"
        assert manhattan(decision.move_to, (8, 5)) <= 2
        assert manhattan(decision.move_to, (6, 4)) == 1
        # Row-major scan finds (7, 4) before (6, 5)
        assert decision.move_to == (7, 4)

    def test_attacks_without_moving_when_adjacent(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (5, 5), is_enemy=True)
        target = _make_combatant("t", (5, 4))
        decision = decide_action(ai, [ai, target], grid)
        assert decision.action_type == ActionType.ATTACK
        assert decision.move_to == (5, 5)

    def test_prefers_shortest_move(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (5, 5), is_enemy=True, mv=3)
        far = _make_combatant("far", (5, 1))
        near = _make_combatant("near", (7, 5))
        decision = decide_action(ai, [ai, far, near], grid)
        assert decision.target_id == "near"
        assert manhattan(decision.move_to, (5, 5)) == 1

    def test_ranged_attacker_stays_put(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (0, 0), is_enemy=True, attack_range=4)
        target = _make_combatant("t", (2, 2))
        decision = decide_action(ai, [ai, target], grid)
        assert decision.action_type == ActionType.ATTACK
        assert decision.move_to == (0, 0)

    def test_position_not_leaked(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (8, 5), is_enemy=True, mv=2)
        target = _make_combatant("t", (6, 4))
        decide_action(ai, [ai, target], grid)
        assert ai.position == (8, 5)

    def test_ignores_dead_targets(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (5, 5), is_enemy=True)
        corpse = _make_combatant("dead", (5, 4), hp=0)
        living = _make_combatant("alive", (9, 5))
        decision = decide_action(ai, [ai, corpse, living], grid)
        assert decision.target_id == "alive"

    def test_move_to_is_reachable(self):
        """The chosen cell is never occupied."""
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (8, 5), is_enemy=True, mv=2)
        target = _make_combatant("t", (6, 4))
        blocker = _make_combatant("b", (7, 4), is_enemy=True)
        decision = decide_action(ai, [ai, target, blocker], grid)
        assert decision.action_type == ActionType.ATTACK
        assert decision.move_to == (6, 5)

    def test_row_before_column_on_ties(self):
        """Equal-cost cells are taken in row-major order: (3, 2) before (2, 3)."""
        grid = create_grid(6, 6)
        ai = _make_combatant("ai", (2, 2), is_enemy=True, mv=1)
        target = _make_combatant("t", (3, 3))
        decision = decide_action(ai, [ai, target], grid)
        assert decision.move_to == (3, 2)


class TestDecideMove:
    """Move-only decisions when nothing is attackable."""

    def test_advances_toward_closest(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (11, 7), is_enemy=True, mv=2)
        near = _make_combatant("near", (6, 7))
        far = _make_combatant("far", (0, 0))
        decision = decide_action(ai, [ai, near, far], grid)
        assert decision.action_type == ActionType.MOVE
        assert decision.target_id is None
        assert decision.move_to == (9, 7)

    def test_cannot_get_closer_stays(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (0, 0), is_enemy=True, mv=0)
        target = _make_combatant("t", (5, 5))
        decision = decide_action(ai, [ai, target], grid)
        assert decision.action_type == ActionType.MOVE
        assert decision.move_to == (0, 0)

    def test_no_opponents(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (0, 0), is_enemy=True)
        buddy = _make_combatant("buddy", (1, 0), is_enemy=True)
        assert decide_action(ai, [ai, buddy], grid) is None

    def test_deterministic(self):
        grid = create_grid(12, 8)
        ai = _make_combatant("ai", (11, 0), is_enemy=True, mv=3)
        target = _make_combatant("t", (0, 7))
        first = decide_action(ai, [ai, target], grid)
        second = decide_action(ai, [ai, target], grid)
        assert first == second
