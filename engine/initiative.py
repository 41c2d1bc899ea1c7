"""Speed-driven initiative: wait times, global clock, and actor selection."""

from __future__ import annotations

import logging
from operator import attrgetter
from typing import TYPE_CHECKING

from config import SPEED_BASE

if TYPE_CHECKING:
    from models.characters import Combatant

logger = logging.getLogger(__name__)


class InitiativeScheduler:
    """Orders combatants by accumulated wait time.

    A combatant's wait time is reset to speed_base / speed after it acts, so
    over a long battle the number of turns each combatant gets is
    proportional to its speed. Dead combatants stay in the queue but are
    skipped by every scan.
    """

    def __init__(self, combatants: list[Combatant], speed_base: float = SPEED_BASE) -> None:
        self.speed_base = speed_base
        self._queue: list[Combatant] = list(combatants)
        self.current: Combatant | None = None
        self.turn_number = 0
        self.elapsed = 0.0          # Total simulated time advanced

    def add(self, combatant: Combatant) -> None:
        """Put a combatant in the queue with a fresh wait time."""
        self._queue.append(combatant)
        if combatant.is_alive:
            self.reset_wait(combatant)
            combatant.has_acted = False

    def reset_wait(self, combatant: Combatant) -> float:
        combatant.wait_time = self.speed_base / combatant.stats.speed
        return combatant.wait_time

    def _living(self) -> list[Combatant]:
        return [c for c in self._queue if c.is_alive]

    @property
    def queue(self) -> list[Combatant]:
        """Living combatants, soonest to act first."""
        self._queue.sort(key=attrgetter("wait_time"))
        return self._living()

    def start(self) -> Combatant | None:
        """Give every living combatant its initial wait time and pick the first actor."""
        for c in self._living():
            self.reset_wait(c)
            c.has_acted = False
            logger.debug("%s enters queue with wait %.2f", c.name, c.wait_time)
        self.turn_number = 0
        self.elapsed = 0.0
        return self.select_next_actor()

    def advance_time(self) -> float:
        """Jump the clock to the next ready combatant.

        Subtracts the smallest living wait time from every living combatant.

        Returns:
            The amount of time advanced (0 if nobody is alive).
        """
        living = self._living()
        if not living:
            return 0.0
        min_wait = min(c.wait_time for c in living)
        for c in living:
            c.wait_time = max(0.0, c.wait_time - min_wait)
        self.elapsed += min_wait
        logger.debug("Advanced time by %.2f", min_wait)
        return min_wait

    def select_next_actor(self) -> Combatant | None:
        """Advance time until a living combatant is at zero wait and make it the actor.

        Returns:
            The new current actor, or None if nobody is alive.
        """
        if not self._living():
            self.current = None
            return None

        while True:
            self.advance_time()
            head = self.queue[0]
            if head.wait_time == 0:
                break
            logger.debug("No combatant ready yet, advancing again")

        head.has_acted = False
        self.current = head
        self.turn_number += 1
        logger.info("Turn %d: %s acts", self.turn_number, head.name)
        return head

    def complete_action(self, combatant: Combatant) -> Combatant | None:
        """Send a combatant back into the queue and select the next actor.

        Args:
            combatant: The combatant that just finished its activation.

        Returns:
            The next actor, or None if nobody is alive.
        """
        self.reset_wait(combatant)
        combatant.has_acted = True
        logger.debug("%s finished, wait reset to %.2f", combatant.name, combatant.wait_time)
        return self.select_next_actor()

    def order(self) -> list[tuple[Combatant, float]]:
        """Queue display rows: (combatant, wait_time), soonest first."""
        return [(c, c.wait_time) for c in self.queue]
