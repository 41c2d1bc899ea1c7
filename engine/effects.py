"""Pending visual effects and the continuations waiting on them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count
from typing import Any

from models.actions import EffectKind, EffectTicket

logger = logging.getLogger(__name__)


@dataclass
class _Pending:
    ticket: EffectTicket
    continuation: Callable[..., Any] | None
    args: tuple = field(default_factory=tuple)


class EffectQueue:
    """FIFO of effect tickets handed to the presentation layer.

    Each ticket carries the continuation the battle runs once the
    presentation layer reports the effect finished. Continuations run at
    most once and in the order their tickets are completed.
    """

    def __init__(self) -> None:
        self._pending: list[_Pending] = []
        self._ids = count(1)

    def enqueue(
        self,
        kind: EffectKind,
        actor_id: str,
        continuation: Callable[..., Any] | None = None,
        *args: Any,
        **payload: Any,
    ) -> EffectTicket:
        """Register an effect and the step to run after it.

        Args:
            kind: Which effect to play.
            actor_id: The combatant performing the effect.
            continuation: Called with *args when the ticket is completed.
            **payload: Extra ticket fields (target_id, position, path, damage).

        Returns:
            The ticket to hand to the presentation layer.
        """
        ticket = EffectTicket(id=f"fx-{next(self._ids)}", kind=kind, actor_id=actor_id, **payload)
        self._pending.append(_Pending(ticket, continuation, args))
        logger.debug("Queued %s effect %s", kind.value, ticket.id)
        return ticket

    def complete(self, ticket_id: str) -> bool:
        """Mark a ticket finished and run its continuation.

        Returns:
            False if no pending ticket has this id.
        """
        for i, pending in enumerate(self._pending):
            if pending.ticket.id == ticket_id:
                del self._pending[i]
                logger.debug("Effect %s complete", ticket_id)
                if pending.continuation is not None:
                    pending.continuation(*pending.args)
                return True
        return False

    def resolve_next(self) -> EffectTicket | None:
        """Complete the oldest pending ticket. Returns it, or None if empty."""
        if not self._pending:
            return None
        ticket = self._pending[0].ticket
        self.complete(ticket.id)
        return ticket

    def pending(self) -> list[EffectTicket]:
        return [p.ticket for p in self._pending]

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def clear(self) -> None:
        self._pending.clear()
