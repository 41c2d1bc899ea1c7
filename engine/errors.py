"""Rejection reasons for battle actions.

Every error here is recoverable: the action is refused, state is left as it
was, and the caller may retry with different input.
"""


class BattleError(ValueError):
    """Base class for rejected battle actions."""


class IllegalTarget(BattleError):
    """Cell or target lies outside the currently valid range."""


class NotYourTurn(BattleError):
    """Action submitted for a combatant that is not the current actor."""


class InsufficientResource(BattleError):
    """Not enough mp (or other resource) to pay for the action."""


class IllegalAction(BattleError):
    """Action is not available in the current phase of the turn."""
