"""Command errors raised by SimulationEngine.

Every error is raised before the engine mutates anything, so a rejected
command leaves the session exactly as it was.  The API layer maps each
class to an HTTP status code.
"""

from __future__ import annotations


class CommandError(Exception):
    """Base class for recoverable command rejections."""


class InvalidPlacement(CommandError):
    """Target cell is out of bounds, on the path, or already occupied."""


class InsufficientFunds(CommandError):
    """Command costs more money than the session currently has."""

    def __init__(self, cost: int, money: int) -> None:
        super().__init__(f"Need ${cost}, have ${money}")
        self.cost = cost
        self.money = money


class NoSuchTower(CommandError):
    """Upgrade target does not resolve to a placed tower."""


class UnknownArchetype(CommandError):
    """Tower archetype name is not in the archetype table."""


class SessionOver(CommandError):
    """Session already ended in defeat or victory."""
