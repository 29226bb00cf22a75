"""Exception hierarchy for Laser Chess.

Every rejected operation raises one of these with a machine-readable ``rule`` code
naming the violated rule, so callers (UI or agent) can present or retry.

Usage:
    from laserchess.errors import IllegalMoveError

    try:
        controller.commit_move(movement, Player.RED)
    except IllegalMoveError as exc:
        logger.info("rejected: %s (rule=%s)", exc.message, exc.rule)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "BoardSetupError",
    "IllegalMoveError",
    "InvalidLocationError",
    "LaserChessError",
    "MatchFinishedError",
    "NoLegalMovesError",
    "NotationError",
    "OutOfTurnError",
]


class LaserChessError(ValueError):
    """Base exception for all Laser Chess errors.

    Attributes:
        rule: Machine-readable code of the violated rule or invariant
        message: Human-readable error description
        context: Additional context for debugging
    """

    rule: str = "LASERCHESS_ERROR"

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if rule:
            self.rule = rule
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.rule}] {self.message} ({ctx})"
        return f"[{self.rule}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict for transport."""
        return {
            "error": type(self).__name__,
            "rule": self.rule,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }


class IllegalMoveError(LaserChessError):
    """Movement violates piece-type, occupancy or bounds rules."""

    rule = "ILLEGAL_MOVE"


class OutOfTurnError(LaserChessError):
    """Movement submitted for a player who is not currently active."""

    rule = "OUT_OF_TURN"


class InvalidLocationError(LaserChessError):
    """Malformed coordinate, or one outside the configured board bounds."""

    rule = "INVALID_LOCATION"


class NotationError(LaserChessError):
    """Text or transport form that cannot be parsed."""

    rule = "BAD_NOTATION"


class BoardSetupError(LaserChessError):
    """Structurally invalid starting board; fatal at match start."""

    rule = "BAD_SETUP"


class MatchFinishedError(LaserChessError):
    """Movement submitted after the match ended."""

    rule = "MATCH_FINISHED"


class NoLegalMovesError(LaserChessError):
    """The side to move has no legal movement."""

    rule = "NO_LEGAL_MOVES"
