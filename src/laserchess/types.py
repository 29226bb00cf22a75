"""Core data structures for Laser Chess.

Rule reminders:
- The board is a grid of ``rows`` x ``cols`` cells addressed (row, col) from the top-left.
- Red's Sphinx starts in the top-left corner, Blue's in the bottom-right.
- Orientations use screen directions: N is towards row 0, E towards the last column.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class Player(Enum):
    """Players in the game."""

    RED = "red"
    BLUE = "blue"

    def opponent(self) -> "Player":
        """Return the opposing player."""

        return Player.RED if self is Player.BLUE else Player.BLUE

    @property
    def letter(self) -> str:
        return "R" if self is Player.RED else "B"


class PieceType(Enum):
    PHARAOH = "pharaoh"
    PYRAMID = "pyramid"
    SCARAB = "scarab"
    ANUBIS = "anubis"
    SPHINX = "sphinx"


class Orientation(Enum):
    """Facing of a piece, or travel direction of the beam.

    The value is the (d_row, d_col) step for one cell in that direction.
    """

    N = (-1, 0)
    NE = (-1, 1)
    E = (0, 1)
    SE = (1, 1)
    S = (1, 0)
    SW = (1, -1)
    W = (0, -1)
    NW = (-1, -1)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value

    @property
    def is_diagonal(self) -> bool:
        d_row, d_col = self.value
        return d_row != 0 and d_col != 0

    def opposite(self) -> "Orientation":
        d_row, d_col = self.value
        return Orientation((-d_row, -d_col))

    def rotated(self, clockwise: bool = True) -> "Orientation":
        """Quarter-turn rotation; cardinals stay cardinal and diagonals stay diagonal."""

        d_row, d_col = self.value
        if clockwise:
            return Orientation((d_col, -d_row))
        return Orientation((-d_col, d_row))

    @property
    def code(self) -> str:
        return self.name.lower()

    @classmethod
    def from_code(cls, code: str) -> "Orientation":
        try:
            return cls[code.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown orientation '{code}'") from exc


CARDINALS: Tuple[Orientation, ...] = (Orientation.N, Orientation.E, Orientation.S, Orientation.W)
DIAGONALS: Tuple[Orientation, ...] = (Orientation.NE, Orientation.SE, Orientation.SW, Orientation.NW)
# Compass order used for move generation.
COMPASS: Tuple[Orientation, ...] = (
    Orientation.N,
    Orientation.NE,
    Orientation.E,
    Orientation.SE,
    Orientation.S,
    Orientation.SW,
    Orientation.W,
    Orientation.NW,
)


@dataclass(frozen=True, order=True)
class Location:
    """A grid coordinate, 0-based from the top-left corner."""

    row: int
    col: int

    def in_bounds(self, rows: int, cols: int) -> bool:
        return 0 <= self.row < rows and 0 <= self.col < cols

    def offset(self, direction: Orientation) -> "Location":
        d_row, d_col = direction.delta
        return Location(self.row + d_row, self.col + d_col)

    def to_an(self) -> str:
        from .notation import location_to_an

        return location_to_an(self)

    def __str__(self) -> str:
        return f"({self.row},{self.col})"


@dataclass(frozen=True)
class Piece:
    """A single playable unit. Immutable: rotation returns a new piece."""

    kind: PieceType
    owner: Player
    orientation: Orientation = Orientation.N

    def rotated(self, clockwise: bool = True) -> "Piece":
        return replace(self, orientation=self.orientation.rotated(clockwise))

    @property
    def is_reflective(self) -> bool:
        return self.kind in (PieceType.PYRAMID, PieceType.SCARAB)


@dataclass(frozen=True)
class Square:
    """One grid cell; ``piece`` is ``None`` when the cell is empty."""

    location: Location
    piece: Optional[Piece] = None

    @property
    def is_empty(self) -> bool:
        return self.piece is None


class MovementType(Enum):
    NORMAL = "normal"
    ROTATION_CW = "rotation_cw"
    ROTATION_CCW = "rotation_ccw"
    SPECIAL = "special"

    @property
    def is_rotation(self) -> bool:
        return self in (MovementType.ROTATION_CW, MovementType.ROTATION_CCW)


@dataclass(frozen=True)
class Movement:
    """A proposed or committed action.

    Rotations keep ``dest == src``. For ``SPECIAL`` swaps the displaced piece lands on
    ``secondary_location`` (the mover's origin) keeping ``secondary_orientation``.
    """

    type: MovementType
    src: Location
    dest: Location
    secondary_location: Optional[Location] = None
    secondary_orientation: Optional[Orientation] = None

    @classmethod
    def normal(cls, src: Location, dest: Location) -> "Movement":
        return cls(MovementType.NORMAL, src, dest)

    @classmethod
    def rotation(cls, src: Location, clockwise: bool = True) -> "Movement":
        kind = MovementType.ROTATION_CW if clockwise else MovementType.ROTATION_CCW
        return cls(kind, src, src)

    @classmethod
    def special(cls, src: Location, dest: Location, displaced: Orientation) -> "Movement":
        return cls(MovementType.SPECIAL, src, dest, secondary_location=src, secondary_orientation=displaced)

    def __str__(self) -> str:
        from .notation import movement_to_text

        return movement_to_text(self)


class MatchStatus(Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class MatchState:
    """Turn bookkeeping owned by the match controller.

    A finished match with ``winner`` left as ``None`` is a draw.
    """

    active_player: Player
    status: MatchStatus = MatchStatus.IN_PROGRESS
    winner: Optional[Player] = None
    turn_number: int = 1

    @property
    def is_finished(self) -> bool:
        return self.status is MatchStatus.FINISHED
