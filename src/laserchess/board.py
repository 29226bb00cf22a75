"""Board state and the movement rules for Laser Chess.

Rules by piece:
- Pharaoh: one step in any of 8 directions onto an empty square; never rotates.
- Pyramid: one step in any of 8 directions onto an empty square; rotates a quarter turn.
- Scarab: one step in any of 8 directions onto an empty square, or onto a Pyramid or
  Anubis of either colour, swapping places with it; rotates a quarter turn.
- Anubis: one orthogonal step onto an empty square; rotates a quarter turn.
- Sphinx: never moves; rotates a quarter turn only towards a cell on the board.

Move generation depends on the current squares only. A ``Board`` is never mutated in
place: ``apply`` and ``remove_piece`` return a new board.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import DEFAULT_RULES, RulesConfig
from .errors import BoardSetupError, IllegalMoveError, InvalidLocationError
from .laser import LaserResult, fire
from .notation import Grid, dump_setup, location_to_an, parse_setup
from .types import (
    CARDINALS,
    COMPASS,
    Location,
    Movement,
    MovementType,
    Orientation,
    Piece,
    PieceType,
    Player,
    Square,
)

STANDARD_ROWS = 8
STANDARD_COLS = 10

SWAPPABLE = (PieceType.PYRAMID, PieceType.ANUBIS)
CARDINAL_PIECES = (PieceType.SPHINX, PieceType.ANUBIS)
DIAGONAL_PIECES = (PieceType.PYRAMID, PieceType.SCARAB)
UNIQUE_PIECES = (PieceType.SPHINX, PieceType.PHARAOH)


class Board:
    """The full grid of squares, row by row from the top."""

    def __init__(self, squares: Sequence[Sequence[Square]]):
        self._squares: List[List[Square]] = [list(row) for row in squares]
        self._validate()
        self._key_cache: Optional[Tuple] = None

    # ------------------------------------------------------------------ construction

    @classmethod
    def from_grid(cls, grid: Grid) -> "Board":
        return cls(
            [[Square(Location(r, c), piece) for c, piece in enumerate(row)] for r, row in enumerate(grid)]
        )

    @classmethod
    def empty(cls, rows: int = STANDARD_ROWS, cols: int = STANDARD_COLS) -> "Board":
        if rows < 1 or cols < 1:
            raise BoardSetupError("board needs at least one row and one column", context={"rows": rows, "cols": cols})
        return cls.from_grid([[None] * cols for _ in range(rows)])

    @classmethod
    def from_pieces(
        cls, pieces: Dict[Location, Piece], rows: int = STANDARD_ROWS, cols: int = STANDARD_COLS
    ) -> "Board":
        """Build a board holding only ``pieces``; handy for variants and puzzles."""

        grid: Grid = [[None] * cols for _ in range(rows)]
        for location, piece in pieces.items():
            if not location.in_bounds(rows, cols):
                raise InvalidLocationError(f"{location} is off the {cols}x{rows} board", context={"location": location})
            grid[location.row][location.col] = piece
        return cls.from_grid(grid)

    @classmethod
    def from_notation(cls, text: str) -> "Board":
        grid, _ = parse_setup(text)
        return cls.from_grid(grid)

    def _validate(self) -> None:
        if not self._squares or not self._squares[0]:
            raise BoardSetupError("board needs at least one row and one column")
        width = len(self._squares[0])
        seen: Dict[Tuple[PieceType, Player], Location] = {}
        for r, row in enumerate(self._squares):
            if len(row) != width:
                raise BoardSetupError("rows must have equal length", context={"row": r})
            for c, square in enumerate(row):
                if square.location != Location(r, c):
                    raise BoardSetupError("square stored at the wrong location", context={"square": square.location})
                piece = square.piece
                if piece is None:
                    continue
                if piece.kind in CARDINAL_PIECES and piece.orientation.is_diagonal:
                    raise BoardSetupError(
                        f"{piece.kind.name} must face a cardinal direction", context={"location": square.location}
                    )
                if piece.kind in DIAGONAL_PIECES and not piece.orientation.is_diagonal:
                    raise BoardSetupError(
                        f"{piece.kind.name} must face a diagonal direction", context={"location": square.location}
                    )
                if piece.kind is PieceType.PHARAOH and piece.orientation is not Orientation.N:
                    raise BoardSetupError(
                        "PHARAOH has no facing and is stored as N", context={"location": square.location}
                    )
                if piece.kind in UNIQUE_PIECES:
                    key = (piece.kind, piece.owner)
                    if key in seen:
                        raise BoardSetupError(
                            f"more than one {piece.owner.name} {piece.kind.name}",
                            context={"first": seen[key], "second": square.location},
                        )
                    seen[key] = square.location

    # ------------------------------------------------------------------ queries

    @property
    def rows(self) -> int:
        return len(self._squares)

    @property
    def cols(self) -> int:
        return len(self._squares[0])

    @property
    def squares(self) -> List[List[Square]]:
        return [row[:] for row in self._squares]

    def in_bounds(self, location: Location) -> bool:
        return location.in_bounds(self.rows, self.cols)

    def square(self, location: Location) -> Square:
        if not self.in_bounds(location):
            raise InvalidLocationError(
                f"{location} is off the {self.cols}x{self.rows} board", context={"location": location}
            )
        return self._squares[location.row][location.col]

    def piece_at(self, location: Location) -> Optional[Piece]:
        return self.square(location).piece

    def iter_squares(self) -> Iterator[Square]:
        for row in self._squares:
            yield from row

    def pieces(self, player: Optional[Player] = None) -> List[Tuple[Location, Piece]]:
        return [
            (sq.location, sq.piece)
            for sq in self.iter_squares()
            if sq.piece is not None and (player is None or sq.piece.owner is player)
        ]

    def find(self, kind: PieceType, owner: Player) -> Optional[Location]:
        for location, piece in self.pieces(owner):
            if piece.kind is kind:
                return location
        return None

    def count(self, kind: PieceType, owner: Optional[Player] = None) -> int:
        return sum(1 for _, piece in self.pieces(owner) if piece.kind is kind)

    def to_grid(self) -> Grid:
        return [[sq.piece for sq in row] for row in self._squares]

    def key(self) -> Tuple:
        """Return a hashable key capturing the layout."""

        if self._key_cache is None:
            self._key_cache = (self.rows, self.cols, tuple(sq.piece for sq in self.iter_squares()))
        return self._key_cache

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        return f"Board({self.to_notation()!r})"

    # ------------------------------------------------------------------ move generation

    def moves_for(self, location: Location) -> List[Movement]:
        """Return the legal movements of the piece on ``location`` (empty square: none)."""

        piece = self.piece_at(location)
        if piece is None:
            return []
        return _MOVE_RULES[piece.kind](self, location, piece)

    def legal_moves(self, player: Player) -> List[Movement]:
        moves: List[Movement] = []
        for location, _ in self.pieces(player):
            moves.extend(self.moves_for(location))
        return moves

    def _steps(self, location: Location, directions: Sequence[Orientation]) -> List[Movement]:
        moves: List[Movement] = []
        for direction in directions:
            dest = location.offset(direction)
            if self.in_bounds(dest) and self.piece_at(dest) is None:
                moves.append(Movement.normal(location, dest))
        return moves

    # ------------------------------------------------------------------ application

    def apply(self, movement: Movement) -> "Board":
        """Apply a movement and return the resulting board."""

        legal = self._resolve(movement)
        grid = self.to_grid()
        src, dest = legal.src, legal.dest
        piece = grid[src.row][src.col]
        assert piece is not None
        if legal.type is MovementType.NORMAL:
            grid[dest.row][dest.col] = piece
            grid[src.row][src.col] = None
        elif legal.type is MovementType.SPECIAL:
            displaced = grid[dest.row][dest.col]
            grid[dest.row][dest.col] = piece
            grid[src.row][src.col] = displaced
        else:
            grid[src.row][src.col] = piece.rotated(legal.type is MovementType.ROTATION_CW)
        return Board.from_grid(grid)

    def rotate(self, location: Location, clockwise: bool = True) -> "Board":
        return self.apply(Movement.rotation(location, clockwise))

    def resolve(self, movement: Movement) -> Movement:
        """Return the fully specified legal movement matching ``movement``.

        Swaps may arrive without the displaced piece's facing; the board fills it in.
        """

        return self._resolve(movement)

    def _resolve(self, movement: Movement) -> Movement:
        src, dest = movement.src, movement.dest
        for label, location in (("source", src), ("destination", dest)):
            if not self.in_bounds(location):
                raise IllegalMoveError(
                    f"{label} {location} is off the board",
                    rule="OUT_OF_BOUNDS",
                    context={"movement": _describe(movement)},
                )
        piece = self.piece_at(src)
        if piece is None:
            raise IllegalMoveError(
                f"no piece on {location_to_an(src)}", rule="EMPTY_SOURCE", context={"movement": _describe(movement)}
            )
        candidates = self.moves_for(src)
        for candidate in candidates:
            if _matches(candidate, movement):
                return candidate
        if movement.type is MovementType.NORMAL:
            # A Scarab stepping onto a swappable piece is a swap.
            for candidate in candidates:
                if candidate.type is MovementType.SPECIAL and candidate.dest == dest:
                    return candidate
        raise IllegalMoveError(
            _rejection_message(self, piece, movement),
            rule=_rejection_rule(self, piece, movement),
            context={"movement": _describe(movement), "piece": piece.kind.name},
        )

    def remove_piece(self, location: Location, config: Optional[RulesConfig] = None) -> "Board":
        """Return a board without the piece on ``location``.

        A Sphinx can only be removed when ``config`` allows Sphinx strikes.
        """

        piece = self.piece_at(location)
        if piece is None:
            raise IllegalMoveError(f"no piece on {location_to_an(location)} to remove", rule="EMPTY_SQUARE")
        if piece.kind is PieceType.SPHINX and not (config or DEFAULT_RULES).sphinx_strike_wins:
            raise IllegalMoveError(
                f"{piece.owner.name} SPHINX cannot be removed", rule="SPHINX_FIXED", context={"location": location}
            )
        grid = self.to_grid()
        grid[location.row][location.col] = None
        return Board.from_grid(grid)

    def fire_laser(self, player: Player, config: Optional[RulesConfig] = None) -> LaserResult:
        return fire(self, player, config)

    # ------------------------------------------------------------------ text

    def to_notation(self, to_move: Optional[Player] = None) -> str:
        return dump_setup(self.to_grid(), to_move)

    def pretty(self) -> str:
        """Text rendering; upper case Blue, lower case Red, facing after the letter."""

        lines: List[str] = []
        header = "    " + " ".join(f"{chr(ord('a') + c):^3}" for c in range(self.cols))
        lines.append(header)
        for r, row in enumerate(self._squares):
            cells = []
            for sq in row:
                if sq.piece is None:
                    cells.append(" . ")
                else:
                    cells.append(f"{dump_setup([[sq.piece]]):<3}")
            lines.append(f"{r + 1:>3} " + " ".join(cells))
        return "\n".join(lines)


def _pharaoh_moves(board: Board, location: Location, piece: Piece) -> List[Movement]:
    return board._steps(location, COMPASS)


def _rotations(location: Location) -> List[Movement]:
    return [Movement.rotation(location, True), Movement.rotation(location, False)]


def _pyramid_moves(board: Board, location: Location, piece: Piece) -> List[Movement]:
    return board._steps(location, COMPASS) + _rotations(location)


def _scarab_moves(board: Board, location: Location, piece: Piece) -> List[Movement]:
    moves: List[Movement] = []
    for direction in COMPASS:
        dest = location.offset(direction)
        if not board.in_bounds(dest):
            continue
        occupant = board.piece_at(dest)
        if occupant is None:
            moves.append(Movement.normal(location, dest))
        elif occupant.kind in SWAPPABLE:
            moves.append(Movement.special(location, dest, occupant.orientation))
    return moves + _rotations(location)


def _anubis_moves(board: Board, location: Location, piece: Piece) -> List[Movement]:
    return board._steps(location, CARDINALS) + _rotations(location)


def _sphinx_moves(board: Board, location: Location, piece: Piece) -> List[Movement]:
    moves: List[Movement] = []
    for clockwise in (True, False):
        facing = piece.orientation.rotated(clockwise)
        if board.in_bounds(location.offset(facing)):
            moves.append(Movement.rotation(location, clockwise))
    return moves


_MOVE_RULES: Dict[PieceType, Callable[[Board, Location, Piece], List[Movement]]] = {
    PieceType.PHARAOH: _pharaoh_moves,
    PieceType.PYRAMID: _pyramid_moves,
    PieceType.SCARAB: _scarab_moves,
    PieceType.ANUBIS: _anubis_moves,
    PieceType.SPHINX: _sphinx_moves,
}


def _matches(candidate: Movement, requested: Movement) -> bool:
    if (candidate.type, candidate.src, candidate.dest) != (requested.type, requested.src, requested.dest):
        return False
    if requested.secondary_location is not None and requested.secondary_location != candidate.secondary_location:
        return False
    if (
        requested.secondary_orientation is not None
        and requested.secondary_orientation != candidate.secondary_orientation
    ):
        return False
    return True


def _describe(movement: Movement) -> str:
    try:
        return str(movement)
    except InvalidLocationError:
        return repr(movement)


def _rejection_rule(board: Board, piece: Piece, movement: Movement) -> str:
    if movement.type.is_rotation:
        if piece.kind is PieceType.PHARAOH:
            return "CANNOT_ROTATE"
        if piece.kind is PieceType.SPHINX:
            return "SPHINX_FACING"
        return "PIECE_RULE"
    if piece.kind is PieceType.SPHINX:
        return "SPHINX_FIXED"
    if movement.type is MovementType.SPECIAL:
        return "SWAP_NOT_ALLOWED"
    if movement.dest == movement.src or not _adjacent(movement.src, movement.dest):
        return "NOT_ADJACENT"
    occupant = board.piece_at(movement.dest)
    if occupant is not None:
        if piece.kind is PieceType.SCARAB and occupant.kind not in SWAPPABLE:
            return "SWAP_NOT_ALLOWED"
        return "DESTINATION_OCCUPIED"
    return "PIECE_RULE"


def _rejection_message(board: Board, piece: Piece, movement: Movement) -> str:
    return f"{piece.owner.name} {piece.kind.name} cannot play {_describe(movement)}"


def _adjacent(a: Location, b: Location) -> bool:
    return max(abs(a.row - b.row), abs(a.col - b.col)) == 1
