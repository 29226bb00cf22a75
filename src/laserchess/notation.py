"""Laser Chess notation parsing and serialization.

This module supports the text forms exchanged with input layers, agents and match
records:

- algebraic squares, ``<col-letter><row-number>`` with ``a1`` at the top-left;
- movement text: ``c3-d4`` normal, ``c3*d4`` swap, ``c3+`` clockwise, ``c3~``
  counter-clockwise (a swap may carry the displaced facing, ``c3*d4(ne)``);
- movement dicts, the transport-neutral form used by ``MatchController.submit``;
- setup notation for whole boards, rows top to bottom separated by ``/``.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidLocationError, NotationError
from .types import Location, Movement, MovementType, Orientation, Piece, PieceType, Player

COLUMNS = "abcdefghijklmnopqrstuvwxyz"

PIECE_LETTERS: Dict[PieceType, str] = {
    PieceType.SPHINX: "x",
    PieceType.PHARAOH: "k",
    PieceType.PYRAMID: "p",
    PieceType.SCARAB: "s",
    PieceType.ANUBIS: "a",
}
LETTER_PIECES: Dict[str, PieceType] = {letter: kind for kind, letter in PIECE_LETTERS.items()}

_SQUARE_RE = re.compile(r"^([a-z])([1-9][0-9]*)$")
_MOVE_RE = re.compile(
    r"^(?:\d+:)?(?:[RB];)?"
    r"(?P<src>[a-z][1-9][0-9]*)"
    r"(?:(?P<rot>[+~])|(?P<op>[-*])(?P<dest>[a-z][1-9][0-9]*)(?:\((?P<facing>[nsew]{1,2})\))?)$"
)
_TOKEN_RE = re.compile(r"^(?P<letter>[xkpsaXKPSA])(?P<facing>[nsewNSEW]{0,2})$")

Grid = List[List[Optional[Piece]]]


def location_to_an(location: Location) -> str:
    """Convert a location to algebraic form (e.g. (0, 0) -> "a1")."""

    if location.row < 0 or not 0 <= location.col < len(COLUMNS):
        raise InvalidLocationError(
            "location cannot be written in algebraic form", context={"location": location}
        )
    return f"{COLUMNS[location.col]}{location.row + 1}"


def an_to_location(text: str, rows: Optional[int] = None, cols: Optional[int] = None) -> Location:
    """Convert algebraic form (e.g. "c3") to a location, checking bounds when given."""

    if not isinstance(text, str):
        raise InvalidLocationError("square must be a string", context={"square": text})
    match = _SQUARE_RE.match(text.strip().lower())
    if not match:
        raise InvalidLocationError(f"Invalid square '{text}'", context={"square": text})
    location = Location(int(match.group(2)) - 1, COLUMNS.index(match.group(1)))
    if rows is not None and cols is not None and not location.in_bounds(rows, cols):
        raise InvalidLocationError(
            f"Square '{text}' outside {cols}x{rows} board", context={"square": text}
        )
    return location


def movement_to_text(movement: Movement) -> str:
    src = location_to_an(movement.src)
    if movement.type is MovementType.ROTATION_CW:
        return f"{src}+"
    if movement.type is MovementType.ROTATION_CCW:
        return f"{src}~"
    dest = location_to_an(movement.dest)
    if movement.type is MovementType.NORMAL:
        return f"{src}-{dest}"
    suffix = ""
    if movement.secondary_orientation is not None:
        suffix = f"({movement.secondary_orientation.code})"
    return f"{src}*{dest}{suffix}"


def parse_movement_text(raw: str, rows: Optional[int] = None, cols: Optional[int] = None) -> Movement:
    """Parse a movement string.

    Accepted examples (case-insensitive, whitespace ignored):
    - "c3-d4"        normal step
    - "c3*d4"        swap; "c3*d4(ne)" also records the displaced facing
    - "c3+" / "c3~"  rotate clockwise / counter-clockwise
    - "12:B;c3-d4"   a match record line with ply and colour prefix

    Raises:
        NotationError: if the text cannot be parsed.
        InvalidLocationError: if a square is outside the given bounds.
    """

    text = "".join(raw.split())
    if not text:
        raise NotationError("Movement text is empty")
    # Colour prefix is upper case, squares lower case.
    head, sep, tail = text.rpartition(";")
    text = f"{head.upper()}{sep}{tail.lower()}"
    match = _MOVE_RE.match(text)
    if not match:
        raise NotationError(
            f"Could not parse movement '{raw}'; use formats like 'c3-d4', 'c3*d4', 'c3+' or 'c3~'"
        )
    src = an_to_location(match.group("src"), rows, cols)
    rot = match.group("rot")
    if rot is not None:
        return Movement.rotation(src, clockwise=rot == "+")
    dest = an_to_location(match.group("dest"), rows, cols)
    if match.group("op") == "-":
        if match.group("facing"):
            raise NotationError("Only swaps carry a displaced facing", context={"text": raw})
        return Movement.normal(src, dest)
    facing = match.group("facing")
    if facing is None:
        return Movement(MovementType.SPECIAL, src, dest, secondary_location=src)
    try:
        displaced = Orientation.from_code(facing)
    except ValueError as exc:
        raise NotationError(f"Invalid displaced facing in '{raw}'") from exc
    return Movement.special(src, dest, displaced)


def movement_to_dict(movement: Movement) -> Dict[str, Any]:
    """Serialize a movement to its transport form."""

    payload: Dict[str, Any] = {
        "type": movement.type.value,
        "srcLocation": location_to_an(movement.src),
        "destLocation": location_to_an(movement.dest),
    }
    if movement.secondary_location is not None or movement.secondary_orientation is not None:
        secondary: Dict[str, Any] = {}
        if movement.secondary_location is not None:
            secondary["location"] = location_to_an(movement.secondary_location)
        if movement.secondary_orientation is not None:
            secondary["orientation"] = movement.secondary_orientation.code
        payload["secondary"] = secondary
    return payload


def movement_from_dict(
    data: Dict[str, Any], rows: Optional[int] = None, cols: Optional[int] = None
) -> Movement:
    """Inverse of :func:`movement_to_dict`."""

    if not isinstance(data, dict):
        raise NotationError("movement payload must be a mapping")
    for key in ("type", "srcLocation"):
        if key not in data:
            raise NotationError(f"movement payload missing '{key}'", context={"payload": data})
    try:
        kind = MovementType(data["type"])
    except ValueError as exc:
        raise NotationError(f"unknown movement type {data['type']!r}") from exc
    src = an_to_location(data["srcLocation"], rows, cols)
    dest = an_to_location(data.get("destLocation", data["srcLocation"]), rows, cols)

    secondary_location = None
    secondary_orientation = None
    secondary = data.get("secondary")
    if secondary:
        if not isinstance(secondary, dict):
            raise NotationError("secondary must be a mapping", context={"payload": data})
        if secondary.get("location") is not None:
            secondary_location = an_to_location(secondary["location"], rows, cols)
        if secondary.get("orientation") is not None:
            try:
                secondary_orientation = Orientation.from_code(secondary["orientation"])
            except ValueError as exc:
                raise NotationError(str(exc), context={"payload": data}) from exc
    return Movement(kind, src, dest, secondary_location, secondary_orientation)


def _parse_token(token: str) -> Piece:
    match = _TOKEN_RE.match(token)
    if not match:
        raise NotationError(f"Invalid piece token '{token}'")
    letter = match.group("letter")
    owner = Player.BLUE if letter.isupper() else Player.RED
    kind = LETTER_PIECES[letter.lower()]
    facing = match.group("facing")
    if kind is PieceType.PHARAOH:
        return Piece(kind, owner)
    if not facing:
        raise NotationError(f"Piece token '{token}' needs an orientation")
    try:
        orientation = Orientation.from_code(facing)
    except ValueError as exc:
        raise NotationError(f"Invalid orientation in token '{token}'") from exc
    return Piece(kind, owner, orientation)


def parse_setup(text: str) -> Tuple[Grid, Optional[Player]]:
    """Parse setup notation into a grid of pieces plus the side to move, if recorded.

    Example row: ``xs,3,as,k,as,pse,2`` places a red Sphinx facing south, three empty
    cells, a red Anubis facing south, the red Pharaoh, ...
    """

    stripped = text.strip()
    if not stripped:
        raise NotationError("Setup notation is empty")
    parts = stripped.split()
    if len(parts) > 2:
        raise NotationError("Setup notation has trailing fields", context={"text": text})
    to_move: Optional[Player] = None
    if len(parts) == 2:
        side = parts[1].lower()
        if side not in {"r", "b"}:
            raise NotationError(f"Side to move must be 'r' or 'b', got '{parts[1]}'")
        to_move = Player.RED if side == "r" else Player.BLUE

    grid: Grid = []
    for row_text in parts[0].split("/"):
        row: List[Optional[Piece]] = []
        for token in (tok for tok in row_text.split(",") if tok):
            if token.isdigit():
                count = int(token)
                if count == 0:
                    raise NotationError("Empty-run count must be positive")
                row.extend([None] * count)
            else:
                row.append(_parse_token(token))
        grid.append(row)

    widths = {len(row) for row in grid}
    if len(widths) != 1 or 0 in widths:
        raise NotationError("All setup rows must have the same non-zero width", context={"widths": sorted(widths)})
    return grid, to_move


def _dump_token(piece: Piece) -> str:
    letter = PIECE_LETTERS[piece.kind]
    if piece.owner is Player.BLUE:
        letter = letter.upper()
    if piece.kind is PieceType.PHARAOH:
        return letter
    return f"{letter}{piece.orientation.code}"


def dump_setup(grid: Grid, to_move: Optional[Player] = None) -> str:
    """Serialize a grid of pieces to setup notation."""

    rows_text: List[str] = []
    for row in grid:
        tokens: List[str] = []
        empty = 0
        for piece in row:
            if piece is None:
                empty += 1
                continue
            if empty:
                tokens.append(str(empty))
                empty = 0
            tokens.append(_dump_token(piece))
        if empty:
            tokens.append(str(empty))
        rows_text.append(",".join(tokens))
    text = "/".join(rows_text)
    if to_move is not None:
        text = f"{text} {'r' if to_move is Player.RED else 'b'}"
    return text
