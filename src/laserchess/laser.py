"""Laser beam simulation.

The beam starts on the firing player's Sphinx and walks one cell at a time in the
Sphinx's facing. Mirrors turn it 90 degrees, an Anubis shield or a Sphinx absorbs it,
and any other struck face destroys the piece. The walk is bounded: a revisited
(cell, direction) state or more than ``(rows + cols) * (reflective pieces + 1)`` cells
ends it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set, Tuple

from .config import DEFAULT_RULES, RulesConfig
from .errors import BoardSetupError
from .types import Location, Orientation, Piece, PieceType, Player

if TYPE_CHECKING:
    from .board import Board

logger = logging.getLogger(__name__)

N, E, S, W = Orientation.N, Orientation.E, Orientation.S, Orientation.W
NE, SE, SW, NW = Orientation.NE, Orientation.SE, Orientation.SW, Orientation.NW

# (travel direction, pyramid facing) -> outgoing direction; None means the beam hit a
# solid side.
PYRAMID_REFLECTIONS: Dict[Tuple[Orientation, Orientation], Optional[Orientation]] = {
    (N, NE): None, (E, NE): None, (S, NE): E, (W, NE): N,
    (N, SE): E, (E, SE): None, (S, SE): None, (W, SE): S,
    (N, SW): W, (E, SW): S, (S, SW): None, (W, SW): None,
    (N, NW): None, (E, NW): N, (S, NW): W, (W, NW): None,
}

# NE/SW is the "\" mirror line, SE/NW the "/" line. Both faces reflect.
SCARAB_REFLECTIONS: Dict[Tuple[Orientation, Orientation], Orientation] = {
    (N, NE): W, (E, NE): S, (S, NE): E, (W, NE): N,
    (N, SW): W, (E, SW): S, (S, SW): E, (W, SW): N,
    (N, SE): E, (E, SE): N, (S, SE): W, (W, SE): S,
    (N, NW): E, (E, NW): N, (S, NW): W, (W, NW): S,
}


class BeamOutcome(Enum):
    PASS = "pass"
    REFLECT = "reflect"
    ABSORB = "absorb"
    DESTROY = "destroy"


@dataclass(frozen=True)
class LaserResult:
    """Result of one firing.

    ``path`` starts on the Sphinx and ends on the last illuminated cell.
    ``terminated_by`` is one of ``edge``, ``absorbed``, ``casualty`` or ``step_limit``.
    """

    path: Tuple[Location, ...]
    casualty: Optional[Location] = None
    casualty_piece: Optional[Piece] = None
    reflections: Tuple[Location, ...] = field(default_factory=tuple)
    terminated_by: str = "edge"

    @property
    def triggered(self) -> bool:
        return len(self.path) > 0

    def coordinates(self) -> List[List[int]]:
        """Path as ``[col, row]`` pairs, the x/y order renderers draw in."""

        return [[loc.col, loc.row] for loc in self.path]


Interaction = Callable[[Piece, Orientation, RulesConfig], Tuple[BeamOutcome, Optional[Orientation]]]


def _strike(piece: Piece, travel: Orientation, config: RulesConfig) -> Tuple[BeamOutcome, Optional[Orientation]]:
    return BeamOutcome.DESTROY, None


def _pyramid(piece: Piece, travel: Orientation, config: RulesConfig) -> Tuple[BeamOutcome, Optional[Orientation]]:
    out = PYRAMID_REFLECTIONS[(travel, piece.orientation)]
    if out is None:
        return BeamOutcome.DESTROY, None
    return BeamOutcome.REFLECT, out


def _scarab(piece: Piece, travel: Orientation, config: RulesConfig) -> Tuple[BeamOutcome, Optional[Orientation]]:
    return BeamOutcome.REFLECT, SCARAB_REFLECTIONS[(travel, piece.orientation)]


def _anubis(piece: Piece, travel: Orientation, config: RulesConfig) -> Tuple[BeamOutcome, Optional[Orientation]]:
    # The shield faces the beam when the beam travels straight at it.
    if travel.opposite() is piece.orientation:
        return BeamOutcome.ABSORB, None
    return BeamOutcome.DESTROY, None


def _sphinx(piece: Piece, travel: Orientation, config: RulesConfig) -> Tuple[BeamOutcome, Optional[Orientation]]:
    if config.sphinx_strike_wins:
        return BeamOutcome.DESTROY, None
    return BeamOutcome.ABSORB, None


INTERACTIONS: Dict[PieceType, Interaction] = {
    PieceType.PHARAOH: _strike,
    PieceType.PYRAMID: _pyramid,
    PieceType.SCARAB: _scarab,
    PieceType.ANUBIS: _anubis,
    PieceType.SPHINX: _sphinx,
}


def interact(piece: Optional[Piece], travel: Orientation, config: RulesConfig = DEFAULT_RULES) -> Tuple[BeamOutcome, Optional[Orientation]]:
    """Return what happens when a beam travelling ``travel`` enters a cell holding ``piece``."""

    if piece is None:
        return BeamOutcome.PASS, travel
    return INTERACTIONS[piece.kind](piece, travel, config)


def max_path_length(board: "Board") -> int:
    reflective = sum(1 for _, piece in board.pieces() if piece.is_reflective)
    return (board.rows + board.cols) * (reflective + 1)


def fire(board: "Board", player: Player, config: Optional[RulesConfig] = None) -> LaserResult:
    """Trace the beam from ``player``'s Sphinx and report the path and any casualty."""

    rules = config or DEFAULT_RULES
    origin = board.find(PieceType.SPHINX, player)
    if origin is None:
        raise BoardSetupError(f"{player.name} has no Sphinx to fire", context={"player": player.name})
    sphinx = board.piece_at(origin)
    assert sphinx is not None
    direction = sphinx.orientation

    limit = max_path_length(board)
    path: List[Location] = [origin]
    reflections: List[Location] = []
    visited: Set[Tuple[Location, Orientation]] = set()
    current = origin

    while len(path) < limit:
        nxt = current.offset(direction)
        if not board.in_bounds(nxt):
            return _finish(player, path, reflections, "edge")
        state = (nxt, direction)
        if state in visited:
            logger.warning("beam for %s revisited %s heading %s; stopping", player.name, nxt, direction.name)
            return _finish(player, path, reflections, "step_limit")
        visited.add(state)
        path.append(nxt)

        piece = board.piece_at(nxt)
        outcome, new_direction = interact(piece, direction, rules)
        if outcome is BeamOutcome.PASS:
            current = nxt
            continue
        if outcome is BeamOutcome.REFLECT:
            assert new_direction is not None
            reflections.append(nxt)
            direction = new_direction
            current = nxt
            continue
        if outcome is BeamOutcome.ABSORB:
            return _finish(player, path, reflections, "absorbed")
        result = LaserResult(
            path=tuple(path),
            casualty=nxt,
            casualty_piece=piece,
            reflections=tuple(reflections),
            terminated_by="casualty",
        )
        logger.debug("beam for %s destroyed %s at %s", player.name, piece.kind.name if piece else "?", nxt)
        return result

    logger.warning("beam for %s exceeded %d cells; stopping", player.name, limit)
    return _finish(player, path, reflections, "step_limit")


def _finish(player: Player, path: List[Location], reflections: List[Location], reason: str) -> LaserResult:
    logger.debug("beam for %s ended (%s) after %d cells", player.name, reason, len(path))
    return LaserResult(path=tuple(path), reflections=tuple(reflections), terminated_by=reason)
