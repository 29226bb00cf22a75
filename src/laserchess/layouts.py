"""Starting layouts and match-start validation."""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from .board import Board
from .errors import BoardSetupError
from .notation import parse_setup
from .types import PieceType, Player

# Standard 10x8 opening. Red holds the top-left Sphinx, Blue the bottom-right one,
# and the position is symmetric under a half-turn. Blue moves first.
CLASSIC = (
    "xs,3,as,k,as,pse,2/"
    "2,psw,7/"
    "3,Psw,6/"
    "pne,1,Pnw,1,sne,sse,1,psw,1,Pnw/"
    "pse,1,Pne,1,Snw,Ssw,1,pse,1,Psw/"
    "6,pne,3/"
    "7,Pne,2/"
    "2,Pnw,An,K,An,3,Xn b"
)

LAYOUTS: Dict[str, str] = {
    "classic": CLASSIC,
}

DEFAULT_LAYOUT = "classic"
DEFAULT_FIRST = Player.BLUE


def layout_notation(name: str) -> str:
    try:
        return LAYOUTS[name.lower()]
    except KeyError as exc:
        raise BoardSetupError(f"Unknown layout '{name}'", context={"known": ", ".join(sorted(LAYOUTS))}) from exc


def load_layout(text_or_name: str) -> Tuple[Board, Optional[Player]]:
    """Return the board and recorded side to move for a layout name or setup notation."""

    text = LAYOUTS.get(text_or_name.strip().lower(), text_or_name)
    grid, to_move = parse_setup(text)
    return Board.from_grid(grid), to_move


def standard_board(name: str = DEFAULT_LAYOUT) -> Board:
    board, _ = load_layout(layout_notation(name))
    return board


def validate_setup(board: Board) -> None:
    """Check the full match-start invariants: one Sphinx and one Pharaoh per player.

    ``Board`` itself already rejects duplicates and wrong facings; this adds the
    requirement that nothing is missing.
    """

    for player in Player:
        for kind in (PieceType.SPHINX, PieceType.PHARAOH):
            count = board.count(kind, player)
            if count != 1:
                raise BoardSetupError(
                    f"{player.name} must start with exactly one {kind.name}",
                    context={"found": count},
                )
