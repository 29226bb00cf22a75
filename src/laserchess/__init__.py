"""Laser Chess game package."""

from .types import (
    Location,
    MatchState,
    MatchStatus,
    Movement,
    MovementType,
    Orientation,
    Piece,
    PieceType,
    Player,
    Square,
)
from .errors import (
    BoardSetupError,
    IllegalMoveError,
    InvalidLocationError,
    LaserChessError,
    MatchFinishedError,
    NoLegalMovesError,
    NotationError,
    OutOfTurnError,
)
from .config import RulesConfig
from .board import Board
from .laser import LaserResult, fire
from .layouts import CLASSIC, LAYOUTS, load_layout, standard_board, validate_setup
from .agents import Agent, HeuristicAgent, RandomAgent
from .game_controller import MatchController, TurnPhase, TurnResult

__all__ = [
    "Agent",
    "Board",
    "BoardSetupError",
    "CLASSIC",
    "HeuristicAgent",
    "IllegalMoveError",
    "InvalidLocationError",
    "LAYOUTS",
    "LaserChessError",
    "LaserResult",
    "Location",
    "MatchController",
    "MatchFinishedError",
    "MatchState",
    "MatchStatus",
    "Movement",
    "MovementType",
    "NoLegalMovesError",
    "NotationError",
    "Orientation",
    "OutOfTurnError",
    "Piece",
    "PieceType",
    "Player",
    "RandomAgent",
    "RulesConfig",
    "Square",
    "TurnPhase",
    "TurnResult",
    "fire",
    "load_layout",
    "standard_board",
    "validate_setup",
]
