"""Match controller for UI-driven or scripted play.

This module keeps presentation concerns separate from the rules so turn sequencing
and validation can be tested without a UI. One turn runs

    WAITING_FOR_MOVE -> RESOLVING_LASER -> APPLYING_CASUALTY -> CHECKING_WIN

and ends back in WAITING_FOR_MOVE for the other side or in FINISHED. A turn is
resolved on copies and committed in one step, so a rejected movement never changes
the board or the match state. ``propose_move`` runs the same pipeline without
committing, letting a presentation layer decide when the result becomes real.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .agents import Agent, HeuristicAgent
from .board import Board
from .config import DEFAULT_RULES, RulesConfig
from .errors import (
    IllegalMoveError,
    LaserChessError,
    MatchFinishedError,
    NoLegalMovesError,
    NotationError,
    OutOfTurnError,
)
from .laser import LaserResult
from .layouts import DEFAULT_FIRST, DEFAULT_LAYOUT, load_layout, validate_setup
from .notation import an_to_location, location_to_an, movement_from_dict, parse_movement_text
from .record import MatchRecord, dump_record
from .types import Location, MatchState, MatchStatus, Movement, PieceType, Player

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    WAITING_FOR_MOVE = "waiting_for_move"
    RESOLVING_LASER = "resolving_laser"
    APPLYING_CASUALTY = "applying_casualty"
    CHECKING_WIN = "checking_win"
    FINISHED = "finished"


@dataclass(frozen=True)
class TurnResult:
    """Everything one resolved turn produced."""

    player: Player
    movement: Movement
    board: Board
    laser: LaserResult
    state: MatchState

    @property
    def casualty(self) -> Optional[Location]:
        return self.laser.casualty


def _noop(phase: TurnPhase) -> None:
    return None


class MatchController:
    """Own the board and match state of a single Laser Chess match."""

    def __init__(
        self,
        board: Union[Board, str, None] = None,
        first: Optional[Player] = None,
        config: Optional[RulesConfig] = None,
        red_agent: Optional[Agent] = None,
        blue_agent: Optional[Agent] = None,
        validate: bool = True,
    ) -> None:
        self.red_agent = red_agent
        self.blue_agent = blue_agent
        self.config = config or DEFAULT_RULES
        self._lock = threading.Lock()
        self._board: Board
        self._state: MatchState
        self.phase = TurnPhase.WAITING_FOR_MOVE
        self.history: List[Tuple[Player, Movement]] = []
        self.last_laser: Optional[LaserResult] = None
        self.new_game(board=board, first=first, validate=validate)

    def new_game(
        self,
        board: Union[Board, str, None] = None,
        first: Optional[Player] = None,
        validate: bool = True,
    ) -> None:
        """Start a new match on ``board`` (a Board, a layout name or setup notation).

        ``first`` overrides the side to move recorded in the setup notation.
        """

        recorded: Optional[Player] = None
        if board is None:
            board = DEFAULT_LAYOUT
        if isinstance(board, str):
            board, recorded = load_layout(board)
        if validate:
            validate_setup(board)
        with self._lock:
            self._initial_board = board
            self._initial_turn = first or recorded or DEFAULT_FIRST
            self._board = board
            self._state = MatchState(active_player=self._initial_turn)
            self.history = []
            self.last_laser = None
            self.phase = TurnPhase.WAITING_FOR_MOVE
            self._state = self._settle(self._board, self._state)
            if self._state.is_finished:
                self.phase = TurnPhase.FINISHED
        logger.info("new match %dx%d, %s to move", board.cols, board.rows, self._initial_turn.name)

    # ------------------------------------------------------------------ read-only views

    @property
    def board(self) -> Board:
        return self._board

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def active_player(self) -> Player:
        return self._state.active_player

    def legal_moves(self) -> List[Movement]:
        if self._state.is_finished:
            return []
        return self._board.legal_moves(self._state.active_player)

    def moves_for(self, location: Union[Location, str]) -> List[Movement]:
        """Legal movements from ``location`` for the side to move (other pieces: none)."""

        if isinstance(location, str):
            location = an_to_location(location, self._board.rows, self._board.cols)
        piece = self._board.piece_at(location)
        if self._state.is_finished or piece is None or piece.owner is not self._state.active_player:
            return []
        return self._board.moves_for(location)

    # ------------------------------------------------------------------ turn pipeline

    def propose_move(self, movement: Movement, player: Optional[Player] = None) -> TurnResult:
        """Resolve a turn without committing it."""

        with self._lock:
            board, state = self._board, self._state
        return self._resolve_turn(board, state, movement, player, _noop)

    def commit_move(self, movement: Movement, player: Optional[Player] = None) -> TurnResult:
        """Resolve a turn and make it the current board and state.

        ``player`` is the side submitting; omitted means the side to move.
        """

        with self._lock:
            try:
                result = self._resolve_turn(self._board, self._state, movement, player, self._enter_phase)
            except LaserChessError as exc:
                logger.info("rejected %r: %s", movement, exc)
                raise
            finally:
                # Any failure leaves the controller waiting on the uncommitted state.
                self.phase = TurnPhase.FINISHED if self._state.is_finished else TurnPhase.WAITING_FOR_MOVE
            self._board = result.board
            self._state = result.state
            self.last_laser = result.laser
            self.history.append((result.player, result.movement))
            self.phase = TurnPhase.FINISHED if result.state.is_finished else TurnPhase.WAITING_FOR_MOVE
        if result.state.is_finished:
            outcome = result.state.winner.name if result.state.winner else "draw"
            logger.info("match finished after ply %d: %s", len(self.history), outcome)
        return result

    def _enter_phase(self, phase: TurnPhase) -> None:
        logger.debug("phase %s -> %s", self.phase.name, phase.name)
        self.phase = phase

    def _resolve_turn(
        self,
        board: Board,
        state: MatchState,
        movement: Movement,
        player: Optional[Player],
        on_phase: Callable[[TurnPhase], None],
    ) -> TurnResult:
        if state.is_finished:
            raise MatchFinishedError("match is already finished", context={"winner": state.winner})
        mover = state.active_player if player is None else player
        if mover is not state.active_player:
            raise OutOfTurnError(
                f"{mover.name} submitted a movement but {state.active_player.name} is to move",
                context={"active": state.active_player.name, "submitted_by": mover.name},
            )
        if board.in_bounds(movement.src):
            piece = board.piece_at(movement.src)
            if piece is not None and piece.owner is not mover:
                raise IllegalMoveError(
                    f"{mover.name} cannot move a {piece.owner.name} piece",
                    rule="NOT_OWNER",
                    context={"movement": movement},
                )

        resolved = board.resolve(movement)
        moved = board.apply(resolved)

        on_phase(TurnPhase.RESOLVING_LASER)
        laser = moved.fire_laser(mover, self.config)

        on_phase(TurnPhase.APPLYING_CASUALTY)
        after = moved
        winner: Optional[Player] = None
        victim = laser.casualty_piece
        if laser.casualty is not None and victim is not None:
            after = moved.remove_piece(laser.casualty, self.config)
            logger.info("%s laser destroyed %s %s at %s", mover.name, victim.owner.name, victim.kind.name,
                        location_to_an(laser.casualty))
            if victim.kind is PieceType.PHARAOH or (
                victim.kind is PieceType.SPHINX and self.config.sphinx_strike_wins
            ):
                winner = victim.owner.opponent()

        on_phase(TurnPhase.CHECKING_WIN)
        if winner is not None:
            next_state = MatchState(mover, MatchStatus.FINISHED, winner, state.turn_number)
        else:
            next_state = self._settle(
                after, MatchState(mover.opponent(), MatchStatus.IN_PROGRESS, None, state.turn_number + 1)
            )
        return TurnResult(player=mover, movement=resolved, board=after, laser=laser, state=next_state)

    def _settle(self, board: Board, state: MatchState) -> MatchState:
        """Apply the no-legal-moves policy to a fresh turn."""

        if state.is_finished or board.legal_moves(state.active_player):
            return state
        if self.config.draw_when_no_moves:
            logger.info("%s has no legal movement; match drawn", state.active_player.name)
            return MatchState(state.active_player, MatchStatus.FINISHED, None, state.turn_number)
        other = state.active_player.opponent()
        if board.legal_moves(other):
            logger.info("%s has no legal movement; passing", state.active_player.name)
            return MatchState(other, MatchStatus.IN_PROGRESS, None, state.turn_number + 1)
        logger.info("neither side has a legal movement; match drawn")
        return MatchState(state.active_player, MatchStatus.FINISHED, None, state.turn_number)

    # ------------------------------------------------------------------ input adapters

    def apply_text_move(self, raw: str, player: Optional[Player] = None) -> TurnResult:
        """Parse and commit a movement string such as ``c3-d4`` or ``a1+``."""

        movement = parse_movement_text(raw, self._board.rows, self._board.cols)
        return self.commit_move(movement, player)

    def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Accept a movement in transport form and return the public state.

        ``payload`` is ``{"type", "srcLocation", "destLocation", "secondary"?, "player"?}``.
        A rejection comes back with ``accepted`` false and the error details; the match
        is left untouched.
        """

        try:
            player = None
            if payload.get("player") is not None:
                try:
                    player = Player(str(payload["player"]).lower())
                except ValueError as exc:
                    raise NotationError(f"unknown player {payload['player']!r}") from exc
            movement = movement_from_dict(payload, self._board.rows, self._board.cols)
            self.commit_move(movement, player)
        except LaserChessError as exc:
            public = self.public_state()
            public["accepted"] = False
            public["error"] = exc.to_dict()
            return public
        public = self.public_state()
        public["accepted"] = True
        return public

    def public_state(self) -> Dict[str, Any]:
        laser = self.last_laser
        squares = [
            [
                {
                    "location": location_to_an(sq.location),
                    "piece": None
                    if sq.piece is None
                    else {
                        "type": sq.piece.kind.value,
                        "owner": sq.piece.owner.value,
                        "orientation": sq.piece.orientation.code,
                    },
                }
                for sq in row
            ]
            for row in self._board.squares
        ]
        return {
            "squares": squares,
            "activePlayer": self._state.active_player.value,
            "laserPath": laser.coordinates() if laser else [],
            "laserTriggered": laser is not None and laser.triggered,
            "casualty": location_to_an(laser.casualty) if laser and laser.casualty else None,
            "status": self._state.status.value,
            "winner": self._state.winner.value if self._state.winner else None,
            "turn": self._state.turn_number,
        }

    # ------------------------------------------------------------------ agents

    def _current_agent(self) -> Optional[Agent]:
        return self.red_agent if self._state.active_player is Player.RED else self.blue_agent

    def compute_ai_move(self) -> Movement:
        if self._state.is_finished:
            raise MatchFinishedError("match is already finished")
        agent = self._current_agent()
        if agent is None:
            raise LaserChessError(
                f"No agent configured for {self._state.active_player.name}", rule="NO_AGENT"
            )
        player = self._state.active_player
        legal = self._board.legal_moves(player)
        try:
            move = agent.choose_move(self._board, player)
        except NoLegalMovesError:
            raise
        except Exception:
            logger.warning("%s failed; falling back to HeuristicAgent", agent.__class__.__name__, exc_info=True)
            move = HeuristicAgent(config=self.config).choose_move(self._board, player)
        if move not in legal:
            logger.warning("%s proposed illegal %s; falling back to HeuristicAgent", agent.__class__.__name__, move)
            move = HeuristicAgent(config=self.config).choose_move(self._board, player)
        return move

    def step_ai(self) -> TurnResult:
        move = self.compute_ai_move()
        return self.commit_move(move, self._state.active_player)

    # ------------------------------------------------------------------ records

    def to_record(self, comments: Optional[List[str]] = None) -> MatchRecord:
        lines = list(comments or [])
        if not lines:
            lines = [
                f"# red_agent={self.red_agent.__class__.__name__ if self.red_agent else 'Human'}",
                f"# blue_agent={self.blue_agent.__class__.__name__ if self.blue_agent else 'Human'}",
            ]
        moves = [(idx, player, movement) for idx, (player, movement) in enumerate(self.history, start=1)]
        return MatchRecord(
            setup=self._initial_board.to_notation(self._initial_turn),
            moves=moves,
            comments=lines,
            rules=self.config,
        )

    def to_record_text(self, comments: Optional[List[str]] = None) -> str:
        return dump_record(self.to_record(comments))
