"""Agents for playing Laser Chess.

An agent answers ``choose_move(board, player)`` with one legal movement for ``player``
or raises ``NoLegalMovesError``. The controller checks every answer before use.
"""

from __future__ import annotations

import random
from typing import List, Optional, Tuple

from .board import Board
from .config import DEFAULT_RULES, RulesConfig
from .errors import NoLegalMovesError
from .types import Movement, PieceType, Player


class Agent:
    """Base class for agents."""

    def choose_move(self, board: Board, player: Player) -> Movement:  # noqa: D401
        """Return a movement for ``player`` on ``board``."""

        raise NotImplementedError

    def _legal_moves(self, board: Board, player: Player) -> List[Movement]:
        moves = board.legal_moves(player)
        if not moves:
            raise NoLegalMovesError(f"{player.name} has no legal movement", context={"player": player.name})
        return moves


class RandomAgent(Agent):
    """Agent that selects a random legal move with reproducible seeding."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def choose_move(self, board: Board, player: Player) -> Movement:
        return self._rng.choice(self._legal_moves(board, player))


class HeuristicAgent(Agent):
    """Agent using a one-ply look at its own shot.

    Priority: winning shot > not destroying its own Pharaoh > destroying an opposing
    piece > not destroying one of its own. RNG breaks ties.
    """

    def __init__(self, seed: Optional[int] = None, config: Optional[RulesConfig] = None):
        self._rng = random.Random(seed)
        self.config = config or DEFAULT_RULES

    def _is_king(self, kind: PieceType) -> bool:
        return kind is PieceType.PHARAOH or (kind is PieceType.SPHINX and self.config.sphinx_strike_wins)

    def score(self, board: Board, player: Player, movement: Movement) -> Tuple[bool, bool, bool, bool]:
        """Return (wins, keeps own king, hits opponent, spares own pieces); higher is better."""

        after = board.apply(movement)
        victim = after.fire_laser(player, self.config).casualty_piece
        if victim is None:
            return False, True, False, True
        own = victim.owner is player
        win = not own and self._is_king(victim.kind)
        suicide = own and self._is_king(victim.kind)
        return win, not suicide, not own, not own

    def choose_move(self, board: Board, player: Player) -> Movement:
        moves = self._legal_moves(board, player)
        scored = [(self.score(board, player, mv), mv) for mv in moves]
        best_score = max(score for score, _ in scored)
        best_moves = [mv for score, mv in scored if score == best_score]
        return self._rng.choice(best_moves)
