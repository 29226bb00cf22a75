import pytest

from laserchess.agents import HeuristicAgent, RandomAgent
from laserchess.board import Board
from laserchess.errors import NoLegalMovesError
from laserchess.layouts import load_layout, standard_board
from laserchess.types import Location, Movement, Orientation, Piece, PieceType, Player


def test_random_agent_seed_reproducible():
    board = standard_board()
    move1 = RandomAgent(seed=123).choose_move(board, Player.BLUE)
    move2 = RandomAgent(seed=123).choose_move(board, Player.BLUE)

    assert move1 == move2
    assert move1 in board.legal_moves(Player.BLUE)


def test_heuristic_agent_takes_the_winning_shot():
    board = Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(7, 2): Piece(PieceType.PHARAOH, Player.RED),
            Location(0, 5): Piece(PieceType.PHARAOH, Player.BLUE),
            Location(7, 9): Piece(PieceType.SPHINX, Player.BLUE, Orientation.N),
        }
    )
    for seed in range(5):
        move = HeuristicAgent(seed=seed).choose_move(board, Player.RED)
        assert move == Movement.rotation(Location(0, 0), clockwise=False)


def test_heuristic_agent_avoids_shooting_own_pharaoh():
    board = Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(5, 1): Piece(PieceType.PHARAOH, Player.RED),
            Location(7, 5): Piece(PieceType.PHARAOH, Player.BLUE),
            Location(7, 9): Piece(PieceType.SPHINX, Player.BLUE, Orientation.N),
        }
    )
    agent = HeuristicAgent(seed=7)
    for _ in range(10):
        move = agent.choose_move(board, Player.RED)
        assert board.apply(move).find(PieceType.PHARAOH, Player.RED).col != 0


def test_agents_raise_when_stuck():
    board, _ = load_layout("xe,k,K,1,Xw r")
    for agent in (RandomAgent(seed=0), HeuristicAgent(seed=0)):
        with pytest.raises(NoLegalMovesError):
            agent.choose_move(board, Player.RED)
