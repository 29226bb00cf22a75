import threading

import pytest

from laserchess.agents import Agent, RandomAgent
from laserchess.board import Board
from laserchess.config import RulesConfig
from laserchess.errors import (
    IllegalMoveError,
    LaserChessError,
    MatchFinishedError,
    NotationError,
    OutOfTurnError,
)
from laserchess.game_controller import MatchController, TurnPhase
from laserchess.types import Location, MatchStatus, Movement, Orientation, Piece, PieceType, Player


def _duel_board():
    return Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(7, 2): Piece(PieceType.PHARAOH, Player.RED),
            Location(0, 5): Piece(PieceType.PHARAOH, Player.BLUE),
            Location(7, 9): Piece(PieceType.SPHINX, Player.BLUE, Orientation.N),
        }
    )


def test_new_controller_uses_classic_layout():
    controller = MatchController()
    assert controller.active_player is Player.BLUE
    assert controller.state.status is MatchStatus.IN_PROGRESS
    assert controller.phase is TurnPhase.WAITING_FOR_MOVE
    assert controller.legal_moves()
    assert controller.moves_for("j8") == [Movement.rotation(Location(7, 9), clockwise=False)]
    assert controller.moves_for("a1") == []


def test_striking_the_pharaoh_wins():
    controller = MatchController(board=_duel_board(), first=Player.RED)
    result = controller.commit_move(Movement.rotation(Location(0, 0), clockwise=False), Player.RED)

    assert result.casualty == Location(0, 5)
    assert controller.state.is_finished
    assert controller.state.winner is Player.RED
    assert controller.phase is TurnPhase.FINISHED
    assert controller.board.piece_at(Location(0, 5)) is None
    assert controller.legal_moves() == []
    with pytest.raises(MatchFinishedError):
        controller.commit_move(Movement.normal(Location(7, 9), Location(6, 9)), Player.BLUE)


def test_out_of_turn_submission_changes_nothing():
    controller = MatchController()
    board_before = controller.board
    state_before = controller.state

    with pytest.raises(OutOfTurnError):
        controller.commit_move(Movement.rotation(Location(0, 0), clockwise=False), Player.RED)
    assert controller.board == board_before
    assert controller.state == state_before
    assert controller.history == []


def test_cannot_move_opponent_piece():
    controller = MatchController()
    with pytest.raises(IllegalMoveError) as excinfo:
        controller.commit_move(Movement.rotation(Location(0, 0), clockwise=False), Player.BLUE)
    assert excinfo.value.rule == "NOT_OWNER"


def test_scarab_cannot_take_pharaoh_through_controller():
    board = Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(3, 3): Piece(PieceType.SCARAB, Player.RED, Orientation.NE),
            Location(7, 0): Piece(PieceType.PHARAOH, Player.RED),
            Location(3, 4): Piece(PieceType.PHARAOH, Player.BLUE),
            Location(7, 9): Piece(PieceType.SPHINX, Player.BLUE, Orientation.N),
        }
    )
    controller = MatchController(board=board, first=Player.RED)
    with pytest.raises(IllegalMoveError):
        controller.apply_text_move("d4-e4")
    assert controller.board == board
    assert controller.active_player is Player.RED


def test_propose_does_not_commit():
    controller = MatchController()
    board_before = controller.board
    movement = Movement.normal(Location(7, 2), Location(6, 2))

    proposed = controller.propose_move(movement, Player.BLUE)
    assert proposed.state.active_player is Player.RED
    assert controller.board == board_before
    assert controller.active_player is Player.BLUE

    committed = controller.commit_move(movement, Player.BLUE)
    assert committed.board == proposed.board
    assert controller.history == [(Player.BLUE, movement)]
    assert controller.state.turn_number == 2


def test_own_goal_hands_the_win_to_the_opponent():
    board = Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(6, 0): Piece(PieceType.PHARAOH, Player.RED),
            Location(0, 5): Piece(PieceType.PHARAOH, Player.BLUE),
            Location(7, 9): Piece(PieceType.SPHINX, Player.BLUE, Orientation.N),
        }
    )
    controller = MatchController(board=board, first=Player.RED)
    controller.apply_text_move("a7-a8")
    assert controller.state.winner is Player.BLUE


def test_apply_text_move_rejects_bad_text():
    controller = MatchController()
    with pytest.raises(NotationError):
        controller.apply_text_move("c8->c7")
    assert controller.history == []


def test_submit_payloads():
    controller = MatchController()
    accepted = controller.submit(
        {"type": "normal", "srcLocation": "c8", "destLocation": "c7", "player": "blue"}
    )
    assert accepted["accepted"] is True
    assert accepted["activePlayer"] == "red"
    assert accepted["laserTriggered"] is True
    assert accepted["laserPath"][0] == [9, 7]
    assert accepted["casualty"] is None
    assert accepted["status"] == "in_progress"
    assert accepted["turn"] == 2
    assert len(accepted["squares"]) == 8

    rejected = controller.submit(
        {"type": "normal", "srcLocation": "c7", "destLocation": "c6", "player": "blue"}
    )
    assert rejected["accepted"] is False
    assert rejected["error"]["rule"] == "OUT_OF_TURN"
    assert rejected["activePlayer"] == "red"

    unknown = controller.submit({"type": "normal", "srcLocation": "a1", "player": "green"})
    assert unknown["accepted"] is False
    assert unknown["error"]["rule"] == "BAD_NOTATION"


def test_stuck_side_draws_by_default():
    controller = MatchController(board="xe,k,K,1,Xw r")
    assert controller.state.is_finished
    assert controller.state.winner is None
    assert controller.phase is TurnPhase.FINISHED


def test_stuck_side_passes_when_configured():
    controller = MatchController(board="xe,k,K,1,Xw r", config=RulesConfig(draw_when_no_moves=False))
    assert not controller.state.is_finished
    assert controller.active_player is Player.BLUE
    assert controller.state.turn_number == 2


class _IllegalAgent(Agent):
    def choose_move(self, board, player):
        return Movement.normal(Location(0, 0), Location(5, 5))


class _BrokenAgent(Agent):
    def choose_move(self, board, player):
        raise RuntimeError("boom")


def test_agent_fallbacks():
    for agent in (_IllegalAgent(), _BrokenAgent()):
        controller = MatchController(blue_agent=agent)
        move = controller.compute_ai_move()
        assert move in controller.legal_moves()


def test_missing_agent():
    controller = MatchController()
    with pytest.raises(LaserChessError) as excinfo:
        controller.compute_ai_move()
    assert excinfo.value.rule == "NO_AGENT"


def test_step_ai_records_history():
    controller = MatchController(red_agent=RandomAgent(seed=1), blue_agent=RandomAgent(seed=2))
    for _ in range(4):
        if controller.state.is_finished:
            break
        controller.step_ai()
    assert controller.history
    text = controller.to_record_text()
    assert text.startswith("# red_agent=RandomAgent")
    assert "\nL:" in text
    assert "1:B;" in text


def test_concurrent_commits_are_serialized():
    controller = MatchController()
    movement = Movement.normal(Location(7, 2), Location(6, 2))
    barrier = threading.Barrier(2)
    outcomes = []

    def submit():
        barrier.wait()
        try:
            controller.commit_move(movement, Player.BLUE)
            outcomes.append("ok")
        except OutOfTurnError:
            outcomes.append("out_of_turn")

    threads = [threading.Thread(target=submit) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["ok", "out_of_turn"]
    assert len(controller.history) == 1
    assert controller.active_player is Player.RED


def test_unexpected_failure_resets_phase(monkeypatch):
    controller = MatchController()
    board_before = controller.board

    def broken_laser(self, player, config=None):
        raise RuntimeError("laser offline")

    monkeypatch.setattr(Board, "fire_laser", broken_laser)
    with pytest.raises(RuntimeError):
        controller.commit_move(Movement.normal(Location(7, 2), Location(6, 2)), Player.BLUE)
    assert controller.phase is TurnPhase.WAITING_FOR_MOVE
    assert controller.board == board_before
    assert controller.history == []
