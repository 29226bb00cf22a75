import pytest

from laserchess import laser
from laserchess.board import Board
from laserchess.config import RulesConfig
from laserchess.errors import BoardSetupError
from laserchess.laser import PYRAMID_REFLECTIONS, SCARAB_REFLECTIONS, BeamOutcome, fire, max_path_length
from laserchess.layouts import standard_board
from laserchess.types import CARDINALS, DIAGONALS, Location, Orientation, Piece, PieceType, Player

RED_SPHINX_EAST = {Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.E)}


def _shot(target, config=None):
    pieces = dict(RED_SPHINX_EAST)
    pieces[Location(0, 3)] = target
    return fire(Board.from_pieces(pieces), Player.RED, config)


def test_beam_destroys_pharaoh_in_line():
    board = Board.from_pieces(
        {
            Location(0, 0): Piece(PieceType.SPHINX, Player.RED, Orientation.E),
            Location(0, 5): Piece(PieceType.PHARAOH, Player.BLUE),
        }
    )
    result = fire(board, Player.RED)
    assert result.path == tuple(Location(0, c) for c in range(6))
    assert result.casualty == Location(0, 5)
    assert result.casualty_piece.kind is PieceType.PHARAOH
    assert result.terminated_by == "casualty"
    assert result.coordinates()[-1] == [5, 0]


def test_pyramid_mirror_bends_the_beam():
    result = _shot(Piece(PieceType.PYRAMID, Player.BLUE, Orientation.SW))
    assert result.casualty is None
    assert result.reflections == (Location(0, 3),)
    assert result.path[-1] == Location(7, 3)
    assert len(result.path) == 11
    assert result.terminated_by == "edge"


def test_pyramid_back_side_is_vulnerable():
    result = _shot(Piece(PieceType.PYRAMID, Player.BLUE, Orientation.NE))
    assert result.casualty == Location(0, 3)
    assert result.casualty_piece.kind is PieceType.PYRAMID


def test_scarab_reflects_from_both_faces():
    for facing in (Orientation.NE, Orientation.SW):
        result = _shot(Piece(PieceType.SCARAB, Player.BLUE, facing))
        assert result.casualty is None
        assert result.path[-1] == Location(7, 3)
    upwards = _shot(Piece(PieceType.SCARAB, Player.BLUE, Orientation.SE))
    assert upwards.path[-1] == Location(0, 3)
    assert upwards.terminated_by == "edge"


def test_anubis_shield_absorbs_front_hits_only():
    shielded = _shot(Piece(PieceType.ANUBIS, Player.BLUE, Orientation.W))
    assert shielded.casualty is None
    assert shielded.terminated_by == "absorbed"
    assert shielded.path[-1] == Location(0, 3)

    flank = _shot(Piece(PieceType.ANUBIS, Player.BLUE, Orientation.N))
    assert flank.casualty == Location(0, 3)


def test_sphinx_absorbs_unless_strikes_enabled():
    target = Piece(PieceType.SPHINX, Player.BLUE, Orientation.W)
    assert _shot(target).casualty is None
    struck = _shot(target, RulesConfig(sphinx_strike_wins=True))
    assert struck.casualty == Location(0, 3)
    assert struck.casualty_piece.kind is PieceType.SPHINX


def test_reflection_tables_cover_every_entry():
    for travel in CARDINALS:
        for facing in DIAGONALS:
            assert (travel, facing) in PYRAMID_REFLECTIONS
            assert SCARAB_REFLECTIONS[(travel, facing)] is not None
    assert sum(1 for out in PYRAMID_REFLECTIONS.values() if out is not None) == 8


def test_classic_opening_shots_are_harmless():
    board = standard_board()
    red = fire(board, Player.RED)
    assert red.casualty is None
    assert [(loc.row, loc.col) for loc in red.path] == [
        (0, 0), (1, 0), (2, 0), (3, 0), (3, 1), (3, 2), (2, 2), (1, 2), (1, 1), (1, 0),
    ]
    blue = fire(board, Player.BLUE)
    assert blue.casualty is None
    assert [(loc.row, loc.col) for loc in blue.path] == [
        (7, 9), (6, 9), (5, 9), (4, 9), (4, 8), (4, 7), (5, 7), (6, 7), (6, 8), (6, 9),
    ]


def test_every_opening_reply_terminates_within_bound():
    board = standard_board()
    for player in Player:
        for movement in board.legal_moves(player):
            after = board.apply(movement)
            result = fire(after, player)
            assert 1 <= len(result.path) <= max_path_length(after)


def test_revisited_state_stops_the_beam(monkeypatch):
    fixed = {
        Orientation.NE: Orientation.E,
        Orientation.SE: Orientation.S,
        Orientation.SW: Orientation.W,
        Orientation.NW: Orientation.N,
    }

    def one_way_mirror(piece, travel, config):
        return BeamOutcome.REFLECT, fixed[piece.orientation]

    monkeypatch.setitem(laser.INTERACTIONS, PieceType.SCARAB, one_way_mirror)
    board = Board.from_pieces(
        {
            Location(0, 1): Piece(PieceType.SPHINX, Player.RED, Orientation.S),
            Location(1, 1): Piece(PieceType.SCARAB, Player.RED, Orientation.NE),
            Location(1, 4): Piece(PieceType.SCARAB, Player.RED, Orientation.SE),
            Location(4, 4): Piece(PieceType.SCARAB, Player.RED, Orientation.SW),
            Location(4, 1): Piece(PieceType.SCARAB, Player.RED, Orientation.NW),
        },
        rows=6,
        cols=6,
    )
    result = fire(board, Player.RED)
    assert result.terminated_by == "step_limit"
    assert result.path[-1] == Location(1, 1)
    assert len(result.path) == 14
    assert len(result.path) <= max_path_length(board)


def test_fire_without_sphinx():
    with pytest.raises(BoardSetupError):
        fire(Board.empty(), Player.BLUE)
