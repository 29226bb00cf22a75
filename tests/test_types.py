import pytest

from laserchess.types import CARDINALS, COMPASS, DIAGONALS, Location, Movement, Orientation, Piece, PieceType, Player


def test_in_bounds_matches_grid_ranges():
    rows, cols = 8, 10
    for row in range(-2, rows + 2):
        for col in range(-2, cols + 2):
            expected = 0 <= row < rows and 0 <= col < cols
            assert Location(row, col).in_bounds(rows, cols) is expected


def test_offset_uses_screen_directions():
    origin = Location(3, 3)
    assert origin.offset(Orientation.N) == Location(2, 3)
    assert origin.offset(Orientation.E) == Location(3, 4)
    assert origin.offset(Orientation.SW) == Location(4, 2)


def test_rotation_keeps_orientation_class():
    assert Orientation.N.rotated() is Orientation.E
    assert Orientation.N.rotated(clockwise=False) is Orientation.W
    assert Orientation.NE.rotated() is Orientation.SE
    for facing in CARDINALS:
        assert not facing.rotated().is_diagonal
    for facing in DIAGONALS:
        assert facing.rotated(clockwise=False).is_diagonal


def test_four_quarter_turns_return_to_start():
    for facing in COMPASS:
        turned = facing
        for _ in range(4):
            turned = turned.rotated()
        assert turned is facing
        assert facing.rotated().rotated(clockwise=False) is facing


def test_opposite_and_codes():
    assert Orientation.NE.opposite() is Orientation.SW
    assert Orientation.S.opposite() is Orientation.N
    assert Orientation.from_code("se") is Orientation.SE
    assert Orientation.NW.code == "nw"
    with pytest.raises(ValueError):
        Orientation.from_code("up")


def test_piece_rotation_returns_new_piece():
    piece = Piece(PieceType.PYRAMID, Player.RED, Orientation.NE)
    turned = piece.rotated()
    assert turned.orientation is Orientation.SE
    assert piece.orientation is Orientation.NE


def test_movements_compare_by_value():
    a = Movement.normal(Location(2, 2), Location(3, 3))
    b = Movement.normal(Location(2, 2), Location(3, 3))
    assert a == b
    assert len({a, b}) == 1
    rotation = Movement.rotation(Location(0, 0), clockwise=False)
    assert rotation.dest == rotation.src
    swap = Movement.special(Location(3, 4), Location(3, 5), Orientation.SW)
    assert swap.secondary_location == Location(3, 4)


def test_player_opponent():
    assert Player.RED.opponent() is Player.BLUE
    assert Player.BLUE.opponent() is Player.RED
    assert Player.BLUE.letter == "B"
