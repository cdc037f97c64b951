import random
import time

import pytest

from common import config
from common.game_rules import EMPTY, Playfield
from common.shapes import KINDS, make_piece
from conftest import occupied_count


def fill_row(field, row, gap=None, value=3):
    field.grid[row] = [value for _ in range(field.width)]
    if gap is not None:
        field.grid[row][gap] = EMPTY


class TestCollision:
    @pytest.mark.parametrize("kind", KINDS)
    def test_spawned_piece_fits_empty_field(self, kind):
        field = Playfield()
        piece = make_piece(kind)
        assert field.can_place(piece, piece.row, piece.col)

    def test_walls_reject_out_of_bounds_cells(self):
        field = Playfield()
        piece = make_piece("O")
        assert not field.can_place(piece, 0, -1)
        assert not field.can_place(piece, 0, field.width - 1)
        assert field.can_place(piece, 0, field.width - 2)

    def test_floor_rejects_cells_below_the_field(self):
        field = Playfield()
        piece = make_piece("O")
        assert field.can_place(piece, field.height - 2, 0)
        assert not field.can_place(piece, field.height - 1, 0)

    def test_cells_above_the_top_are_allowed(self):
        field = Playfield()
        fill_row(field, 0, gap=0)
        field.grid[0][1] = EMPTY
        piece = make_piece("O")
        # Top row of the piece hangs above row 0, bottom row sits in the gap
        assert field.can_place(piece, -1, 0)
        assert not field.can_place(piece, -1, 1)

    def test_blank_border_of_a_state_may_leave_the_field(self):
        field = Playfield()
        piece = make_piece("I")
        piece.rotate(field)
        # Vertical I occupies only the third column of its 4x4 grid
        assert field.can_place(piece, 0, -2)
        assert not field.can_place(piece, 0, -3)

    def test_random_placements_never_overlap(self):
        rng = random.Random(7)
        field = Playfield(handicap_rows=8, rng=rng)
        for _ in range(200):
            piece = make_piece(rng.choice(KINDS))
            row = rng.randrange(-2, field.height)
            col = rng.randrange(-3, field.width)
            state = rng.randrange(len(piece.states))
            if field.can_place(piece, row, col, state):
                for y, x, _ in piece.get_blocks(row, col, state):
                    assert 0 <= x < field.width and y < field.height
                    if y >= 0:
                        assert field.grid[y][x] == EMPTY


class TestMovement:
    @pytest.mark.parametrize("kind", KINDS)
    def test_full_rotation_cycle_restores_the_piece(self, kind):
        field = Playfield()
        piece = make_piece(kind)
        piece.row = 5
        before = (piece.current_state, piece.row, piece.col)
        for _ in range(len(piece.states)):
            assert piece.rotate(field)
        assert (piece.current_state, piece.row, piece.col) == before

    def test_illegal_moves_are_no_ops(self):
        field = Playfield()
        piece = make_piece("O")
        piece.col = 0
        assert not piece.move_left(field)
        assert piece.col == 0

        piece.row = field.height - 2
        assert not piece.move_down(field)
        assert piece.row == field.height - 2

    def test_rotation_blocked_without_wall_kick(self):
        field = Playfield()
        piece = make_piece("I")
        piece.rotate(field)
        # Flat against the right wall, rotating back would stick out
        while piece.move_right(field):
            pass
        assert not piece.rotate(field)
        assert piece.current_state == 1

    def test_hard_drop_stops_on_the_stack(self):
        field = Playfield()
        fill_row(field, 19, gap=0)
        piece = make_piece("O")
        dropped = piece.hard_drop(field)
        assert dropped == 17
        assert piece.row == 17

    def test_moves_never_write_to_the_grid(self):
        field = Playfield()
        piece = make_piece("T")
        piece.move_left(field)
        piece.rotate(field)
        piece.hard_drop(field)
        assert occupied_count(field) == 0


class TestLockAndClear:
    def test_lock_copies_piece_cells_only(self):
        field = Playfield()
        piece = make_piece("T")
        piece.hard_drop(field)
        before = field.get_rows()
        field.lock(piece)

        blocks = {(y, x): v for y, x, v in piece.get_blocks()}
        assert len(blocks) == 4
        for y in range(field.height):
            for x in range(field.width):
                if (y, x) in blocks:
                    assert field.grid[y][x] == blocks[(y, x)]
                else:
                    assert field.grid[y][x] == before[y][x]

    def test_lock_outside_the_field_is_an_assertion(self):
        field = Playfield()
        piece = make_piece("O")
        piece.row = -1
        with pytest.raises(AssertionError):
            field.lock(piece)

    def test_no_filled_rows_clears_nothing(self):
        field = Playfield()
        fill_row(field, 19, gap=4)
        assert field.clear_filled_rows() == 0
        assert field.grid[19][4] == EMPTY

    def test_clear_shifts_rows_down(self):
        field = Playfield()
        fill_row(field, 19)
        fill_row(field, 18, gap=2, value=5)
        fill_row(field, 17)
        fill_row(field, 16, gap=7, value=6)

        assert field.clear_filled_rows() == 2
        assert len(field.grid) == field.height
        # The two partial rows keep their order and settle at the bottom
        assert field.grid[19][2] == EMPTY and field.grid[19][0] == 5
        assert field.grid[18][7] == EMPTY and field.grid[18][0] == 6
        assert all(cell == EMPTY for cell in field.grid[17])
        assert all(cell == EMPTY for cell in field.grid[0])

    def test_clear_never_increases_occupied_count(self):
        rng = random.Random(3)
        field = Playfield(handicap_rows=5, rng=rng)
        for row in range(12, 20, 2):
            fill_row(field, row)
        before = occupied_count(field)
        cleared = field.clear_filled_rows()
        assert len(field.grid) == config.PLAY_HEIGHT
        assert occupied_count(field) == before - cleared * field.width


class TestGarbageAndHandicap:
    def test_handicap_rows_have_exactly_one_gap(self):
        field = Playfield(handicap_rows=4, rng=random.Random(1))
        for row in range(field.height - 4):
            assert all(cell == EMPTY for cell in field.grid[row])
        for row in range(field.height - 4, field.height):
            assert field.grid[row].count(EMPTY) == 1
            colors = {cell for cell in field.grid[row] if cell != EMPTY}
            assert len(colors) == 1

    def test_garbage_drops_top_rows_and_appends_identical_rows(self):
        field = Playfield(rng=random.Random(5))
        fill_row(field, 0, gap=1)
        fill_row(field, 19, gap=3, value=7)
        old_rows = field.get_rows()

        field.inject_garbage(2)

        assert len(field.grid) == field.height
        assert field.grid[:17] == old_rows[2:19]
        assert field.grid[17] == old_rows[19]
        assert field.grid[18] == field.grid[19]
        assert field.grid[19].count(EMPTY) == 1
        assert field.grid[18] is not field.grid[19]

    def test_zero_garbage_is_a_no_op(self):
        field = Playfield()
        field.inject_garbage(0)
        assert occupied_count(field) == 0

    def test_huge_garbage_count_fills_the_field_quickly(self):
        field = Playfield(rng=random.Random(9))
        started = time.monotonic()
        field.inject_garbage(3_000_000_000)
        assert time.monotonic() - started < 0.1

        assert len(field.grid) == field.height
        assert all(row == field.grid[0] for row in field.grid)
        assert field.grid[0].count(EMPTY) == 1
