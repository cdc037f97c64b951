# Self-contained, non-networked, non-GUI rules of one playfield.
# Piece movement, collision, locking, line clearing and garbage rows.
# The game session owns one Playfield and the pieces falling into it.

import random

from common import config

# 0 represents an empty cell; any other value is the colour id of the
# piece kind that filled it
EMPTY = 0


def is_occupied(cell: int) -> bool:
    return cell != EMPTY


#  Helper Class
class Piece:
    """A falling piece: fixed rotation states, current state and position.

    `row`/`col` locate the top-left corner of the state grid in field
    coordinates. Blank borders of a state may hang outside the field.
    """

    def __init__(self, kind: str, states, row: int = 0, col: int = 0):
        self.kind = kind
        self.states = states
        self.current_state = 0
        self.row = row
        self.col = col

    def __repr__(self):
        return f"Piece({self.kind!r}, state={self.current_state}, row={self.row}, col={self.col})"

    @property
    def cells(self):
        """The grid of the current state."""
        return self.states[self.current_state]

    @property
    def next_state(self) -> int:
        return (self.current_state + 1) % len(self.states)

    def get_blocks(self, row: int = None, col: int = None, state: int = None):
        """Absolute (row, col, value) of every occupied cell of a state."""
        row = self.row if row is None else row
        col = self.col if col is None else col
        grid = self.states[self.current_state if state is None else state]
        return [
            (row + r, col + c, value)
            for r, line in enumerate(grid)
            for c, value in enumerate(line)
            if is_occupied(value)
        ]

    #  Movement (each one is a no-op when the destination is illegal)

    def move_left(self, field: "Playfield") -> bool:
        if field.can_place(self, self.row, self.col - 1):
            self.col -= 1
            return True
        return False

    def move_right(self, field: "Playfield") -> bool:
        if field.can_place(self, self.row, self.col + 1):
            self.col += 1
            return True
        return False

    def move_down(self, field: "Playfield") -> bool:
        if field.can_place(self, self.row + 1, self.col):
            self.row += 1
            return True
        return False

    def rotate(self, field: "Playfield") -> bool:
        """Cycles to the next state in place. No wall kicks are tried."""
        next_state = self.next_state
        if field.can_place(self, self.row, self.col, next_state):
            self.current_state = next_state
            return True
        return False

    def hard_drop(self, field: "Playfield") -> int:
        """Moves down until blocked. Returns the number of rows dropped."""
        dropped = 0
        while self.move_down(field):
            dropped += 1
        return dropped


#  Main Class

class Playfield:
    """The grid of locked cells. Row 0 is the top."""

    def __init__(self, width: int = config.PLAY_WIDTH, height: int = config.PLAY_HEIGHT,
                 handicap_rows: int = 0, rng: random.Random = None):
        assert 0 <= handicap_rows <= height, f"Invalid handicap rows: {handicap_rows}"
        self.width = width
        self.height = height
        self._rng = rng or random.Random()

        self.grid = [self._empty_row() for _ in range(height - handicap_rows)]
        # Each handicap row gets its own colour and gap
        for _ in range(handicap_rows):
            self.grid.append(self.make_gapped_row())

    def _empty_row(self):
        return [EMPTY for _ in range(self.width)]

    def make_gapped_row(self):
        """A row of one random kind's colour with exactly one empty cell."""
        color = self._rng.randint(1, len(config.COLORS["PIECE_COLORS"]) - 1)
        row = [color for _ in range(self.width)]
        row[self._rng.randrange(self.width)] = EMPTY
        return row

    #  Queries

    def is_row_filled(self, row: int) -> bool:
        return all(is_occupied(cell) for cell in self.grid[row])

    def can_place(self, piece: Piece, row: int, col: int, state: int = None) -> bool:
        """Checks if the piece's occupied cells fit at (row, col).

        Only occupied cells are range-checked. Cells above row 0 are
        allowed and never tested against the grid.
        """
        for y, x, _ in piece.get_blocks(row, col, state):
            # Check wall bounds
            if x < 0 or x >= self.width:
                return False
            # Check floor bounds (only bottom)
            if y >= self.height:
                return False
            # Check grid (only for visible rows)
            if y >= 0 and is_occupied(self.grid[y][x]):
                return False
        return True

    #  Mutations

    def lock(self, piece: Piece):
        """Stamps the piece's occupied cells into the grid."""
        for y, x, value in piece.get_blocks():
            assert 0 <= y < self.height and 0 <= x < self.width, \
                f"Locking {piece!r} outside the field at ({y}, {x})"
            self.grid[y][x] = value

    def clear_filled_rows(self) -> int:
        """Removes filled rows and inserts empty rows at the top.

        Returns the number of rows removed.
        """
        # Find filled rows from bottom up
        filled_rows = [r for r in range(self.height - 1, -1, -1) if self.is_row_filled(r)]

        # Highest index first keeps the remaining indices valid
        for r in filled_rows:
            del self.grid[r]
        for _ in filled_rows:
            self.grid.insert(0, self._empty_row())

        self._check_shape()
        return len(filled_rows)

    def inject_garbage(self, count: int):
        """Pushes `count` copies of one gapped row in from the bottom.

        The same number of rows is discarded from the top, whether or not
        they are empty. Any count past the height leaves the same grid.
        """
        if count <= 0:
            return
        garbage_row = self.make_gapped_row()
        for _ in range(min(count, self.height)):
            del self.grid[0]
            self.grid.append(list(garbage_row))
        self._check_shape()

    def _check_shape(self):
        assert len(self.grid) == self.height, f"Field has {len(self.grid)} rows"
        assert all(len(line) == self.width for line in self.grid), "Field rows are ragged"

    def get_rows(self):
        """A copy of the grid, safe to hand to other code."""
        return [list(line) for line in self.grid]
