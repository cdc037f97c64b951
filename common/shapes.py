# Shape catalog and piece spawner.
# The seven piece kinds and their rotation states, built once at import
# time into read-only tuples of cell values.

import random

from common import config
from common.game_rules import EMPTY, Piece

# Cell value (colour id) of each kind; 0 is reserved for the empty cell
KIND_IDS = {
    "I": 1,
    "O": 2,
    "T": 3,
    "S": 4,
    "Z": 5,
    "J": 6,
    "L": 7
}

KINDS = tuple(KIND_IDS)

# Rotation states, drawn with 'X' for an occupied cell and '.' for empty.
# States are listed in clockwise order.
_STATE_DRAWINGS = {
    "I": (
        ("....",
         "XXXX",
         "....",
         "...."),
        ("..X.",
         "..X.",
         "..X.",
         "..X."),
        ("....",
         "....",
         "XXXX",
         "...."),
        (".X..",
         ".X..",
         ".X..",
         ".X.."),
    ),
    "O": (
        ("XX",
         "XX"),
    ),
    "T": (
        (".X.",
         "XXX",
         "..."),
        (".X.",
         ".XX",
         ".X."),
        ("...",
         "XXX",
         ".X."),
        (".X.",
         "XX.",
         ".X."),
    ),
    "S": (
        (".XX",
         "XX.",
         "..."),
        (".X.",
         ".XX",
         "..X"),
        ("...",
         ".XX",
         "XX."),
        ("X..",
         "XX.",
         ".X."),
    ),
    "Z": (
        ("XX.",
         ".XX",
         "..."),
        ("..X",
         ".XX",
         ".X."),
        ("...",
         "XX.",
         ".XX"),
        (".X.",
         "XX.",
         "X.."),
    ),
    "J": (
        ("X..",
         "XXX",
         "..."),
        (".XX",
         ".X.",
         ".X."),
        ("...",
         "XXX",
         "..X"),
        (".X.",
         ".X.",
         "XX."),
    ),
    "L": (
        ("..X",
         "XXX",
         "..."),
        (".X.",
         ".X.",
         ".XX"),
        ("...",
         "XXX",
         "X.."),
        ("XX.",
         ".X.",
         ".X."),
    ),
}


def _build_states(kind: str) -> tuple:
    """Turns the drawings of one kind into grids of cell values."""
    value = KIND_IDS[kind]
    states = []
    for drawing in _STATE_DRAWINGS[kind]:
        assert all(len(line) == len(drawing) for line in drawing), f"{kind} state is not square"
        states.append(tuple(
            tuple(value if ch == "X" else EMPTY for ch in line)
            for line in drawing
        ))
    return tuple(states)


SHAPE_CATALOG = {kind: _build_states(kind) for kind in KINDS}


def occupied_column_span(state) -> int:
    """Counts the columns of a state grid holding at least one occupied cell."""
    width = len(state[0])
    return sum(
        1 for col in range(width)
        if any(row[col] != EMPTY for row in state)
    )


def spawn_position(states, field_width: int, row: int = 0) -> tuple:
    """Returns the (row, col) that centres the first state in a field."""
    col = (field_width - occupied_column_span(states[0])) // 2
    return row, col


def make_piece(kind: str, for_preview: bool = False) -> Piece:
    """Builds a piece of the given kind placed at its spawn position."""
    states = SHAPE_CATALOG[kind]
    if for_preview:
        row, col = spawn_position(states, config.NEXT_WIDTH, config.PREVIEW_ROW)
    else:
        row, col = spawn_position(states, config.PLAY_WIDTH)
    return Piece(kind, states, row, col)


class RandomPieceSpawner:
    """Spawns pieces of a uniformly random kind."""

    def __init__(self, rng: random.Random = None):
        self._rng = rng or random.Random()

    def spawn(self, for_preview: bool = False) -> Piece:
        return make_piece(self._rng.choice(KINDS), for_preview)
