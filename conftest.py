# Shared pytest fixtures and test doubles.

import queue

import pytest

from common.db_operations import HighScoreOperations
from common.db_schema import open_database
from common.game_rules import is_occupied
from common.game_session import GameSession
from common.message_types import InputEvent, char_event, KEY_CLOSE
from common.shapes import make_piece
from gui.base_terminal import Terminal


class FixedSpawner:
    """Always spawns the same kind."""

    def __init__(self, kind: str = "I"):
        self.kind = kind

    def spawn(self, for_preview: bool = False):
        return make_piece(self.kind, for_preview)


class FakePeer:
    """Stands in for PeerLink: records sent messages, replays queued ones."""

    def __init__(self):
        self.sent = []
        self.events = queue.Queue()
        self.cleared = 0

    def send(self, message):
        self.sent.append(message)

    def next_event(self):
        try:
            return self.events.get_nowait()
        except queue.Empty:
            return None

    def clear(self):
        self.cleared += 1
        while not self.events.empty():
            self.events.get_nowait()


class ScriptedTerminal(Terminal):
    """Replays a fixed list of input events and records every write.

    Once the script runs out it reports a window close, so loops always end.
    """

    def __init__(self, events=(), columns: int = 100, rows: int = 30):
        self.events = list(events)
        self.columns = columns
        self.rows = rows
        self.writes = []
        self.flushes = 0
        self.calls = []

    def enable_input_capture(self):
        self.calls.append("enable_input_capture")

    def disable_input_capture(self):
        self.calls.append("disable_input_capture")

    def enter_game_screen(self):
        self.calls.append("enter_game_screen")

    def leave_game_screen(self):
        self.calls.append("leave_game_screen")

    def size(self):
        return self.columns, self.rows

    def clear_screen(self):
        self.writes.clear()

    def write(self, color, col, row, text):
        self.writes.append((color, col, row, text))

    def flush(self):
        self.flushes += 1

    def poll_input(self, timeout_ms):
        return True

    def read_input(self):
        if self.events:
            return self.events.pop(0)
        return InputEvent(KEY_CLOSE)

    def text(self) -> str:
        return "\n".join(text for _, _, _, text in self.writes)


def keys(chars: str):
    """InputEvents for a string of plain characters."""
    return [char_event(ch) for ch in chars]


def occupied_count(field) -> int:
    """Number of non-empty cells in a Playfield."""
    return sum(1 for line in field.grid for cell in line if is_occupied(cell))


@pytest.fixture
def high_scores():
    ops = HighScoreOperations(open_database(":memory:"))
    ops.create_schema()
    yield ops
    ops.close()


@pytest.fixture
def fake_peer():
    return FakePeer()


@pytest.fixture
def make_session(high_scores):
    """Factory for sessions with a fixed piece kind."""
    def _make(kind: str = "I", **kwargs):
        return GameSession(FixedSpawner(kind), high_scores, **kwargs)
    return _make
