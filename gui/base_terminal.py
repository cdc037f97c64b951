# gui/base_terminal.py
#
# The Presentation Port: a character-cell screen plus key input.
# The game view only talks to this interface, so the session can be
# driven by pygame in production and by scripted terminals in tests.

from common.message_types import InputEvent


class Terminal:
    """Base class for character-cell terminals.

    Coordinates are (col, row) in character cells, (0, 0) top-left.
    Colours are RGB tuples.
    """

    def enable_input_capture(self):
        raise NotImplementedError

    def disable_input_capture(self):
        raise NotImplementedError

    def enter_game_screen(self):
        raise NotImplementedError

    def leave_game_screen(self):
        raise NotImplementedError

    def size(self) -> tuple:
        """Returns (columns, rows) available for drawing."""
        raise NotImplementedError

    def clear_screen(self):
        raise NotImplementedError

    def write(self, color: tuple, col: int, row: int, text: str):
        raise NotImplementedError

    def flush(self):
        """Presents everything written since the last flush."""
        raise NotImplementedError

    def poll_input(self, timeout_ms: int) -> bool:
        """Waits up to `timeout_ms` for input. True if an event is ready."""
        raise NotImplementedError

    def read_input(self) -> InputEvent:
        """Returns the next event. Only valid after poll_input() returned True."""
        raise NotImplementedError
