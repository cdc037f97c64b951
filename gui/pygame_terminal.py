# gui/pygame_terminal.py
#
# pygame implementation of the Presentation Port: a window laid out as a
# grid of monospace character cells.

import logging
from collections import deque

import pygame

from common import config
from common.message_types import (
    InputEvent, char_event,
    KEY_LEFT, KEY_RIGHT, KEY_UP, KEY_DOWN, KEY_ENTER, KEY_ESC, KEY_BACKSPACE, KEY_CLOSE
)
from gui.base_terminal import Terminal

logger = logging.getLogger(__name__)

FONT_NAME = "monospace"

SPECIAL_KEYS = {
    pygame.K_LEFT: KEY_LEFT,
    pygame.K_RIGHT: KEY_RIGHT,
    pygame.K_UP: KEY_UP,
    pygame.K_DOWN: KEY_DOWN,
    pygame.K_RETURN: KEY_ENTER,
    pygame.K_KP_ENTER: KEY_ENTER,
    pygame.K_ESCAPE: KEY_ESC,
    pygame.K_BACKSPACE: KEY_BACKSPACE,
}


def translate_event(event) -> InputEvent | None:
    """Maps a pygame event to an InputEvent, or None if it is not input."""
    if event.type == pygame.QUIT:
        return InputEvent(KEY_CLOSE)
    if event.type != pygame.KEYDOWN:
        return None

    # Ctrl+C behaves like closing the window
    if event.key == pygame.K_c and event.mod & pygame.KMOD_CTRL:
        return InputEvent(KEY_CLOSE)
    if event.key in SPECIAL_KEYS:
        return InputEvent(SPECIAL_KEYS[event.key])
    if event.unicode and event.unicode.isprintable():
        return char_event(event.unicode)
    return None


class PygameTerminal(Terminal):
    def __init__(self, columns: int = config.SCREEN_COLUMNS, rows: int = config.SCREEN_ROWS,
                 font_size: int = config.FONT_SIZE):
        self.columns = columns
        self.rows = rows
        self.font_size = font_size
        self.font = None
        self.screen = None
        self.cell_width = 0
        self.cell_height = 0
        self._pending = deque()
        self._glyph_cache = {}

    #  Lifecycle

    def enable_input_capture(self):
        pygame.init()
        pygame.font.init()
        self.font = pygame.font.SysFont(FONT_NAME, self.font_size)
        self.cell_width, self.cell_height = self.font.size("M")
        # A held key turns into a stream of KEYDOWN events (soft drop)
        pygame.key.set_repeat(config.KEY_REPEAT_DELAY_MS, config.KEY_REPEAT_INTERVAL_MS)
        logger.info(f"pygame initialized, cell size {self.cell_width}x{self.cell_height}px")

    def disable_input_capture(self):
        self._pending.clear()
        self._glyph_cache.clear()
        pygame.quit()

    def enter_game_screen(self):
        window_size = (self.columns * self.cell_width, self.rows * self.cell_height)
        self.screen = pygame.display.set_mode(window_size)
        pygame.display.set_caption("Tetris")

    def leave_game_screen(self):
        if self.screen is not None:
            pygame.display.quit()
            self.screen = None

    def size(self) -> tuple:
        """The configured grid, limited to what fits on the desktop."""
        desktop_width, desktop_height = pygame.display.get_desktop_sizes()[0]
        columns = min(self.columns, desktop_width // self.cell_width)
        rows = min(self.rows, desktop_height // self.cell_height)
        return columns, rows

    #  Drawing

    def clear_screen(self):
        self.screen.fill(config.COLORS["BACKGROUND"])

    def write(self, color: tuple, col: int, row: int, text: str):
        # Blank the covered cells first, so spaces overwrite what was there
        background = pygame.Rect(col * self.cell_width, row * self.cell_height,
                                 len(text) * self.cell_width, self.cell_height)
        self.screen.fill(config.COLORS["BACKGROUND"], background)

        # Glyphs are blitted one cell at a time so every character lands
        # exactly on the grid, whatever the font's advance widths are
        for offset, ch in enumerate(text):
            if ch == " ":
                continue
            self.screen.blit(self._glyph(ch, color),
                             ((col + offset) * self.cell_width, row * self.cell_height))

    def _glyph(self, ch: str, color: tuple):
        key = (ch, color)
        if key not in self._glyph_cache:
            self._glyph_cache[key] = self.font.render(ch, True, color)
        return self._glyph_cache[key]

    def flush(self):
        pygame.display.flip()

    #  Input

    def poll_input(self, timeout_ms: int) -> bool:
        if not self._pending:
            event = pygame.event.wait(timeout_ms)
            while event.type != pygame.NOEVENT:
                translated = translate_event(event)
                if translated is not None:
                    self._pending.append(translated)
                event = pygame.event.poll()
        return bool(self._pending)

    def read_input(self) -> InputEvent:
        return self._pending.popleft()
