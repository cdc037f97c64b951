# Shared configuration constants.
# Imported as `from common import config` by every other module.

import os

VERSION = "0.1.0"

# Playfield
PLAY_WIDTH = 10
PLAY_HEIGHT = 20

# Next-piece preview area
NEXT_WIDTH = 6
NEXT_HEIGHT = 5
PREVIEW_ROW = 2

# Level progression
MAX_LEVEL = 20
LINES_PER_LEVEL = 20
MAX_HANDICAP_ROWS = 10

# Timing (milliseconds)
DEFAULT_INTERVAL_MS = 500
SOFT_DROP_DIVISOR = 8
INPUT_POLL_TIMEOUT_MS = 10

# Scoring: {rows cleared at once: points}, multiplied by (level + 1)
SCORING = {
    0: 0,
    1: 100,
    2: 300,
    3: 500,
    4: 800
}

# High scores
HIGH_SCORE_TABLE_SIZE = 5
MAX_NAME_LENGTH = 12
DB_DIR = os.path.join(os.path.expanduser("~"), ".tetris")
DB_PATH = os.path.join(DB_DIR, "high_scores.db")

# Multiplayer
MULTIPLAYER_HOST = "0.0.0.0"
MULTIPLAYER_PORT = 8080
CONNECT_RETRIES = 5
CONNECT_RETRY_DELAY = 0.5
WIN_MESSAGE = "YOU WIN!"

# Screen layout, measured in character cells
CELL_WIDTH = 3
DISTANCE = 6
STATS_WIDTH = 18
SCREEN_COLUMNS = 100
SCREEN_ROWS = 30

# Key bindings per action. Each entry lists printable characters and
# special key names (see common.message_types) that trigger the action.
KEY_BINDINGS = {
    "MOVE_LEFT": ("h", "LEFT"),
    "MOVE_RIGHT": ("l", "RIGHT"),
    "ROTATE": (" ",),
    "SOFT_DROP": ("s", "UP"),
    "HARD_DROP": ("j", "DOWN"),
    "PAUSE": ("p",),
    "QUIT": ("q",),
    "CONFIRM": ("y", "ENTER"),
    "DECLINE": ("n", "ESC"),
    "CONTINUE": ("c", "ENTER"),
    "RESTART": ("r",),
}

HELP_LINES = [
    "Left: h, ←",
    "Right: l, →",
    "Rotate: Space",
    "Soft Drop: s, ↑",
    "Hard Drop: j, ↓",
    "Pause: p",
    "Quit: q",
]

# pygame presentation
FONT_SIZE = 18
KEY_REPEAT_DELAY_MS = 150
KEY_REPEAT_INTERVAL_MS = 40

COLORS = {
    "BACKGROUND": (0, 0, 0),
    "TEXT": (255, 255, 255),
    # Indexed by cell value; 0 is the empty cell
    "PIECE_COLORS": [
        (0, 0, 0),
        (0, 255, 255),    # I: Cyan
        (255, 255, 0),    # O: Yellow
        (207, 159, 255),  # T: Lavender
        (0, 255, 0),      # S: Green
        (255, 0, 0),      # Z: Red
        (0, 0, 255),      # J: Blue
        (255, 165, 0)     # L: Orange
    ]
}
