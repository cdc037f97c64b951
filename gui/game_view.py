# gui/game_view.py
#
# Draws a GameSession snapshot through the Presentation Port.
# Layout, left to right: Stats (and 2-Player) panel, play field, Next
# preview with the Help panel below it. Modal prompts are centred on top.

from common import config
from common import game_session

WHITE = config.COLORS["TEXT"]
HIGHLIGHT = config.COLORS["PIECE_COLORS"][2]
PIECE_COLORS = config.COLORS["PIECE_COLORS"]

BLOCK = "[ ]"
MARGIN = config.CELL_WIDTH
ENTER_NAME_PROMPT = "Enter your name: "


def required_size() -> tuple:
    """Smallest (columns, rows) that fits the whole layout."""
    play_width = config.PLAY_WIDTH * config.CELL_WIDTH + 2
    columns = (config.STATS_WIDTH + 2 + config.NEXT_WIDTH) * 2 + play_width
    rows = config.PLAY_HEIGHT + 2
    return columns, rows


def format_leaderboard_row(name: str, score: int) -> str:
    return f"{name:<{config.MAX_NAME_LENGTH + 3}}{score:>9}"


class GameView:
    def __init__(self, terminal, columns: int, rows: int):
        self.terminal = terminal
        self.columns = columns
        self.rows = rows
        self.start_x = (columns - config.PLAY_WIDTH * config.CELL_WIDTH - 2) // 2
        self.start_y = (rows - config.PLAY_HEIGHT - 2) // 2
        self.next_x = self.start_x + config.PLAY_WIDTH * config.CELL_WIDTH + 1 + config.DISTANCE
        self.stats_x = self.start_x - config.DISTANCE - config.STATS_WIDTH - 1

    def draw(self, state: dict):
        """Draws one complete frame and presents it."""
        self.terminal.clear_screen()

        self._draw_frame("Tetris", self.start_x, self.start_y,
                         config.PLAY_WIDTH * config.CELL_WIDTH, config.PLAY_HEIGHT + 1)
        self._draw_board(state["board"])
        self._draw_current_piece(state["current_piece"])

        self._draw_frame("Next", self.next_x, self.start_y,
                         config.NEXT_WIDTH * config.CELL_WIDTH, config.NEXT_HEIGHT + 1)
        self._draw_next_piece(state["next_piece"])

        self._draw_panel("Stats", self.stats_x, self.start_y + 1, [
            "",
            f"Score: {state['score']}",
            f"Lines: {state['lines']}",
            f"Level: {state['level']}",
            "",
        ], width=config.STATS_WIDTH)

        multiplayer = state["multiplayer"]
        if multiplayer is not None:
            self._draw_panel("2-Player", self.stats_x, self.start_y + 9, [
                "",
                f"Score: {multiplayer['mine']} - {multiplayer['opponent']}",
                "",
            ], width=config.STATS_WIDTH)

        self._draw_panel("Help", self.next_x, self.start_y + config.NEXT_HEIGHT + 7,
                         [""] + config.HELP_LINES + [""])

        self._draw_prompt(state)
        self.terminal.flush()

    #  Field

    def _draw_board(self, board):
        for y, line in enumerate(board):
            for x, cell in enumerate(line):
                if cell != 0:
                    self._draw_block(cell, x, y)

    def _draw_current_piece(self, piece):
        for y, x, value in piece["blocks"]:
            # Spawning pieces may hang above the field
            if 0 <= y < config.PLAY_HEIGHT and 0 <= x < config.PLAY_WIDTH:
                self._draw_block(value, x, y)

    def _draw_block(self, value: int, x: int, y: int):
        self.terminal.write(
            PIECE_COLORS[value],
            self.start_x + 1 + x * config.CELL_WIDTH,
            self.start_y + 1 + y,
            BLOCK
        )

    def _draw_next_piece(self, piece):
        blocks = piece["blocks"]
        # Odd-width pieces are nudged half a block to look centred
        span = len({x for _, x, _ in blocks})
        for y, x, value in blocks:
            if y < config.NEXT_HEIGHT and x < config.NEXT_WIDTH:
                self.terminal.write(
                    PIECE_COLORS[value],
                    self.next_x + 1 + x * config.CELL_WIDTH + span % 2,
                    self.start_y + y,
                    BLOCK
                )

    #  Frames and panels

    def _draw_frame(self, title: str, x: int, y: int, width: int, height: int):
        left = (width - len(title) - 2) // 2
        right = width - left - len(title) - 2
        self.terminal.write(WHITE, x, y, f"|{'-' * left} {title} {'-' * right}|")
        for index in range(1, height):
            self.terminal.write(WHITE, x, y + index, "|")
            self.terminal.write(WHITE, x + width + 1, y + index, "|")
        self.terminal.write(WHITE, x, y + height, f"|{'-' * width}|")

    def _draw_panel(self, title: str, x: int, y: int, lines, width: int = None):
        """Titled box of "Key: value" lines with the keys left-aligned."""
        pairs = [line.split(":", 1) for line in lines if line]
        key_width = max(len(key) for key, _ in pairs)
        value_width = max(len(value) for _, value in pairs)
        frame_width = width if width is not None else key_width + value_width + 3

        left = (frame_width - len(title) - 2) // 2
        right = frame_width - left - len(title) - 2
        self.terminal.write(WHITE, x, y - 1, f"|{'-' * left} {title} {'-' * right}|")

        for index, line in enumerate(lines):
            if not line:
                text = f"|{' ' * frame_width}|"
            else:
                key, value = line.split(":", 1)
                if width is not None:
                    padding = " " * (width - 2 - len(line))
                else:
                    padding = " " * (value_width - len(value))
                text = f"| {key:<{key_width}}:{value} {padding}|"
            self.terminal.write(WHITE, x, y + index, text)

        self.terminal.write(WHITE, x, y + len(lines), f"|{'-' * frame_width}|")

    #  Modal prompts

    def _draw_prompt(self, state: dict):
        current = state["state"]
        if current == game_session.PAUSED:
            self._draw_centered(["PAUSED", "", "(C)ontinue | (Q)uit"])
        elif current == game_session.QUIT_CONFIRM:
            self._draw_centered(["QUIT?", "", "(Y)es | (N)o"])
        elif current == game_session.PEER_NOTICE:
            self._draw_centered([state["notice"], "", "(R)estart | (C)ontinue | (Q)uit"])
        elif current == game_session.NEW_HIGH_SCORE:
            self._draw_name_entry(state)
        elif current == game_session.GAME_OVER:
            self._draw_game_over(state["leaderboard"])

    def _draw_centered(self, messages, width: int = None) -> tuple:
        """Draws a bordered box in the middle of the screen.

        Returns (x, y) of the first message row's inner left cell.
        """
        frame_width = width if width is not None else max(len(m) for m in messages) + MARGIN * 2
        start_x = (self.columns - frame_width - 2) // 2
        start_y = self.rows // 2 - len(messages) // 2

        self.terminal.write(WHITE, start_x, start_y - 1, f"|{'-' * frame_width}|")
        for index, message in enumerate(messages):
            self.terminal.write(WHITE, start_x, start_y + index, f"|{message:^{frame_width}}|")
        self.terminal.write(WHITE, start_x, start_y + len(messages), f"|{'-' * frame_width}|")
        return start_x + 1, start_y

    def _draw_name_entry(self, state: dict):
        name = state["player_name"]
        entry = f"{ENTER_NAME_PROMPT}{name:<{config.MAX_NAME_LENGTH}}"
        frame_width = len(entry) + MARGIN * 2
        inner_x, inner_y = self._draw_centered(
            ["NEW HIGH SCORE!", str(state["score"]), "", entry], width=frame_width)

        # Cursor: the character under it is redrawn highlighted
        cursor = state["name_cursor"]
        under_cursor = name[cursor] if cursor < len(name) else "_"
        entry_x = inner_x + (frame_width - len(entry)) // 2
        self.terminal.write(HIGHLIGHT, entry_x + len(ENTER_NAME_PROMPT) + cursor, inner_y + 3,
                            under_cursor)

    def _draw_game_over(self, leaderboard):
        if not leaderboard:
            self._draw_centered(["GAME OVER", "", "(R)estart | (Q)uit"])
            return

        rows = [format_leaderboard_row(name, score) for name, score in leaderboard]
        self._draw_centered(
            ["GAME OVER", "", "HIGH SCORES"] + rows + ["", "(R)estart | (Q)uit"],
            width=(config.PLAY_WIDTH + 2) * config.CELL_WIDTH
        )
