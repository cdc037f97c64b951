# The game state machine.
# Owns one Playfield, the falling and preview pieces, score / level /
# lines and the modal prompts (pause, quit, peer notice, high score,
# game over). It has no knowledge of rendering: the view draws
# get_state_snapshot() after every tick.

import logging
import random

from common import config
from common.db_operations import qualifies_for_leaderboard
from common.game_rules import Playfield
from common.message_types import (
    InputEvent, LinesCleared, Notification,
    KEY_CHAR, KEY_LEFT, KEY_RIGHT, KEY_ENTER, KEY_BACKSPACE, KEY_CLOSE
)
from common.shapes import spawn_position

logger = logging.getLogger(__name__)

# Session states
PLAYING = "PLAYING"
PAUSED = "PAUSED"
QUIT_CONFIRM = "QUIT_CONFIRM"
PEER_NOTICE = "PEER_NOTICE"
NEW_HIGH_SCORE = "NEW_HIGH_SCORE"
GAME_OVER = "GAME_OVER"
TERMINATED = "TERMINATED"

BINDINGS = config.KEY_BINDINGS


def initial_drop_interval(start_level: int) -> int:
    """The gravity interval after `start_level` level-ups."""
    interval = config.DEFAULT_INTERVAL_MS
    for _ in range(start_level):
        interval -= interval // 10
    return interval


class GameSession:
    """One player's game.

    Collaborators are injected and survive reset():
    - spawner: object with spawn(for_preview) -> Piece
    - high_scores: Persistence Port (see common.db_operations)
    - peer: PeerLink or None for single player
    """

    def __init__(self, spawner, high_scores, handicap_rows: int = 0, start_level: int = 0,
                 peer=None, rng: random.Random = None):
        assert 0 <= handicap_rows <= config.MAX_HANDICAP_ROWS, f"Invalid handicap: {handicap_rows}"
        assert 0 <= start_level <= config.MAX_LEVEL, f"Invalid level: {start_level}"

        self.spawner = spawner
        self.high_scores = high_scores
        self.peer = peer
        self.handicap_rows = handicap_rows
        self.start_level = start_level
        self._rng = rng or random.Random()

        self.high_scores.create_schema()

        # Match tally, kept across restarts
        self.multiplayer_score = {"mine": 0, "opponent": 0}

        self.reset()

    def reset(self):
        """Starts a new round with the same options and collaborators."""
        self.playfield = Playfield(handicap_rows=self.handicap_rows, rng=self._rng)
        self.current_piece = self.spawner.spawn(False)
        self.next_piece = self.spawner.spawn(True)

        self.lines_cleared = 0
        self.level = self.start_level
        self.score = 0
        self.drop_interval_ms = initial_drop_interval(self.start_level)
        self.drop_timer_ms = 0
        self.soft_drop_timer_ms = 0

        self.state = PLAYING
        self.notice_text = ""
        self.player_name = ""
        self.name_cursor = 0
        self.leaderboard = []

        if self.peer is not None:
            self.peer.clear()

    #  Properties

    @property
    def paused(self) -> bool:
        return self.state in (PAUSED, QUIT_CONFIRM, PEER_NOTICE)

    @property
    def game_over(self) -> bool:
        return self.state in (NEW_HIGH_SCORE, GAME_OVER)

    @property
    def terminated(self) -> bool:
        return self.state == TERMINATED

    #  Tick

    def tick(self, elapsed_ms: int, event: InputEvent = None):
        """Advances the session by `elapsed_ms` with at most one input event."""
        if event is not None and event.key == KEY_CLOSE:
            logger.info("Window closed, terminating.")
            self.state = TERMINATED
            return

        if self.state == PLAYING:
            self._tick_playing(elapsed_ms, event)
        elif event is None:
            return
        elif self.state == PAUSED:
            self._handle_paused(event)
        elif self.state == QUIT_CONFIRM:
            self._handle_quit_confirm(event)
        elif self.state == PEER_NOTICE:
            self._handle_peer_notice(event)
        elif self.state == NEW_HIGH_SCORE:
            self._handle_name_entry(event)
        elif self.state == GAME_OVER:
            self._handle_game_over_prompt(event)

    def _tick_playing(self, elapsed_ms: int, event: InputEvent | None):
        self._check_level_up()

        # 1. Gravity
        self.drop_timer_ms += elapsed_ms
        self.soft_drop_timer_ms += elapsed_ms
        if self.drop_timer_ms >= self.drop_interval_ms:
            self._step_down()
            self.drop_timer_ms = 0
            if self.state != PLAYING:
                return

        if event is not None:
            # 2. Soft drop, rate limited to a fraction of the drop interval
            if event.matches(BINDINGS["SOFT_DROP"]):
                if self.soft_drop_timer_ms >= self.drop_interval_ms // config.SOFT_DROP_DIVISOR:
                    self._step_down()
                    self.soft_drop_timer_ms = 0
            # 3. Other input
            else:
                self._handle_playing_input(event)
            if self.state != PLAYING:
                return

        # 4. Peer events
        if self.peer is not None:
            self._drain_peer_events()

    def _check_level_up(self):
        if self.level < config.MAX_LEVEL and \
                self.lines_cleared >= config.LINES_PER_LEVEL * (self.level + 1):
            self.level += 1
            self.drop_interval_ms -= self.drop_interval_ms // 10
            logger.info(f"Level up: {self.level} (drop interval {self.drop_interval_ms} ms)")

    def _step_down(self):
        """Moves the piece down one row, or locks it when it cannot move."""
        if not self.current_piece.move_down(self.playfield):
            self._lock_and_advance()

    def _handle_playing_input(self, event: InputEvent):
        piece = self.current_piece
        if event.matches(BINDINGS["MOVE_LEFT"]):
            piece.move_left(self.playfield)
        elif event.matches(BINDINGS["MOVE_RIGHT"]):
            piece.move_right(self.playfield)
        elif event.matches(BINDINGS["ROTATE"]):
            piece.rotate(self.playfield)
        elif event.matches(BINDINGS["HARD_DROP"]):
            piece.hard_drop(self.playfield)
            self._lock_and_advance()
        elif event.matches(BINDINGS["PAUSE"]):
            self.state = PAUSED
        elif event.matches(BINDINGS["QUIT"]):
            self.state = QUIT_CONFIRM

    def _drain_peer_events(self):
        while self.state == PLAYING:
            message = self.peer.next_event()
            if message is None:
                break
            if isinstance(message, LinesCleared):
                logger.info(f"Competitor cleared {message.count} row(s), adding garbage.")
                self.playfield.inject_garbage(message.count)
            elif isinstance(message, Notification):
                logger.info(f"Notification from competitor: {message.text}")
                self.notice_text = message.text
                self.multiplayer_score["mine"] += 1
                self.state = PEER_NOTICE

    #  Lock, clear, next piece

    def _lock_and_advance(self):
        self.playfield.lock(self.current_piece)
        self._clear_rows()
        self._promote_next_piece()
        if self.is_game_over():
            self._handle_game_over()

    def _clear_rows(self):
        count = self.playfield.clear_filled_rows()
        self.lines_cleared += count
        self.score += config.SCORING[count] * (self.level + 1)
        if count > 0 and self.peer is not None:
            self.peer.send(LinesCleared(count))

    def _promote_next_piece(self):
        piece = self.next_piece
        piece.current_state = 0
        piece.row, piece.col = spawn_position(piece.states, self.playfield.width)
        self.current_piece = piece
        self.next_piece = self.spawner.spawn(True)

    def is_game_over(self) -> bool:
        """True when the current piece cannot move left, right, down or rotate."""
        piece = self.current_piece
        field = self.playfield
        return not (
            field.can_place(piece, piece.row, piece.col - 1)
            or field.can_place(piece, piece.row, piece.col + 1)
            or field.can_place(piece, piece.row + 1, piece.col)
            or field.can_place(piece, piece.row, piece.col, piece.next_state)
        )

    def _handle_game_over(self):
        logger.info(f"Game over. Score: {self.score}, lines: {self.lines_cleared}")
        if self.peer is not None:
            self.peer.send(Notification(config.WIN_MESSAGE))
            self.multiplayer_score["opponent"] += 1

        if qualifies_for_leaderboard(self.high_scores, self.score):
            self.player_name = ""
            self.name_cursor = 0
            self.state = NEW_HIGH_SCORE
        else:
            self._show_leaderboard()

    def _show_leaderboard(self):
        self.leaderboard = self.high_scores.get_top_records(config.HIGH_SCORE_TABLE_SIZE)
        self.state = GAME_OVER

    #  Modal prompts

    def _handle_paused(self, event: InputEvent):
        if event.matches(BINDINGS["CONTINUE"]):
            self.state = PLAYING
        elif event.matches(BINDINGS["QUIT"]):
            self.state = TERMINATED

    def _handle_quit_confirm(self, event: InputEvent):
        if event.matches(BINDINGS["CONFIRM"]):
            self.state = TERMINATED
        elif event.matches(BINDINGS["DECLINE"]):
            self.state = PLAYING

    def _handle_peer_notice(self, event: InputEvent):
        if event.matches(BINDINGS["CONTINUE"]):
            self.state = PLAYING
        elif event.matches(BINDINGS["RESTART"]):
            self.reset()
        elif event.matches(BINDINGS["QUIT"]):
            self.state = TERMINATED

    def _handle_name_entry(self, event: InputEvent):
        name = self.player_name
        cursor = self.name_cursor
        if event.key == KEY_ENTER:
            self.high_scores.insert(name, self.score)
            self._show_leaderboard()
        elif event.key == KEY_BACKSPACE:
            if cursor > 0:
                self.player_name = name[:cursor - 1] + name[cursor:]
                self.name_cursor -= 1
        elif event.key == KEY_LEFT:
            if cursor > 0:
                self.name_cursor -= 1
        elif event.key == KEY_RIGHT:
            if cursor < len(name):
                self.name_cursor += 1
        elif event.key == KEY_CHAR and event.char.isprintable():
            if len(name) < config.MAX_NAME_LENGTH:
                self.player_name = name[:cursor] + event.char + name[cursor:]
                self.name_cursor += 1

    def _handle_game_over_prompt(self, event: InputEvent):
        if event.matches(BINDINGS["RESTART"]):
            self.reset()
        elif event.matches(BINDINGS["QUIT"]):
            self.state = TERMINATED

    #  Snapshot

    def get_state_snapshot(self) -> dict:
        """
        Returns everything the view needs to draw one frame.
        Piece blocks are (row, col, value) in their own area's coordinates.
        """
        multiplayer_data = None
        if self.peer is not None:
            multiplayer_data = dict(self.multiplayer_score)

        return {
            "state": self.state,
            "board": self.playfield.get_rows(),
            "current_piece": {
                "kind": self.current_piece.kind,
                "blocks": self.current_piece.get_blocks()
            },
            "next_piece": {
                "kind": self.next_piece.kind,
                "blocks": self.next_piece.get_blocks()
            },
            "score": self.score,
            "lines": self.lines_cleared,
            "level": self.level,
            "multiplayer": multiplayer_data,
            "notice": self.notice_text,
            "player_name": self.player_name,
            "name_cursor": self.name_cursor,
            "leaderboard": [(record.name, record.score) for record in self.leaderboard]
        }
