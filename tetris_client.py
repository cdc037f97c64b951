# Tetris entry point.
# Parses the command line, opens the pygame window, optionally connects to
# a competitor, and drives the game session until the player quits.

import argparse
import logging
import sys
import time

from common import config
from common.db_schema import initialize_database
from common.game_session import GameSession
from common.multiplayer import host_game, connect_to_host, parse_address
from common.shapes import RandomPieceSpawner
from gui.game_view import GameView, required_size
from gui.pygame_terminal import PygameTerminal

logger = logging.getLogger(__name__)

LOG_FORMAT = '[TETRIS] %(asctime)s - %(message)s'
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tetris", description="Tetris with an optional two-player mode")
    parser.add_argument('-m', '--multiplayer', action='store_true',
                        help='Play against a competitor over the network')
    parser.add_argument('-s', '--server-address', type=str, default=None,
                        help='HOST:PORT of the hosting competitor (omit to host the game)')
    parser.add_argument('-n', '--number-of-lines-already-filled', type=int, default=0,
                        help=f'Number of pre-filled rows at the bottom (0-{config.MAX_HANDICAP_ROWS})')
    parser.add_argument('-l', '--level', type=int, default=0,
                        help=f'Starting level (0-{config.MAX_LEVEL})')
    parser.add_argument('--db-path', type=str, default=config.DB_PATH,
                        help='SQLite file holding the high scores')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS, default="INFO",
                        help='Logging verbosity')
    parser.add_argument('--version', action='version', version=f'%(prog)s {config.VERSION}')
    return parser


def validate_options(args) -> tuple:
    """
    Checks option ranges.
    Returns (is_valid, error_message).
    """
    handicap = args.number_of_lines_already_filled
    if not (0 <= handicap <= config.MAX_HANDICAP_ROWS):
        return False, f"The number of lines already filled must be between 0 and {config.MAX_HANDICAP_ROWS}."

    if not (0 <= args.level <= config.MAX_LEVEL):
        return False, f"The level must be between 0 and {config.MAX_LEVEL}."

    if args.multiplayer and args.server_address is not None:
        try:
            parse_address(args.server_address)
        except ValueError as e:
            return False, f"Invalid server address: {e}"

    return True, None


def check_screen_size(terminal) -> tuple:
    """Returns (is_valid, error_message) for the available screen area."""
    columns, rows = terminal.size()
    required_columns, required_rows = required_size()
    if columns < required_columns or rows < required_rows:
        return False, (f"The screen is too small: {columns}x{rows}.\n"
                       f"Required dimensions are  : {required_columns}x{required_rows}.")
    return True, None


def create_peer(args):
    """Hosts or joins a two-player game. Returns a started PeerLink, or None."""
    if not args.multiplayer:
        return None

    if args.server_address is None:
        peer = host_game(config.MULTIPLAYER_PORT)
    else:
        peer = connect_to_host(args.server_address)
    peer.start_listener()
    return peer


def run_game(session, terminal, view):
    """Main loop: poll input, advance the session, redraw."""
    last_tick = time.monotonic()
    view.draw(session.get_state_snapshot())

    while not session.terminated:
        event = None
        if terminal.poll_input(config.INPUT_POLL_TIMEOUT_MS):
            event = terminal.read_input()

        now = time.monotonic()
        elapsed_ms = (now - last_tick) * 1000
        last_tick = now

        session.tick(elapsed_ms, event)
        view.draw(session.get_state_snapshot())


def main(argv=None):
    args = build_parser().parse_args(argv)

    is_valid, error = validate_options(args)
    if not is_valid:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    terminal = PygameTerminal()
    terminal.enable_input_capture()

    is_valid, error = check_screen_size(terminal)
    if not is_valid:
        terminal.disable_input_capture()
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)

    exit_code = 0
    peer = None
    high_scores = None
    try:
        try:
            peer = create_peer(args)
        except (OSError, ValueError) as e:
            print(f"Error: could not set up the two-player game: {e}", file=sys.stderr)
            sys.exit(1)

        high_scores = initialize_database(args.db_path)
        session = GameSession(
            RandomPieceSpawner(),
            high_scores,
            handicap_rows=args.number_of_lines_already_filled,
            start_level=args.level,
            peer=peer
        )

        terminal.enter_game_screen()
        columns, rows = terminal.size()
        run_game(session, terminal, GameView(terminal, columns, rows))
        logger.info("Game terminated by player.")

    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
    except Exception as e:
        logger.error(f"Critical error in game loop: {e}", exc_info=True)
        exit_code = 1
    finally:
        terminal.leave_game_screen()
        terminal.disable_input_capture()
        if peer is not None:
            peer.close()
        if high_scores is not None:
            high_scores.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
