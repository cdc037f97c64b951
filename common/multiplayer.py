# Two-player bridge between peers.
#
# Each player runs an independent game. The peers only exchange two kinds
# of events: "I cleared N rows" (the other side receives garbage) and a
# notification ("YOU WIN!" when the sender topped out).
#
# A listener thread owns the reading side of the socket and forwards
# decoded messages to the game thread through a queue. The game thread
# owns the writing side and never blocks on the network.

import socket
import threading
import queue
import logging
import time

from common import config
from common import protocol
from common.message_types import PeerMessage, encode_message, decode_message

logger = logging.getLogger(__name__)

# Listener Thread

def forward_to_game_thread(sock: socket.socket, event_queue: queue.Queue):
    """
    Runs in the listener thread.
    Reads frames until the peer disconnects and puts every decoded
    message into the queue for the game thread. Unrecognized frames are
    dropped.
    """
    logger.info("Peer listener started.")
    try:
        while True:
            # Block waiting for a message
            data_bytes = protocol.recv_msg(sock)
            if data_bytes is None:
                logger.warning("Peer disconnected.")
                break

            message = decode_message(data_bytes)
            if message is not None:
                event_queue.put(message)

    except (socket.error, OSError) as e:
        logger.error(f"Socket error in peer listener: {e}")
    finally:
        logger.info("Peer listener stopped.")


class PeerLink:
    """The game thread's view of a connected peer."""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.events = queue.Queue()
        self.listener_thread = None

    def start_listener(self):
        self.listener_thread = threading.Thread(
            target=forward_to_game_thread,
            args=(self.sock, self.events),
            daemon=True
        )
        self.listener_thread.start()

    def send(self, message: PeerMessage):
        """Sends one message. Failures are logged, never raised."""
        try:
            protocol.send_msg(self.sock, encode_message(message))
        except (socket.error, OSError) as e:
            logger.warning(f"Failed to send {message!r} to peer: {e}")

    def next_event(self) -> PeerMessage | None:
        """Returns the oldest queued message, or None when there is none."""
        try:
            return self.events.get_nowait()
        except queue.Empty:
            return None

    def poll_events(self) -> list:
        """Drains every queued message without blocking."""
        messages = []
        try:
            while not self.events.empty():
                messages.append(self.events.get_nowait())
        except queue.Empty:
            pass
        return messages

    def clear(self):
        """Discards queued messages (used on restart)."""
        dropped = len(self.poll_events())
        if dropped:
            logger.info(f"Discarded {dropped} pending peer message(s).")

    def close(self):
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Already disconnected
        self.sock.close()

# Connection Setup

def get_local_ip() -> str:
    """Best-effort LAN address to show the competitor."""
    try:
        # No packets are sent; connect() on UDP only picks a route
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"

def host_game(port: int = config.MULTIPLAYER_PORT, host: str = config.MULTIPLAYER_HOST) -> PeerLink:
    """Listens for exactly one competitor and returns the connected link."""
    server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        server_socket.bind((host, port))
        server_socket.listen(1)
        address = f"{get_local_ip()}:{port}"
        logger.info(f"Peer server listening on {host}:{port}...")
        print(f"Server started. Please invite your competitor to connect to {address}.")

        client_sock, addr = server_socket.accept()
        logger.info(f"Competitor connected from {addr}.")
        print("Player 2 connected.")
        return PeerLink(client_sock)
    finally:
        server_socket.close()

def parse_address(address: str) -> tuple:
    """Splits 'host:port'. Raises ValueError on malformed input."""
    host, sep, port = address.rpartition(':')
    if not sep or not host:
        raise ValueError(f"Expected HOST:PORT, got '{address}'")
    port_number = int(port)
    if not (0 < port_number < 65536):
        raise ValueError(f"Port out of range: {port_number}")
    return host, port_number

def connect_to_host(address: str, retries: int = config.CONNECT_RETRIES,
                    retry_delay: float = config.CONNECT_RETRY_DELAY) -> PeerLink:
    """Connects to a hosting peer, retrying a few times before giving up."""
    host, port = parse_address(address)
    for attempt in range(retries):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.settimeout(2.0)
            sock.connect((host, port))
            sock.settimeout(None)
            logger.info(f"Connected to peer at {host}:{port}")
            return PeerLink(sock)
        except (socket.error, ConnectionRefusedError, OSError) as e:
            sock.close()
            if attempt < retries - 1:
                logger.info(f"Connection attempt {attempt + 1} failed, retrying...")
                time.sleep(retry_delay)
                retry_delay *= 1.5
            else:
                logger.error(f"Failed to connect to peer at {host}:{port}: {e}")
                raise
