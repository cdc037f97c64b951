# Implements the "Length-Prefixed Framing Protocol" used between peers
# Protocol Format:
# [ 4-byte Header ] [ N-byte Body ]
# - Header: A 4-byte unsigned integer ('!I') in network byte order
#             (big-endian), specifying the length of the body.
# - Body: N bytes of data (a UTF-8 peer message, see message_types).
#
# Framing makes message boundaries independent of how the stream splits
# or coalesces reads.

import socket
import struct
import logging

logger = logging.getLogger(__name__)

# Constants

# Header is 4 bytes, unsigned int, network byte order
HEADER_FORMAT = '!I'
HEADER_LENGTH = struct.calcsize(HEADER_FORMAT)

# Max message size is 64 KiB
MAX_MSG_SIZE = 65536

# Private Helper Function

def _recv_all(sock: socket.socket, length: int) -> bytes | None:
    """
    Private helper to receive 'length' bytes from a socket.
    This handles partial 'recv()' calls.
    """
    chunks = []
    bytes_received = 0
    while bytes_received < length:
        # In blocking mode, recv will wait for data
        chunk = sock.recv(length - bytes_received)

        if not chunk:
            # Socket was closed
            if bytes_received:
                logger.error(f"Socket closed unexpectedly while waiting for {length} bytes. "
                             f"Received {bytes_received} bytes so far.")
            return None

        chunks.append(chunk)
        bytes_received += len(chunk)

    return b''.join(chunks)

# Public API Functions

def send_msg(sock: socket.socket, message_bytes: bytes):
    """
    Sends a message using the length-prefixed protocol.

    1. Checks message size.
    2. Packs the length into a 4-byte header.
    3. Sends header and body in one sendall().

    Raises ValueError for oversized or empty messages and lets socket
    errors propagate to the caller.
    """
    length = len(message_bytes)

    if not (0 < length <= MAX_MSG_SIZE):
        raise ValueError(f"Message size ({length} bytes) outside 1..{MAX_MSG_SIZE} bytes")

    header_bytes = struct.pack(HEADER_FORMAT, length)

    try:
        sock.sendall(header_bytes + message_bytes)
    except socket.error as e:
        # Handle cases like "Broken pipe" if the other side disconnected
        logger.error(f"Socket error during send: {e}")
        raise

def recv_msg(sock: socket.socket) -> bytes | None:
    """
    Receives a message using the length-prefixed protocol.

    1. Reads 4 bytes to get the header.
    2. Unpacks the header to get the body length.
    3. Validates the length.
    4. Reads N bytes to get the full body.

    Returns the message body as bytes, or None if the peer disconnected
    or broke the protocol.
    """
    try:
        header_bytes = _recv_all(sock, HEADER_LENGTH)
        if header_bytes is None:
            return None

        body_length = struct.unpack(HEADER_FORMAT, header_bytes)[0]

        if not (0 < body_length <= MAX_MSG_SIZE):
            logger.error(f"Invalid message length received: {body_length}.")
            # The owner of the link closes the socket
            return None

        body_bytes = _recv_all(sock, body_length)
        if body_bytes is None:
            logger.warning(f"Peer disconnected after sending header for {body_length} bytes.")
            return None

        return body_bytes

    except (socket.error, struct.error) as e:
        logger.error(f"Error during recv: {e}")
        return None
