# Message type constants and text encoding
# Defines the input events delivered by the presentation layer and the
# messages exchanged between two peers.

import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

# Input keys (produced by the presentation layer)
KEY_CHAR = "CHAR"
KEY_LEFT = "LEFT"
KEY_RIGHT = "RIGHT"
KEY_UP = "UP"
KEY_DOWN = "DOWN"
KEY_ENTER = "ENTER"
KEY_ESC = "ESC"
KEY_BACKSPACE = "BACKSPACE"
KEY_CLOSE = "CLOSE"  # Window closed or forced quit

# Peer message prefixes (wire format)
PREFIX_CLEARED_ROWS = "ClearedRows: "
PREFIX_NOTIFICATION = "Notification: "


@dataclass(frozen=True)
class InputEvent:
    """One key press. `char` is only set for KEY_CHAR."""
    key: str
    char: str = ""

    def matches(self, bindings) -> bool:
        """Checks the event against a tuple of characters / key names."""
        if self.key == KEY_CHAR:
            return self.char in bindings
        return self.key in bindings


def char_event(char: str) -> InputEvent:
    return InputEvent(KEY_CHAR, char)


@dataclass(frozen=True)
class LinesCleared:
    count: int


@dataclass(frozen=True)
class Notification:
    text: str


PeerMessage = Union[LinesCleared, Notification]


def encode_message(message: PeerMessage) -> bytes:
    """Encodes a peer message as its UTF-8 wire text."""
    if isinstance(message, LinesCleared):
        return f"{PREFIX_CLEARED_ROWS}{message.count}".encode('utf-8')
    if isinstance(message, Notification):
        return f"{PREFIX_NOTIFICATION}{message.text}".encode('utf-8')
    raise TypeError(f"Unknown peer message: {message!r}")


def decode_message(body: bytes) -> Optional[PeerMessage]:
    """
    Decodes one message body.

    Returns None for anything that is not a well-formed peer message;
    callers drop those.
    """
    text = body.decode('utf-8', errors='replace')

    if text.startswith(PREFIX_CLEARED_ROWS):
        payload = text[len(PREFIX_CLEARED_ROWS):].strip()
        try:
            count = int(payload)
        except ValueError:
            logger.debug(f"Dropping ClearedRows frame with bad payload: {payload!r}")
            return None
        if count < 0:
            logger.debug(f"Dropping ClearedRows frame with negative count: {count}")
            return None
        return LinesCleared(count)

    if text.startswith(PREFIX_NOTIFICATION):
        return Notification(text[len(PREFIX_NOTIFICATION):])

    logger.debug(f"Dropping unrecognized frame: {text[:50]!r}")
    return None
