import socket
import threading

import pytest

from common import multiplayer
from common import protocol
from common.message_types import LinesCleared, Notification


@pytest.fixture
def linked_peers():
    a, b = socket.socketpair()
    host, guest = multiplayer.PeerLink(a), multiplayer.PeerLink(b)
    yield host, guest
    host.close()
    guest.close()


def test_messages_reach_the_other_queue(linked_peers):
    host, guest = linked_peers
    guest.start_listener()

    host.send(LinesCleared(2))
    host.send(Notification("YOU WIN!"))

    assert guest.events.get(timeout=2) == LinesCleared(2)
    assert guest.events.get(timeout=2) == Notification("YOU WIN!")


def test_unknown_frames_are_skipped(linked_peers):
    host, guest = linked_peers
    guest.start_listener()

    protocol.send_msg(host.sock, b"Garbage frame")
    host.send(LinesCleared(1))

    assert guest.events.get(timeout=2) == LinesCleared(1)


def test_listener_stops_when_peer_disconnects(linked_peers):
    host, guest = linked_peers
    guest.start_listener()
    host.close()
    guest.listener_thread.join(timeout=2)
    assert not guest.listener_thread.is_alive()


def test_send_after_disconnect_does_not_raise(linked_peers):
    host, guest = linked_peers
    guest.close()
    # Broken pipe / reset is logged and ignored
    for _ in range(3):
        host.send(LinesCleared(1))


def test_next_event_and_clear(linked_peers):
    host, _ = linked_peers
    assert host.next_event() is None

    host.events.put(LinesCleared(1))
    host.events.put(LinesCleared(2))
    assert host.next_event() == LinesCleared(1)

    host.clear()
    assert host.next_event() is None
    assert host.poll_events() == []


@pytest.mark.parametrize("address,expected", [
    ("127.0.0.1:8080", ("127.0.0.1", 8080)),
    ("example.org:9000", ("example.org", 9000)),
])
def test_parse_address(address, expected):
    assert multiplayer.parse_address(address) == expected


@pytest.mark.parametrize("address", ["8080", ":8080", "host:", "host:port", "host:70000"])
def test_parse_address_rejects_malformed(address):
    with pytest.raises(ValueError):
        multiplayer.parse_address(address)


def test_host_and_connect_over_loopback():
    # Find a free port, then host on it in a thread
    spare = socket.socket()
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()

    hosted = {}

    def host_thread():
        hosted["link"] = multiplayer.host_game(port, "127.0.0.1")

    thread = threading.Thread(target=host_thread, daemon=True)
    thread.start()

    guest = multiplayer.connect_to_host(f"127.0.0.1:{port}", retries=10, retry_delay=0.05)
    thread.join(timeout=5)
    host = hosted["link"]
    try:
        host.start_listener()
        guest.send(LinesCleared(4))
        assert host.events.get(timeout=2) == LinesCleared(4)
    finally:
        host.close()
        guest.close()


def test_connect_gives_up_after_retries():
    spare = socket.socket()
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()

    with pytest.raises(OSError):
        multiplayer.connect_to_host(f"127.0.0.1:{port}", retries=2, retry_delay=0.01)
