"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator, List, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rawh import DiagnosticServer, ServerConfig
from rawh.core import Connection


@pytest.fixture
def sample_get_request() -> bytes:
    """GET with a delay in the query string and mixed header casing."""
    return (
        b"GET /x?rawh-sleep-duration=10ms HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"x-lower: a\r\n"
        b"X-Upper: b\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """POST with a five byte body."""
    return (
        b"POST /upload HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Length: 5\r\n"
        b"\r\n"
        b"hello"
    )


@pytest.fixture
def connection_pair() -> Generator[Callable[..., Tuple[Connection, socket.socket]], None, None]:
    """
    Factory for a Connection wired to a plain peer socket.

    ``make(data, close=True)`` returns ``(conn, peer)``: ``data`` has already
    been written by the peer, and with ``close=True`` the peer has also
    shut down its sending side, so reads past ``data`` hit EOF.
    """
    created: List[Tuple[Connection, socket.socket]] = []

    def make(data: bytes = b"", close: bool = True) -> Tuple[Connection, socket.socket]:
        ours, peer = socket.socketpair()
        conn = Connection(socket=ours, address=("test-peer", 0))
        if data:
            peer.sendall(data)
        if close:
            peer.shutdown(socket.SHUT_WR)
        created.append((conn, peer))
        return conn, peer

    yield make

    for conn, peer in created:
        peer.close()
        conn.close()


def read_until_closed(sock: socket.socket) -> bytes:
    """Read everything ``sock`` receives until the other side closes."""
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


class RunningServer:
    """DiagnosticServer running in a background thread."""

    def __init__(self, server: DiagnosticServer):
        self.server = server
        self._thread = threading.Thread(target=server.run, daemon=True)

    @property
    def port(self) -> int:
        return self.server.server_address[1]

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def start(self):
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        self._thread.join(timeout=5.0)

    def send_raw(self, data: bytes, close: bool = True) -> bytes:
        """Send raw bytes on a fresh connection and return the full response."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=10.0) as sock:
            sock.sendall(data)
            if close:
                sock.shutdown(socket.SHUT_WR)
            return read_until_closed(sock)


@pytest.fixture
def diagnostic_server() -> Generator[RunningServer, None, None]:
    """A diagnostic server on an ephemeral port."""
    server = DiagnosticServer(ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        log_level="WARNING",
    ))
    running = RunningServer(server)
    running.start()

    yield running

    running.stop()
