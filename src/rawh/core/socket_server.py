"""
=============================================================================
CONNECTION SERVER: BIND, ACCEPT, SPAWN
=============================================================================

The listening half of the diagnostic server. It owns the listening socket
and nothing else: every accepted connection is wrapped in a Connection and
handed to a brand new thread, which from then on owns it exclusively.

=============================================================================
STATE MACHINE
=============================================================================

    ┌──────────┐   bind()+listen()   ┌───────────┐   accept()   ┌─────────┐
    │ CREATED  │ ──────────────────► │ ACCEPTING │ ───────────► │ spawn   │
    └──────────┘                     └─────┬─────┘ ◄─────────── │ handler │
         │                                 │                    └─────────┘
         │ bind error                      │ accept error / shutdown()
         ▼                                 ▼
      raised                            STOPPED  (accept error is raised)

    - A bind error is logged and raised: the process cannot serve.
    - The first accept error is logged and raised. Handlers already running
      are not touched; they finish (or block) on their own.
    - shutdown() stops the loop without an error.

=============================================================================
ONE THREAD PER CONNECTION
=============================================================================

    accept loop ──┬──► Thread(handler, conn #1)   parse → sleep → respond
                  ├──► Thread(handler, conn #2)
                  └──► Thread(handler, conn #3)

There is no pool, no queue and no cap. Handlers share no mutable state, so
there are no locks either. The price is that a flood of slow clients means
a flood of threads; rawh is a diagnostic tool, not an edge server.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR lets the server restart immediately while old connections sit
in TIME_WAIT. TCP_NODELAY disables Nagle so each response line leaves
promptly. The LISTENING socket gets a 1 second timeout so the accept loop
can notice shutdown(); accepted sockets are switched back to blocking
without a timeout by Connection.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class ConnectionServer:
    """
    Accepts TCP connections and runs one handler thread per connection.

    Usage:
        def handle(conn: Connection):
            with conn:
                ...

        server = ConnectionServer(ServerConfig(port=8080))
        server.start(handle)    # Blocks until shutdown() or an accept error
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening, so callers (tests) can wait for it
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def server_address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After start() has bound the socket this is the real address, which
        matters when the configured port is 0.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return host, port
        return self.config.host, self.config.port

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Poll interval for the shutdown flag, listening socket only
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        """
        Turn SIGINT/SIGTERM into a clean shutdown.

        Signal handlers can only be installed from the main thread; when
        the server runs in a background thread (tests) this is skipped.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks.

        Args:
            connection_handler: Called in a new thread for every accepted
                                connection. It owns the connection and must
                                close it.

        Raises:
            OSError: If binding fails or accept() fails while running.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        host, port = self.server_address
        logger.info(f"TCP server is running on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() or the first accept error.

        ┌─────────────────────────────────────────────────────────────────┐
        │   while running:                                                 │
        │       accept()          blocks up to 1s, then re-checks flag     │
        │       Connection(...)   blocking socket, no timeout              │
        │       Thread(handler)   started and forgotten                    │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # Socket closed by shutdown()
                logger.error(f"Error accepting connection: {e}")
                raise

            conn = Connection(socket=client_socket, address=client_address)
            logger.debug(f"[{conn.id}] Accepted connection from {conn.peer}")

            worker = threading.Thread(
                target=connection_handler,
                args=(conn,),
                name=f"rawh-conn-{conn.id}",
                daemon=True,
            )
            worker.start()

    def shutdown(self):
        """Stop the accept loop. Safe to call from any thread, more than once."""
        logger.info("Shutting down TCP server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError as e:
                logger.warning(f"Error closing TCP listener: {e}")
            self._socket = None

        self._ready_event.clear()
        logger.info("TCP server stopped")
