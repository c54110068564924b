"""
=============================================================================
TCP CONNECTION ACCEPTOR
=============================================================================

Listens on the server port and gives every accepted connection its own
ClientSession thread.

=============================================================================
THREAD PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Acceptor thread            Session threads                        │
    │   ───────────────            ───────────────                        │
    │                                                                      │
    │   accept() ─► client A ───►  [Session A] read/compute/write ...     │
    │   accept() ─► client B ───►  [Session B] read/compute/write ...     │
    │   accept() ─► client C ───►  [Session C] read/compute/write ...     │
    │      │                                                               │
    │      └── back to accept() immediately                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Sessions spend nearly all their time blocked in recv(), which releases
the GIL, so plain threads scale fine for this workload. There is no
limit by default; ServerConfig.max_sessions turns one on.

=============================================================================
ACCEPT LOOP AND SHUTDOWN
=============================================================================

accept() on a blocking socket waits forever. The listening socket gets
a poll_interval timeout instead:

    while not shutdown_event.is_set():
        try:
            accept()          # blocks at most poll_interval seconds
        except timeout:
            continue          # re-check the flag

=============================================================================
"""

import socket
import threading
import logging
from typing import Dict, Optional, Tuple

from .connection import Connection
from .session import ClientSession
from ..config import ServerConfig
from ..stats.counters import Counters


logger = logging.getLogger(__name__)


class SocketServer:
    """
    TCP acceptor with a registry of active sessions.

    Lifecycle:
        server = SocketServer(config, counters, shutdown_event)
        server.bind()     # raises OSError if the port is unavailable
        server.serve()    # blocks until shutdown_event is set
    """

    def __init__(
        self,
        config: ServerConfig,
        counters: Counters,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the acceptor.

        Args:
            config: Server configuration (host, port, backlog, ...).
            counters: Shared statistics store, passed on to each session.
            shutdown_event: Set to stop the accept loop.

        Note: This does NOT create the socket. Call bind().
        """
        self.config = config
        self.counters = counters

        self._socket: Optional[socket.socket] = None
        self._shutdown_event = shutdown_event or threading.Event()

        # Active sessions by connection id
        self._sessions: Dict[str, ClientSession] = {}
        self._sessions_lock = threading.Lock()

        self.connections_rejected = 0

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the port is real once bind() returns."""
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    @property
    def port(self) -> int:
        return self.address[1]

    @property
    def active_sessions(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def sessions(self) -> list[ClientSession]:
        """Snapshot of the currently registered sessions."""
        with self._sessions_lock:
            return list(self._sessions.values())

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a stop should not fail with
        # "Address already in use" while old sockets sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are one short line; send them immediately
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(self.config.poll_interval)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and start listening on the TCP socket.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind TCP {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        logger.info(f"Accepting TCP connections on {self.address[0]}:{self.address[1]}")
        return self.address

    def serve(self):
        """
        Run the accept loop until shutdown. Binds first if needed.

        An accept error ends the loop; it is logged, not retried.
        """
        if self._socket is None:
            self.bind()

        try:
            self._accept_loop()
        finally:
            self.close()

    def _accept_loop(self):
        while not self._shutdown_event.is_set():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._shutdown_event.is_set():
                    logger.error(f"Client service error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            self._start_session(client_socket, client_address)

    def _start_session(self, client_socket: socket.socket, client_address: Tuple[str, int]):
        conn = Connection(
            socket=client_socket,
            address=client_address,
            buffer_size=self.config.buffer_size,
            max_line_length=self.config.max_line_length,
        )

        session = ClientSession(conn, self.counters, on_close=self._unregister)

        with self._sessions_lock:
            limit = self.config.max_sessions
            if limit is not None and len(self._sessions) >= limit:
                rejected = True
            else:
                rejected = False
                self._sessions[session.id] = session

        if rejected:
            self.connections_rejected += 1
            logger.warning(f"[{conn.id}] Session limit ({limit}) reached, rejecting connection")
            conn.close()
            return

        self.counters.record_client()

        thread = threading.Thread(
            target=session.run,
            name=f"Session-{session.id}",
            daemon=True,
        )
        thread.start()

    def _unregister(self, session: ClientSession):
        with self._sessions_lock:
            self._sessions.pop(session.id, None)

    def shutdown(self):
        """Stop accepting. In-flight sessions keep running."""
        logger.info("Shutting down connection acceptor...")
        self._shutdown_event.set()

    def close_sessions(self):
        """Close every active session's connection."""
        for session in self.sessions():
            session.connection.close()

    def close(self):
        """Close the listening socket. Safe to call more than once."""
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Connection acceptor stopped")
