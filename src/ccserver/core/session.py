"""
=============================================================================
CLIENT SESSION
=============================================================================

One ClientSession owns one accepted connection for its whole life and
runs in its own thread.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Session Loop                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   while True:                                                        │
    │       │                                                              │
    │       ├──► conn.read_line()          READING                        │
    │       │       └── None? ──────────────────────────────┐              │
    │       │                                               │              │
    │       ├──► process_request(line)     PROCESSING       │              │
    │       ├──► counters.apply(deltas)                     │              │
    │       │                                               │              │
    │       └──► conn.send_line(response)  RESPONDING       │              │
    │               └── failed? ────────────────────────────┤              │
    │                                                       ▼              │
    │   finally:                                         CLOSED            │
    │       conn.close()            (exactly once)                         │
    │       on_close(session)       (leave the registry)                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Protocol errors never reach this level: process_request() turns them
into the ERROR response. Anything that does raise here is a transport
problem and ends only this session.

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional

from .connection import Connection, LineTooLongError
from ..protocol import process_request
from ..stats.counters import Counters


logger = logging.getLogger(__name__)

# Request/response lines go to their own logger so they can be silenced
# or routed separately from server events
access_logger = logging.getLogger("ccserver.access")


class ClientSession:
    """
    Request/response loop for one connection.

    Attributes:
        connection: The wrapped client socket.
        counters: Shared statistics store.
        requests_handled: Requests answered on this session.
    """

    def __init__(
        self,
        connection: Connection,
        counters: Counters,
        on_close: Optional[Callable[["ClientSession"], None]] = None,
    ):
        """
        Initialize the session.

        Args:
            connection: The accepted connection to serve.
            counters: Statistics store that receives each request's deltas.
            on_close: Called once when the session ends, after the
                      connection is closed.
        """
        self.connection = connection
        self.counters = counters
        self.requests_handled = 0

        self._on_close = on_close
        self._closing = False
        self._finished = threading.Event()
        self._finish_lock = threading.Lock()

    @property
    def id(self) -> str:
        return self.connection.id

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    def run(self):
        """Serve requests until the peer goes away (runs in its own thread)."""
        conn = self.connection
        logger.debug(f"[{conn.id}] Session started for {conn.client_ip}:{conn.client_port}")

        try:
            while True:
                line = conn.read_line()
                if line is None:
                    break

                result = process_request(line)
                self.counters.apply(result.deltas)

                if not conn.send_line(result.response):
                    break

                self.requests_handled += 1
                access_logger.info(f"[{conn.id}] Request: {line} | Result: {result.response}")

        except LineTooLongError as e:
            logger.warning(f"[{conn.id}] {e}, closing session")

        except OSError as e:
            logger.warning(f"[{conn.id}] Error handling client: {e}")

        except Exception as e:
            logger.exception(f"[{conn.id}] Unexpected session error: {e}")

        finally:
            self._finish()

    def _finish(self):
        with self._finish_lock:
            if self._closing:
                return
            self._closing = True

        try:
            self.connection.close()
            logger.debug(
                f"[{self.id}] Session ended after {self.requests_handled} requests"
            )

            if self._on_close is not None:
                self._on_close(self)
        finally:
            # Waiters only wake once the socket is closed and the
            # session has left the registry
            self._finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the session to end, meaning its connection is closed
        and on_close has run.

        Returns:
            True if the session finished, False on timeout.
        """
        return self._finished.wait(timeout)
