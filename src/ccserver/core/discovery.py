"""
=============================================================================
UDP DISCOVERY RESPONDER
=============================================================================

Lets clients find the server without knowing its address. A client
broadcasts a probe to the server port; every server that hears it
answers from its own address, which the client then connects to over
TCP.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   CLIENT                                         SERVER              │
    │      │                                              │                │
    │      │   "CCS DISCOVER"  (to 255.255.255.255:P)     │                │
    │      │  ─────────────────────────────────────────►  │                │
    │      │                                              │                │
    │      │   "CCS FOUND"     (to the probe's source)    │                │
    │      │  ◄─────────────────────────────────────────  │                │
    │      │                                              │                │
    │      │   TCP connect to <server address>:P          │                │
    │      │  ─────────────────────────────────────────►  │                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only a payload equal to the probe literal gets an answer. Anything else
is dropped without a reply or a log line above DEBUG.

=============================================================================
"""

import socket
import threading
import logging
from typing import Optional, Tuple

from ..config import ServerConfig
from ..protocol.messages import (
    DISCOVER_MESSAGE,
    DISCOVERY_BUFFER_SIZE,
    ENCODING,
    FOUND_MESSAGE,
)


logger = logging.getLogger(__name__)


class DiscoveryResponder:
    """
    Answers discovery probes on a UDP socket.

    Lifecycle:
        responder = DiscoveryResponder(config, shutdown_event)
        responder.bind()      # raises OSError if the port is unavailable
        responder.serve()     # blocks until shutdown_event is set

    Attributes:
        probes_answered: Number of acknowledgments sent.
    """

    def __init__(
        self,
        config: ServerConfig,
        shutdown_event: Optional[threading.Event] = None,
    ):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._shutdown_event = shutdown_event or threading.Event()

        self.probes_answered = 0

    @property
    def address(self) -> Tuple[str, int]:
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.settimeout(self.config.poll_interval)
        return sock

    def bind(self, port: Optional[int] = None) -> Tuple[str, int]:
        """
        Create and bind the UDP socket.

        Args:
            port: Port to bind; defaults to config.port. The server passes
                  the TCP acceptor's actual port so both share one number
                  even when config.port is 0.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If the address cannot be bound.
        """
        port = self.config.port if port is None else port
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, port))
        except OSError as e:
            logger.error(f"Failed to bind UDP {self.config.host}:{port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        logger.info(f"Answering discovery probes on {self.address[0]}:{self.address[1]}")
        return self.address

    def serve(self):
        """
        Answer probes until shutdown. Binds first if needed.

        A receive error ends the loop; it is logged and does not affect
        the TCP side.
        """
        if self._socket is None:
            self.bind()

        try:
            while not self._shutdown_event.is_set():
                try:
                    payload, sender = self._socket.recvfrom(DISCOVERY_BUFFER_SIZE)
                except socket.timeout:
                    continue

                self.handle_datagram(payload, sender)

        except OSError as e:
            if not self._shutdown_event.is_set():
                logger.error(f"Discovery service error: {e}")

        finally:
            self.close()

    def handle_datagram(self, payload: bytes, sender: Tuple[str, int]) -> bool:
        """
        Reply to one datagram if it is a probe.

        Args:
            payload: Datagram contents (at most DISCOVERY_BUFFER_SIZE bytes).
            sender: Source (ip, port) to reply to.

        Returns:
            True if an acknowledgment was sent.
        """
        message = payload[:DISCOVERY_BUFFER_SIZE].decode(ENCODING, errors="replace")

        if message != DISCOVER_MESSAGE:
            logger.debug(f"Ignoring {len(payload)}-byte datagram from {sender[0]}:{sender[1]}")
            return False

        self._socket.sendto(FOUND_MESSAGE.encode(ENCODING), sender)
        self.probes_answered += 1

        logger.debug(f"Answered discovery probe from {sender[0]}:{sender[1]}")
        return True

    def shutdown(self):
        logger.info("Shutting down discovery responder...")
        self._shutdown_event.set()

    def close(self):
        """Close the listening socket. Safe to call more than once."""
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        logger.info("Discovery responder stopped")
