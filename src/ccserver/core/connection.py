"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps an accepted TCP socket with line-oriented reading and
writing, state tracking, and an idempotent close.

=============================================================================
WHY BUFFER?
=============================================================================

TCP is a byte stream. It has no idea where one request line ends and the
next begins:

    client sends:   "ADD 1 2\n"  "MUL 3 4\n"

    recv() may return:
        "ADD 1"        then   " 2\nMUL 3 4\n"
        "ADD 1 2\nMUL 3 4\n"  (both at once)

So we keep a byte buffer. read_line() pulls data off the socket until
the buffer holds a "\n", hands back exactly one line, and keeps whatever
follows for the next call.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► RESPONDING ──┐
     │             ▲                                    │        │
     │             └────────────────────────────────────┘        │
     │             │                                             │
     │             ▼                                             │
     └──────────► CLOSING ◄──────────────────────────────────────┘
                    │
                    ▼
                  CLOSED

Any state can go to CLOSING: end of stream, a socket error, or an
oversized line all end the connection the same way.

=============================================================================
"""

import socket
import threading
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..protocol.messages import ENCODING, LINE_TERMINATOR


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Waiting for the next request line
    PROCESSING = "processing"  # Line read, computing the response
    RESPONDING = "responding"  # Sending the response line
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


class LineTooLongError(ValueError):
    """Raised when a client sends more than max_line_length bytes without a newline."""


@dataclass
class Connection:
    """
    Represents one client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        last_activity: Timestamp of last activity.
        lines_read: Number of request lines read so far.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    lines_read: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 4096
    max_line_length: int = 64 * 1024

    # Internal state (not shown in repr for cleaner logs)
    _buffer: bytes = field(default=b"", repr=False)
    _eof: bool = field(default=False, repr=False)
    _close_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        # No read timeout: an idle client keeps its connection indefinitely
        self.socket.setblocking(True)
        self.socket.settimeout(None)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[str]:
        """
        Read one request line from the socket.

        A line ends at "\\n"; a "\\r" right before it is dropped too, so
        clients that send CRLF work unchanged. If the peer closes the
        stream after a partial line, that partial line is returned once
        before end-of-stream is reported.

        Returns:
            The decoded line without its terminator, or None at end of
            stream.

        Raises:
            LineTooLongError: If the buffered line exceeds max_line_length.
            OSError: On socket errors other than a peer reset.
        """
        self.state = ConnectionState.READING

        while b"\n" not in self._buffer:
            if self._eof:
                break

            if len(self._buffer) > self.max_line_length:
                raise LineTooLongError(f"Line too long: {len(self._buffer)} bytes")

            chunk = self._recv()
            if not chunk:
                self._eof = True
                break

            self._buffer += chunk

        newline = self._buffer.find(b"\n")
        if newline == -1:
            if not self._buffer:
                return None
            # Unterminated last line before end of stream
            raw, self._buffer = self._buffer, b""
        else:
            raw = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]

        if len(raw) > self.max_line_length:
            raise LineTooLongError(f"Line too long: {len(raw)} bytes")

        if raw.endswith(b"\r"):
            raw = raw[:-1]

        self.lines_read += 1
        self.last_activity = time.time()
        self.state = ConnectionState.PROCESSING

        return raw.decode(ENCODING, errors="replace")

    def _recv(self) -> bytes:
        """
        Receive data from socket with error handling.

        Returns:
            Received bytes, or empty bytes if connection closed.
        """
        try:
            data = self.socket.recv(self.buffer_size)
            self.last_activity = time.time()
            return data
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_line(self, text: str) -> bool:
        """
        Send one response line followed by the line terminator.

        Args:
            text: Response text without terminator.

        Returns:
            True if send succeeded, False if connection lost.
        """
        self.state = ConnectionState.RESPONDING
        self.last_activity = time.time()

        try:
            self.socket.sendall((text + LINE_TERMINATOR).encode(ENCODING))
            self.last_activity = time.time()
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once, from any thread.

        shutdown(SHUT_RDWR) sends FIN and also wakes a thread blocked in
        recv() on this socket, then close() releases the descriptor.
        """
        with self._close_lock:
            if self.state == ConnectionState.CLOSED:
                return

            self.state = ConnectionState.CLOSING

            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Peer already gone

            try:
                self.socket.close()
            except OSError:
                pass

            self.state = ConnectionState.CLOSED

        logger.debug(f"[{self.id}] Connection closed after {self.lines_read} lines")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
