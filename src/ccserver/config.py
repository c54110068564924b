"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the computation server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line argument (the port only)                          │
    │      └── python -m ccserver 9000                                    │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── CCS_LOG_LEVEL=DEBUG python -m ccserver 9000                │
    │                                                                      │
    │   3. Defaults defined in ServerConfig                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The UDP discovery responder and the TCP acceptor share ONE port number.
That works because the OS keeps a separate port space per transport.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the computation server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, poll_interval

    PROTOCOL SETTINGS
    - max_line_length

    CONCURRENCY SETTINGS
    - max_sessions

    STATISTICS
    - report_interval

    LOGGING
    - log_level

    =========================================================================
    """

    # =========================================================================
    # NETWORK SETTINGS
    # =========================================================================

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All interfaces, required to hear broadcast probes
    - "127.0.0.1" - Localhost only (tests)
    """

    port: int = 8080
    """
    Port shared by the UDP responder and the TCP acceptor.
    0 lets the OS pick a TCP port; the UDP socket then reuses that number.
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted TCP connections."""

    buffer_size: int = 4096
    """Bytes read per recv() call on a client connection."""

    poll_interval: float = 1.0
    """
    Seconds accept() and recvfrom() block before the loops re-check
    the shutdown flag.
    """

    # =========================================================================
    # PROTOCOL SETTINGS
    # =========================================================================

    max_line_length: int = 64 * 1024
    """A request line longer than this closes the session."""

    # =========================================================================
    # CONCURRENCY SETTINGS
    # =========================================================================

    max_sessions: Optional[int] = None
    """
    Upper bound on concurrently open sessions.
    None = unbounded, one thread per connection with no maximum.
    When set, connections beyond the limit are closed right after accept.
    """

    # =========================================================================
    # STATISTICS
    # =========================================================================

    report_interval: float = 10.0
    """Seconds between statistics reports (and window resets)."""

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls, port: Optional[int] = None) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        CCS_HOST             Bind address (default: 0.0.0.0)
        CCS_REPORT_INTERVAL  Seconds between reports (default: 10)
        CCS_MAX_SESSIONS     Session limit (default: unbounded)
        CCS_LOG_LEVEL        Logging level (default: INFO)

        =====================================================================

        Args:
            port: Port from the command line; overrides the default.
        """
        max_sessions = os.getenv("CCS_MAX_SESSIONS")
        config = cls(
            host=os.getenv("CCS_HOST", "0.0.0.0"),
            report_interval=float(os.getenv("CCS_REPORT_INTERVAL", "10")),
            max_sessions=int(max_sessions) if max_sessions else None,
            log_level=os.getenv("CCS_LOG_LEVEL", "INFO"),
        )
        if port is not None:
            config.port = port
        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails before any socket
        is bound.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")

        if self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")

        if self.max_sessions is not None and self.max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")

        if self.report_interval <= 0:
            raise ValueError("report_interval must be > 0")
