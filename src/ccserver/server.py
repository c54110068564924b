"""
=============================================================================
CCS SERVER
=============================================================================

Wires the components together and owns the process-level concerns:
logging setup, signal handling, startup and shutdown.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CCSServer                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    ┌──────────────────┐  ┌──────────────────┐  ┌─────────────────┐  │
    │    │ DiscoveryResponder│  │   SocketServer   │  │ StatisticsReporter│ │
    │    │  (UDP, thread)   │  │  (TCP, thread)   │  │    (thread)     │  │
    │    └──────────────────┘  └────────┬─────────┘  └────────┬────────┘  │
    │                                   │                     │           │
    │                          ClientSession × N              │           │
    │                                   │                     │           │
    │                                   ▼                     ▼           │
    │                           ┌───────────────────────────────┐         │
    │                           │       Counters (shared)       │         │
    │                           └───────────────────────────────┘         │
    │                                                                      │
    │    One threading.Event is the shutdown signal for all three loops.  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STARTUP ORDER
=============================================================================

    1. Validate config
    2. Bind TCP          (port 0 → the OS picks one)
    3. Bind UDP          (on the port TCP actually got)
    4. Start the three threads

Both binds happen before any thread starts, so a port that is in use
fails startup as a whole instead of leaving half a server running.

=============================================================================
"""

import logging
import signal
import sys
import threading
from typing import Optional, TextIO

from .config import ServerConfig
from .core import DiscoveryResponder, SocketServer
from .stats import Counters, StatisticsReporter


logger = logging.getLogger(__name__)


class CCSServer:
    """
    The computation server.

    Example:
        server = CCSServer(ServerConfig(port=9000))
        server.run()          # blocks until SIGINT/SIGTERM

    Or, embedded (tests):
        server = CCSServer(ServerConfig(host="127.0.0.1", port=0))
        server.start()
        ... connect to server.port ...
        server.shutdown()
        server.join()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        counters: Optional[Counters] = None,
        report_stream: Optional[TextIO] = None,
    ):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses defaults if not provided.
            counters: Statistics store to share with every component.
                      A fresh one is created if not provided.
            report_stream: Where statistics reports are printed
                           (default: standard output).
        """
        self.config = config or ServerConfig()
        self.counters = counters or Counters()

        self._shutdown_event = threading.Event()

        self.acceptor = SocketServer(self.config, self.counters, self._shutdown_event)
        self.discovery = DiscoveryResponder(self.config, self._shutdown_event)
        self.reporter = StatisticsReporter(
            self.counters,
            self._shutdown_event,
            interval=self.config.report_interval,
            stream=report_stream,
        )

        self._threads: list[threading.Thread] = []
        self._original_handlers: dict = {}
        self._running = False
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def port(self) -> int:
        """The bound port (meaningful after start())."""
        return self.acceptor.port

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self):
        """
        Bind both sockets and start the component threads.

        Returns immediately. Raises before starting any thread if the
        configuration is invalid or a socket cannot be bound. A server
        runs once: start() after a successful start() raises without
        binding anything.

        Raises:
            RuntimeError: The server was already started.
            ValueError: Invalid configuration.
            OSError: A socket could not be bound.
        """
        if self._started:
            raise RuntimeError("Server has already been started")

        self.config.validate()

        _, port = self.acceptor.bind()
        try:
            self.discovery.bind(port)
        except OSError:
            self.acceptor.close()
            raise

        self._started = True
        self._threads = [
            threading.Thread(target=self.discovery.serve, name="DiscoveryResponder", daemon=True),
            threading.Thread(target=self.acceptor.serve, name="ConnectionAcceptor", daemon=True),
            self.reporter,
        ]
        for thread in self._threads:
            thread.start()

        self._running = True
        logger.info(f"CCS server started on port {port}")

    def run(self):
        """
        Start the server and block until SIGINT/SIGTERM (or shutdown()).

        Must be called from the main thread, since it installs signal
        handlers.
        """
        self._setup_logging()
        self.start()
        self._print_startup_banner()
        self._setup_signals()

        try:
            # Event.wait() with a timeout keeps the main thread responsive
            # to signals on every platform
            while not self._shutdown_event.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            self.shutdown()
        finally:
            self._restore_signals()
            self.join()

    def shutdown(self):
        """
        Ask every loop to stop. Idempotent and safe from any thread.

        Sessions that are already running are left alone; they end when
        their client disconnects or the process exits.
        """
        if not self._shutdown_event.is_set():
            logger.info("Shutting down server...")
        self._shutdown_event.set()

    def join(self, timeout: Optional[float] = None):
        """Wait for the component threads to exit."""
        for thread in self._threads:
            thread.join(timeout)
        self._running = False
        logger.info("Server stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until shutdown has been requested.

        Returns:
            True if shutdown was requested, False on timeout.
        """
        return self._shutdown_event.wait(timeout)

    # =========================================================================
    # PROCESS CONCERNS
    # =========================================================================

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr,
        )

        logging.getLogger("ccserver").setLevel(level)

    def _print_startup_banner(self):
        limit = self.config.max_sessions or "unbounded"
        print()
        print("=" * 64)
        print(f"  CCS server listening on {self.config.host}:{self.port} (TCP + UDP)")
        print(f"  Statistics every {self.config.report_interval:g}s, sessions: {limit}")
        print("  Press Ctrl+C to stop")
        print("=" * 64)
        print(flush=True)

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that trigger a graceful shutdown.

        SIGTERM comes from kill / systemd / docker stop, SIGINT from Ctrl+C.
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()
