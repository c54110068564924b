"""
pytest configuration and fixtures.
"""

import io
import socket
import time
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ccserver import CCSServer, ServerConfig
from ccserver.client import CCSClient


def wait_for(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll condition until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """The wait_for() poller, as a fixture."""
    return wait_for


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        poll_interval=0.05,
        report_interval=60.0,  # Tests trigger reports explicitly
        log_level="WARNING",
    )


class RunningServer:
    """Test server helper: a started CCSServer plus client shortcuts."""

    def __init__(self, server: CCSServer, report_stream: io.StringIO):
        self.server = server
        self.report_stream = report_stream
        self._clients: list[CCSClient] = []

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def counters(self):
        return self.server.counters

    def connect(self) -> CCSClient:
        client = CCSClient("127.0.0.1", self.port, timeout=5.0).connect()
        self._clients.append(client)
        return client

    def stop(self):
        for client in self._clients:
            client.close()
        self.server.shutdown()
        self.server.acceptor.close_sessions()
        self.server.join(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """Start a server on a free port; stop it after the test."""
    report_stream = io.StringIO()
    server = CCSServer(config, report_stream=report_stream)
    server.start()

    harness = RunningServer(server, report_stream)
    yield harness

    harness.stop()


@pytest.fixture
def udp_socket() -> Generator[socket.socket, None, None]:
    """Client-side UDP socket with a short receive timeout."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.settimeout(2.0)
    yield sock
    sock.close()
