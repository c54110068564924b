"""
=============================================================================
CCS CLIENT
=============================================================================

Client side of both protocols: find a server with a UDP broadcast, then
talk to it over TCP.

    address = discover_server("255.255.255.255", 9000)

    with CCSClient(address, 9000) as client:
        client.send_request("ADD", 5, 6)     # → "11"
        client.send_line("ADD 10 abc")       # → "ERROR"

The ccs-client command runs a short demonstration against a live server:

    ccs-client 255.255.255.255 9000

=============================================================================
"""

import argparse
import logging
import random
import socket
import sys
import time
from typing import Optional

from .protocol.messages import (
    DISCOVER_MESSAGE,
    DISCOVERY_BUFFER_SIZE,
    ENCODING,
    FOUND_MESSAGE,
    LINE_TERMINATOR,
)


logger = logging.getLogger(__name__)


class DiscoveryError(OSError):
    """Raised when no server answers any discovery attempt."""


def discover_server(
    broadcast_address: str,
    port: int,
    attempts: int = 3,
    timeout: float = 2.0,
) -> str:
    """
    Locate a server by broadcasting a discovery probe.

    Args:
        broadcast_address: Where to send the probe, e.g. "255.255.255.255"
                           (or a unicast address such as "127.0.0.1").
        port: Server port.
        attempts: How many probes to send before giving up.
        timeout: Seconds to wait for an answer after each probe.

    Returns:
        The IP address the acknowledgment came from.

    Raises:
        DiscoveryError: If no acknowledgment arrives.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.settimeout(timeout)
        probe = DISCOVER_MESSAGE.encode(ENCODING)

        for attempt in range(1, attempts + 1):
            logger.debug(f"Sending discovery probe (attempt {attempt})")
            sock.sendto(probe, (broadcast_address, port))

            try:
                # Keep reading until the timeout in case something other
                # than an acknowledgment arrives first
                while True:
                    payload, sender = sock.recvfrom(DISCOVERY_BUFFER_SIZE)
                    if payload.decode(ENCODING, errors="replace") == FOUND_MESSAGE:
                        logger.info(f"Server found at {sender[0]}")
                        return sender[0]
            except socket.timeout:
                logger.debug(f"Timeout on attempt {attempt}")
            except ConnectionError as e:
                # ICMP port unreachable, reported by some platforms
                logger.debug(f"Attempt {attempt} failed: {e}")

    raise DiscoveryError(f"Failed to discover server after {attempts} attempts")


class CCSClient:
    """
    Persistent TCP connection to a server.

    One request is in flight at a time: each send waits for its response
    line before returning.
    """

    def __init__(self, host: str, port: int, timeout: Optional[float] = 10.0):
        self.host = host
        self.port = port
        self.timeout = timeout

        self._socket: Optional[socket.socket] = None
        self._reader = None

    def connect(self) -> "CCSClient":
        self._socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
        self._reader = self._socket.makefile("r", encoding=ENCODING, newline=LINE_TERMINATOR)
        logger.debug(f"Connected to {self.host}:{self.port}")
        return self

    def send_line(self, line: str) -> Optional[str]:
        """
        Send one raw request line and read the response line.

        Returns:
            The response without its terminator, or None if the server
            closed the connection.
        """
        if self._socket is None:
            raise ConnectionError("Not connected")

        self._socket.sendall((line + LINE_TERMINATOR).encode(ENCODING))
        response = self._reader.readline()
        if not response:
            return None
        return response.rstrip("\r\n")

    def send_request(self, operation: str, arg1: int, arg2: int) -> Optional[str]:
        return self.send_line(f"{operation} {arg1} {arg2}")

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

    def __enter__(self):
        if self._socket is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def run_demo(client: CCSClient, rng: Optional[random.Random] = None, delay: bool = True) -> list[tuple[str, Optional[str]]]:
    """
    Exercise every operation and the three error cases.

    Args:
        client: A connected client.
        rng: Source of operands (default: a fresh Random()).
        delay: Pause 0.5-1.5s between valid requests so the server's
               windowed statistics have something to show.

    Returns:
        (request, response) pairs in the order sent.
    """
    rng = rng or random.Random()
    exchanges = []

    def exchange(line: str):
        response = client.send_line(line)
        print(f"Sent: {line}, Received: {response}")
        exchanges.append((line, response))

    for operation in ("ADD", "SUB", "MUL", "DIV"):
        arg1 = rng.randrange(100)
        arg2 = rng.randrange(1, 11) if operation == "DIV" else rng.randrange(100)
        exchange(f"{operation} {arg1} {arg2}")
        if delay:
            time.sleep(rng.uniform(0.5, 1.5))

    print("\nTesting error cases:")
    exchange("DIV 10 0")
    exchange("INVALID 10 20")
    exchange("ADD 10 abc")

    return exchanges


def main(argv: Optional[list[str]] = None):
    """ccs-client <broadcast-address> <port>"""
    parser = argparse.ArgumentParser(
        prog="ccs-client",
        description="Discover a CCS server and run a short request sequence",
        epilog="Example: ccs-client 255.255.255.255 8080",
    )
    parser.add_argument("broadcast_address", help="Address to send the discovery probe to")
    parser.add_argument("port", type=int, help="Server port")
    parser.add_argument(
        "--linger",
        type=float,
        default=30.0,
        help="Seconds to keep the connection open afterwards (default: 30)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        address = discover_server(args.broadcast_address, args.port)
        with CCSClient(address, args.port, timeout=None) as client:
            print("Connected to server via TCP")
            run_demo(client)

            if args.linger > 0:
                print(f"\nKeeping connection alive for {args.linger:g} seconds "
                      "to observe server statistics...")
                time.sleep(args.linger)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
