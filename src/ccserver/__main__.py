"""
=============================================================================
CCS SERVER CLI ENTRY POINT
=============================================================================

    python -m ccserver <port>
    ccserver <port>

Exactly one positional argument: the port for both UDP discovery and
TCP requests, an integer from 1 to 65535. There are no flags; the other
settings come from the environment (see ServerConfig.from_env):

    CCS_LOG_LEVEL=DEBUG CCS_REPORT_INTERVAL=5 python -m ccserver 9000

Exit status 1 on a bad argument or when a socket cannot be bound.

=============================================================================
"""

import argparse
import sys
from typing import Optional

from .server import CCSServer
from .config import ServerConfig


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 instead of 2 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def port_number(value: str) -> int:
    """argparse type for a TCP/UDP port in 1-65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid port number - {value!r} is not an integer")

    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(
            f"Invalid port number - {port} (must be between 1 and 65535)"
        )
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="ccserver",
        description="Concurrent computation server with UDP discovery",
        add_help=False,
    )
    parser.add_argument(
        "port",
        type=port_number,
        help="Port to listen on for both UDP discovery and TCP requests",
    )
    return parser


def main(argv: Optional[list[str]] = None):
    """
    Main CLI entry point.

    1. Parse the port argument
    2. Build ServerConfig from the environment plus the port
    3. Run the server until SIGINT/SIGTERM

    Args:
        argv: Arguments without the program name (default: sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env(port=args.port)
        config.validate()
    except ValueError as e:
        print(f"Error: Invalid configuration - {e}", file=sys.stderr)
        sys.exit(1)

    server = CCSServer(config)

    try:
        server.run()
    except OSError as e:
        print(f"Error: Could not start server on port {config.port} - {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
