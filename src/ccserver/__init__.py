"""
=============================================================================
CCSERVER - Concurrent Computation Server
=============================================================================

A discoverable network service that performs integer arithmetic for
remote clients and reports live usage statistics.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CCS SERVER ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. DISCOVERY (UDP, port P)                                        │
    │      └── Answers "CCS DISCOVER" broadcasts with "CCS FOUND"         │
    │                                                                      │
    │   2. COMPUTATION (TCP, port P)                                      │
    │      └── One thread per client connection                           │
    │      └── "ADD 5 6" → "11", "DIV 1 0" → "ERROR"                      │
    │                                                                      │
    │   3. STATISTICS                                                      │
    │      └── Cumulative and per-interval counters                       │
    │      └── Report printed every 10 seconds                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE LAYOUT
=============================================================================

    ccserver/
    ├── __init__.py      ← You are here
    ├── __main__.py      ← CLI: python -m ccserver <port>
    ├── config.py        ← ServerConfig dataclass
    ├── server.py        ← CCSServer: wiring, logging, signals
    ├── client.py        ← Discovery + request client, ccs-client CLI
    ├── core/
    │   ├── connection.py    ← Line-buffered socket wrapper
    │   ├── session.py       ← Per-connection request loop
    │   ├── socket_server.py ← TCP acceptor + session registry
    │   └── discovery.py     ← UDP probe responder
    ├── protocol/
    │   ├── messages.py  ← Literal protocol tokens
    │   ├── request.py   ← Request parsing
    │   └── processor.py ← Arithmetic + statistics deltas
    └── stats/
        ├── counters.py  ← Shared cumulative/windowed counters
        └── reporter.py  ← Periodic report thread

=============================================================================
QUICK START
=============================================================================

    from ccserver import CCSServer, ServerConfig

    server = CCSServer(ServerConfig(port=9000))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import CCSServer
from .config import ServerConfig

__all__ = ["CCSServer", "ServerConfig", "__version__"]
