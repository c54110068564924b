"""
=============================================================================
CCS PROTOCOL IMPLEMENTATION
=============================================================================

This package holds everything that understands the wire protocol and
nothing that touches a socket. Sessions hand it a decoded line and get
back the text to send plus the statistics the request produced.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TCP Request-Response Cycle                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   CLIENT                                         SERVER              │
    │      │                                              │                │
    │      │   ADD 5 6\n                                  │                │
    │      │  ─────────────────────────────────────────►  │                │
    │      │                                     11\n     │                │
    │      │  ◄─────────────────────────────────────────  │                │
    │      │   DIV 10 0\n                                 │                │
    │      │  ─────────────────────────────────────────►  │                │
    │      │                                  ERROR\n     │                │
    │      │  ◄─────────────────────────────────────────  │                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    UDP discovery on the same port number:

        client ── "CCS DISCOVER" ──►  server
        client ◄── "CCS FOUND" ─────  server

=============================================================================
MODULE COMPONENTS
=============================================================================

    request.py    - Operation enum, Request value, parse_request()
    processor.py  - process_request(): line in, response + deltas out

=============================================================================
"""

from .request import (
    Operation,
    Request,
    ProtocolError,
    parse_request,
    parse_int32,
    INT32_MIN,
    INT32_MAX,
)
from .processor import (
    ProcessingResult,
    process_request,
    evaluate,
    wrap_int32,
)
from .messages import (
    DISCOVER_MESSAGE,
    FOUND_MESSAGE,
    ERROR_RESPONSE,
    LINE_TERMINATOR,
)

__all__ = [
    "Operation",
    "Request",
    "ProtocolError",
    "parse_request",
    "parse_int32",
    "INT32_MIN",
    "INT32_MAX",
    "ProcessingResult",
    "process_request",
    "evaluate",
    "wrap_int32",
    "DISCOVER_MESSAGE",
    "FOUND_MESSAGE",
    "ERROR_RESPONSE",
    "LINE_TERMINATOR",
]
