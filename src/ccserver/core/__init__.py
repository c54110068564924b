"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Everything in this package touches a socket. The protocol itself lives
in ccserver.protocol; these modules move bytes and manage lifetimes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   DiscoveryResponder   UDP  "CCS DISCOVER" → "CCS FOUND"            │
    │                                                                      │
    │   SocketServer         TCP  accept loop + session registry          │
    │        │                                                             │
    │        └──► ClientSession (one thread per connection)               │
    │                  │                                                   │
    │                  └──► Connection (line buffer, state, close)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState, LineTooLongError
from .session import ClientSession
from .socket_server import SocketServer
from .discovery import DiscoveryResponder

__all__ = [
    "Connection",
    "ConnectionState",
    "LineTooLongError",
    "ClientSession",
    "SocketServer",
    "DiscoveryResponder",
]
