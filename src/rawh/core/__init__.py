"""
=============================================================================
CORE NETWORKING
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION SERVER (server side)                                    │
    │  • binds the listening socket, runs the accept loop                 │
    │  • one new thread per accepted connection                          │
    └─────────────────────────────────────────────────────────────────────┘
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION DIALER (client side)                                    │
    │  • TCP connect, TLS wrap for https                                  │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼ both produce
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION                                                         │
    │  • one line grammar for every line read                             │
    │  • exact reads, ordered writes, close exactly once                  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState
from .dialer import ConnectionDialer, Target, create_tls_context, parse_target
from .socket_server import ConnectionServer

__all__ = [
    "Connection",
    "ConnectionState",
    "ConnectionDialer",
    "ConnectionServer",
    "Target",
    "create_tls_context",
    "parse_target",
]
