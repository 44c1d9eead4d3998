"""
=============================================================================
RAWH - Raw HTTP/1.x Diagnostics
=============================================================================

rawh shows exactly what travels over the wire in an HTTP/1.x exchange,
without a library in between that would "fix" the message.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SERVER MODE                                                        │
    │      - Reads request line, header lines and body from a raw socket  │
    │      - Answers with a plain-text report of what it received         │
    │      - Optional delay via Rawh-Sleep-Duration / rawh-sleep-duration │
    │      - Optional header mirroring via Rawh-Echo                      │
    │                                                                      │
    │   CLIENT MODE                                                        │
    │      - "raw": writes header lines verbatim (casing, order, dupes)   │
    │      - "canonical": same request through http.client                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rawh/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rawh)
    ├── server.py            # DiagnosticServer
    ├── config.py            # ServerConfig / ClientConfig dataclasses
    ├── errors.py            # Exception hierarchy
    ├── log.py               # Logging set-up
    ├── core/                # Sockets
    │   ├── socket_server.py # Listening socket, thread per connection
    │   ├── connection.py    # Line-oriented connection wrapper
    │   └── dialer.py        # Outbound TCP / TLS connections
    ├── http/                # Message handling
    │   ├── headers.py       # Ordered, duplicate-preserving headers
    │   ├── request.py       # Request reading and the request record
    │   ├── response.py      # Diagnostic report rendering
    │   └── versions.py      # HTTP and TLS version tables
    ├── client/              # Raw and canonical clients
    └── util/                # Durations, byte sizes, sample data

=============================================================================
QUICK START
=============================================================================

    from rawh import DiagnosticServer, ServerConfig

    DiagnosticServer(ServerConfig(port=8080, verbose=True)).run()

    from rawh import ClientConfig, create_client

    client = create_client(ClientConfig())
    response = client.do_request("GET", "http://localhost:8080/", ["x-a: 1"])
    print(response.text)

=============================================================================
"""

__version__ = "1.0.0"

from .config import ClientConfig, ServerConfig
from .errors import RawhError
from .server import DiagnosticServer
from .client import create_client

__all__ = [
    "ClientConfig",
    "DiagnosticServer",
    "RawhError",
    "ServerConfig",
    "create_client",
    "__version__",
]
