"""
=============================================================================
RAWH CLI ENTRY POINT
=============================================================================

    # Diagnostic server on port 8080, logging every line it sees
    python -m rawh -v server --port 8080

    # Raw request with exact header casing and order
    python -m rawh client http://localhost:8080/x -X POST -d hello \\
        -H "x-lower: 1" -H "X-Upper: 2"

    # 1 KB generated body, delay the answer by 250ms
    python -m rawh client "http://localhost:8080/?rawh-sleep-duration=250ms" \\
        -X POST --generate-data-size 1KB

    # Same request through http.client, for comparison
    python -m rawh client http://localhost:8080/x -C -H "x-lower: 1"

Global options (-v, --log-level, --log-format) are accepted before or after
the subcommand. Settings not given on the command line fall back to RAWH_*
environment variables, then to the defaults in rawh.config.

=============================================================================
"""

import argparse
import dataclasses
import sys
from typing import Optional, Sequence

from . import __version__
from .client import create_client
from .config import ClientConfig, LOG_FORMATS, LOG_LEVELS, ServerConfig
from .errors import RawhError
from .log import setup_logging
from .server import DiagnosticServer
from .util.sizes import generate_sample_data, parse_pretty_byte_size


NAME = "rawh"
DESCRIPTION = "rawh functions either as an HTTP server or as a client to diagnose requests and responses."


def _common_options() -> argparse.ArgumentParser:
    """
    Options valid before and after the subcommand.

    Defaults are SUPPRESS so a value given in one place is not reset by the
    other parser's default.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enables verbose output for the operation (client and server modes).",
    )
    common.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=argparse.SUPPRESS,
        help="Logging level (default: INFO for the server, WARNING for the client).",
    )
    common.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=argparse.SUPPRESS,
        help="Log format (default: text).",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog=NAME,
        description=DESCRIPTION,
        parents=[common],
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"{NAME} {__version__}",
        help="Displays the application version.",
    )

    subparsers = parser.add_subparsers(dest="mode")

    # ─────────────────────────────────────────────────────────────────────
    # SERVER
    # ─────────────────────────────────────────────────────────────────────

    server = subparsers.add_parser("server", parents=[common], help="Run as an HTTP server")
    server.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Specify the port the server will listen on (default: 8080)",
    )
    server.add_argument(
        "--host",
        default=None,
        help="Address to bind to (default: 0.0.0.0)",
    )
    server.add_argument(
        "--normalize-headers",
        action="store_true",
        default=None,
        help="Canonicalize received header names before reporting them.",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CLIENT
    # ─────────────────────────────────────────────────────────────────────

    client = subparsers.add_parser("client", parents=[common], help="Run as an HTTP client")
    client.add_argument("url", help="Target URL; https:// is assumed when no scheme is given")
    client.add_argument(
        "--canonical", "-C",
        action="store_true",
        default=None,
        help="Use the 'canonical' client; by default, the 'raw' client is used.",
    )
    client.add_argument(
        "--method", "-X",
        default="GET",
        help="Specifies the HTTP method to use (e.g., 'GET', 'POST').",
    )
    client.add_argument(
        "--data", "-d",
        default="",
        help="Data to be sent as the body of the request, typically with 'POST'.",
    )
    client.add_argument(
        "--generate-data-size",
        default="",
        help="Data size [B|KB|MB|GB] to be generated and sent as the body of the request.",
    )
    client.add_argument(
        "--http",
        dest="http_version",
        default=None,
        help="Specifies the HTTP version to use (options: 1.0, 1.1, 2).",
    )
    client.add_argument(
        "--tls",
        dest="tls_version",
        default=None,
        help="Specifies the minimum TLS version to use (options: 1.0, 1.1, 1.2, 1.3).",
    )
    client.add_argument(
        "--insecure", "-k",
        action="store_true",
        default=None,
        help="Allow insecure server connections.",
    )
    client.add_argument(
        "--header", "-H",
        dest="headers",
        action="append",
        default=[],
        help="Adds a header to the request, format 'key: value'. Repeatable.",
    )
    client.add_argument(
        "--normalize-headers",
        action="store_true",
        default=None,
        help="Normalize header names format.",
    )
    client.add_argument(
        "--connect-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the TCP connect (default: wait forever).",
    )

    return parser


def _override(config, args: argparse.Namespace, *names: str):
    """Replace config fields with the CLI values that were actually given."""
    changes = {}
    for name in names:
        value = getattr(args, name, None)
        if value is not None:
            changes[name] = value
    return dataclasses.replace(config, **changes)


def _logging_for(config) -> None:
    level = config.log_level.upper()
    # Verbose lines are logged at INFO; make sure they are visible
    if config.verbose and level in ("WARNING", "ERROR", "CRITICAL"):
        level = "INFO"
    setup_logging(level, config.log_format)


def run_server(args: argparse.Namespace) -> int:
    config = _override(
        ServerConfig.from_env(), args,
        "host", "port", "normalize_headers", "verbose", "log_level", "log_format",
    )
    config.validate()
    _logging_for(config)

    DiagnosticServer(config).run()
    return 0


def run_client(args: argparse.Namespace) -> int:
    config = _override(
        ClientConfig.from_env(), args,
        "canonical", "http_version", "tls_version", "insecure", "normalize_headers",
        "connect_timeout", "verbose", "log_level", "log_format",
    )
    _logging_for(config)
    client = create_client(config)

    data = args.data
    if args.generate_data_size:
        data = generate_sample_data(parse_pretty_byte_size(args.generate_data_size))

    url = args.url
    if not url.startswith("http"):
        url = "https://" + url

    response = client.do_request(args.method, url, args.headers, data)
    sys.stdout.buffer.write(response.body + b"\n")
    sys.stdout.flush()
    return 0


def exit_with_error(error: BaseException) -> int:
    print(NAME, __version__, file=sys.stderr)
    print(error, file=sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode is None:
        print(f"No mode specified. Use '{NAME} --help' for more information.")
        parser.print_help()
        return 0

    try:
        if args.mode == "server":
            return run_server(args)
        return run_client(args)
    except (RawhError, OSError, ValueError) as e:
        return exit_with_error(e)


if __name__ == "__main__":
    sys.exit(main())
