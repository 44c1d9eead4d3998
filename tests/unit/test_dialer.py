"""
Unit tests for URL targets and the dialer.
"""

import socket
import ssl

import pytest

from rawh.core.dialer import ConnectionDialer, create_tls_context, parse_target
from rawh.errors import RequestError


class TestParseTarget:
    """Tests for parse_target()."""

    def test_http_with_port(self):
        target = parse_target("http://localhost:8080/x?rawh-sleep-duration=10ms")

        assert target.scheme == "http"
        assert target.host == "localhost"
        assert target.port == 8080
        assert target.authority == "localhost:8080"
        assert target.request_target == "/x?rawh-sleep-duration=10ms"
        assert not target.is_tls

    def test_default_ports(self):
        assert parse_target("http://example.com").port == 80
        assert parse_target("https://example.com").port == 443

    def test_empty_path_becomes_slash(self):
        target = parse_target("https://example.com")
        assert target.request_target == "/"
        assert target.authority == "example.com"
        assert target.is_tls

    def test_userinfo_dropped_from_authority(self):
        target = parse_target("http://user:pw@example.com:81/")
        assert target.authority == "example.com:81"
        assert target.host == "example.com"

    def test_ipv6(self):
        target = parse_target("http://[::1]:8080/")
        assert target.host == "::1"
        assert target.authority == "[::1]:8080"

    @pytest.mark.parametrize("url", ["http://", "/just/a/path", "http://host:notaport/"])
    def test_invalid(self, url):
        with pytest.raises(RequestError):
            parse_target(url)


class TestTlsContext:

    def test_minimum_version(self):
        context = create_tls_context(minimum_version=ssl.TLSVersion.TLSv1_3)
        assert context.minimum_version == ssl.TLSVersion.TLSv1_3
        assert context.verify_mode == ssl.CERT_REQUIRED

    def test_insecure(self):
        context = create_tls_context(insecure=True)
        assert context.check_hostname is False
        assert context.verify_mode == ssl.CERT_NONE


class TestConnectionDialer:
    """Tests for ConnectionDialer.dial()."""

    def test_dial_plain(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
            listener.bind(("127.0.0.1", 0))
            listener.listen(1)
            port = listener.getsockname()[1]

            conn = ConnectionDialer().dial(parse_target(f"http://127.0.0.1:{port}/"))
            accepted, _ = listener.accept()
            with accepted, conn:
                conn.send_line("ping")
                assert accepted.recv(1024) == b"ping\r\n"

    def test_connection_refused(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]
        # Nothing listens on the port now

        with pytest.raises(RequestError, match="error establishing connection"):
            ConnectionDialer().dial(parse_target(f"http://127.0.0.1:{port}/"))
