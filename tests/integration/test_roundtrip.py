"""
End-to-end tests: real sockets between the clients and the diagnostic server.
"""

import hashlib
import logging

import pytest

from rawh.__main__ import main
from rawh.client import CanonicalClient, RawClient
from rawh.errors import RequestError, UnsupportedVersionError
from rawh.http.versions import parse_http_version_name
from rawh.util.sizes import generate_sample_data


def body_lines(response) -> list:
    return response.text.split("\r\n")


@pytest.fixture
def raw_client() -> RawClient:
    return RawClient(http_version=parse_http_version_name("1.1"))


class TestRawClientAgainstServer:
    """The raw client talking to the diagnostic server."""

    def test_get_with_query_delay(self, diagnostic_server, raw_client):
        response = raw_client.do_request(
            "GET", f"{diagnostic_server.url}/x?rawh-sleep-duration=10ms",
        )
        lines = body_lines(response)

        assert response.status_line == "HTTP/1.1 200 OK"
        assert response.header_lines == ["Content-Type: text/plain"]
        assert "request-start-line: GET /x?rawh-sleep-duration=10ms HTTP/1.1" in lines
        assert "request-sleep-duration: 10ms" in lines
        assert "request-body-size: 0 B" in lines
        assert "request-body-hash: empty" in lines

    def test_header_order_and_casing_reported(self, diagnostic_server, raw_client):
        response = raw_client.do_request(
            "GET", diagnostic_server.url,
            ["x-lower: 1", "X-Upper: 2", "x-lower: 3"],
        )
        lines = body_lines(response)
        start = lines.index("request-header-lines:")

        assert lines[start + 1:start + 6] == [
            f"- Host: 127.0.0.1:{diagnostic_server.port}",
            "- x-lower: 1",
            "- X-Upper: 2",
            "- x-lower: 3",
            "- Content-Length: 0",
        ]

    def test_generated_post_body(self, diagnostic_server, raw_client):
        data = generate_sample_data(1024)
        response = raw_client.do_request("POST", f"{diagnostic_server.url}/upload", data=data)
        lines = body_lines(response)

        expected = "MD5:" + hashlib.md5(data.encode()).hexdigest()
        assert "request-body-size: 1.00 KB" in lines
        assert f"request-body-hash: {expected}" in lines

    def test_header_delay_wins(self, diagnostic_server, raw_client):
        response = raw_client.do_request(
            "GET", f"{diagnostic_server.url}/?rawh-sleep-duration=2s",
            ["Rawh-Sleep-Duration: 20ms"],
        )
        assert "request-sleep-duration: 20ms" in body_lines(response)

    def test_echo_header(self, diagnostic_server, raw_client):
        response = raw_client.do_request(
            "GET", diagnostic_server.url, ["Rawh-Echo: X-One X-Two"],
        )
        assert response.header_lines == [
            "Content-Type: text/plain",
            "X-One: X-One",
            "X-Two: X-Two",
        ]

    def test_malformed_custom_header_rejected(self, diagnostic_server, raw_client):
        with pytest.raises(RequestError, match="custom headers"):
            raw_client.do_request("GET", diagnostic_server.url, ["no colon"])

    def test_arbitrary_version_string(self, diagnostic_server):
        client = RawClient(http_version=parse_http_version_name("2"))
        response = client.do_request("GET", diagnostic_server.url)
        assert "request-start-line: GET / HTTP/2.0" in body_lines(response)


class TestRawBytesAgainstServer:
    """Hand-written byte streams the clients would never produce."""

    def test_malformed_header_skipped(self, diagnostic_server):
        response = diagnostic_server.send_raw(
            b"GET / HTTP/1.1\r\n"
            b"X-Before: 1\r\n"
            b"this line has no colon\r\n"
            b"X-After: 2\r\n"
            b"\r\n"
        )
        text = response.decode()

        assert "- X-Before: 1\r\n- X-After: 2\r\n" in text
        assert "this line has no colon" not in text

    def test_short_body(self, diagnostic_server, caplog):
        with caplog.at_level(logging.WARNING, logger="rawh"):
            response = diagnostic_server.send_raw(
                b"POST / HTTP/1.1\r\n"
                b"Content-Length: 50\r\n"
                b"\r\n"
                b"0123456789"
            )
        text = response.decode()

        assert text.startswith("HTTP/1.1 200 OK\r\n")
        assert "request-body-size: 0 B\r\n" in text
        assert "request-body-hash: empty\r\n" in text
        assert "read body error" in caplog.text

    def test_oversized_content_length_answered(self, diagnostic_server, caplog):
        with caplog.at_level(logging.WARNING, logger="rawh"):
            response = diagnostic_server.send_raw(
                b"POST /x HTTP/1.1\r\n"
                b"Content-Length: 99999999999999999999\r\n"
                b"\r\n"
                b"abc"
            )
        text = response.decode()

        assert text.startswith("HTTP/1.1 200 OK\r\n")
        assert "request-body-size: 0 B\r\n" in text
        assert "out of range" in caplog.text

    def test_out_of_range_sleep_duration_answered(self, diagnostic_server):
        response = diagnostic_server.send_raw(
            b"GET /x?rawh-sleep-duration=99999999999999h HTTP/1.1\r\n"
            b"Rawh-Sleep-Duration: 99999999999999h\r\n"
            b"\r\n"
        )
        text = response.decode()

        assert text.startswith("HTTP/1.1 200 OK\r\n")
        assert "request-sleep-duration: 0s\r\n" in text

    def test_garbage_start_line(self, diagnostic_server):
        response = diagnostic_server.send_raw(b"HELLO\r\n\r\n")
        assert b"request-start-line: HELLO\r\n" in response

    def test_empty_connection_still_answered(self, diagnostic_server):
        response = diagnostic_server.send_raw(b"")
        assert response.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"request-start-line:\r\n" in response

    def test_server_survives_many_connections(self, diagnostic_server):
        for _ in range(5):
            diagnostic_server.send_raw(b"GET / HTTP/1.1\r\n\r\n")
        response = diagnostic_server.send_raw(b"GET /last HTTP/1.1\r\n\r\n")
        assert b"request-start-line: GET /last HTTP/1.1" in response


class TestCanonicalClientAgainstServer:
    """http.client framing compared with the raw client."""

    def test_headers_canonicalized(self, diagnostic_server):
        client = CanonicalClient(http_version=parse_http_version_name("1.1"))
        response = client.do_request(
            "POST", f"{diagnostic_server.url}/c", ["x-lower: 1", "Host: ignored"], "abc",
        )
        lines = body_lines(response)

        assert response.status_line == "HTTP/1.1 200 OK"
        assert "request-start-line: POST /c HTTP/1.1" in lines
        assert f"- Host: 127.0.0.1:{diagnostic_server.port}" in lines
        assert "- X-Lower: 1" in lines
        assert "- Host: ignored" not in lines
        assert "request-body-size: 3.00 B" in lines

    def test_http10_request_line(self, diagnostic_server):
        client = CanonicalClient(http_version=parse_http_version_name("1.0"))
        response = client.do_request("GET", diagnostic_server.url)
        assert "request-start-line: GET / HTTP/1.0" in body_lines(response)

    def test_http11_after_http10(self, diagnostic_server):
        """Choosing HTTP/1.0 for one client leaves http.client defaults alone."""
        CanonicalClient(http_version=parse_http_version_name("1.0")).do_request("GET", diagnostic_server.url)
        response = CanonicalClient(http_version=parse_http_version_name("1.1")).do_request(
            "GET", diagnostic_server.url,
        )
        assert "request-start-line: GET / HTTP/1.1" in body_lines(response)

    def test_http2_unsupported(self):
        with pytest.raises(UnsupportedVersionError):
            CanonicalClient(http_version=parse_http_version_name("2"))


class TestCli:
    """The command line client against a running server."""

    @pytest.fixture(autouse=True)
    def _keep_logging(self, monkeypatch):
        monkeypatch.setattr("rawh.__main__.setup_logging", lambda level, fmt: None)

    def test_client_prints_body(self, diagnostic_server, capsys):
        status = main([
            "client", f"{diagnostic_server.url}/cli",
            "-X", "POST", "--generate-data-size", "1KB", "-H", "x-cli: yes",
        ])
        out = capsys.readouterr().out

        assert status == 0
        assert "request-start-line: POST /cli HTTP/1.1" in out
        assert "- x-cli: yes" in out
        assert "request-body-size: 1.00 KB" in out

    def test_canonical_flag(self, diagnostic_server, capsys):
        status = main(["client", "-C", diagnostic_server.url, "-H", "x-cli: yes"])
        assert status == 0
        assert "- X-Cli: yes" in capsys.readouterr().out

    def test_error_exit_status(self, capsys):
        status = main(["client", "http://127.0.0.1:8080/", "--http", "9"])
        captured = capsys.readouterr()

        assert status == 1
        assert captured.err.startswith("rawh 1.0.0")
        assert "unsupported HTTP version" in captured.err

    def test_no_mode_prints_help(self, capsys):
        assert main([]) == 0
        assert "No mode specified" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "rawh 1.0.0" in capsys.readouterr().out
