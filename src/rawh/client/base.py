"""
Client interface shared by the raw and the canonical client.

Both variants do the same job, "send this request, give me the response",
and differ only in who frames the bytes:

    RawClient         rawh writes every byte itself (exact order and casing)
    CanonicalClient   http.client frames the request (library behaviour)

The CLI picks one from ClientConfig.canonical; callers only see Client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence, Union


Body = Union[str, bytes]


def encode_body(data: Body) -> bytes:
    """Request bodies given as text are sent as UTF-8."""
    if isinstance(data, bytes):
        return data
    return data.encode("utf-8")


@dataclass
class ClientResponse:
    """
    What came back from the server.

    Attributes:
        status_line: The status line as received, e.g. "HTTP/1.1 200 OK".
        header_lines: Raw header lines in arrival order, unparsed.
        body: Every byte after the header section.
    """

    status_line: str
    header_lines: List[str] = field(default_factory=list)
    body: bytes = b""

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, undecodable bytes replaced."""
        return self.body.decode("utf-8", errors="replace")


class Client(ABC):
    """Sends one request per call and returns the response."""

    @abstractmethod
    def do_request(
        self,
        method: str,
        url: str,
        header_lines: Sequence[str] = (),
        data: Body = b"",
    ) -> ClientResponse:
        """
        Send ``method url`` with the given header lines and body.

        Args:
            method: Request method, sent as given.
            url: Absolute http:// or https:// URL.
            header_lines: "Name: value" lines in the order to send them.
            data: Request body.

        Raises:
            RequestError: The request could not be built, connected or sent.
            ResponseError: Reading the response failed.
        """
