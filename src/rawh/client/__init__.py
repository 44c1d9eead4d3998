"""
Clients: one interface, two ways of putting a request on the wire.
"""

from ..config import ClientConfig
from .base import Client, ClientResponse
from .canonical import CanonicalClient
from .raw import RawClient, RawRequestWriter, RawResponseReader


def create_client(config: ClientConfig) -> Client:
    """
    Build the client variant selected by ``config.canonical``.

    Raises:
        UnsupportedVersionError: Unknown version name, or HTTP/2 with the
                                 canonical client.
    """
    config.validate()
    if config.canonical:
        return CanonicalClient.from_config(config)
    return RawClient.from_config(config)


__all__ = [
    "Client",
    "ClientResponse",
    "CanonicalClient",
    "RawClient",
    "RawRequestWriter",
    "RawResponseReader",
    "create_client",
]
