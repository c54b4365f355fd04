"""
Connection details derived from the cluster's SRV connection string.
"""

from urllib.parse import urlsplit

from aws_cdk import Fn, Token

SRV_SCHEME = "mongodb+srv"


class ConnectionStringFormatError(ValueError):
    """Raised when a connection string is not of the form mongodb+srv://<host>/..."""


def parse_srv_hostname(uri: str) -> str:
    """
    Extract the host from a `mongodb+srv://` connection string.

    Args:
        uri: Connection string such as 'mongodb+srv://cluster0.abcde.mongodb.net/'.

    Returns:
        str: The host name, without credentials or port.

    Raises:
        ConnectionStringFormatError: If the scheme is wrong or no host is present.
    """
    if not uri:
        raise ConnectionStringFormatError("Connection string is empty")

    parts = urlsplit(uri)
    if parts.scheme != SRV_SCHEME:
        raise ConnectionStringFormatError(
            f"Expected a {SRV_SCHEME}:// connection string, got scheme '{parts.scheme}'"
        )
    if not parts.hostname:
        raise ConnectionStringFormatError("Connection string has no host")

    # urlsplit lowercases .hostname; keep the case as written
    host = parts.netloc.rpartition("@")[2]
    return host.split(":", 1)[0]


def connection_hostname(uri: str) -> str:
    """
    Host name for a connection string that may still be a deploy-time token.

    Unresolved tokens are split by CloudFormation (third '/'-separated field);
    literal strings go through `parse_srv_hostname`.
    """
    if Token.is_unresolved(uri):
        return Fn.select(2, Fn.split("/", uri))
    return parse_srv_hostname(uri)
