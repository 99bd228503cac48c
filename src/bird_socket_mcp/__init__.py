"""Client and MCP server for the BIRD routing daemon control socket."""

from .transport.errors import (
    BirdSocketError,
    BirdConnectionError,
    NotConnectedError,
    WriteError,
    ReadError,
)
from .transport.socket_connection import (
    DEFAULT_SOCKET_PATH,
    BirdSocket,
    SocketOptions,
    query,
)

__version__ = "0.1.0"
