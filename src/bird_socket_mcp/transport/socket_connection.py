"""Unix stream socket connection to the BIRD control socket.

The daemon greets each new connection with a banner, then answers one
command line at a time with a multi-line reply ending in a completion
code.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from pathlib import Path

from ..protocol.framing import encode_command
from .errors import BirdConnectionError, BirdSocketError, NotConnectedError, ReadError, WriteError
from .reader import DEFAULT_BUFFER_SIZE, read_until_done

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_PATH = "/run/bird/bird.ctl"


@dataclass(frozen=True)
class SocketOptions:
    """Per-session settings, fixed when the session is created.

    Attributes:
        buffer_size: Bytes requested per socket read (default 4096).
        read_deadline: Seconds a single reply read may take before it
            returns what it has. ``None`` waits indefinitely.
        max_reply_size: Stop accumulating a reply past this many bytes.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    read_deadline: float | None = None
    max_reply_size: int | None = None

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.read_deadline is not None and self.read_deadline <= 0:
            raise ValueError(f"read_deadline must be positive, got {self.read_deadline}")
        if self.max_reply_size is not None and self.max_reply_size < 1:
            raise ValueError(f"max_reply_size must be positive, got {self.max_reply_size}")


class BirdSocket:
    """Manages one connection to the BIRD control socket.

    Usage::

        with BirdSocket("/run/bird/bird.ctl") as bird:
            reply = bird.query("show protocols")

    or explicitly::

        bird = BirdSocket(path)
        greeting = bird.connect()
        reply = bird.query("show status")
        bird.close()

    A session is not safe for concurrent callers; overlapping queries on
    one connection interleave their replies.
    """

    def __init__(
        self,
        socket_path: str | Path = DEFAULT_SOCKET_PATH,
        options: SocketOptions | None = None,
    ) -> None:
        self._socket_path = Path(socket_path)
        self._options = options or SocketOptions()
        self._sock: socket.socket | None = None

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    @property
    def options(self) -> SocketOptions:
        return self._options

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def __enter__(self) -> BirdSocket:
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def connect(self) -> bytes:
        """Dial the control socket and consume the greeting banner.

        Exactly one read is made for the greeting, bounded by the buffer
        size and not by the reply framing.

        Returns:
            The greeting bytes, verbatim.

        Raises:
            BirdSocketError: If the session is already connected.
            BirdConnectionError: If the socket cannot be dialed.
            ReadError: If the greeting cannot be read.
        """
        if self._sock is not None:
            raise BirdSocketError(f"Already connected to {self._socket_path}")

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(self._socket_path))
        except OSError as e:
            sock.close()
            raise BirdConnectionError(
                f"Cannot connect to BIRD control socket at {self._socket_path}: {e}"
            ) from e

        try:
            sock.settimeout(self._options.read_deadline)
            greeting = sock.recv(self._options.buffer_size)
            sock.settimeout(None)
        except OSError as e:
            sock.close()
            raise ReadError(f"Failed to read greeting from {self._socket_path}: {e}") from e

        if not greeting:
            sock.close()
            raise ReadError(f"Connection to {self._socket_path} closed before the greeting")

        self._sock = sock
        logger.info("Connected to %s: %r", self._socket_path, greeting.strip())
        return greeting

    def query(self, command: str, confirm: bool = True) -> bytes:
        """Send a command and read its reply.

        Args:
            command: One protocol command, e.g. ``"show status"``.
            confirm: Wait for the completion line (default). ``False``
                drains the socket until the deadline or size cap instead.

        Returns:
            Every reply line read, up to and including the completion
            line's code. The rest of that line may still be unread when
            it arrives in a later chunk, and is then returned at the head
            of the next reply on this session.

        Raises:
            NotConnectedError: If :meth:`connect` has not succeeded.
            ValueError: If *command* spans several lines, or an unconfirmed
                read has neither a deadline nor a size cap.
            WriteError: If the command cannot be sent.
            ReadError: If the reply cannot be read.
        """
        if self._sock is None:
            raise NotConnectedError(f"Not connected to {self._socket_path}")
        if not confirm and self._options.read_deadline is None and self._options.max_reply_size is None:
            raise ValueError("Unconfirmed reads need a read_deadline or max_reply_size")

        data = encode_command(command)
        logger.debug("Sending %r", data)
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise WriteError(f"Failed to send {command!r} to {self._socket_path}: {e}") from e

        return read_until_done(
            self._sock,
            buffer_size=self._options.buffer_size,
            confirm=confirm,
            deadline=self._options.read_deadline,
            max_size=self._options.max_reply_size,
        )

    def close(self) -> None:
        """Close the connection. Safe to call when not connected."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing %s: %s", self._socket_path, e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s", self._socket_path)


def query(
    socket_path: str | Path,
    command: str,
    options: SocketOptions | None = None,
) -> bytes:
    """Connect, send one command, close, and return the reply bytes."""
    bird = BirdSocket(socket_path, options)
    bird.connect()
    try:
        return bird.query(command)
    finally:
        bird.close()
