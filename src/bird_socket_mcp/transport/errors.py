"""Error kinds raised by the control socket client.

Each kind names the phase that failed (connect, write, read) so callers
can pick their own recovery policy. A read deadline expiring is not an
error and never appears here.
"""

from __future__ import annotations


class BirdSocketError(Exception):
    """Base class for all control socket errors."""


class BirdConnectionError(BirdSocketError, ConnectionError):
    """The control socket could not be dialed."""


class NotConnectedError(BirdSocketError):
    """An operation needed an open connection and there was none."""


class WriteError(BirdSocketError):
    """A command could not be sent to the daemon."""


class ReadError(BirdSocketError):
    """A read failed for a reason other than the deadline expiring.

    ``partial`` holds whatever had been accumulated before the failure.
    It is kept for diagnostics only and must not be treated as a reply.
    """

    def __init__(self, message: str, partial: bytes = b"") -> None:
        super().__init__(message)
        self.partial = partial
