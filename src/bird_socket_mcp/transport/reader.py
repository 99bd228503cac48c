"""Read loop that accumulates a reply from the control socket.

The loop works on any socket-like stream exposing ``recv(n)``,
``settimeout(t)`` and ``gettimeout()``. Two termination policies exist:

- confirmed: stop as soon as the accumulator holds a completion line
- unconfirmed: drain until the deadline fires, the peer closes, or the
  size cap is reached

In both modes an expired deadline ends the loop successfully with the
bytes read so far.
"""

from __future__ import annotations

import logging
import socket
import time

from ..protocol.framing import is_complete
from .errors import ReadError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 4096


def read_until_done(
    stream,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    confirm: bool = True,
    deadline: float | None = None,
    max_size: int | None = None,
) -> bytes:
    """Read chunks from *stream* until the reply is done.

    Args:
        stream: Connected socket-like object.
        buffer_size: Maximum bytes requested per ``recv`` call.
        confirm: Wait for a completion line (``True``) or drain the
            stream (``False``).
        deadline: Seconds the whole invocation may wait, armed once on
            entry. ``None`` waits indefinitely.
        max_size: Stop once this many bytes have been accumulated.

    Returns:
        The accumulated bytes. In confirmed mode these end with the chunk
        that completed the reply, unless the deadline or size cap cut the
        read short.

    Raises:
        ValueError: If unconfirmed mode has neither a deadline nor a cap.
        ReadError: If the stream fails, or closes before a completion
            line arrives in confirmed mode.
    """
    if buffer_size < 1:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")
    if not confirm and deadline is None and max_size is None:
        raise ValueError("Unconfirmed reads need a deadline or a size cap")

    accumulated = bytearray()
    expires_at = None
    previous_timeout = None
    if deadline is not None:
        expires_at = time.monotonic() + deadline
        previous_timeout = stream.gettimeout()

    try:
        while True:
            if expires_at is not None:
                remaining = expires_at - time.monotonic()
                if remaining <= 0:
                    logger.debug("Read deadline expired after %d bytes", len(accumulated))
                    break
                stream.settimeout(remaining)

            try:
                chunk = stream.recv(buffer_size)
            except socket.timeout:
                logger.debug("Read deadline expired after %d bytes", len(accumulated))
                break
            except OSError as e:
                raise ReadError(f"Read from control socket failed: {e}", bytes(accumulated)) from e

            if not chunk:
                if confirm:
                    raise ReadError(
                        "Connection closed before the reply completed",
                        bytes(accumulated),
                    )
                logger.debug("Peer closed the stream after %d bytes", len(accumulated))
                break

            # The last, possibly unfinished, line is rescanned with the new chunk.
            scan_from = accumulated.rfind(b"\n") + 1
            accumulated += chunk
            logger.debug("Read %d bytes (%d total)", len(chunk), len(accumulated))

            if confirm and is_complete(accumulated, scan_from):
                break
            if max_size is not None and len(accumulated) >= max_size:
                logger.warning(
                    "Reply truncated at %d bytes (cap %d)", len(accumulated), max_size
                )
                break
    finally:
        if expires_at is not None:
            stream.settimeout(previous_timeout)

    return bytes(accumulated)
