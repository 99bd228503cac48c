"""Reply framing and command encoding for the BIRD control protocol.

Requests are a single line of text. Replies are sequences of lines::

    +--------+-----------+---------------------------+
    |  Code  | Separator |          Message          |
    | 4 digs | ' ' / '-' |  free-form text to \\n     |
    +--------+-----------+---------------------------+

- Code: four decimal digits; meaning depends on the code
- Separator: ``' '`` on the last line of a reply, ``'-'`` when more follow
- Codes starting with ``0`` mean "action successfully completed"

Only the first digit of each code is inspected here. A completion code on
any line of the buffer ends the reply, not just on the trailing line.
"""

from __future__ import annotations

import re

REPLY_CODE_PATTERN = re.compile(rb"^(\d{4})", re.MULTILINE)
COMPLETION_PREFIX = b"0"


def reply_codes(buffer: bytes) -> list[bytes]:
    """Return every 4-digit code found at the start of a line in *buffer*."""
    return REPLY_CODE_PATTERN.findall(buffer)


def is_complete(buffer: bytes, start: int = 0) -> bool:
    """Check whether *buffer* holds a completion line.

    Safe to call on partial buffers; a code split across two reads is
    simply not matched until the rest of it arrives.

    Args:
        buffer: Bytes accumulated from the socket so far.
        start: Offset to scan from. Must be 0 or just past a newline so
            that line-start codes there still match.

    Returns:
        ``True`` if any line starts with a 4-digit code whose first digit
        is ``0``.
    """
    for match in REPLY_CODE_PATTERN.finditer(buffer, start):
        if match.group(1).startswith(COMPLETION_PREFIX):
            return True
    return False


def encode_command(command: str) -> bytes:
    """Encode a command as one newline-terminated request line.

    Leading and trailing newlines are stripped and exactly one ``\\n`` is
    appended.

    Raises:
        ValueError: If the command contains an embedded newline.
    """
    line = command.strip("\n")
    if "\n" in line:
        raise ValueError(f"Command must be a single line, got {command!r}")
    return (line + "\n").encode("utf-8")
