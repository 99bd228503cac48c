"""Protocol layer: reply framing and command encoding."""

from .framing import encode_command, is_complete, reply_codes
