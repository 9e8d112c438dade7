"""FFmpeg stderr progress tokens.

FFmpeg reports progress on stderr in lines of the form::

    frame= 1234 fps= 30 q=28.0 size= 2048kB time=00:01:23.45 bitrate=5000kbits/s speed=2.0x

Subtitle burning forwards the raw ``time=`` token of each such line.
"""

import re

TIME_TOKEN_PATTERN = re.compile(r"time=\s*-?\d+:\d+:\d+(?:\.\d+)?")


def extract_time_token(line: str) -> str | None:
    """Return the raw "time=..." token of a stderr line, if present."""
    match = TIME_TOKEN_PATTERN.search(line)
    return match.group(0) if match else None
