"""Safety validation of external tool argument lists.

Every argument list handed to the downloader or the transcoder passes
through validate_arguments() before a process is spawned. Flags must be on
a per-tool allow-list, output paths may not escape their directory and
decryption keys must be well formed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from dlbridge.exceptions import ValidationError
from dlbridge.tools.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

# N_m3u8DL-RE flags accepted from callers
DOWNLOADER_ALLOWED_ARGUMENTS: frozenset[str] = frozenset(
    {
        "save-dir",
        "save-name",
        "tmp-dir",
        "base-url",
        "thread-count",
        "download-retry-count",
        "http-request-timeout",
        "auto-select",
        "sub-only",
        "select-video",
        "select-audio",
        "select-subtitle",
        "drop-video",
        "drop-audio",
        "drop-subtitle",
        "sub-format",
        "binary-merge",
        "concurrent-download",
        "skip-merge",
        "skip-download",
        "del-after-done",
        "no-date-info",
        "no-log",
        "no-ansi-color",
        "log-level",
        "ui-language",
        "write-meta-json",
        "append-url-params",
        "header",
        "H",
        "key",
        "key-text-file",
        "decryption-engine",
        "decryption-binary-path",
        "mp4-real-time-decryption",
        "use-shaka-packager",
        "check-segments-count",
        "max-speed",
        "M",
        "mux-after-done",
        "live-real-time-merge",
        "live-keep-segments",
        "live-record-limit",
        "custom-range",
        "ad-keyword",
    }
)

# ffmpeg flags accepted from callers
TRANSCODER_ALLOWED_ARGUMENTS: frozenset[str] = frozenset(
    {
        "i",
        "y",
        "n",
        "f",
        "c",
        "c:v",
        "c:a",
        "c:s",
        "codec",
        "vcodec",
        "acodec",
        "map",
        "map_metadata",
        "map_chapters",
        "vf",
        "af",
        "filter_complex",
        "preset",
        "crf",
        "b:v",
        "b:a",
        "r",
        "s",
        "ss",
        "t",
        "to",
        "movflags",
        "metadata",
        "disposition",
        "hide_banner",
        "loglevel",
        "v",
        "stats",
        "nostats",
        "progress",
        "threads",
        "bsf:a",
        "bsf:v",
        "shortest",
        "an",
        "vn",
        "sn",
    }
)

# Flags whose value is a filesystem path
PATH_FLAGS: frozenset[str] = frozenset({"save-dir", "save-name", "tmp-dir"})

KEY_FLAG = "key"

_NEGATIVE_NUMBER = re.compile(r"^-\d+(\.\d+)?$")
_HEX_KEY = re.compile(r"^0x[0-9a-fA-F]+$")
_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")
_URL_PREFIXES = ("http://", "https://")


def is_flag(token: str) -> bool:
    """Return True if token is a flag rather than a value.

    Negative numbers ("-1", "-0.5") are values.
    """
    return token.startswith("-") and not _NEGATIVE_NUMBER.match(token)


def flag_name(token: str) -> tuple[str, str | None]:
    """Split a flag token into its bare name and inline value.

    "--save-dir=/tmp" -> ("save-dir", "/tmp"); "-y" -> ("y", None).
    """
    name = token.lstrip("-")
    if "=" in name:
        name, _, inline = name.partition("=")
        return name, inline
    return name, None


def validate_path_value(
    value: str, platform: PlatformInfo, flag: str = "path"
) -> None:
    """Reject path values that could escape the target directory.

    Raises:
        ValidationError: If the value contains a ".." component, or on
            Windows mixes "/" with a drive letter or backslashes.
    """
    components = re.split(r"[\\/]", value)
    if ".." in components:
        raise ValidationError(flag, f"path traversal in {value!r}")

    if platform.is_windows and "/" in value and "://" not in value:
        if _DRIVE_LETTER.match(value) or "\\" in value:
            raise ValidationError(flag, f"mixed path separators in {value!r}")


def validate_key_value(value: str) -> None:
    """Check a decryption key is "KID:KEY" or a 0x-prefixed hex string.

    Raises:
        ValidationError: If the key has neither form.
    """
    if ":" in value or _HEX_KEY.match(value):
        return
    raise ValidationError("--key", "key must be in KID:KEY or 0x<hex> format")


def validate_arguments(
    args: Sequence[str],
    allowed: frozenset[str],
    platform: PlatformInfo | None = None,
) -> None:
    """Validate an argument list against a tool's allow-list.

    A leading http(s) URL is exempt from the allow-list. Validation stops
    at the first failure and never mutates args.

    Args:
        args: Arguments to validate (without the executable).
        allowed: Flag names permitted for the tool.
        platform: Host platform (detected when None).

    Raises:
        ValidationError: On the first disallowed flag, unsafe path or
            malformed key.
    """
    platform = platform or detect_platform()
    start = 1 if args and args[0].startswith(_URL_PREFIXES) else 0

    i = start
    while i < len(args):
        token = args[i]
        if not is_flag(token):
            i += 1
            continue

        name, inline = flag_name(token)
        if name not in allowed:
            logger.warning("Rejected disallowed argument: %s", token)
            raise ValidationError(token, "flag is not allowed")

        if name in PATH_FLAGS or name == KEY_FLAG:
            if inline is not None:
                value = inline
            elif i + 1 < len(args):
                value = args[i + 1]
                i += 1
            else:
                raise ValidationError(token, "missing value")

            if name == KEY_FLAG:
                validate_key_value(value)
            else:
                validate_path_value(value, platform, flag=f"--{name}")
        i += 1


def mask_arguments(args: Sequence[str]) -> list[str]:
    """Return a copy of args with decryption key values replaced by "***"."""
    masked: list[str] = []
    hide_next = False
    for token in args:
        if hide_next:
            masked.append("***")
            hide_next = False
            continue
        if is_flag(token):
            name, inline = flag_name(token)
            if name == KEY_FLAG:
                if inline is None:
                    hide_next = True
                else:
                    token = token.split("=", 1)[0] + "=***"
        masked.append(token)
    return masked
