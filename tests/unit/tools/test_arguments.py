"""Tests for tools/arguments.py - argument safety validation."""

import pytest

from dlbridge.exceptions import ValidationError
from dlbridge.tools.arguments import (
    DOWNLOADER_ALLOWED_ARGUMENTS,
    TRANSCODER_ALLOWED_ARGUMENTS,
    flag_name,
    is_flag,
    mask_arguments,
    validate_arguments,
    validate_key_value,
    validate_path_value,
)

URL = "https://example.com/master.m3u8"


class TestFlagParsing:
    """Tests for is_flag and flag_name."""

    def test_double_dash_is_flag(self) -> None:
        assert is_flag("--save-dir")

    def test_single_dash_is_flag(self) -> None:
        assert is_flag("-y")

    def test_negative_numbers_are_values(self) -> None:
        assert not is_flag("-1")
        assert not is_flag("-0.5")

    def test_plain_value_is_not_flag(self) -> None:
        assert not is_flag("out.mp4")

    def test_flag_name_strips_dashes(self) -> None:
        assert flag_name("--thread-count") == ("thread-count", None)
        assert flag_name("-c:v") == ("c:v", None)

    def test_flag_name_splits_inline_value(self) -> None:
        assert flag_name("--save-dir=/tmp/out") == ("save-dir", "/tmp/out")


class TestValidateArguments:
    """Tests for validate_arguments with the downloader allow-list."""

    def test_typical_download_arguments_pass(self, linux_platform) -> None:
        args = [
            URL,
            "--save-dir",
            "/home/user/Downloads",
            "--save-name",
            "episode-01",
            "--thread-count",
            "16",
            "--auto-select",
            "--no-ansi-color",
        ]
        validate_arguments(args, DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform)

    def test_disallowed_flag_rejected(self, linux_platform) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_arguments(
                [URL, "--exec", "rm -rf /"], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
            )
        assert exc_info.value.argument == "--exec"

    def test_disallowed_inline_flag_rejected(self, linux_platform) -> None:
        with pytest.raises(ValidationError):
            validate_arguments(
                [URL, "--evil=1"], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
            )

    def test_leading_url_is_exempt(self, linux_platform) -> None:
        validate_arguments([URL], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform)

    def test_negative_number_value_accepted(self, linux_platform) -> None:
        validate_arguments(
            [URL, "--live-record-limit", "-1"],
            DOWNLOADER_ALLOWED_ARGUMENTS,
            linux_platform,
        )

    def test_empty_argument_list_passes(self, linux_platform) -> None:
        validate_arguments([], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform)

    def test_arguments_not_mutated(self, linux_platform) -> None:
        args = [URL, "--save-dir", "out"]
        before = list(args)
        validate_arguments(args, DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform)
        assert args == before

    def test_first_failure_wins(self, linux_platform) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_arguments(
                [URL, "--bogus", "--save-dir", "../x"],
                DOWNLOADER_ALLOWED_ARGUMENTS,
                linux_platform,
            )
        assert exc_info.value.argument == "--bogus"


class TestPathFlags:
    """Tests for --save-dir / --save-name / --tmp-dir values."""

    @pytest.mark.parametrize("flag", ["--save-dir", "--save-name", "--tmp-dir"])
    def test_traversal_rejected(self, flag, linux_platform) -> None:
        with pytest.raises(ValidationError, match="traversal"):
            validate_arguments(
                [URL, flag, "../../etc"], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
            )

    def test_traversal_in_inline_value_rejected(self, linux_platform) -> None:
        with pytest.raises(ValidationError):
            validate_arguments(
                [URL, "--save-dir=out/../../x"],
                DOWNLOADER_ALLOWED_ARGUMENTS,
                linux_platform,
            )

    def test_dots_inside_name_allowed(self, linux_platform) -> None:
        validate_arguments(
            [URL, "--save-name", "show..final"],
            DOWNLOADER_ALLOWED_ARGUMENTS,
            linux_platform,
        )

    def test_missing_value_rejected(self, linux_platform) -> None:
        with pytest.raises(ValidationError, match="missing value"):
            validate_arguments(
                [URL, "--save-dir"], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
            )

    def test_windows_mixed_separators_rejected(self, windows_platform) -> None:
        with pytest.raises(ValidationError, match="mixed"):
            validate_path_value("C:/Users\\me", windows_platform)

    def test_windows_drive_with_forward_slash_rejected(self, windows_platform) -> None:
        with pytest.raises(ValidationError):
            validate_path_value("C:/Users/me", windows_platform)

    def test_windows_backslash_path_allowed(self, windows_platform) -> None:
        validate_path_value("C:\\Users\\me\\Videos", windows_platform)

    def test_windows_url_value_allowed(self, windows_platform) -> None:
        validate_path_value("https://cdn.example.com/a\\b", windows_platform)

    def test_forward_slashes_fine_on_linux(self, linux_platform) -> None:
        validate_path_value("C:/not/special/here", linux_platform)


class TestKeyValidation:
    """Tests for --key values."""

    @pytest.mark.parametrize("key", ["abcd:1234", "0xFF00", "0xabc"])
    def test_valid_keys(self, key, linux_platform) -> None:
        validate_arguments(
            [URL, "--key", key], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
        )

    @pytest.mark.parametrize("key", ["abcd1234", "0x", "0xZZ", "FF00"])
    def test_invalid_keys(self, key) -> None:
        with pytest.raises(ValidationError, match="KID:KEY"):
            validate_key_value(key)

    def test_invalid_key_in_argument_list(self, linux_platform) -> None:
        with pytest.raises(ValidationError):
            validate_arguments(
                [URL, "--key", "nocolon"], DOWNLOADER_ALLOWED_ARGUMENTS, linux_platform
            )


class TestTranscoderArguments:
    """Tests for the ffmpeg allow-list."""

    def test_merge_arguments_pass(self, linux_platform) -> None:
        args = ["-y", "-i", "video.mp4", "-i", "audio.m4a", "-c", "copy", "out.mp4"]
        validate_arguments(args, TRANSCODER_ALLOWED_ARGUMENTS, linux_platform)

    def test_stream_specifier_flags_pass(self, linux_platform) -> None:
        args = ["-i", "in.mp4", "-c:v", "libx264", "-c:a", "aac", "out.mp4"]
        validate_arguments(args, TRANSCODER_ALLOWED_ARGUMENTS, linux_platform)

    def test_downloader_flag_rejected_for_transcoder(self, linux_platform) -> None:
        with pytest.raises(ValidationError):
            validate_arguments(
                ["--save-dir", "x"], TRANSCODER_ALLOWED_ARGUMENTS, linux_platform
            )


class TestMaskArguments:
    """Tests for mask_arguments."""

    def test_separate_key_value_masked(self) -> None:
        assert mask_arguments([URL, "--key", "kid:secret"]) == [URL, "--key", "***"]

    def test_inline_key_value_masked(self) -> None:
        assert mask_arguments(["--key=kid:secret"]) == ["--key=***"]

    def test_other_arguments_untouched(self) -> None:
        args = [URL, "--save-dir", "out"]
        assert mask_arguments(args) == args
