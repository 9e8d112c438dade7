"""Tests for config/loader.py."""

from pathlib import Path

import pytest

from dlbridge.config.env import EnvReader
from dlbridge.config.loader import (
    DEFAULT_DATA_DIR,
    get_config,
    get_data_dir,
    get_default_config_path,
    get_tool_log_dir,
)
from dlbridge.config.models import BridgeConfig, ToolLogConfig
from dlbridge.config.toml_parser import TomlParseError


class TestPaths:
    def test_default_data_dir(self) -> None:
        assert get_data_dir(EnvReader(env={})) == DEFAULT_DATA_DIR

    def test_data_dir_from_env(self, tmp_path) -> None:
        reader = EnvReader(env={"DLBRIDGE_DATA_DIR": str(tmp_path)})
        assert get_data_dir(reader) == tmp_path

    def test_config_path_in_data_dir(self, tmp_path) -> None:
        reader = EnvReader(env={"DLBRIDGE_DATA_DIR": str(tmp_path)})
        assert get_default_config_path(reader) == tmp_path / "config.toml"

    def test_config_path_env_wins(self, tmp_path) -> None:
        reader = EnvReader(
            env={
                "DLBRIDGE_DATA_DIR": str(tmp_path),
                "DLBRIDGE_CONFIG_PATH": str(tmp_path / "other.toml"),
            }
        )
        assert get_default_config_path(reader) == tmp_path / "other.toml"

    def test_tool_log_dir_explicit(self, tmp_path) -> None:
        config = BridgeConfig(tool_log=ToolLogConfig(directory=tmp_path / "tl"))
        assert get_tool_log_dir(config) == tmp_path / "tl"

    def test_tool_log_dir_under_data_dir(self, tmp_path) -> None:
        assert get_tool_log_dir(BridgeConfig(data_dir=tmp_path)) == tmp_path / "logs"

    def test_tool_log_dir_default(self) -> None:
        assert get_tool_log_dir(BridgeConfig()) == DEFAULT_DATA_DIR / "logs"


class TestGetConfig:
    """Tests for get_config precedence handling."""

    def write_config(self, directory: Path, text: str) -> Path:
        path = directory / "config.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_no_file_uses_defaults(self, tmp_path) -> None:
        reader = EnvReader(env={"DLBRIDGE_DATA_DIR": str(tmp_path)})
        config = get_config(env_reader=reader)
        assert config.data_dir == tmp_path
        assert config.tools.downloader == "N_m3u8DL-RE"

    def test_file_values_loaded(self, tmp_path) -> None:
        self.write_config(
            tmp_path,
            '[subtitle]\nsoftware_preset = "slow"\n[logging]\nlevel = "debug"\n',
        )
        reader = EnvReader(env={"DLBRIDGE_DATA_DIR": str(tmp_path)})
        config = get_config(env_reader=reader)
        assert config.subtitle.software_preset == "slow"
        assert config.logging.level == "debug"

    def test_env_overrides_file(self, tmp_path) -> None:
        path = self.write_config(tmp_path, '[logging]\nlevel = "debug"\n')
        reader = EnvReader(env={"DLBRIDGE_LOG_LEVEL": "error"})
        config = get_config(config_path=path, env_reader=reader)
        assert config.logging.level == "error"

    def test_cli_overrides_env(self, tmp_path) -> None:
        reader = EnvReader(
            env={
                "DLBRIDGE_DATA_DIR": str(tmp_path),
                "DLBRIDGE_HW_ACCEL": "true",
                "DLBRIDGE_BIN_DIR": "/env/bin",
            }
        )
        config = get_config(
            hardware_acceleration=False,
            dev_bin_dir=tmp_path / "bin",
            env_reader=reader,
        )
        assert config.subtitle.hardware_acceleration is False
        assert config.tools.dev_bin_dir == tmp_path / "bin"

    def test_data_dir_from_file(self, tmp_path) -> None:
        path = self.write_config(tmp_path, f'data_dir = "{tmp_path.as_posix()}/d"\n')
        config = get_config(config_path=path, env_reader=EnvReader(env={}))
        assert config.data_dir == tmp_path / "d"

    def test_invalid_file_lenient(self, tmp_path) -> None:
        path = self.write_config(tmp_path, "[broken")
        config = get_config(config_path=path, env_reader=EnvReader(env={}))
        assert config.logging.level == "info"

    def test_invalid_file_strict(self, tmp_path) -> None:
        path = self.write_config(tmp_path, "[broken")
        with pytest.raises(TomlParseError):
            get_config(config_path=path, env_reader=EnvReader(env={}), strict=True)

    def test_invalid_value_raises(self, tmp_path) -> None:
        path = self.write_config(tmp_path, "[subtitle]\nsoftware_crf = 80\n")
        with pytest.raises(ValueError, match="software_crf"):
            get_config(config_path=path, env_reader=EnvReader(env={}))
