"""Tests for settings loading."""

import pytest
from pathlib import Path

from filesync.exceptions import ConfigError
from filesync.settings import load_config, read_settings


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "filesync.env"
    path.write_text(
        "# watched directory\n"
        f"target_path={tmp_path}\n"
        "upload_url=http://files.test/upload\n"
        "upload_file_extensions=xls,XLSX,csv\n"
        "RECURSIVE=false\n"
    )
    return path


class TestReadSettings:
    """Tests for read_settings."""

    def test_reads_file(self, settings_file, tmp_path):
        raw = read_settings(settings_file, environ={})
        assert raw["target_path"] == str(tmp_path)
        assert raw["upload_url"] == "http://files.test/upload"
        assert raw["recursive"] == "false"

    def test_environment_override(self, settings_file):
        raw = read_settings(settings_file, environ={"FILESYNC_UPLOAD_URL": "http://other/upload"})
        assert raw["upload_url"] == "http://other/upload"

    def test_unrelated_environment_ignored(self, settings_file):
        raw = read_settings(settings_file, environ={"UPLOAD_URL": "http://other/upload"})
        assert raw["upload_url"] == "http://files.test/upload"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            read_settings(tmp_path / "missing.env", environ={})


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, settings_file, tmp_path):
        config = load_config(settings_file, environ={})

        assert config.target_path == Path(str(tmp_path))
        assert config.upload_file_extensions == ["xls", "xlsx", "csv"]
        assert config.recursive is False
        assert config.debounce_ms == 2000

    def test_env_supplies_missing_key(self, tmp_path):
        path = tmp_path / "partial.env"
        path.write_text(f"target_path={tmp_path}\n")

        config = load_config(path, environ={"FILESYNC_UPLOAD_URL": "http://env/upload"})

        assert config.upload_url == "http://env/upload"

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "partial.env"
        path.write_text(f"target_path={tmp_path}\n")

        with pytest.raises(ConfigError, match="upload_url"):
            load_config(path, environ={})

    def test_invalid_value(self, settings_file):
        with pytest.raises(ConfigError):
            load_config(settings_file, environ={"FILESYNC_UPLOAD_WORKERS": "0"})
