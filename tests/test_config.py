"""Tests for configuration management."""

from pathlib import Path

import pytest

from ormimu_sync.config import Config, get_config

ENV_VARS = [
    "ORMIMU_SYNC_FFMPEG_PATH",
    "ORMIMU_SYNC_BITRATE_KBPS",
    "ORMIMU_SYNC_TRANSCODE_TIMEOUT",
    "ORMIMU_SYNC_MANIFEST_SAVE_INTERVAL",
    "ORMIMU_SYNC_MAX_CONSECUTIVE_WRITE_FAILURES",
    "ORMIMU_SYNC_LIBRARY_FILE",
    "ORMIMU_SYNC_LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all engine variables from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:
    """Test configuration management."""

    def test_defaults(self, clean_env):
        """Test that config can be created with defaults."""
        config = Config()
        assert config.ffmpeg_path is None
        assert config.bitrate_kbps == 256
        assert config.transcode_timeout == 300
        assert config.manifest_save_interval == 25
        assert config.max_consecutive_write_failures == 3
        assert config.library_file == Path.home() / ".ormimu" / "library.json"
        assert config.log_file is None

    def test_environment_overrides(self, clean_env, tmp_path):
        """Test values read from the environment."""
        clean_env.setenv("ORMIMU_SYNC_FFMPEG_PATH", "/opt/ffmpeg")
        clean_env.setenv("ORMIMU_SYNC_BITRATE_KBPS", "320")
        clean_env.setenv("ORMIMU_SYNC_TRANSCODE_TIMEOUT", "12.5")
        clean_env.setenv("ORMIMU_SYNC_MANIFEST_SAVE_INTERVAL", "5")
        clean_env.setenv("ORMIMU_SYNC_MAX_CONSECUTIVE_WRITE_FAILURES", "10")
        clean_env.setenv("ORMIMU_SYNC_LIBRARY_FILE", str(tmp_path / "lib.json"))
        clean_env.setenv("ORMIMU_SYNC_LOG_FILE", str(tmp_path / "sync.log"))

        config = get_config()

        assert config.ffmpeg_path == "/opt/ffmpeg"
        assert config.bitrate_kbps == 320
        assert config.transcode_timeout == 12.5
        assert config.manifest_save_interval == 5
        assert config.max_consecutive_write_failures == 10
        assert config.library_file == tmp_path / "lib.json"
        assert config.log_file == tmp_path / "sync.log"

    def test_empty_ffmpeg_path_means_lookup(self, clean_env):
        """Test that an empty value falls back to PATH lookup."""
        clean_env.setenv("ORMIMU_SYNC_FFMPEG_PATH", "")
        assert Config().ffmpeg_path is None
