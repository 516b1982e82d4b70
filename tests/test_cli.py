"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from ormimu_sync.cli.main import cli
from ormimu_sync.core.device_config import DeviceConfigStore
from ormimu_sync.core.manifest import ManifestStore
from ormimu_sync.models.models import LayoutMode, TargetFormat

pytestmark = pytest.mark.usefixtures("restore_root_logger")


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def device_root(tmp_path):
    """Create an empty device root."""
    root = tmp_path / "PLAYER"
    root.mkdir()
    return root


@pytest.fixture
def library_file(tmp_path):
    """Write a library export with mp3 sources on disk."""
    music = tmp_path / "music"
    music.mkdir()
    tracks = []
    for i in range(1, 4):
        source = music / f"{i}.mp3"
        source.write_bytes(f"audio {i}".encode())
        tracks.append(
            {
                "id": f"t{i}",
                "title": f"Song {i}",
                "artist": "Band",
                "album": "LP",
                "source_path": str(source),
                "duration_seconds": 60 * i,
                "format_extension": "mp3",
                "track_number": i,
            }
        )
    tracks.append(
        {"id": "gone", "title": "Gone", "source_path": str(music / "gone.mp3")}
    )
    library = {
        "tracks": tracks,
        "playlists": [
            {"id": "p1", "name": "Mix", "track_ids": ["t1", "t2", "t3"]},
            {"id": "p2", "name": "Broken", "track_ids": ["t1", "gone"]},
        ],
    }
    path = tmp_path / "library.json"
    path.write_text(json.dumps(library), encoding="utf-8")
    return path


class TestDeviceCommands:
    """Test the device command group."""

    def test_init(self, runner, device_root):
        """Test associating a device."""
        result = runner.invoke(
            cli,
            [
                "device",
                "init",
                str(device_root),
                "--alias",
                "Car",
                "--format",
                "m4a",
                "--layout",
                "flat",
                "--randomize",
            ],
        )
        assert result.exit_code == 0, result.output
        config = DeviceConfigStore(device_root).load()
        assert config.alias == "Car"
        assert config.target_format == TargetFormat.M4A
        assert config.layout_mode == LayoutMode.FLAT
        assert config.randomize_on_flat is True

    def test_init_twice_fails(self, runner, device_root):
        """Test that init refuses to overwrite a configuration."""
        runner.invoke(cli, ["device", "init", str(device_root)])
        result = runner.invoke(cli, ["device", "init", str(device_root)])
        assert result.exit_code == 1
        assert "already configured" in result.output

    def test_init_defaults_alias_to_folder(self, runner, device_root):
        """Test default alias."""
        runner.invoke(cli, ["device", "init", str(device_root)])
        assert DeviceConfigStore(device_root).load().alias == "PLAYER"

    def test_set_changes_only_given_options(self, runner, device_root):
        """Test partial updates."""
        runner.invoke(cli, ["device", "init", str(device_root), "--alias", "Car"])
        result = runner.invoke(
            cli, ["device", "set", str(device_root), "--prune-orphans", "--bitrate", "192"]
        )
        assert result.exit_code == 0, result.output
        config = DeviceConfigStore(device_root).load()
        assert config.alias == "Car"
        assert config.prune_orphans is True
        assert config.bitrate_kbps == 192

    def test_show_unconfigured(self, runner, device_root):
        """Test show on a device without configuration."""
        result = runner.invoke(cli, ["device", "show", str(device_root)])
        assert result.exit_code == 1
        assert "not configured" in result.output

    def test_info(self, runner, device_root):
        """Test storage info output."""
        result = runner.invoke(cli, ["device", "info", str(device_root)])
        assert result.exit_code == 0, result.output
        assert "Storage" in result.output

    def test_forget(self, runner, device_root):
        """Test removing the association."""
        runner.invoke(cli, ["device", "init", str(device_root)])
        result = runner.invoke(cli, ["device", "forget", str(device_root), "--yes"])
        assert result.exit_code == 0, result.output
        assert not DeviceConfigStore(device_root).exists()

    def test_missing_device_root(self, runner, tmp_path):
        """Test that a missing device folder is rejected."""
        result = runner.invoke(cli, ["device", "info", str(tmp_path / "missing")])
        assert result.exit_code == 2


class TestSyncCommands:
    """Test plan, sync and export."""

    def test_plan_does_not_touch_files(self, runner, device_root, library_file):
        """Test that planning writes nothing to the device, not even a config."""
        result = runner.invoke(
            cli,
            ["plan", str(device_root), "-p", "Mix", "--library", str(library_file), "-v"],
        )
        assert result.exit_code == 0, result.output
        assert "Sync Plan" in result.output
        assert not ManifestStore(device_root).exists()
        assert not DeviceConfigStore(device_root).exists()
        assert list(device_root.iterdir()) == []

    def test_plan_uses_stored_config(self, runner, device_root, library_file):
        """Test that planning honours the layout saved on the device."""
        runner.invoke(cli, ["device", "init", str(device_root), "--layout", "flat"])
        before = DeviceConfigStore(device_root).config_file.read_bytes()

        result = runner.invoke(
            cli,
            ["plan", str(device_root), "-p", "Mix", "--library", str(library_file), "-v"],
        )

        assert result.exit_code == 0, result.output
        assert "0001_Song 1.mp3" in result.output
        assert DeviceConfigStore(device_root).config_file.read_bytes() == before

    def test_sync(self, runner, device_root, library_file):
        """Test a full sync of one playlist."""
        result = runner.invoke(
            cli, ["sync", str(device_root), "-p", "mix", "--library", str(library_file)]
        )
        assert result.exit_code == 0, result.output
        manifest = ManifestStore(device_root).load()
        assert sorted(manifest.identifiers()) == ["t1", "t2", "t3"]
        assert (device_root / "Band/LP/01 - Song 1.mp3").exists()

    def test_sync_with_failures(self, runner, device_root, library_file, tmp_path):
        """Test exit code and failure export when an item fails."""
        failures = tmp_path / "failed.csv"
        result = runner.invoke(
            cli,
            [
                "sync",
                str(device_root),
                "--all",
                "--library",
                str(library_file),
                "--failures-csv",
                str(failures),
            ],
        )
        assert result.exit_code == 1
        assert "1 item(s) failed (SourceMissing: 1)" in result.output
        lines = failures.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Target Path,Title,Artist,Reason,Detail"
        assert len(lines) == 2
        assert '"SourceMissing"' in lines[1]

    def test_sync_requires_selection(self, runner, device_root, library_file):
        """Test that a sync without playlists is a usage error."""
        result = runner.invoke(
            cli, ["sync", str(device_root), "--library", str(library_file)]
        )
        assert result.exit_code == 2

    def test_unknown_playlist(self, runner, device_root, library_file):
        """Test that an unknown playlist name fails cleanly."""
        result = runner.invoke(
            cli,
            ["sync", str(device_root), "-p", "Nope", "--library", str(library_file)],
        )
        assert result.exit_code == 1
        assert "Playlist not found" in result.output

    def test_missing_library(self, runner, device_root, tmp_path):
        """Test error for a missing library export."""
        result = runner.invoke(
            cli,
            ["plan", str(device_root), "--all", "--library", str(tmp_path / "x.json")],
        )
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_export(self, runner, device_root, library_file, tmp_path):
        """Test the device content CSV."""
        runner.invoke(
            cli, ["sync", str(device_root), "-p", "Mix", "--library", str(library_file)]
        )
        output = tmp_path / "device_music_list.csv"

        result = runner.invoke(
            cli, ["export", str(device_root), str(output), "--library", str(library_file)]
        )

        assert result.exit_code == 0, result.output
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Relative Path,Title,Artist,Album,Duration,Format"
        assert lines[1] == '"Band/LP/01 - Song 1.mp3","Song 1","Band","LP","1:00","mp3"'
        assert len(lines) == 4
