"""Tests for data models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ormimu_sync.models.models import (
    DeviceConfig,
    LayoutMode,
    Manifest,
    PlaylistRef,
    TargetFormat,
    TrackRef,
    VolumeInfo,
    normalize_extension,
)


class TestTargetFormat:
    """Test TargetFormat parsing."""

    def test_from_extension(self):
        """Test extensions with dots and upper case."""
        assert TargetFormat.from_extension(".MP3") == TargetFormat.MP3
        assert TargetFormat.from_extension("flac") == TargetFormat.FLAC
        assert TargetFormat.from_extension(" m4a ") == TargetFormat.M4A

    def test_unknown_extension(self):
        """Test that unsupported formats are rejected."""
        with pytest.raises(ValueError):
            TargetFormat.from_extension("ogg")

    def test_normalize_extension(self):
        """Test extension normalization."""
        assert normalize_extension(".FLAC") == "flac"
        assert normalize_extension("") == ""


class TestTrackRef:
    """Test TrackRef model."""

    def test_source_path_conversion(self):
        """Test that source paths become Path objects."""
        track = TrackRef(id="1", source_path="/music/song.flac")
        assert isinstance(track.source_path, Path)

    def test_source_format_from_extension_field(self):
        """Test that format_extension is normalized."""
        track = TrackRef(id="1", source_path="/music/song", format_extension=".FLAC")
        assert track.source_format == "flac"

    def test_source_format_falls_back_to_suffix(self):
        """Test fallback to the file suffix."""
        track = TrackRef(id="1", source_path="/music/song.M4A")
        assert track.source_format == "m4a"

    def test_display_name(self):
        """Test display name with and without artist."""
        track = TrackRef(id="1", title="Song", artist="Band", source_path="/a.mp3")
        assert track.display_name == "Band - Song"
        untitled = TrackRef(id="2", source_path="/music/raw take.mp3")
        assert untitled.display_name == "raw take"

    def test_frozen(self):
        """Test that snapshots cannot be modified."""
        track = TrackRef(id="1", source_path="/a.mp3")
        with pytest.raises(ValidationError):
            track.title = "Other"


class TestPlaylistRef:
    """Test PlaylistRef model."""

    def test_track_count(self):
        """Test track count."""
        tracks = [TrackRef(id=str(i), source_path=f"/{i}.mp3") for i in range(3)]
        playlist = PlaylistRef(id=7, name="Mix", tracks=tracks)
        assert playlist.id == "7"
        assert playlist.track_count == 3


class TestDeviceConfig:
    """Test DeviceConfig model."""

    def test_defaults(self):
        """Test default policy."""
        config = DeviceConfig()
        assert config.target_format == TargetFormat.MP3
        assert config.layout_mode == LayoutMode.ORGANIZED
        assert config.randomize_on_flat is False
        assert config.prune_orphans is False
        assert config.bitrate_kbps is None

    def test_target_format_accepts_extension(self):
        """Test that ``.FLAC`` style values are accepted."""
        assert DeviceConfig(target_format=".FLAC").target_format == TargetFormat.FLAC

    def test_shuffle_only_in_flat_layout(self):
        """Test that randomization is ignored in organized layout."""
        organized = DeviceConfig(randomize_on_flat=True)
        flat = DeviceConfig(layout_mode=LayoutMode.FLAT, randomize_on_flat=True)
        assert organized.shuffle_enabled is False
        assert flat.shuffle_enabled is True

    def test_invalid_bitrate(self):
        """Test bitrate bounds."""
        with pytest.raises(ValidationError):
            DeviceConfig(bitrate_kbps=0)

    def test_json_round_trip(self):
        """Test dumping and validating keeps the policy."""
        config = DeviceConfig(
            alias="Phone", layout_mode=LayoutMode.FLAT, target_format=TargetFormat.M4A
        )
        restored = DeviceConfig.model_validate(config.model_dump(mode="json"))
        assert restored == config


class TestManifest:
    """Test Manifest model."""

    def test_add_get_remove(self):
        """Test basic mapping operations."""
        manifest = Manifest()
        manifest.add("b.mp3", "t2")
        manifest.add("a.mp3", "t1")
        assert manifest.get("a.mp3") == "t1"
        assert "b.mp3" in manifest
        assert manifest.paths() == ["a.mp3", "b.mp3"]
        assert manifest.remove("a.mp3") == "t1"
        assert manifest.remove("a.mp3") is None
        assert len(manifest) == 1

    def test_identifier_may_repeat(self):
        """Test that one identifier can live at several paths."""
        manifest = Manifest(files={"x/1.mp3": "t1", "x/2.mp3": "t1"})
        assert manifest.identifiers() == {"t1"}
        assert len(manifest) == 2

    def test_instances_do_not_share_state(self):
        """Test that default mappings are independent."""
        first = Manifest()
        first.add("a.mp3", "t1")
        assert len(Manifest()) == 0


class TestVolumeInfo:
    """Test VolumeInfo model."""

    def test_used_fraction(self):
        """Test used space calculation."""
        info = VolumeInfo(total=1000, free=250)
        assert info.used == 750
        assert info.used_fraction == 0.75

    def test_zero_total(self):
        """Test empty volume."""
        assert VolumeInfo(total=0, free=0).used_fraction == 0.0
