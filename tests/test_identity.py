"""Tests for content identity helpers."""

from pathlib import Path

from ormimu_sync.core.identity import content_id, dedup_key, short_hash
from ormimu_sync.models.models import TargetFormat, TrackRef


class TestContentId:
    """Test content_id."""

    def test_uses_library_id(self):
        """Test that the identifier is the library track id."""
        track = TrackRef(id=" abc-123 ", source_path=Path("/music/a.mp3"))
        assert content_id(track) == "abc-123"

    def test_integer_ids_become_strings(self):
        """Test that numeric ids are accepted."""
        track = TrackRef(id=42, source_path="/music/a.mp3")
        assert content_id(track) == "42"


class TestShortHash:
    """Test short_hash."""

    def test_length_and_charset(self):
        """Test default length and hex output."""
        value = short_hash("track-1")
        assert len(value) == 8
        assert all(c in "0123456789abcdef" for c in value)

    def test_stable(self):
        """Test that the same identifier always hashes the same."""
        assert short_hash("track-1") == short_hash("track-1")
        assert short_hash("track-1") != short_hash("track-2")

    def test_custom_length(self):
        """Test custom length."""
        assert len(short_hash("track-1", length=12)) == 12


class TestDedupKey:
    """Test dedup_key."""

    def test_key_includes_format(self):
        """Test that the same track has one key per device format."""
        track = TrackRef(id="t1", source_path="/music/a.flac")
        assert dedup_key(track, TargetFormat.MP3) == ("t1", "mp3")
        assert dedup_key(track, TargetFormat.MP3) != dedup_key(track, TargetFormat.FLAC)
