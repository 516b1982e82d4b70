"""Tests for the library catalog."""

import json

import pytest

from ormimu_sync.core.errors import LibraryError
from ormimu_sync.services.library import LibraryCatalog

LIBRARY = {
    "tracks": [
        {
            "id": "t1",
            "title": "First",
            "artist": "Band",
            "album": "LP",
            "source_path": "/music/first.flac",
            "duration_seconds": 200.5,
            "format_extension": ".FLAC",
            "track_number": 1,
        },
        {"id": "t2", "title": "Second", "source_path": "/music/second.mp3"},
    ],
    "playlists": [
        {"id": "p1", "name": "Road Trip", "track_ids": ["t2", "missing", "t1"]},
        {"id": "p2", "name": "Focus", "track_ids": ["t1"]},
    ],
}


@pytest.fixture
def library_file(tmp_path):
    """Write the sample library export."""
    path = tmp_path / "library.json"
    path.write_text(json.dumps(LIBRARY), encoding="utf-8")
    return path


class TestLibraryCatalog:
    """Test LibraryCatalog."""

    def test_load(self, library_file):
        """Test loading tracks and playlists."""
        catalog = LibraryCatalog.load(library_file)
        assert len(catalog) == 2
        assert [p.name for p in catalog.playlists] == ["Road Trip", "Focus"]
        assert catalog.get_track("t1").source_format == "flac"

    def test_unknown_track_ids_skipped(self, library_file):
        """Test that dangling playlist entries are dropped in order."""
        catalog = LibraryCatalog.load(library_file)
        road_trip = catalog.get_playlist("Road Trip")
        assert [t.id for t in road_trip.tracks] == ["t2", "t1"]

    def test_playlist_lookup_ignores_case(self, library_file):
        """Test case-insensitive playlist names."""
        catalog = LibraryCatalog.load(library_file)
        assert catalog.get_playlist("road trip").id == "p1"
        assert catalog.get_playlist("Nope") is None

    def test_playlists_by_name(self, library_file):
        """Test resolving names in the requested order."""
        catalog = LibraryCatalog.load(library_file)
        selected = catalog.playlists_by_name(["focus", "Road Trip"])
        assert [p.id for p in selected] == ["p2", "p1"]

    def test_playlists_by_name_unknown(self, library_file):
        """Test that an unknown name raises."""
        catalog = LibraryCatalog.load(library_file)
        with pytest.raises(LibraryError, match="Workout"):
            catalog.playlists_by_name(["Workout"])

    def test_lookup(self, library_file):
        """Test the id mapping used by reports."""
        lookup = LibraryCatalog.load(library_file).lookup()
        assert set(lookup) == {"t1", "t2"}
        assert lookup["t2"].title == "Second"

    def test_missing_file(self, tmp_path):
        """Test error for a missing export."""
        with pytest.raises(LibraryError, match="does not exist"):
            LibraryCatalog.load(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        """Test error for broken JSON."""
        path = tmp_path / "library.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(LibraryError):
            LibraryCatalog.load(path)

    def test_invalid_shape(self, tmp_path):
        """Test error for tracks without a source path."""
        path = tmp_path / "library.json"
        path.write_text(json.dumps({"tracks": [{"id": "t1"}]}), encoding="utf-8")
        with pytest.raises(LibraryError, match="Invalid library file"):
            LibraryCatalog.load(path)
