"""Shared fixtures for device sync tests."""

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

import pytest

from ormimu_sync.core.errors import TranscodeError
from ormimu_sync.models.models import PlaylistRef, TargetFormat, TrackRef


def make_track(
    library_dir: Path,
    track_id: str,
    title: str = "",
    artist: str = "Test Artist",
    album: str = "Test Album",
    extension: str = "mp3",
    track_number: Optional[int] = None,
    duration: float = 180.0,
    create: bool = True,
) -> TrackRef:
    """Create a source file (unless ``create`` is False) and its TrackRef."""
    title = title or f"Song {track_id}"
    source = library_dir / f"{track_id}.{extension}"
    if create:
        source.write_bytes(f"audio data {track_id}".encode())
    return TrackRef(
        id=track_id,
        title=title,
        artist=artist,
        album=album,
        source_path=source,
        duration_seconds=duration,
        format_extension=extension,
        track_number=track_number,
    )


def make_playlist(
    playlist_id: str, tracks: List[TrackRef], name: str = ""
) -> PlaylistRef:
    """Create a PlaylistRef."""
    return PlaylistRef(
        id=playlist_id, name=name or f"Playlist {playlist_id}", tracks=tracks
    )


class FakeTranscoder:
    """Transcoder that writes a small marker file instead of running ffmpeg."""

    def __init__(self, fail_for: Optional[set] = None):
        self.fail_for = fail_for or set()
        self.calls = []

    def transcode(
        self,
        source_path: Path,
        output_path: Path,
        target_format: TargetFormat,
        bitrate_kbps: int,
    ) -> Path:
        self.calls.append((source_path, output_path, target_format, bitrate_kbps))
        if source_path.stem in self.fail_for:
            raise TranscodeError(f"cannot decode {source_path.name}")
        output_path.write_bytes(b"converted " + source_path.read_bytes())
        return output_path


@pytest.fixture
def temp_dirs():
    """Create a library folder and a device root."""
    with (
        tempfile.TemporaryDirectory() as library_dir,
        tempfile.TemporaryDirectory() as device_dir,
    ):
        yield Path(library_dir), Path(device_dir)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_transcoder():
    """Create a FakeTranscoder."""
    return FakeTranscoder()
