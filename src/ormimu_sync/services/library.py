"""Library catalog: the caller's read-only snapshot of the music library.

The music manager exports its library as JSON:

    {
        "tracks": [{"id": "...", "title": "...", "source_path": "...", ...}],
        "playlists": [{"id": "...", "name": "...", "track_ids": ["..."]}]
    }

The engine only needs the resolved ``TrackRef`` / ``PlaylistRef`` snapshot
and an id lookup for reports.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from ..core.errors import LibraryError
from ..models.models import PlaylistRef, TrackRef

logger = logging.getLogger(__name__)


class PlaylistEntry(BaseModel):
    """Playlist as stored in the library export."""

    id: str
    name: str
    track_ids: List[str] = []


class LibraryExport(BaseModel):
    """Top-level shape of the library export file."""

    tracks: List[TrackRef] = []
    playlists: List[PlaylistEntry] = []


class LibraryCatalog:
    """In-memory library snapshot with lookups by id and playlist name."""

    def __init__(self, tracks: Sequence[TrackRef], playlists: Sequence[PlaylistRef]):
        """Initialize catalog.

        Args:
            tracks: All library tracks
            playlists: Playlists with resolved tracks
        """
        self._tracks: Dict[str, TrackRef] = {track.id: track for track in tracks}
        self.playlists: List[PlaylistRef] = list(playlists)

    @classmethod
    def from_export(cls, export: LibraryExport) -> "LibraryCatalog":
        """Build a catalog, resolving playlist track ids.

        Unknown track ids in a playlist are skipped with a warning.
        """
        tracks = {track.id: track for track in export.tracks}
        playlists = []
        for entry in export.playlists:
            resolved = []
            for track_id in entry.track_ids:
                track = tracks.get(track_id)
                if track is None:
                    logger.warning(
                        "Playlist %r references unknown track %s", entry.name, track_id
                    )
                    continue
                resolved.append(track)
            playlists.append(PlaylistRef(id=entry.id, name=entry.name, tracks=resolved))
        return cls(export.tracks, playlists)

    @classmethod
    def load(cls, path: str | Path) -> "LibraryCatalog":
        """Load a catalog from a library export file.

        Raises:
            LibraryError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise LibraryError(f"Library file does not exist: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            export = LibraryExport.model_validate(data)
        except (OSError, json.JSONDecodeError) as e:
            raise LibraryError(f"Cannot read library file {path}: {e}") from e
        except ValidationError as e:
            raise LibraryError(f"Invalid library file {path}: {e}") from e

        catalog = cls.from_export(export)
        logger.info(
            "Loaded library with %d tracks and %d playlists",
            len(catalog),
            len(catalog.playlists),
        )
        return catalog

    def lookup(self) -> Dict[str, TrackRef]:
        """Get the id -> track mapping used by reports."""
        return dict(self._tracks)

    def get_track(self, track_id: str) -> Optional[TrackRef]:
        """Get a track by id."""
        return self._tracks.get(track_id)

    def get_playlist(self, name: str) -> Optional[PlaylistRef]:
        """Get a playlist by name (case-insensitive)."""
        wanted = name.casefold()
        for playlist in self.playlists:
            if playlist.name.casefold() == wanted:
                return playlist
        return None

    def playlists_by_name(self, names: Sequence[str]) -> List[PlaylistRef]:
        """Resolve playlist names in the given order.

        Raises:
            LibraryError: If a name does not match any playlist
        """
        selected = []
        for name in names:
            playlist = self.get_playlist(name)
            if playlist is None:
                raise LibraryError(f"Playlist not found: {name}")
            selected.append(playlist)
        return selected

    def __len__(self) -> int:
        return len(self._tracks)
