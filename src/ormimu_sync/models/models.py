"""Data models for the device sync engine."""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TargetFormat(str, Enum):
    """Audio formats a device can be synced to."""

    MP3 = "mp3"
    M4A = "m4a"
    FLAC = "flac"

    @classmethod
    def from_extension(cls, extension: str) -> "TargetFormat":
        """Parse an extension such as ``.MP3`` or ``flac``."""
        return cls(normalize_extension(extension))


class LayoutMode(str, Enum):
    """How files are laid out on the device."""

    ORGANIZED = "organized"  # <Artist>/<Album>/<NN - Title>.<ext>
    FLAT = "flat"  # <index>_<Title>.<ext> in the device root


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and strip the leading dot."""
    return (extension or "").strip().lower().lstrip(".")


class TrackRef(BaseModel):
    """Read-only snapshot of a library track taken at plan time."""

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    source_path: Path
    duration_seconds: float = 0.0
    format_extension: str = ""
    track_number: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: object) -> str:
        """Accept UUIDs and ints as identifiers."""
        return str(v).strip()

    @field_validator("source_path", mode="before")
    @classmethod
    def validate_source_path(cls, v: Union[str, Path]) -> Path:
        """Convert input to Path object."""
        return Path(v)

    @field_validator("format_extension", mode="before")
    @classmethod
    def validate_format_extension(cls, v: Optional[str]) -> str:
        """Normalize extension to e.g. ``mp3``."""
        return normalize_extension(v or "")

    @property
    def source_format(self) -> str:
        """Format of the source file, falling back to its suffix."""
        return self.format_extension or normalize_extension(self.source_path.suffix)

    @property
    def display_name(self) -> str:
        """Get "Artist - Title" for log and progress messages."""
        title = self.title or self.source_path.stem
        if self.artist:
            return f"{self.artist} - {title}"
        return title

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class PlaylistRef(BaseModel):
    """A playlist selected for sync."""

    id: str
    name: str
    tracks: List[TrackRef] = []

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: object) -> str:
        """Accept UUIDs and ints as identifiers."""
        return str(v)

    @property
    def track_count(self) -> int:
        """Get number of tracks in playlist."""
        return len(self.tracks)

    model_config = ConfigDict(frozen=True)


class DeviceConfig(BaseModel):
    """Per-device sync policy, persisted on the device root."""

    alias: str = ""
    description: str = ""
    target_format: TargetFormat = TargetFormat.MP3
    layout_mode: LayoutMode = LayoutMode.ORGANIZED
    randomize_on_flat: bool = False
    prune_orphans: bool = False
    bitrate_kbps: Optional[int] = Field(default=None, gt=0, le=1411)

    @field_validator("target_format", mode="before")
    @classmethod
    def validate_target_format(cls, v: Union[str, TargetFormat]) -> TargetFormat:
        """Accept ``.MP3`` style values."""
        if isinstance(v, TargetFormat):
            return v
        return TargetFormat.from_extension(v)

    @property
    def shuffle_enabled(self) -> bool:
        """Randomization only applies to the flat layout."""
        return self.layout_mode == LayoutMode.FLAT and self.randomize_on_flat


class Manifest(BaseModel):
    """What the engine has placed on the device: relative path -> identifier.

    Keyed by path, so one identifier may legitimately appear several times.
    """

    files: Dict[str, str] = {}

    def add(self, path: str, identifier: str) -> None:
        """Record a file placed on the device."""
        self.files[path] = identifier

    def remove(self, path: str) -> Optional[str]:
        """Forget a file, returning its identifier if it was known."""
        return self.files.pop(path, None)

    def get(self, path: str) -> Optional[str]:
        """Get the identifier stored at ``path``."""
        return self.files.get(path)

    def paths(self) -> List[str]:
        """All recorded paths, sorted."""
        return sorted(self.files)

    def identifiers(self) -> set[str]:
        """Distinct identifiers present on the device."""
        return set(self.files.values())

    def copy_files(self) -> Dict[str, str]:
        """Snapshot of the mapping."""
        return dict(self.files)

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)


class VolumeInfo(BaseModel):
    """Storage usage of the filesystem holding a device root."""

    total: int
    free: int

    @property
    def used(self) -> int:
        """Bytes in use."""
        return self.total - self.free

    @property
    def used_fraction(self) -> float:
        """Used share of the volume, 0.0 - 1.0."""
        if self.total <= 0:
            return 0.0
        return self.used / self.total
