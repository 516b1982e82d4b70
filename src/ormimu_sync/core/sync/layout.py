"""Target path derivation for the two device layouts.

Each layout is a single pure function from the desired tracks to a list of
``(track, relative_path)`` pairs. Paths always use ``/`` separators so they
can be used as manifest keys on any host.

The organized layout numbers a track from its track-number tag. An untagged
track falls back to its 1-based position in the first selected playlist that
holds it, so changing the playlist selection or order can move it to a new
path (the old file is then an orphan). Tag tracks to keep their paths stable.
"""

import logging
import random
import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ...models.models import (
    DeviceConfig,
    LayoutMode,
    PlaylistRef,
    TargetFormat,
    TrackRef,
)
from ..identity import content_id, dedup_key, short_hash

logger = logging.getLogger(__name__)

ILLEGAL_CHARS = re.compile(r'[/\\:*?"<>|\x00-\x1f\x7f]')
WHITESPACE = re.compile(r"\s+")
MAX_COMPONENT_LENGTH = 120
MIN_FLAT_INDEX_WIDTH = 4


@dataclass(frozen=True)
class DesiredTrack:
    """A selected track with the position it was first seen at."""

    track: TrackRef
    position: int  # 1-based position in its playlist


@dataclass(frozen=True)
class Placement:
    """Where a desired track goes on the device."""

    track: TrackRef
    path: str


def sanitize_component(text: Optional[str], fallback: str) -> str:
    """Make a string safe to use as one path component.

    Args:
        text: Raw metadata value
        fallback: Value to use when nothing printable is left

    Returns:
        Sanitized component
    """
    value = unicodedata.normalize("NFC", text or "")
    value = ILLEGAL_CHARS.sub("_", value)
    value = WHITESPACE.sub(" ", value).strip().strip(".").strip()
    if len(value) > MAX_COMPONENT_LENGTH:
        value = value[:MAX_COMPONENT_LENGTH].rstrip(" .")
    return value or fallback


def collect_desired(
    playlists: Sequence[PlaylistRef], target_format: TargetFormat
) -> List[DesiredTrack]:
    """Flatten the selection, keeping the first occurrence of each track.

    Args:
        playlists: Selected playlists in selection order
        target_format: Device format the tracks are stored in

    Returns:
        Desired tracks in selection order
    """
    seen: set[Tuple[str, str]] = set()
    desired: List[DesiredTrack] = []
    for playlist in playlists:
        for position, track in enumerate(playlist.tracks, start=1):
            key = dedup_key(track, target_format)
            if key in seen:
                continue
            seen.add(key)
            desired.append(DesiredTrack(track=track, position=position))
    return desired


def _title_of(track: TrackRef) -> str:
    return sanitize_component(
        track.title, sanitize_component(track.source_path.stem, "Untitled")
    )


def _with_hash_suffix(path: str, identifier: str) -> str:
    stem, dot, extension = path.rpartition(".")
    return f"{stem} [{short_hash(identifier)}]{dot}{extension}"


def organized_layout(
    desired: Sequence[DesiredTrack],
    config: DeviceConfig,
    rng: Optional[random.Random] = None,
) -> List[Placement]:
    """Lay files out as ``<Artist>/<Album>/<NN - Title>.<ext>``.

    Layout is by metadata, not by playlist, so every identifier maps to one
    shared path. Distinct identifiers that sanitize to the same path keep the
    plain name for the first one; later ones get the identifier's short hash.
    """
    extension = config.target_format.value
    placements: List[Placement] = []
    taken: set[str] = set()

    for item in desired:
        track = item.track
        artist = sanitize_component(track.artist, "Unknown Artist")
        album = sanitize_component(track.album, "Unknown Album")
        number = track.track_number if track.track_number else item.position
        path = f"{artist}/{album}/{number:02d} - {_title_of(track)}.{extension}"

        # Device filesystems (FAT/exFAT) are usually case-insensitive
        if path.casefold() in taken:
            path = _with_hash_suffix(path, content_id(track))
            logger.debug("Path collision for %s, using %s", track.display_name, path)
        taken.add(path.casefold())
        placements.append(Placement(track=track, path=path))

    return placements


def flat_index_width(count: int) -> int:
    """Digits used for flat-mode ordinals."""
    return max(MIN_FLAT_INDEX_WIDTH, len(str(count)))


def flat_layout(
    desired: Sequence[DesiredTrack],
    config: DeviceConfig,
    rng: Optional[random.Random] = None,
) -> List[Placement]:
    """Lay files out as ``<index>_<Title>.<ext>`` in the device root.

    With shuffling enabled the ordinals are a fresh random permutation of the
    desired tracks on every call.
    """
    extension = config.target_format.value
    ordered = list(desired)
    if config.shuffle_enabled:
        (rng or random.Random()).shuffle(ordered)

    width = flat_index_width(len(ordered))
    return [
        Placement(
            track=item.track,
            path=f"{index:0{width}d}_{_title_of(item.track)}.{extension}",
        )
        for index, item in enumerate(ordered, start=1)
    ]


LayoutFunction = Callable[
    [Sequence[DesiredTrack], DeviceConfig, Optional[random.Random]], List[Placement]
]

LAYOUTS: Dict[LayoutMode, LayoutFunction] = {
    LayoutMode.ORGANIZED: organized_layout,
    LayoutMode.FLAT: flat_layout,
}


def place_tracks(
    playlists: Sequence[PlaylistRef],
    config: DeviceConfig,
    rng: Optional[random.Random] = None,
) -> List[Placement]:
    """Resolve the selection to device-relative target paths.

    Args:
        playlists: Selected playlists
        config: Device sync policy
        rng: Random source for shuffled flat layouts

    Returns:
        Placements in the order the files should be written
    """
    desired = collect_desired(playlists, config.target_format)
    return LAYOUTS[config.layout_mode](desired, config, rng)


def is_flat_path(path: str) -> bool:
    """Check if a manifest path lives in the flat namespace (device root)."""
    return "/" not in path
