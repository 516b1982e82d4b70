"""Content identity: the join key between library and device state."""

import hashlib
from typing import Tuple

from ..models.models import TargetFormat, TrackRef


def content_id(track: TrackRef) -> str:
    """Get the stable identifier of a track (its library ID)."""
    return str(track.id).strip()


def short_hash(identifier: str, length: int = 8) -> str:
    """Get a short, filesystem-safe hash of an identifier.

    Args:
        identifier: Content identifier
        length: Number of hex characters to keep

    Returns:
        Lower-case hex digest prefix
    """
    digest = hashlib.sha1(identifier.encode("utf-8"), usedforsecurity=False)
    return digest.hexdigest()[:length]


def dedup_key(track: TrackRef, target_format: TargetFormat) -> Tuple[str, str]:
    """Key under which a track is stored once per device format."""
    return content_id(track), target_format.value
