"""Device content reports.

Joins the manifest against library metadata to list what is on a device, and
serializes that listing (or a sync's failures) as CSV. Everything here is a
pure transform except ``write_csv``.
"""

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Sequence

from ..core.sync.executor import SyncResult
from ..models.models import Manifest, TrackRef

logger = logging.getLogger(__name__)

REPORT_HEADER = ("Relative Path", "Title", "Artist", "Album", "Duration", "Format")
FAILURE_HEADER = ("Target Path", "Title", "Artist", "Reason", "Detail")


@dataclass(frozen=True)
class ReportRow:
    """One file on the device."""

    path: str
    title: str
    artist: str
    album: str
    duration: str
    format: str


def format_duration(seconds: float) -> str:
    """Format seconds as ``M:SS``."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def build_report(
    manifest: Manifest, library_lookup: Mapping[str, TrackRef]
) -> List[ReportRow]:
    """List the device content, sorted by path.

    Args:
        manifest: Device manifest
        library_lookup: Track id -> library track

    Returns:
        One row per manifest entry; entries whose track is gone from the
        library get a placeholder title with the raw identifier
    """
    rows = []
    for path in manifest.paths():
        identifier = manifest.files[path]
        track = library_lookup.get(identifier)
        if track is None:
            rows.append(
                ReportRow(
                    path=path,
                    title=f"Unknown (ID: {identifier})",
                    artist="",
                    album="",
                    duration="",
                    format="",
                )
            )
            continue

        rows.append(
            ReportRow(
                path=path,
                title=track.title,
                artist=track.artist,
                album=track.album,
                duration=format_duration(track.duration_seconds),
                format=track.source_format,
            )
        )
    return rows


def _to_csv(header: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    buffer = io.StringIO()
    buffer.write(",".join(header) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def report_to_csv(rows: Sequence[ReportRow]) -> str:
    """Serialize report rows; every field is quoted, quotes are doubled."""
    return _to_csv(
        REPORT_HEADER,
        [
            (row.path, row.title, row.artist, row.album, row.duration, row.format)
            for row in rows
        ],
    )


def failures_to_csv(result: SyncResult) -> str:
    """Serialize the failures of a sync as an actionable list."""
    return _to_csv(
        FAILURE_HEADER,
        [
            (
                failure.target_path,
                failure.track.title if failure.track else "",
                failure.track.artist if failure.track else "",
                failure.reason.value,
                failure.detail,
            )
            for failure in result.failed
        ],
    )


def write_csv(text: str, destination: str | Path) -> Path:
    """Write CSV text to a caller-chosen file."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8", newline="")
    logger.info("Wrote %s", destination)
    return destination
