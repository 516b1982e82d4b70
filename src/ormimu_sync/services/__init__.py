"""Services around the sync engine: transcoding, library snapshot, reports."""

from .library import LibraryCatalog
from .report import (
    ReportRow,
    build_report,
    failures_to_csv,
    format_duration,
    report_to_csv,
    write_csv,
)
from .transcoder import FFmpegTranscoder, find_ffmpeg, is_ffmpeg_available

__all__ = [
    "FFmpegTranscoder",
    "find_ffmpeg",
    "is_ffmpeg_available",
    "LibraryCatalog",
    "ReportRow",
    "build_report",
    "failures_to_csv",
    "format_duration",
    "report_to_csv",
    "write_csv",
]
