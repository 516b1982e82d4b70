"""External transcoder invocation (ffmpeg).

The engine treats the codec tool as a black box: source path, target format
and bitrate in, output file or ``TranscodeError`` out.
"""

import logging
import shutil
import subprocess  # nosec B404
from pathlib import Path
from typing import Dict, List, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from ..core.errors import TranscodeError
from ..models.models import TargetFormat

logger = logging.getLogger(__name__)

# ffmpeg codec arguments per device format; lossy codecs take a bitrate
CODEC_ARGS: Dict[TargetFormat, List[str]] = {
    TargetFormat.MP3: ["-codec:a", "libmp3lame"],
    TargetFormat.M4A: ["-codec:a", "aac"],
    TargetFormat.FLAC: ["-codec:a", "flac"],
}
LOSSY_FORMATS = {TargetFormat.MP3, TargetFormat.M4A}

# ffmpeg picks the muxer from the extension; temp files need it spelled out
MUXERS: Dict[TargetFormat, str] = {
    TargetFormat.MP3: "mp3",
    TargetFormat.M4A: "ipod",
    TargetFormat.FLAC: "flac",
}

COPIED_TAGS = (
    "title",
    "artist",
    "album",
    "albumartist",
    "genre",
    "date",
    "tracknumber",
    "discnumber",
)


def find_ffmpeg() -> Optional[str]:
    """Find ffmpeg binary. Returns path or None."""
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg:
        return ffmpeg

    common_paths = [
        "/opt/homebrew/bin/ffmpeg",
        "/usr/local/bin/ffmpeg",
        "/usr/bin/ffmpeg",
    ]
    for path in common_paths:
        if Path(path).exists():
            return path

    return None


def is_ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return find_ffmpeg() is not None


class FFmpegTranscoder:
    """Converts audio files with ffmpeg."""

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        timeout: float = 300,
        copy_tags: bool = True,
    ) -> None:
        """Initialize transcoder.

        Args:
            ffmpeg_path: Path to the ffmpeg binary (looked up on PATH if None)
            timeout: Seconds before a single conversion is abandoned
            copy_tags: Whether to copy tags from the source with mutagen
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.copy_tags = copy_tags

    def build_command(
        self,
        ffmpeg: str,
        source_path: Path,
        output_path: Path,
        target_format: TargetFormat,
        bitrate_kbps: int,
    ) -> List[str]:
        """Build the ffmpeg command line for one conversion."""
        cmd = [
            ffmpeg,
            "-nostdin",
            "-y",
            "-i",
            str(source_path),
            "-vn",
            "-map_metadata",
            "0",
            *CODEC_ARGS[target_format],
        ]
        if target_format in LOSSY_FORMATS:
            cmd += ["-b:a", f"{bitrate_kbps}k"]
        cmd += ["-f", MUXERS[target_format], str(output_path)]
        return cmd

    def transcode(
        self,
        source_path: Path,
        output_path: Path,
        target_format: TargetFormat,
        bitrate_kbps: int,
    ) -> Path:
        """Convert ``source_path`` into ``output_path``.

        Args:
            source_path: Source audio file
            output_path: File to create
            target_format: Device format
            bitrate_kbps: Bitrate for lossy formats

        Returns:
            The output path

        Raises:
            TranscodeError: If ffmpeg is missing, fails, times out or
                produces no output
        """
        ffmpeg = self.ffmpeg_path or find_ffmpeg()
        if not ffmpeg:
            raise TranscodeError("ffmpeg not found")

        cmd = self.build_command(
            ffmpeg, source_path, output_path, target_format, bitrate_kbps
        )
        logger.info("Converting %s -> %s", source_path, output_path)

        try:
            subprocess.run(  # nosec B603
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logger.error("ffmpeg conversion failed: %s", stderr[-500:])
            raise TranscodeError(
                f"ffmpeg exited with {e.returncode}: {stderr[-500:]}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise TranscodeError(f"ffmpeg not runnable: {e}") from e

        if not output_path.exists():
            raise TranscodeError("Output file was not created")

        if self.copy_tags:
            copy_metadata(source_path, output_path)
        return output_path


def copy_metadata(source_path: Path, dest_path: Path) -> bool:
    """Copy common tags from source to destination file.

    ffmpeg does not always carry every tag across containers. Failures are
    logged and reported as False, never raised.
    """
    try:
        source = MutagenFile(source_path, easy=True)
        dest = MutagenFile(dest_path, easy=True)
        if source is None or dest is None:
            return False

        changed = False
        for tag in COPIED_TAGS:
            if tag in source and tag not in dest:
                dest[tag] = source[tag]
                changed = True
        if changed:
            dest.save()
        return True
    except (MutagenError, OSError, KeyError, ValueError) as e:
        logger.warning("Could not copy metadata to %s: %s", dest_path, e)
        return False
