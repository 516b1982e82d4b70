"""Configuration management for the device sync engine."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file from config directory or project root
config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if config_env.exists():
    load_dotenv(config_env)
else:
    load_dotenv()


class Config:
    """Application configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Transcoding settings
        self.ffmpeg_path: Optional[str] = os.getenv("ORMIMU_SYNC_FFMPEG_PATH") or None
        self.bitrate_kbps = int(os.getenv("ORMIMU_SYNC_BITRATE_KBPS", "256"))
        self.transcode_timeout = float(
            os.getenv("ORMIMU_SYNC_TRANSCODE_TIMEOUT", "300")
        )

        # Executor settings
        self.manifest_save_interval = int(
            os.getenv("ORMIMU_SYNC_MANIFEST_SAVE_INTERVAL", "25")
        )
        self.max_consecutive_write_failures = int(
            os.getenv("ORMIMU_SYNC_MAX_CONSECUTIVE_WRITE_FAILURES", "3")
        )

        # Library snapshot exported by the music manager
        self.library_file = Path(
            os.getenv(
                "ORMIMU_SYNC_LIBRARY_FILE",
                str(Path.home() / ".ormimu" / "library.json"),
            )
        )

        # Logging
        log_file = os.getenv("ORMIMU_SYNC_LOG_FILE")
        self.log_file: Optional[Path] = Path(log_file) if log_file else None


def get_config() -> Config:
    """Get application configuration."""
    return Config()
