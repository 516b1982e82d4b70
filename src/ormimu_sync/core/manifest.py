"""Device manifest store.

The manifest is a side-car JSON file on the device root that records which
library track lives at which device-relative path:

    {"version": 1, "files": {"Artist/Album/01 - Title.mp3": "<track id>"}}

A missing, unreadable or unknown-version manifest loads as empty, so the
device is treated as empty rather than failing the sync.
"""

import json
import logging
import os
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, List

from ..models.models import Manifest
from .errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = ".ormimu_manifest"
MANIFEST_VERSION = 1


def is_device_relative(path: str, device_root: Path) -> bool:
    """Check that a manifest key names a file inside the device root.

    Rejects absolute paths (POSIX or drive-qualified), `..` components and
    paths that resolve outside the root through symlinks.
    """
    if not path or PurePosixPath(path).is_absolute():
        return False
    windows_path = PureWindowsPath(path)
    if windows_path.drive or windows_path.root:
        return False
    if ".." in windows_path.parts:
        return False

    root = device_root.resolve()
    return (root / path).resolve().is_relative_to(root)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON via a temp file and an atomic rename.

    Args:
        path: Final file location
        data: JSON-serializable data

    Raises:
        OSError: If the temp file cannot be written or renamed
    """
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


class ManifestStore:
    """Reads and writes the manifest of one device root.

    Usage:
        store = ManifestStore("/Volumes/PLAYER")
        manifest = store.load()
        manifest.add("0001_Song.mp3", track_id)
        store.save(manifest)
    """

    def __init__(self, device_root: str | Path):
        """Initialize store.

        Args:
            device_root: Root folder of the mounted device
        """
        self.device_root = Path(device_root)
        self.manifest_file = self.device_root / MANIFEST_FILENAME

    def exists(self) -> bool:
        """Check if a manifest file exists on the device."""
        return self.manifest_file.exists()

    def load(self, set_aside_corrupt: bool = True) -> Manifest:
        """Load the manifest from the device.

        Args:
            set_aside_corrupt: Rename an unreadable manifest to
                `.ormimu_manifest.corrupt`; off for read-only callers

        Returns:
            Manifest (empty if absent, corrupt or of an unknown version)
        """
        if not self.manifest_file.exists():
            logger.info("No manifest at %s, treating device as empty", self.device_root)
            return Manifest()

        try:
            with open(self.manifest_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Corrupt manifest %s: %s", self.manifest_file, e)
            if set_aside_corrupt:
                self._set_aside_corrupt()
            return Manifest()
        except OSError as e:
            logger.error("Cannot read manifest %s: %s", self.manifest_file, e)
            return Manifest()

        if not isinstance(data, dict):
            logger.warning("Manifest is not a JSON object, treating device as empty")
            return Manifest()

        version = data.get("version")
        if version != MANIFEST_VERSION:
            logger.warning(
                "Unknown manifest version %r (expected %d), treating device as empty",
                version,
                MANIFEST_VERSION,
            )
            return Manifest()

        files = data.get("files")
        if not isinstance(files, dict):
            logger.warning("Manifest has no file mapping, treating device as empty")
            return Manifest()

        entries = {}
        for path, identifier in files.items():
            if not isinstance(identifier, (str, int)):
                continue
            if not is_device_relative(str(path), self.device_root):
                logger.warning("Ignoring manifest entry outside the device: %r", path)
                continue
            entries[str(path)] = str(identifier)

        manifest = Manifest(files=entries)
        logger.info("Loaded manifest with %d files", len(manifest))
        return manifest

    def save(self, manifest: Manifest) -> None:
        """Save the manifest atomically (write temp file, then rename).

        Args:
            manifest: Manifest to persist

        Raises:
            ManifestError: If the manifest cannot be written
        """
        data = {"version": MANIFEST_VERSION, "files": manifest.copy_files()}
        if not self.device_root.is_dir():
            raise ManifestError(f"Device root is not available: {self.device_root}")

        try:
            write_json_atomic(self.manifest_file, data)
        except OSError as e:
            logger.error("Error saving manifest to %s: %s", self.manifest_file, e)
            raise ManifestError(f"Cannot save manifest: {e}") from e

        logger.debug("Saved manifest with %d files", len(manifest))

    def prune_missing(self, manifest: Manifest) -> List[str]:
        """Drop entries whose file no longer exists on the device.

        Args:
            manifest: Manifest to clean in place

        Returns:
            Relative paths that were dropped
        """
        dropped = [
            path
            for path in manifest.paths()
            if not is_device_relative(path, self.device_root)
            or not (self.device_root / path).exists()
        ]
        for path in dropped:
            manifest.remove(path)
        if dropped:
            logger.info("Dropped %d manifest entries with no file", len(dropped))
        return dropped

    def _set_aside_corrupt(self) -> None:
        """Keep a corrupt manifest for inspection instead of overwriting it."""
        backup = self.manifest_file.with_name(MANIFEST_FILENAME + ".corrupt")
        try:
            os.replace(self.manifest_file, backup)
            logger.warning("Moved corrupt manifest to %s", backup)
        except OSError as e:
            logger.warning("Could not move corrupt manifest aside: %s", e)
