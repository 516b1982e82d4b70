"""Transfer executor.

Carries out a sync plan against a device root: copies or converts files,
deletes removed ones, keeps the manifest in step and reports progress after
every operation. A failing operation is recorded and the batch moves on;
only device-level trouble (repeated write failures, device gone) stops it
early.

Manifest consistency: files are written to a temp name and renamed into
place before their manifest entry is added, and a removal is persisted to
the manifest before the file is deleted. A manifest saved at any point
therefore only lists files that exist.
"""

import errno
import logging
import os
import shutil
import threading
from contextlib import suppress
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from ...models.models import Manifest, TargetFormat, TrackRef
from ..errors import ManifestError, TranscodeError
from ..identity import content_id
from ..manifest import ManifestStore, is_device_relative
from .operations import (
    ConvertOperation,
    CopyOperation,
    OperationKind,
    RemoveOperation,
    SyncOperation,
    SyncPlan,
)
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

DEFAULT_BITRATE_KBPS = 256
DEVICE_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class FailureReason(str, Enum):
    """Why a single operation failed."""

    SOURCE_MISSING = "SourceMissing"
    WRITE_ERROR = "WriteError"
    CONVERSION_FAILED = "ConversionFailed"
    DEVICE_FULL = "DeviceFull"
    CANCELLED = "Cancelled"


# Failures that point at the device rather than at one file
DEVICE_FAILURES = {FailureReason.WRITE_ERROR, FailureReason.DEVICE_FULL}


@dataclass
class SyncFailure:
    """A failed (or never started) operation."""

    target_path: str
    reason: FailureReason
    detail: str = ""
    track: Optional[TrackRef] = None


@dataclass
class SyncResult:
    """Result of executing a sync plan."""

    succeeded: int = 0
    failed: List[SyncFailure] = dataclass_field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False
    abort_reason: Optional[str] = None
    manifest_error: Optional[str] = None

    # Statistics
    copied: int = 0
    converted: int = 0
    removed: int = 0
    skipped: int = 0

    def add_failure(self, failure: SyncFailure) -> None:
        """Record a failed operation."""
        self.failed.append(failure)
        logger.warning(
            "%s failed (%s): %s",
            failure.target_path,
            failure.reason.value,
            failure.detail,
        )

    @property
    def has_errors(self) -> bool:
        """Check if anything went wrong."""
        return bool(self.failed) or self.aborted or self.manifest_error is not None

    def failures_by_reason(self) -> Dict[FailureReason, int]:
        """Count failures per reason."""
        counts: Dict[FailureReason, int] = {}
        for failure in self.failed:
            counts[failure.reason] = counts.get(failure.reason, 0) + 1
        return counts

    def get_summary(self) -> Dict[str, int]:
        """Get summary statistics."""
        return {
            "succeeded": self.succeeded,
            "failed": len(self.failed),
            "copied": self.copied,
            "converted": self.converted,
            "removed": self.removed,
            "skipped": self.skipped,
        }


class Transcoder(Protocol):
    """External codec tool."""

    def transcode(
        self,
        source_path: Path,
        output_path: Path,
        target_format: TargetFormat,
        bitrate_kbps: int,
    ) -> Path:
        """Convert ``source_path`` into ``output_path`` or raise TranscodeError."""
        ...


class OperationFailed(Exception):
    """Internal signal carrying the classified failure of one operation."""

    def __init__(self, reason: FailureReason, detail: str) -> None:
        """Initialize with reason and detail."""
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def classify_os_error(error: OSError) -> FailureReason:
    """Map a destination-side OS error to a failure reason."""
    if error.errno in DEVICE_FULL_ERRNOS:
        return FailureReason.DEVICE_FULL
    return FailureReason.WRITE_ERROR


class TransferExecutor:
    """Executes sync plans, one operation at a time.

    Usage:
        executor = TransferExecutor(transcoder=FFmpegTranscoder())
        result = executor.execute(plan, device_root, progress_callback=print)
    """

    def __init__(
        self,
        transcoder: Optional[Transcoder] = None,
        default_bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
        manifest_save_interval: int = 25,
        max_consecutive_write_failures: int = 3,
    ):
        """Initialize executor.

        Args:
            transcoder: Codec tool used for Convert operations (ffmpeg if None)
            default_bitrate_kbps: Bitrate when the caller gives none
            manifest_save_interval: Save the manifest after this many
                completed file operations
            max_consecutive_write_failures: Abort the batch after this many
                write/device-full failures in a row
        """
        if transcoder is None:
            from ...services.transcoder import FFmpegTranscoder

            transcoder = FFmpegTranscoder()
        self.transcoder = transcoder
        self.default_bitrate_kbps = default_bitrate_kbps
        self.manifest_save_interval = max(1, manifest_save_interval)
        self.max_consecutive_write_failures = max(1, max_consecutive_write_failures)

    def execute(
        self,
        plan: SyncPlan,
        device_root: str | Path,
        progress_callback: Optional[ProgressCallback] = None,
        manifest: Optional[Manifest] = None,
        cancel_event: Optional[threading.Event] = None,
        bitrate_kbps: Optional[int] = None,
    ) -> SyncResult:
        """Execute the plan in order.

        Args:
            plan: Operations from the planner
            device_root: Root folder of the mounted device
            progress_callback: Receives one update per finished operation
            manifest: Manifest to update in place (loaded from the device if None)
            cancel_event: Checked between operations; when set, no new
                operation starts
            bitrate_kbps: Bitrate for lossy conversions

        Returns:
            SyncResult; the saved manifest reflects only completed operations
        """
        root = Path(device_root)
        store = ManifestStore(root)
        if manifest is None:
            manifest = store.load()
        bitrate = bitrate_kbps or self.default_bitrate_kbps

        operations = plan.operations
        reporter = ProgressReporter(len(operations), progress_callback)
        result = SyncResult()
        consecutive_failures = 0
        unsaved = 0

        logger.info("Executing %d operations on %s", len(operations), root)

        for index, operation in enumerate(operations):
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.info(
                    "Sync cancelled after %d of %d operations", index, len(operations)
                )
                break

            if not root.is_dir():
                self._abort(result, operations[index:], "Device is no longer available")
                break

            try:
                self._execute_operation(operation, root, store, manifest, bitrate)
            except OperationFailed as failure:
                result.add_failure(
                    SyncFailure(
                        target_path=operation.target_path,
                        reason=failure.reason,
                        detail=failure.detail,
                        track=getattr(operation, "track", None),
                    )
                )
                if failure.reason in DEVICE_FAILURES:
                    consecutive_failures += 1
                else:
                    consecutive_failures = 0
            else:
                self._count_success(operation, result)
                if operation.kind != OperationKind.SKIP:
                    consecutive_failures = 0
                    unsaved += 1

            reporter.advance(operation.label)

            if consecutive_failures >= self.max_consecutive_write_failures:
                self._abort(
                    result,
                    operations[index + 1 :],
                    f"{consecutive_failures} consecutive write failures, "
                    "device appears unusable",
                )
                break

            if unsaved >= self.manifest_save_interval:
                if self._save_manifest(store, manifest, result):
                    unsaved = 0

        # Final save happens after every file operation of the batch
        self._save_manifest(store, manifest, result)

        logger.info("Sync finished: %s", result.get_summary())
        return result

    # ── Operations ──────────────────────────────────────────────────────────

    def _execute_operation(
        self,
        operation: SyncOperation,
        root: Path,
        store: ManifestStore,
        manifest: Manifest,
        bitrate_kbps: int,
    ) -> None:
        if isinstance(operation, CopyOperation):
            self._copy(operation, root, manifest)
        elif isinstance(operation, ConvertOperation):
            self._convert(operation, root, manifest, bitrate_kbps)
        elif isinstance(operation, RemoveOperation):
            self._remove(operation, root, store, manifest)
        # Skip: nothing to do

    def _copy(self, operation: CopyOperation, root: Path, manifest: Manifest) -> None:
        source = self._require_source(operation.track)
        target = self._device_path(root, operation.target_path)
        temp = self._temp_path(target)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, temp)
            os.replace(temp, target)
        except OSError as e:
            self._discard(temp)
            if not source.exists():
                raise OperationFailed(
                    FailureReason.SOURCE_MISSING, f"Source file disappeared: {source}"
                ) from e
            raise OperationFailed(classify_os_error(e), str(e)) from e

        manifest.add(operation.target_path, content_id(operation.track))
        logger.debug("Copied %s -> %s", source, operation.target_path)

    def _convert(
        self,
        operation: ConvertOperation,
        root: Path,
        manifest: Manifest,
        bitrate_kbps: int,
    ) -> None:
        source = self._require_source(operation.track)
        target = self._device_path(root, operation.target_path)
        temp = self._temp_path(target)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self.transcoder.transcode(
                source, temp, operation.target_format, bitrate_kbps
            )
            os.replace(temp, target)
        except TranscodeError as e:
            self._discard(temp)
            raise OperationFailed(FailureReason.CONVERSION_FAILED, str(e)) from e
        except OSError as e:
            self._discard(temp)
            raise OperationFailed(classify_os_error(e), str(e)) from e

        manifest.add(operation.target_path, content_id(operation.track))
        logger.debug("Converted %s -> %s", source, operation.target_path)

    def _remove(
        self,
        operation: RemoveOperation,
        root: Path,
        store: ManifestStore,
        manifest: Manifest,
    ) -> None:
        target = self._device_path(root, operation.target_path)
        previous = manifest.remove(operation.target_path)
        if previous is not None:
            try:
                store.save(manifest)
            except ManifestError as e:
                manifest.add(operation.target_path, previous)
                raise OperationFailed(FailureReason.WRITE_ERROR, str(e)) from e

        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise OperationFailed(classify_os_error(e), str(e)) from e

        self._prune_empty_dirs(target.parent, root)
        logger.debug("Removed %s", operation.target_path)

    # ── Helpers ─────────────────────────────────────────────────────────────

    @staticmethod
    def _device_path(root: Path, target_path: str) -> Path:
        """Resolve a device-relative path, refusing anything outside the root."""
        if not is_device_relative(target_path, root):
            raise OperationFailed(
                FailureReason.WRITE_ERROR,
                f"Path is outside the device root: {target_path}",
            )
        return root / target_path

    @staticmethod
    def _require_source(track: TrackRef) -> Path:
        source = Path(track.source_path)
        if not source.is_file():
            raise OperationFailed(
                FailureReason.SOURCE_MISSING, f"Source file not found: {source}"
            )
        return source

    @staticmethod
    def _temp_path(target: Path) -> Path:
        return target.with_name(f".{target.name}.part")

    @staticmethod
    def _discard(path: Path) -> None:
        with suppress(OSError):
            path.unlink(missing_ok=True)

    @staticmethod
    def _prune_empty_dirs(directory: Path, root: Path) -> None:
        """Delete directories left empty by a removal, up to the device root."""
        while directory != root and root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent

    @staticmethod
    def _count_success(operation: SyncOperation, result: SyncResult) -> None:
        if operation.kind == OperationKind.SKIP:
            result.skipped += 1
            return

        result.succeeded += 1
        if operation.kind == OperationKind.COPY:
            result.copied += 1
        elif operation.kind == OperationKind.CONVERT:
            result.converted += 1
        elif operation.kind == OperationKind.REMOVE:
            result.removed += 1

    @staticmethod
    def _abort(
        result: SyncResult, remaining: Sequence[SyncOperation], reason: str
    ) -> None:
        """Stop the batch and list transfers that will not run."""
        logger.error("Aborting sync: %s", reason)
        result.aborted = True
        result.abort_reason = reason
        for operation in remaining:
            if isinstance(operation, (CopyOperation, ConvertOperation)):
                result.failed.append(
                    SyncFailure(
                        target_path=operation.target_path,
                        reason=FailureReason.CANCELLED,
                        detail=reason,
                        track=operation.track,
                    )
                )

    @staticmethod
    def _save_manifest(
        store: ManifestStore, manifest: Manifest, result: SyncResult
    ) -> bool:
        try:
            store.save(manifest)
        except ManifestError as e:
            result.manifest_error = str(e)
            return False
        result.manifest_error = None
        return True
