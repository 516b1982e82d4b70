"""Sync service: the engine entry point used by the UI or CLI.

Device and status state lives in an explicit ``DeviceContext`` passed to
every call. A device root can only be synced by one run at a time; a second
request is rejected with ``AlreadySyncingError`` instead of being queued.
"""

import logging
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ...config import Config, get_config
from ...models.models import DeviceConfig, PlaylistRef, VolumeInfo
from ..device_config import DeviceConfigStore
from ..errors import AlreadySyncingError, DeviceUnavailableError
from ..manifest import ManifestStore
from .executor import SyncResult, TransferExecutor
from .operations import SyncPlan
from .planner import ReconciliationPlanner
from .progress import ProgressCallback

logger = logging.getLogger(__name__)


def get_volume_info(path: str | Path) -> Optional[VolumeInfo]:
    """Get storage usage of the volume holding ``path`` (None if unavailable)."""
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        logger.warning("Could not read storage info for %s: %s", path, e)
        return None
    return VolumeInfo(total=usage.total, free=usage.free)


def describe_result(result: SyncResult) -> str:
    """One-line status message for a finished sync."""
    if result.aborted:
        return f"Sync aborted: {result.abort_reason}"
    if result.cancelled:
        return f"Sync cancelled after {result.succeeded} changes"
    if result.failed:
        return f"Sync completed with {len(result.failed)} errors"
    if result.manifest_error:
        return f"Sync completed but manifest was not saved: {result.manifest_error}"
    return "Sync completed successfully"


@dataclass
class DeviceContext:
    """State of the device being managed, shared by the caller and the engine."""

    device_root: Optional[Path] = None
    config: DeviceConfig = dataclass_field(default_factory=DeviceConfig)
    selected_playlist_ids: set[str] = dataclass_field(default_factory=set)
    is_syncing: bool = False
    status_message: str = ""
    last_result: Optional[SyncResult] = None
    volume_info: Optional[VolumeInfo] = None
    manifest_count: int = 0

    def select_device(self, device_root: str | Path, read_only: bool = False) -> None:
        """Point the context at a device and load its state."""
        self.device_root = Path(device_root)
        self.refresh(read_only=read_only)

    def refresh(self, read_only: bool = False) -> None:
        """Reload config, manifest size and storage info from the device.

        A device seen for the first time gets a default config saved on it,
        unless ``read_only`` is set, in which case the default stays in memory
        and nothing on the device is written.
        """
        root = self.require_root()
        store = DeviceConfigStore(root)
        if read_only:
            config = store.load()
            self.config = config if config is not None else DeviceConfig(alias=root.name)
        else:
            self.config = store.load_or_create()
        manifest = ManifestStore(root).load(set_aside_corrupt=not read_only)
        self.manifest_count = len(manifest)
        self.volume_info = get_volume_info(root)

    def save_config(self) -> None:
        """Persist the current config on the device."""
        DeviceConfigStore(self.require_root()).save(self.config)

    def selected_playlists(
        self, playlists: Iterable[PlaylistRef]
    ) -> List[PlaylistRef]:
        """Filter ``playlists`` down to the selected ones, keeping order."""
        return [p for p in playlists if p.id in self.selected_playlist_ids]

    def require_root(self) -> Path:
        """Get the device root or raise if none is usable."""
        if self.device_root is None:
            raise DeviceUnavailableError("No device selected")
        if not self.device_root.is_dir():
            raise DeviceUnavailableError(f"Device not available: {self.device_root}")
        return self.device_root


class SyncHandle:
    """A sync running in the background."""

    def __init__(self, future: "Future[SyncResult]", cancel_event: threading.Event):
        """Initialize handle."""
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        """Ask the sync to stop after the current operation."""
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        """Check if cancellation was requested."""
        return self._cancel_event.is_set()

    def done(self) -> bool:
        """Check if the sync has finished."""
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> SyncResult:
        """Wait for and return the sync result."""
        return self._future.result(timeout=timeout)


class DeviceSyncService:
    """Plans and runs syncs against device roots.

    Usage:
        service = DeviceSyncService()
        context = DeviceContext()
        context.select_device("/Volumes/PLAYER")
        result = service.sync(context, playlists, progress_callback=print)
    """

    _active_roots: set[Path] = set()
    _registry_lock = threading.Lock()

    def __init__(
        self,
        planner: Optional[ReconciliationPlanner] = None,
        executor: Optional[TransferExecutor] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the service.

        Args:
            planner: Reconciliation planner (default instance if None)
            executor: Transfer executor (built from config if None)
            config: Application configuration
        """
        self.config = config or get_config()
        self.planner = planner or ReconciliationPlanner()
        if executor is None:
            from ...services.transcoder import FFmpegTranscoder

            executor = TransferExecutor(
                transcoder=FFmpegTranscoder(
                    ffmpeg_path=self.config.ffmpeg_path,
                    timeout=self.config.transcode_timeout,
                ),
                default_bitrate_kbps=self.config.bitrate_kbps,
                manifest_save_interval=self.config.manifest_save_interval,
                max_consecutive_write_failures=(
                    self.config.max_consecutive_write_failures
                ),
            )
        self.executor = executor

    # ── Public API ──────────────────────────────────────────────────────────

    def plan(
        self, context: DeviceContext, playlists: Sequence[PlaylistRef]
    ) -> SyncPlan:
        """Compute the plan for a sync without touching the device."""
        root = context.require_root()
        manifest = ManifestStore(root).load(set_aside_corrupt=False)
        return self.planner.plan(playlists, context.config, manifest)

    def is_syncing(self, device_root: str | Path) -> bool:
        """Check if a sync is running against ``device_root``."""
        with self._registry_lock:
            return self._key(device_root) in self._active_roots

    def sync(
        self,
        context: DeviceContext,
        playlists: Sequence[PlaylistRef],
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncResult:
        """Run a sync on the calling thread.

        Raises:
            DeviceUnavailableError: If the context has no usable device
            AlreadySyncingError: If the device is already being synced
        """
        root = context.require_root()
        self._acquire(root)
        try:
            return self._run(context, root, playlists, progress_callback, cancel_event)
        finally:
            self._release(root)

    def start_sync(
        self,
        context: DeviceContext,
        playlists: Sequence[PlaylistRef],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SyncHandle:
        """Run a sync as a background task.

        The device is claimed before this returns, so a conflicting request
        fails immediately with ``AlreadySyncingError``.
        """
        root = context.require_root()
        self._acquire(root)
        cancel_event = threading.Event()

        def run() -> SyncResult:
            try:
                return self._run(
                    context, root, playlists, progress_callback, cancel_event
                )
            finally:
                self._release(root)

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="device-sync")
        try:
            future = pool.submit(run)
        except RuntimeError:
            self._release(root)
            raise
        finally:
            pool.shutdown(wait=False)
        return SyncHandle(future, cancel_event)

    # ── Internals ───────────────────────────────────────────────────────────

    def _run(
        self,
        context: DeviceContext,
        root: Path,
        playlists: Sequence[PlaylistRef],
        progress_callback: Optional[ProgressCallback],
        cancel_event: Optional[threading.Event],
    ) -> SyncResult:
        context.is_syncing = True
        context.status_message = f"Syncing {len(playlists)} playlists..."
        try:
            store = ManifestStore(root)
            manifest = store.load()
            store.prune_missing(manifest)

            plan = self.planner.plan(playlists, context.config, manifest)
            self._warn_if_short_of_space(root, plan)

            result = self.executor.execute(
                plan,
                root,
                progress_callback=progress_callback,
                manifest=manifest,
                cancel_event=cancel_event,
                bitrate_kbps=context.config.bitrate_kbps,
            )
            context.last_result = result
            context.manifest_count = len(manifest)
            context.status_message = describe_result(result)
            return result
        except Exception as e:
            context.status_message = f"Sync failed: {e}"
            raise
        finally:
            context.is_syncing = False
            context.volume_info = get_volume_info(root)

    @staticmethod
    def _warn_if_short_of_space(root: Path, plan: SyncPlan) -> None:
        info = get_volume_info(root)
        if info is None:
            return
        needed = plan.bytes_to_transfer
        if needed > info.free:
            logger.warning(
                "Sync may not fit: about %.0f MB to write, %.0f MB free",
                needed / (1024 * 1024),
                info.free / (1024 * 1024),
            )

    @staticmethod
    def _key(device_root: str | Path) -> Path:
        return Path(device_root).resolve()

    def _acquire(self, device_root: Path) -> None:
        key = self._key(device_root)
        with self._registry_lock:
            if key in self._active_roots:
                raise AlreadySyncingError(device_root)
            self._active_roots.add(key)
        logger.debug("Claimed device %s", key)

    def _release(self, device_root: Path) -> None:
        key = self._key(device_root)
        with self._registry_lock:
            self._active_roots.discard(key)
        logger.debug("Released device %s", key)
