"""Exceptions raised by the sync engine."""


class SyncEngineError(Exception):
    """Base exception for sync engine errors."""

    pass


class AlreadySyncingError(SyncEngineError):
    """A sync against the same device root is already running."""

    def __init__(self, device_root: object) -> None:
        """Initialize with the contested device root."""
        super().__init__(f"Device is already syncing: {device_root}")
        self.device_root = device_root


class DeviceUnavailableError(SyncEngineError):
    """The device root is missing or not a directory."""

    pass


class ManifestError(SyncEngineError):
    """The device manifest could not be written."""

    pass


class DeviceConfigError(SyncEngineError):
    """The device configuration could not be written."""

    pass


class TranscodeError(SyncEngineError):
    """The external transcoder failed."""

    pass


class LibraryError(SyncEngineError):
    """The library catalog is missing or invalid."""

    pass
