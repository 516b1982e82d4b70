"""Models for the device sync engine."""

from .models import (
    DeviceConfig,
    LayoutMode,
    Manifest,
    PlaylistRef,
    TargetFormat,
    TrackRef,
    VolumeInfo,
    normalize_extension,
)

__all__ = [
    "TrackRef",
    "PlaylistRef",
    "DeviceConfig",
    "Manifest",
    "TargetFormat",
    "LayoutMode",
    "VolumeInfo",
    "normalize_extension",
]
