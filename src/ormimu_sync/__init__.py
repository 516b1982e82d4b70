"""OrMiMu device sync engine.

Reconciles a playlist selection against an external device folder, copies or
transcodes files, and keeps an on-device manifest so repeated syncs are
incremental.
"""

__version__ = "1.0.0"
__author__ = "Kyberix"
__email__ = ""

from .config import Config
from .core.sync import DeviceContext, DeviceSyncService, ReconciliationPlanner
from .models import DeviceConfig, Manifest, PlaylistRef, TrackRef

__all__ = [
    "Config",
    "DeviceConfig",
    "DeviceContext",
    "DeviceSyncService",
    "Manifest",
    "PlaylistRef",
    "ReconciliationPlanner",
    "TrackRef",
]
