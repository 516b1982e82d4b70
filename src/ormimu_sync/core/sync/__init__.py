"""Synchronization module.

Handles target path layout, reconciliation planning, transfer execution and
the service entry point.
"""

from .executor import FailureReason, SyncFailure, SyncResult, TransferExecutor
from .layout import place_tracks, sanitize_component
from .operations import (
    ConvertOperation,
    CopyOperation,
    OperationKind,
    RemoveOperation,
    SkipOperation,
    SyncOperation,
    SyncPlan,
)
from .planner import ReconciliationPlanner
from .progress import ProgressCallback, ProgressUpdate
from .service import DeviceContext, DeviceSyncService, SyncHandle, get_volume_info

__all__ = [
    # Layout
    "place_tracks",
    "sanitize_component",
    # Planning
    "ReconciliationPlanner",
    "SyncPlan",
    "SyncOperation",
    "OperationKind",
    "CopyOperation",
    "ConvertOperation",
    "SkipOperation",
    "RemoveOperation",
    # Execution
    "TransferExecutor",
    "SyncResult",
    "SyncFailure",
    "FailureReason",
    "ProgressUpdate",
    "ProgressCallback",
    # Service
    "DeviceSyncService",
    "DeviceContext",
    "SyncHandle",
    "get_volume_info",
]
