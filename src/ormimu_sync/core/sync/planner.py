"""Reconciliation planner.

Compares the desired state (selected playlists resolved to device paths) with
the current state (the device manifest) and produces the ordered operations
that bring the device in line. Planning is pure computation and cannot fail.
"""

import logging
import random
from typing import List, Optional, Sequence

from ...models.models import DeviceConfig, Manifest, PlaylistRef
from ..identity import content_id
from .layout import Placement, is_flat_path, place_tracks
from .operations import (
    ConvertOperation,
    CopyOperation,
    RemoveOperation,
    SkipOperation,
    SyncOperation,
    SyncPlan,
)

logger = logging.getLogger(__name__)


class ReconciliationPlanner:
    """Computes sync plans.

    Usage:
        planner = ReconciliationPlanner()
        plan = planner.plan(playlists, config, manifest)
        print(plan.get_summary())
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the planner.

        Args:
            rng: Random source for shuffled flat layouts (tests pass a seeded one)
        """
        self.rng = rng

    def plan(
        self,
        selected_playlists: Sequence[PlaylistRef],
        config: DeviceConfig,
        current_manifest: Manifest,
    ) -> SyncPlan:
        """Compute the operations needed to sync the selection to the device.

        Args:
            selected_playlists: Playlists chosen by the user
            config: Device sync policy
            current_manifest: What the device currently holds

        Returns:
            SyncPlan with orphan removals first, then one entry per desired track
        """
        placements = place_tracks(selected_playlists, config, self.rng)
        desired_paths = {placement.path for placement in placements}

        plan = SyncPlan()
        for path in self._orphans_to_remove(current_manifest, desired_paths, config):
            plan.add(RemoveOperation(path, current_manifest.get(path)))

        for placement in placements:
            for operation in self._reconcile(placement, config, current_manifest):
                plan.add(operation)

        logger.info(
            "Planned %d operations for %d desired tracks: %s",
            len(plan),
            len(placements),
            plan.get_summary(),
        )
        return plan

    def _orphans_to_remove(
        self, manifest: Manifest, desired_paths: set[str], config: DeviceConfig
    ) -> List[str]:
        """Manifest paths no longer desired that should be deleted.

        Orphans are kept unless pruning is enabled. A shuffled flat layout is
        the non-incremental path: it renumbers the whole flat namespace, so
        stale flat files are always removed.
        """
        orphans = [path for path in manifest.paths() if path not in desired_paths]
        if config.prune_orphans:
            return orphans
        if config.shuffle_enabled:
            return [path for path in orphans if is_flat_path(path)]
        if orphans:
            logger.debug("Keeping %d orphaned files (pruning disabled)", len(orphans))
        return []

    def _reconcile(
        self, placement: Placement, config: DeviceConfig, manifest: Manifest
    ) -> List[SyncOperation]:
        """Decide what to do for one desired track."""
        track = placement.track
        path = placement.path
        identifier = content_id(track)
        extension = config.target_format.value

        existing = manifest.get(path)
        if existing is not None:
            if existing == identifier and path.lower().endswith(f".{extension}"):
                return [SkipOperation(path, track)]
            operations: List[SyncOperation] = [RemoveOperation(path, existing)]
        else:
            operations = []

        if track.source_format == extension:
            operations.append(CopyOperation(track, path))
        else:
            operations.append(ConvertOperation(track, path, config.target_format))
        return operations
