"""Planned units of work produced by the planner and consumed by the executor."""

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union

from ...models.models import TargetFormat, TrackRef


class OperationKind(str, Enum):
    """Kinds of sync operations."""

    COPY = "copy"  # Byte-for-byte copy, source already in target format
    CONVERT = "convert"  # Transcode to the device format
    SKIP = "skip"  # Already on the device and unchanged
    REMOVE = "remove"  # Delete from the device


@dataclass(frozen=True)
class CopyOperation:
    """Copy a track to the device unchanged."""

    track: TrackRef
    target_path: str

    kind: ClassVar[OperationKind] = OperationKind.COPY

    @property
    def label(self) -> str:
        """Progress label."""
        return f"Copying {self.track.display_name}"


@dataclass(frozen=True)
class ConvertOperation:
    """Transcode a track into the device format."""

    track: TrackRef
    target_path: str
    target_format: TargetFormat

    kind: ClassVar[OperationKind] = OperationKind.CONVERT

    @property
    def label(self) -> str:
        """Progress label."""
        return (
            f"Converting {self.track.display_name} "
            f"({self.track.source_format} -> {self.target_format.value})"
        )


@dataclass(frozen=True)
class SkipOperation:
    """Nothing to do: the device already holds this file."""

    target_path: str
    track: Optional[TrackRef] = None

    kind: ClassVar[OperationKind] = OperationKind.SKIP

    @property
    def label(self) -> str:
        """Progress label."""
        return f"Up to date: {self.target_path}"


@dataclass(frozen=True)
class RemoveOperation:
    """Delete a file from the device."""

    target_path: str
    identifier: Optional[str] = None

    kind: ClassVar[OperationKind] = OperationKind.REMOVE

    @property
    def label(self) -> str:
        """Progress label."""
        return f"Removing {self.target_path}"


SyncOperation = Union[CopyOperation, ConvertOperation, SkipOperation, RemoveOperation]
TransferOperation = Union[CopyOperation, ConvertOperation]


@dataclass
class SyncPlan:
    """Ordered operations with statistics."""

    operations: List[SyncOperation] = dataclass_field(default_factory=list)

    # Statistics
    to_copy: int = 0
    to_convert: int = 0
    to_skip: int = 0
    to_remove: int = 0

    def add(self, operation: SyncOperation) -> None:
        """Append an operation and update statistics."""
        self.operations.append(operation)

        if operation.kind == OperationKind.COPY:
            self.to_copy += 1
        elif operation.kind == OperationKind.CONVERT:
            self.to_convert += 1
        elif operation.kind == OperationKind.SKIP:
            self.to_skip += 1
        elif operation.kind == OperationKind.REMOVE:
            self.to_remove += 1

    @property
    def has_changes(self) -> bool:
        """Check if anything besides skips is planned."""
        return bool(self.to_copy or self.to_convert or self.to_remove)

    @property
    def bytes_to_transfer(self) -> int:
        """Estimated bytes of source files to copy or convert."""
        total = 0
        for operation in self.operations:
            if isinstance(operation, (CopyOperation, ConvertOperation)):
                try:
                    total += operation.track.source_path.stat().st_size
                except OSError:
                    continue
        return total

    def __len__(self) -> int:
        return len(self.operations)

    def get_summary(self) -> Dict[str, int]:
        """Get summary statistics."""
        return {
            "total_operations": len(self.operations),
            "to_copy": self.to_copy,
            "to_convert": self.to_convert,
            "to_skip": self.to_skip,
            "to_remove": self.to_remove,
        }
