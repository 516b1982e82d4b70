"""Progress reporting for sync runs.

The executor reports one update per completed operation, in plan order.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress update information."""

    current: int
    total: int
    message: str = ""

    @property
    def percentage(self) -> float:
        """Calculate progress percentage."""
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100.0

    @property
    def is_complete(self) -> bool:
        """Check if all operations are done."""
        return self.current >= self.total

    def as_tuple(self) -> tuple[int, int, str]:
        """Get ``(current, total, message)``."""
        return self.current, self.total, self.message

    def __str__(self) -> str:
        """String representation of progress."""
        text = f"{self.current}/{self.total} ({self.percentage:.1f}%)"
        if self.message:
            text += f" - {self.message}"
        return text


# Type alias for progress callback function
ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressReporter:
    """Counts completed operations and forwards updates to a callback.

    Callback errors are logged and never interrupt the sync.
    """

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None):
        """Initialize reporter.

        Args:
            total: Number of operations in the batch
            callback: Function to call with progress updates
        """
        self.total = total
        self.callback = callback
        self.completed = 0

    def advance(self, message: str = "") -> ProgressUpdate:
        """Mark one more operation as done and notify the callback."""
        self.completed += 1
        update = ProgressUpdate(self.completed, self.total, message)
        if self.callback:
            try:
                self.callback(update)
            except Exception as e:
                logger.error("Error in progress callback: %s", e)
        return update

