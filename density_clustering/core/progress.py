"""
Progress reporting for clustering runs.

The engine reports a ``Progress`` snapshot after every classification decision.
Callbacks are observers only; they never influence the clustering outcome.
"""

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Progress:
    """Snapshot of a clustering run's progress."""

    task: str
    processed: int
    total: int
    clusters: int

    @property
    def percentage(self) -> float:
        """Processed objects as a percentage of the universe."""
        if self.total <= 0:
            return 100.0
        return 100.0 * self.processed / self.total

    def __str__(self) -> str:
        return (
            f"{self.task}: {self.processed}/{self.total} "
            f"[{self.percentage:3.0f}%] #Clusters: {self.clusters}"
        )


ProgressCallback = Callable[[Progress], None]
