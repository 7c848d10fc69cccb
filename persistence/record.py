"""
Basic data structures for the download benchmark.
"""

import time
from typing import NamedTuple, Optional


class Sample(NamedTuple):
    """Measured outcome of one object retrieval.

    Attributes:
        size: Bytes received (partial size when the read failed)
        key: Object key
        status: Status code of the retrieval (200 on success)
        duration: Wall-clock duration of the retrieval in seconds
    """

    size: int
    key: str
    status: int
    duration: float

    @property
    def rate(self) -> float:
        """Bytes per second for this retrieval, 0 when no time elapsed."""
        if self.duration <= 0:
            return 0.0
        return self.size / self.duration


class RunningTotals:
    """Running aggregate of all samples seen by the collector."""

    def __init__(self):
        self.count: int = 0
        self.size: int = 0
        self.start_time: float = time.time()
        self.end_time: Optional[float] = None

    def add(self, sample: Sample) -> None:
        """Account for one sample."""
        self.count += 1
        self.size += sample.size

    @property
    def elapsed(self) -> float:
        """Seconds since start, up to end_time once the run has finished."""
        end = self.end_time if self.end_time is not None else time.time()
        return max(0.0, end - self.start_time)

    @property
    def rate(self) -> float:
        """Aggregate bytes per second."""
        elapsed = self.elapsed
        if elapsed <= 0:
            return 0.0
        return self.size / elapsed
