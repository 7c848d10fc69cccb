"""
Sample collector: the single consumer of the sample stream.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Tuple

from common.metrics_utils import format_bits_per_second, format_bytes, format_duration
from configuration import PROGRESS_INTERVAL_SECONDS
from persistence.record import RunningTotals, Sample

logger = logging.getLogger(__name__)


class SampleCollector:
    """Fans in all samples, keeps running totals and the full history.

    Only this object mutates its totals and history, so no locking is needed.
    """

    def __init__(
        self,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
        in_flight: Optional[Callable[[], int]] = None,
    ):
        """Initialize the collector.

        Args:
            progress_interval: Minimum seconds between two progress lines
            in_flight: Optional callable returning the current in-flight estimate
        """
        self.progress_interval = progress_interval
        self.in_flight = in_flight
        self.totals = RunningTotals()
        self.history: List[Sample] = []
        self.closed = False
        self._last_progress = time.monotonic()

    async def run(self, sample_queue: asyncio.Queue) -> RunningTotals:
        """Drain the sample queue until it is closed with ``None``."""
        self.totals.start_time = time.time()
        self._last_progress = time.monotonic()

        while True:
            sample = await sample_queue.get()
            if sample is None:
                break
            self.add_sample(sample)

        self.close()
        return self.totals

    def add_sample(self, sample: Sample) -> None:
        """Account for one sample and emit a progress line if one is due."""
        self.totals.add(sample)
        self.history.append(sample)

        now = time.monotonic()
        if now - self._last_progress >= self.progress_interval:
            self._log_progress(sample)
            self._last_progress = now

    def close(self) -> None:
        """Mark the stream closed and fix the end time."""
        self.totals.end_time = time.time()
        self.closed = True
        logger.debug(f"Sample stream closed after {self.totals.count} samples")

    def snapshot(self) -> Tuple[Sample, ...]:
        """Immutable copy of the history, in arrival order."""
        return tuple(self.history)

    def _log_progress(self, latest: Sample) -> None:
        rate = self.totals.rate
        tasks = f"Tasks ~{self.in_flight()}. " if self.in_flight else ""
        logger.info(
            f"{tasks}Downloaded {self.totals.count} files: Total {format_bytes(self.totals.size)} "
            f"in {format_duration(self.totals.elapsed)} at a rate of {format_bytes(rate)}/s "
            f"({format_bits_per_second(rate)}). "
            f"Object name: {latest.key} ({format_bytes(latest.size)})"
        )
