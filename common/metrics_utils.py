"""
Shared utilities for benchmark metrics: distribution statistics, status
histograms, throughput and human-readable formatting.
"""

import logging
from typing import Dict, Iterable, NamedTuple, Sequence, Tuple

import numpy as np
import pandas as pd

from configuration import (
    BITS_PER_BYTE,
    BYTES_PER_KB,
    GIGABITS_PER_GB,
    PERCENTILES,
    RATE_UNIT,
    SIZE_UNIT,
)

logger = logging.getLogger(__name__)


class StatsSummary(NamedTuple):
    """Distribution summary of one measured quantity."""

    max: float
    mean: float
    p50: float
    p90: float
    p95: float
    p99: float
    unit: str

    @classmethod
    def zero(cls, unit: str) -> "StatsSummary":
        """Sentinel used when there is nothing to summarize."""
        return cls(max=0.0, mean=0.0, p50=0.0, p90=0.0, p95=0.0, p99=0.0, unit=unit)


def calculate_distribution_stats(values: Iterable[float], unit: str) -> StatsSummary:
    """
    Calculate max, mean and percentiles of a set of values.

    Percentiles use linear interpolation between the closest ranks of the
    sorted values, so the result does not depend on the order of the input.
    Args:
        values: Values to summarize
        unit: Unit label attached to the summary

    Returns:
        StatsSummary; all zeros when values is empty
    """
    # Sorted first so the mean is bit-identical for any input order
    series = pd.Series(np.sort(np.asarray(list(values), dtype="float64")))

    if len(series) == 0:
        return StatsSummary.zero(unit)

    quantiles = series.quantile(list(PERCENTILES), interpolation="linear")
    p50, p90, p95, p99 = (float(quantiles.loc[q]) for q in PERCENTILES)

    return StatsSummary(
        max=float(series.max()),
        mean=float(series.mean()),
        p50=p50,
        p90=p90,
        p95=p95,
        p99=p99,
        unit=unit,
    )


def samples_to_dataframe(samples: Sequence) -> pd.DataFrame:
    """
    Convert samples to a DataFrame with a per-sample ``rate`` column.

    Rate is size / duration in bytes per second; samples with no measurable
    duration get a rate of 0.
    """
    df = pd.DataFrame(
        [
            {
                'key': s.key,
                'size': s.size,
                'status': s.status,
                'duration': s.duration,
            }
            for s in samples
        ],
        columns=['key', 'size', 'status', 'duration'],
    )
    duration = df['duration'].astype("float64")
    size = df['size'].astype("float64")
    df['rate'] = np.where(duration > 0, size / duration.where(duration > 0, 1.0), 0.0)
    return df


def count_status_codes(samples: Sequence) -> Dict[int, int]:
    """Map each status code to the number of samples that carry it."""
    if not samples:
        return {}
    counts = pd.Series([s.status for s in samples]).value_counts()
    return {int(status): int(count) for status, count in sorted(counts.items())}


def summarize_samples(samples: Sequence) -> Tuple[StatsSummary, StatsSummary, Dict[int, int]]:
    """
    Summarize a snapshot of the sample history.

    Failed samples are included in every statistic.

    Returns:
        Tuple of (size stats in B, rate stats in B/s, status histogram)
    """
    if not samples:
        return StatsSummary.zero(SIZE_UNIT), StatsSummary.zero(RATE_UNIT), {}

    df = samples_to_dataframe(samples)
    size_stats = calculate_distribution_stats(df['size'], SIZE_UNIT)
    rate_stats = calculate_distribution_stats(df['rate'], RATE_UNIT)
    status_counts = count_status_codes(samples)

    logger.debug(f"Summarized {len(df)} samples across {len(status_counts)} status codes")
    return size_stats, rate_stats, status_counts


def calculate_throughput_gbps(total_bytes: float, duration_seconds: float) -> float:
    """
    Calculate throughput in gigabits per second (Gbps) from bytes and duration.
    """
    if duration_seconds <= 0:
        return 0.0
    return (total_bytes * BITS_PER_BYTE) / (duration_seconds * GIGABITS_PER_GB)


def _format_si(value: float, suffixes: Sequence[str], digits: int) -> str:
    value = float(value)
    for suffix in suffixes[:-1]:
        if abs(value) < BYTES_PER_KB:
            return f"{value:.{digits}f} {suffix}"
        value /= BYTES_PER_KB
    return f"{value:.{digits}f} {suffixes[-1]}"


def format_bytes(size: float) -> str:
    """Format a byte count with SI units, e.g. ``12 MB``."""
    if abs(size) < BYTES_PER_KB:
        return f"{int(size)} B"
    return _format_si(size / BYTES_PER_KB, ["kB", "MB", "GB", "TB", "PB"], 1)


def format_bits_per_second(bytes_per_second: float) -> str:
    """Format a byte rate as bits per second, e.g. ``9.60 Mb/s``."""
    return _format_si(bytes_per_second * BITS_PER_BYTE, ["b/s", "kb/s", "Mb/s", "Gb/s", "Tb/s"], 2)


def format_duration(seconds: float) -> str:
    """Format seconds as e.g. ``1m5.250s``, rounded to milliseconds."""
    seconds = round(max(0.0, seconds), 3)
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    if hours:
        return f"{hours}h{minutes}m{secs:.3f}s"
    if minutes:
        return f"{minutes}m{secs:.3f}s"
    return f"{secs:.3f}s"
