"""
Final report of a benchmark run and its JSON serialization.
"""

import json
import logging
import socket
import sys
from typing import Any, Dict, NamedTuple, Optional, TextIO

from common.exceptions import SerializationError
from common.metrics_utils import StatsSummary, format_bits_per_second, format_bytes, format_duration
from persistence.record import RunningTotals

logger = logging.getLogger(__name__)


class FinalReport(NamedTuple):
    """Immutable result of one run. Field names are the JSON field names."""

    host: str
    s3host: str
    https: bool
    start_time: int
    end_time: int
    duration: int
    bucket_name: str
    downloaded_bytes: int
    downloaded_objects: int
    download_rate: float
    rate_stats: StatsSummary
    size_stats: StatsSummary
    status_codes: Dict[int, int]

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form with nested summaries and string status keys."""
        data = self._asdict()
        data["rate_stats"] = self.rate_stats._asdict()
        data["size_stats"] = self.size_stats._asdict()
        data["status_codes"] = {str(code): count for code, count in self.status_codes.items()}
        return data


def build_report(
    config,
    totals: RunningTotals,
    size_stats: StatsSummary,
    rate_stats: StatsSummary,
    status_counts: Dict[int, int],
    hostname: Optional[str] = None,
) -> FinalReport:
    """Combine the run results with the static environment fields.

    Args:
        config: RunConfig of the run
        totals: Finalized running totals from the collector
        size_stats: Size distribution
        rate_stats: Per-sample rate distribution
        status_counts: Status code histogram
        hostname: Host name override (defaults to this machine)
    """
    end_time = totals.end_time if totals.end_time is not None else totals.start_time
    start_epoch = int(totals.start_time)
    end_epoch = int(end_time)

    return FinalReport(
        host=hostname if hostname is not None else socket.gethostname(),
        s3host=config.host,
        https=config.use_ssl,
        start_time=start_epoch,
        end_time=end_epoch,
        duration=end_epoch - start_epoch,
        bucket_name=config.bucket_name,
        downloaded_bytes=totals.size,
        downloaded_objects=totals.count,
        download_rate=totals.rate,
        rate_stats=rate_stats,
        size_stats=size_stats,
        status_codes=dict(status_counts),
    )


def serialize_report(report: FinalReport) -> str:
    """Serialize the report to a JSON document.

    Raises:
        SerializationError: If the report holds values JSON cannot represent
    """
    try:
        return json.dumps(report.to_dict(), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize report: {e}") from e


def emit_report(report: FinalReport, stream: Optional[TextIO] = None) -> str:
    """Write the report once to the primary output channel."""
    data = serialize_report(report)
    stream = stream or sys.stdout
    stream.write(data + "\n")
    stream.flush()
    return data


def format_summary(report: FinalReport) -> str:
    """Human-readable one-line summary of the run."""
    return (
        f"Total downloaded {report.downloaded_objects} objects, "
        f"{format_bytes(report.downloaded_bytes)} in {format_duration(report.duration)} "
        f"at a rate of {format_bytes(report.download_rate)}/s "
        f"({format_bits_per_second(report.download_rate)})"
    )
