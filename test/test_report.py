"""
Tests for the final report.
"""

import io
import json
import math
import unittest
import sys
import os

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.exceptions import SerializationError
from common.metrics_utils import StatsSummary, summarize_samples
from common.settings import RunConfig
from persistence.record import RunningTotals, Sample
from persistence.report import build_report, emit_report, format_summary, serialize_report


def _config():
    return RunConfig(
        endpoint_url="https://s3.example.com",
        host="s3.example.com",
        use_ssl=True,
        access_key="AKIA",
        secret_key="secret",
        region="us-east-1",
        bucket_name="media",
    )


def _totals(samples, start=1_700_000_000.0, end=1_700_000_010.0):
    totals = RunningTotals()
    totals.start_time = start
    for sample in samples:
        totals.add(sample)
    totals.end_time = end
    return totals


class TestFinalReport(unittest.TestCase):
    """Test report assembly and serialization."""

    def setUp(self):
        self.samples = [
            Sample(size=10, key="a", status=200, duration=1.0),
            Sample(size=20, key="b", status=200, duration=1.0),
            Sample(size=30, key="c", status=500, duration=1.0),
        ]
        size_stats, rate_stats, status_counts = summarize_samples(self.samples)
        self.report = build_report(
            _config(), _totals(self.samples), size_stats, rate_stats, status_counts, hostname="bench-01"
        )

    def test_report_fields(self):
        report = self.report

        self.assertEqual(report.host, "bench-01")
        self.assertEqual(report.s3host, "s3.example.com")
        self.assertTrue(report.https)
        self.assertEqual(report.bucket_name, "media")
        self.assertEqual(report.start_time, 1_700_000_000)
        self.assertEqual(report.end_time, 1_700_000_010)
        self.assertEqual(report.duration, 10)
        self.assertEqual(report.downloaded_bytes, 60)
        self.assertEqual(report.downloaded_objects, 3)
        self.assertAlmostEqual(report.download_rate, 6.0)
        self.assertEqual(report.size_stats.max, 30)
        self.assertEqual(report.status_codes, {200: 2, 500: 1})

    def test_json_shape(self):
        stream = io.StringIO()

        emit_report(self.report, stream)
        data = json.loads(stream.getvalue())

        self.assertEqual(stream.getvalue().count("\n"), 1)
        self.assertEqual(
            set(data),
            {
                "host", "s3host", "https", "start_time", "end_time", "duration", "bucket_name",
                "downloaded_bytes", "downloaded_objects", "download_rate",
                "rate_stats", "size_stats", "status_codes",
            },
        )
        self.assertEqual(data["size_stats"]["unit"], "B")
        self.assertEqual(data["rate_stats"]["unit"], "B/s")
        self.assertEqual(set(data["size_stats"]), {"max", "mean", "p50", "p90", "p95", "p99", "unit"})
        self.assertEqual(data["status_codes"], {"200": 2, "500": 1})
        self.assertEqual(data["size_stats"]["mean"], 20)

    def test_empty_run_report(self):
        totals = _totals([])
        size_stats, rate_stats, status_counts = summarize_samples(())

        report = build_report(_config(), totals, size_stats, rate_stats, status_counts, hostname="h")
        data = json.loads(serialize_report(report))

        self.assertEqual(data["downloaded_objects"], 0)
        self.assertEqual(data["downloaded_bytes"], 0)
        self.assertEqual(data["size_stats"], StatsSummary.zero("B")._asdict())
        self.assertEqual(data["status_codes"], {})

    def test_unserializable_report(self):
        broken = self.report._replace(download_rate=math.nan)

        with self.assertRaises(SerializationError):
            serialize_report(broken)

    def test_default_hostname(self):
        size_stats, rate_stats, status_counts = summarize_samples(())

        report = build_report(_config(), _totals([]), size_stats, rate_stats, status_counts)

        self.assertTrue(report.host)

    def test_summary_line(self):
        line = format_summary(self.report)

        self.assertTrue(line.startswith("Total downloaded 3 objects, 60 B in 10.000s"))


if __name__ == '__main__':
    unittest.main()
