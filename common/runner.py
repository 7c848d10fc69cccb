"""
Benchmark runner: drives one download run from listing to final report.
"""

import asyncio
import logging
from typing import Optional, TextIO

from algorithms.downloader import ObjectDownloader
from algorithms.enumerator import ObjectEnumerator
from common.metrics_utils import calculate_throughput_gbps, summarize_samples
from common.storage_factory import create_storage_system
from common.worker_pool import DownloadDispatcher
from persistence.metrics_aggregator import SampleCollector
from persistence.parquet import ParquetPersistence
from persistence.report import FinalReport, build_report, emit_report, format_summary

logger = logging.getLogger(__name__)


class RunState:
    """States of a run. Transitions are strictly forward."""

    IDLE = "idle"
    DOWNLOADING = "downloading"
    DRAINING = "draining"
    SUMMARIZING = "summarizing"
    REPORTED = "reported"
    FAILED = "failed"


class BenchmarkRunner:
    """Runs the enumerate, download, collect, summarize and report pipeline once."""

    def __init__(
        self,
        config,
        storage_system=None,
        samples_persistence: Optional[ParquetPersistence] = None,
        output: Optional[TextIO] = None,
        hostname: Optional[str] = None,
    ):
        """Initialize the runner.

        Args:
            config: Resolved RunConfig
            storage_system: Storage system to use (default: built from config)
            samples_persistence: Where to save the sample history (default:
                config.samples_dir, if set)
            output: Stream the report is written to (default: stdout)
            hostname: Host name reported in the final report (default: this machine)
        """
        self.config = config
        self.storage_system = storage_system or create_storage_system(config)
        if samples_persistence is None and config.samples_dir:
            samples_persistence = ParquetPersistence(config.samples_dir)
        self.samples_persistence = samples_persistence
        self.output = output
        self.hostname = hostname

        self.state = RunState.IDLE
        self.collector: Optional[SampleCollector] = None
        self.dispatcher: Optional[DownloadDispatcher] = None
        self.report: Optional[FinalReport] = None

        logger.info(
            f"Initialized benchmark runner for bucket {config.bucket_name} on {config.host} "
            f"(concurrency={config.concurrency}, max_objects={config.max_objects}, "
            f"max_seconds={config.max_seconds})"
        )

    async def run(self) -> FinalReport:
        """Execute the run and emit the report.

        Raises:
            BenchmarkError: On listing or serialization failure; the run is
                marked FAILED and no report is emitted
        """
        if self.state != RunState.IDLE:
            raise RuntimeError(f"Runner already used (state={self.state})")

        try:
            async with self.storage_system:
                await self._download_all()

            self.state = RunState.SUMMARIZING
            history = self.collector.snapshot()
            size_stats, rate_stats, status_counts = summarize_samples(history)

            if self.samples_persistence is not None:
                path = self.samples_persistence.save_samples(history)
                if path:
                    logger.info(f"Samples saved to {path}")

            report = build_report(
                self.config,
                self.collector.totals,
                size_stats,
                rate_stats,
                status_counts,
                hostname=self.hostname,
            )
            logger.info(format_summary(report))
            logger.info(
                f"Average throughput: "
                f"{calculate_throughput_gbps(report.downloaded_bytes, self.collector.totals.elapsed):.3f} Gbps"
            )
            emit_report(report, self.output)
        except BaseException:
            self.state = RunState.FAILED
            raise

        self.report = report
        self.state = RunState.REPORTED
        return report

    async def _download_all(self) -> None:
        """Fan out every admitted key and wait until the collector has seen them all."""
        sample_queue: asyncio.Queue = asyncio.Queue()

        enumerator = ObjectEnumerator(
            self.storage_system,
            max_objects=self.config.max_objects,
            max_seconds=self.config.max_seconds,
        )
        downloader = ObjectDownloader(self.storage_system)
        self.dispatcher = DownloadDispatcher(
            downloader,
            sample_queue,
            concurrency=self.config.concurrency,
            storage_system=self.storage_system,
        )
        dispatcher = self.dispatcher
        self.collector = SampleCollector(in_flight=lambda: dispatcher.in_flight)
        collector_task = asyncio.create_task(self.collector.run(sample_queue))

        self.state = RunState.DOWNLOADING
        try:
            await self.dispatcher.dispatch(enumerator)
        finally:
            self.state = RunState.DRAINING
            try:
                await self.dispatcher.join()
            finally:
                await collector_task
