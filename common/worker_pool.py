"""
Bounded async worker pool that fans enumerated keys out to retrieval workers.
"""

import asyncio
import logging
import time
from typing import AsyncIterable, List

from configuration import CONNECTION_LOG_INTERVAL, DEFAULT_CONCURRENCY, HTTP_ERROR_STATUS
from persistence.record import Sample

logger = logging.getLogger(__name__)

# Marker telling a pool worker that no more keys will arrive
_STOP = None


class DownloadDispatcher:
    """Fan-out of object keys to a fixed number of concurrent workers.

    Keys go through a bounded queue, so enumeration pauses while every
    worker is busy. Each worker puts exactly one Sample per key on the
    shared sample queue. ``join()`` waits for all workers and then closes
    the sample queue by putting ``None`` on it.

    All counters are mutated on the event loop thread only.
    """

    def __init__(
        self,
        downloader,
        sample_queue: asyncio.Queue,
        concurrency: int = DEFAULT_CONCURRENCY,
        storage_system=None,
    ):
        """Initialize the dispatcher.

        Args:
            downloader: Object with an async ``download(key) -> Sample``
            sample_queue: Queue the samples are published on
            concurrency: Number of pool workers (maximum retrievals in flight)
            storage_system: Optional storage system used for connection diagnostics
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self.downloader = downloader
        self.sample_queue = sample_queue
        self.concurrency = concurrency
        self.storage_system = storage_system

        self.dispatched: int = 0
        self.completed: int = 0

        self._key_queue: asyncio.Queue = asyncio.Queue(maxsize=concurrency)
        self._workers: List[asyncio.Task] = []

        logger.info(f"Initialized DownloadDispatcher with {concurrency} workers")

    @property
    def in_flight(self) -> int:
        """Keys admitted but not yet turned into a sample."""
        return self.dispatched - self.completed

    async def dispatch(self, keys: AsyncIterable[str]) -> int:
        """Start the pool workers and hand every key to them.

        Must always be followed by ``join()``, also when this raises.

        Args:
            keys: Admitted keys, typically an ObjectEnumerator

        Returns:
            Number of dispatched keys
        """
        self._workers = [
            asyncio.create_task(self._worker_task(i), name=f"download-worker-{i}")
            for i in range(self.concurrency)
        ]

        async for key in keys:
            await self._key_queue.put(key)
            self.dispatched += 1
            if self.dispatched % CONNECTION_LOG_INTERVAL == 0:
                self._log_connections()

        return self.dispatched

    async def join(self) -> None:
        """Wait for every dispatched key to be downloaded, then close the sample stream."""
        logger.info(
            f"Waiting for download to complete: {self.completed} out of "
            f"{self.dispatched} objects downloaded."
        )
        for _ in self._workers:
            await self._key_queue.put(_STOP)
        try:
            # Every worker must have returned before the sample stream closes
            results = await asyncio.gather(*self._workers, return_exceptions=True)
        finally:
            self._workers = []
            await self.sample_queue.put(None)

        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors:
            logger.error(f"Download worker stopped with {type(error).__name__}: {error}")
        if errors:
            raise errors[0]

        logger.info("Downloads done.")

    async def _worker_task(self, worker_id: int) -> None:
        """Pool worker: download keys until the stop marker arrives."""
        while True:
            key = await self._key_queue.get()
            if key is _STOP:
                logger.debug(f"Worker {worker_id} stopping")
                return

            start = time.monotonic()
            try:
                sample = await self.downloader.download(key)
            except Exception:
                logger.exception(f"Unexpected failure downloading {key}")
                sample = Sample(
                    size=0, key=key, status=HTTP_ERROR_STATUS, duration=time.monotonic() - start
                )
            self.completed += 1
            await self.sample_queue.put(sample)

    def _log_connections(self) -> None:
        if self.storage_system is None:
            return
        conn_count = self.storage_system.get_connection_count()
        logger.info(
            f"Dispatched: {self.dispatched}, in flight: {self.in_flight}, "
            f"active connections: {conn_count}"
        )
