"""
Tests for the bounded download dispatcher.
"""

import asyncio
import unittest
import sys
import os

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from algorithms.downloader import ObjectDownloader
from algorithms.enumerator import ObjectEnumerator
from common.exceptions import ListingError
from common.worker_pool import DownloadDispatcher
from persistence.record import Sample
from storage_fakes import FakeStorageSystem


def _drain_queue(queue):
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


class TrackingDownloader:
    """Downloader recording how many downloads run at the same time."""

    def __init__(self):
        self.running = 0
        self.peak = 0

    async def download(self, key):
        self.running += 1
        self.peak = max(self.peak, self.running)
        await asyncio.sleep(0.01)
        self.running -= 1
        return Sample(size=1, key=key, status=200, duration=0.01)


class FailingDownloader:
    """Downloader raising a transport error for some keys."""

    def __init__(self, failing, delays=None):
        self.failing = failing
        self.delays = delays or {}

    async def download(self, key):
        await asyncio.sleep(self.delays.get(key, 0))
        if key in self.failing:
            raise ConnectionResetError(f"connection reset by peer while fetching {key}")
        return Sample(size=1, key=key, status=200, duration=0.01)


class TestDownloadDispatcher(unittest.IsolatedAsyncioTestCase):
    """Test fan-out, draining and stream closure."""

    async def _run(self, dispatcher, keys):
        try:
            await dispatcher.dispatch(keys)
        finally:
            await dispatcher.join()

    async def test_one_sample_per_key_then_close(self):
        storage = FakeStorageSystem({f"k{i}": i for i in range(20)})
        queue = asyncio.Queue()
        dispatcher = DownloadDispatcher(ObjectDownloader(storage), queue, concurrency=4)

        await self._run(dispatcher, ObjectEnumerator(storage))

        items = _drain_queue(queue)
        self.assertIsNone(items[-1])
        samples = items[:-1]
        self.assertEqual(len(samples), 20)
        self.assertEqual(sorted(s.key for s in samples), sorted(storage.objects))
        self.assertEqual(dispatcher.dispatched, 20)
        self.assertEqual(dispatcher.completed, 20)
        self.assertEqual(dispatcher.in_flight, 0)

    async def test_concurrency_is_bounded(self):
        downloader = TrackingDownloader()
        storage = FakeStorageSystem({f"k{i}": 1 for i in range(30)})
        dispatcher = DownloadDispatcher(downloader, asyncio.Queue(), concurrency=3)

        await self._run(dispatcher, ObjectEnumerator(storage))

        self.assertLessEqual(downloader.peak, 3)
        self.assertGreater(downloader.peak, 1)

    async def test_empty_enumeration_closes_stream(self):
        queue = asyncio.Queue()
        dispatcher = DownloadDispatcher(TrackingDownloader(), queue, concurrency=2)

        await self._run(dispatcher, ObjectEnumerator(FakeStorageSystem({})))

        self.assertEqual(_drain_queue(queue), [None])
        self.assertEqual(dispatcher.dispatched, 0)

    async def test_listing_error_still_drains_admitted_keys(self):
        storage = FakeStorageSystem({f"k{i}": 5 for i in range(10)}, list_error_after=6)
        queue = asyncio.Queue()
        dispatcher = DownloadDispatcher(ObjectDownloader(storage), queue, concurrency=2)

        with self.assertRaises(ListingError):
            await self._run(dispatcher, ObjectEnumerator(storage))

        items = _drain_queue(queue)
        self.assertIsNone(items[-1])
        self.assertEqual(len(items) - 1, 6)
        self.assertEqual(dispatcher.dispatched, 6)

    async def test_unexpected_download_error_becomes_sample(self):
        queue = asyncio.Queue()
        dispatcher = DownloadDispatcher(FailingDownloader({"k0"}), queue, concurrency=1)
        storage = FakeStorageSystem({f"k{i}": 1 for i in range(10)})

        await asyncio.wait_for(self._run(dispatcher, ObjectEnumerator(storage)), timeout=5)

        items = _drain_queue(queue)
        self.assertIsNone(items[-1])
        samples = {s.key: s for s in items[:-1]}
        self.assertEqual(len(samples), 10)
        self.assertEqual(samples["k0"].status, 500)
        self.assertEqual(samples["k0"].size, 0)
        self.assertEqual(samples["k1"].status, 200)
        self.assertEqual(dispatcher.in_flight, 0)

    async def test_stream_closes_after_slow_workers(self):
        queue = asyncio.Queue()
        downloader = FailingDownloader({"boom"}, delays={"slow1": 0.2, "slow2": 0.2})
        dispatcher = DownloadDispatcher(downloader, queue, concurrency=3)
        storage = FakeStorageSystem({"slow1": 1, "slow2": 1, "boom": 1})

        await asyncio.wait_for(self._run(dispatcher, ObjectEnumerator(storage)), timeout=5)

        items = _drain_queue(queue)
        self.assertEqual(len(items), 4)
        self.assertIsNone(items[-1])
        self.assertNotIn(None, items[:-1])
        self.assertEqual(
            {s.key: s.status for s in items[:-1]},
            {"slow1": 200, "slow2": 200, "boom": 500},
        )

    async def test_rejects_zero_concurrency(self):
        with self.assertRaises(ValueError):
            DownloadDispatcher(TrackingDownloader(), asyncio.Queue(), concurrency=0)


if __name__ == '__main__':
    unittest.main()
