"""
Retrieval worker: downloads one object into nowhere and measures it.
"""

import logging
import time

from common.exceptions import OpenRetrievalError, ReadRetrievalError
from configuration import DOWNLOAD_CHUNK_SIZE, HTTP_SUCCESS_STATUS
from persistence.record import Sample

logger = logging.getLogger(__name__)


class ObjectDownloader:
    """Fetches whole objects, discarding the payload while counting bytes."""

    def __init__(self, storage_system, chunk_size: int = DOWNLOAD_CHUNK_SIZE):
        self.storage_system = storage_system
        self.chunk_size = chunk_size

    async def download(self, key: str) -> Sample:
        """Download one object and return exactly one Sample.

        A failure to open the object is recorded with the status reported by
        the storage service and size 0. A failure while streaming keeps the
        partial size that was read.
        """
        size = 0
        status = HTTP_SUCCESS_STATUS
        start = time.monotonic()

        try:
            stream = await self.storage_system.open_object(key)
        except OpenRetrievalError as e:
            logger.warning(f"Failed to open {key} (HTTP {e.status_code}): {e}")
            return Sample(size=0, key=key, status=e.status_code, duration=time.monotonic() - start)

        async with stream:
            try:
                while True:
                    chunk = await stream.read(self.chunk_size)
                    if not chunk:
                        break
                    size += len(chunk)
            except ReadRetrievalError as e:
                status = e.status_code
                logger.warning(f"Failed to read data for {key} after {size} bytes (HTTP {status}): {e}")

        duration = time.monotonic() - start
        logger.debug(f"Downloaded {key}: {size} bytes in {duration:.3f}s")
        return Sample(size=size, key=key, status=status, duration=duration)
