"""
Object enumerator: lazily lists the bucket and admits keys until a limit is hit.
"""

import logging
import time
from typing import AsyncIterator, Optional

from configuration import DEFAULT_MAX_OBJECTS, DEFAULT_MAX_SECONDS

logger = logging.getLogger(__name__)


class ObjectEnumerator:
    """One-shot async iterable over the keys to download.

    This is the only place where run limits are enforced. ``limit_reached``
    is evaluated right before a key is handed out, so a key is either
    admitted (and will be downloaded to completion) or never seen by the
    dispatcher.
    """

    def __init__(
        self,
        storage_system,
        max_objects: int = DEFAULT_MAX_OBJECTS,
        max_seconds: float = DEFAULT_MAX_SECONDS,
    ):
        """Initialize the enumerator.

        Args:
            storage_system: Object exposing an async ``list_keys()`` iterator
            max_objects: Maximum number of keys to admit (<= 0 means unlimited)
            max_seconds: Maximum seconds since enumeration start (<= 0 means unlimited)
        """
        self.storage_system = storage_system
        self.max_objects = max_objects
        self.max_seconds = max_seconds

        self.yielded: int = 0
        self.stop_reason: Optional[str] = None
        self._start: Optional[float] = None
        self._consumed = False

    @property
    def elapsed(self) -> float:
        """Seconds since enumeration started."""
        if self._start is None:
            return 0.0
        return time.monotonic() - self._start

    def limit_reached(self) -> Optional[str]:
        """Return the name of the limit that stops admission, or None."""
        if self.max_objects > 0 and self.yielded >= self.max_objects:
            return "max_objects"
        if self.max_seconds > 0 and self.elapsed >= self.max_seconds:
            return "max_seconds"
        return None

    def _stop(self, reason: str) -> None:
        self.stop_reason = reason
        if reason == "max_objects":
            logger.info(
                f"Max objects to download reached ({self.max_objects}). "
                f"Please wait for the objects to be downloaded."
            )
        elif reason == "max_seconds":
            logger.info(f"Max seconds reached ({self.max_seconds}s). No new downloads will start.")
        else:
            logger.info(f"Listing exhausted after {self.yielded} objects")

    def __aiter__(self) -> AsyncIterator[str]:
        if self._consumed:
            raise RuntimeError("ObjectEnumerator can only be iterated once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        self._start = time.monotonic()

        reason = self.limit_reached()
        if reason:
            self._stop(reason)
            return

        listing = self.storage_system.list_keys()
        try:
            async for key in listing:
                # Admission check
                reason = self.limit_reached()
                if reason:
                    self._stop(reason)
                    return

                self.yielded += 1
                yield key

                # Avoid requesting another listing page once the object limit is hit
                if self.max_objects > 0 and self.yielded >= self.max_objects:
                    self._stop("max_objects")
                    return
        finally:
            await listing.aclose()

        self._stop("exhausted")
