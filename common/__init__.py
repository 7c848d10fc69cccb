"""
Common utilities for the download benchmark.
"""

from .exceptions import (
    BenchmarkError,
    ConfigurationError,
    ListingError,
    OpenRetrievalError,
    ReadRetrievalError,
    SerializationError,
)
from .worker_pool import DownloadDispatcher

__all__ = [
    'BenchmarkError',
    'ConfigurationError',
    'DownloadDispatcher',
    'ListingError',
    'OpenRetrievalError',
    'ReadRetrievalError',
    'SerializationError',
]
